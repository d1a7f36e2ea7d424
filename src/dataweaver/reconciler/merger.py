"""Deterministic exact-key join of two datasets."""

import logging
from typing import Dict, List, Optional

from .._io import cell_text, find_header, key_text
from .._types import Dataset, JoinResult, Row

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_FIELD = "NISN"
PREFERRED_MERGE_KEY = "nama"
SEQUENCE_FIELD = "No"


def overlay_rows(row_a: Row, row_b: Row) -> Row:
    """Copy *row_a* and overlay the fields of *row_b*; B wins on equal names."""
    merged = dict(row_a)
    merged.update(row_b)
    return merged


def number_rows(rows: List[Row], start: int = 1) -> List[Row]:
    """Prefix each row with a fresh ``No`` sequence field, dropping any old one."""
    numbered = []
    for offset, row in enumerate(rows):
        fields = {k: v for k, v in row.items() if k != SEQUENCE_FIELD}
        numbered.append({SEQUENCE_FIELD: start + offset, **fields})
    return numbered


def join_datasets(
    dataset_a: Optional[Dataset],
    dataset_b: Optional[Dataset],
    merge_key: str,
    identity_field: str = DEFAULT_IDENTITY_FIELD,
) -> JoinResult:
    """Join B onto A on a case-insensitive merge key.

    Rows of A are bucketed by their trimmed, lower-cased key. Each B row
    takes the first row of its bucket that has a non-empty identity value;
    the merged row is A overlaid by B. B rows without such a partner are
    returned unmatched in their original order.

    Args:
        dataset_a: Reference dataset; must carry *identity_field*.
        dataset_b: Incoming dataset.
        merge_key: Field name present in both datasets (any case).
        identity_field: Field whose presence makes an A row a valid target.

    Returns:
        JoinResult with matched and unmatched rows. On a precondition
        failure ``error`` is set and every B row is unmatched.
    """
    rows_b = list(dataset_b.rows) if dataset_b is not None else []
    if dataset_a is None or dataset_b is None or not merge_key:
        return JoinResult(unmatched_rows_b=rows_b, error="Missing file data or merge key.")

    key_a = find_header(dataset_a.headers, merge_key)
    if key_a is None:
        return JoinResult(
            unmatched_rows_b=rows_b,
            error=f'Merge key "{merge_key}" not found in file A.',
        )
    key_b = find_header(dataset_b.headers, merge_key)
    if key_b is None:
        return JoinResult(
            unmatched_rows_b=rows_b,
            error=f'Merge key "{merge_key}" not found in file B.',
        )
    identity_a = find_header(dataset_a.headers, identity_field)
    if identity_a is None:
        return JoinResult(
            unmatched_rows_b=rows_b,
            error=f'Required "{identity_field}" header not found in file A.',
        )

    buckets: Dict[str, List[Row]] = {}
    for row_a in dataset_a.rows:
        key = key_text(row_a.get(key_a))
        if key and cell_text(row_a.get(identity_a)).strip():
            buckets.setdefault(key, []).append(row_a)

    matched: List[Row] = []
    unmatched: List[Row] = []
    for row_b in rows_b:
        key = key_text(row_b.get(key_b))
        bucket = buckets.get(key) if key else None
        if bucket:
            matched.append(overlay_rows(bucket[0], row_b))
        else:
            unmatched.append(row_b)

    logger.info(
        "Joined on %r: %d matched, %d unmatched (%d keys indexed in A)",
        merge_key, len(matched), len(unmatched), len(buckets),
    )
    return JoinResult(matched_rows=matched, unmatched_rows_b=unmatched)


def common_headers(headers_a: List[str], headers_b: List[str]) -> List[str]:
    """Headers of A, in A's spelling and order, also present in B ignoring case."""
    lowered_b = {h.lower() for h in headers_b}
    return [h for h in headers_a if h.lower() in lowered_b]


def choose_merge_key(
    headers_a: Optional[List[str]],
    headers_b: Optional[List[str]],
    saved_key: Optional[str] = None,
    current_key: Optional[str] = None,
) -> str:
    """Pick the default merge key for a pair of datasets.

    A common "Nama" column always wins. Otherwise the saved default is
    used when still common, then the current key, then the first common
    header. Returns "" when the datasets share no column.
    """
    if headers_a is None or headers_b is None:
        return "Nama"
    common = common_headers(headers_a, headers_b)
    preferred = find_header(common, PREFERRED_MERGE_KEY)
    if preferred:
        return preferred
    for key in (saved_key, current_key):
        found = find_header(common, key or "")
        if found:
            return found
    return common[0] if common else ""


def merged_headers(headers_a: List[str], headers_b: List[str]) -> List[str]:
    """``No`` plus the headers of A then B, de-duplicated ignoring case."""
    seen: Dict[str, str] = {}
    for header in [SEQUENCE_FIELD, *headers_a, *headers_b]:
        seen.setdefault(header.lower(), header)
    return list(seen.values())
