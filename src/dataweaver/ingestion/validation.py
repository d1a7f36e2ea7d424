"""Upload checks for the reference (A) and incoming (B) datasets."""

import logging

from .._io import cell_text, find_header
from .._types import Dataset, LoadResult
from ..reconciler.merger import DEFAULT_IDENTITY_FIELD

logger = logging.getLogger(__name__)

_MISSING_IDENTITY = "-"


def validate_reference(dataset: Dataset, identity_field: str = DEFAULT_IDENTITY_FIELD) -> LoadResult:
    """The reference dataset must carry the identity column."""
    if find_header(dataset.headers, identity_field) is None:
        return LoadResult(error=f"File {identity_field} must contain a '{identity_field}' column.")
    return LoadResult(dataset=dataset)


def validate_incoming(dataset: Dataset) -> LoadResult:
    """The incoming dataset must carry at least one header containing ``id``."""
    if not any("id" in h.lower() for h in dataset.headers):
        return LoadResult(error="File id Bulk must contain an 'id' column.")
    return LoadResult(dataset=dataset)


def drop_rows_with_identity(dataset: Dataset, identity_field: str = DEFAULT_IDENTITY_FIELD) -> LoadResult:
    """Remove incoming rows that already have an identity value.

    A value counts as missing when it is empty or a lone ``-``. The
    removed count is reported in ``filtered_rows``.
    """
    header = find_header(dataset.headers, identity_field)
    if header is None:
        return LoadResult(dataset=dataset)

    kept = [
        row for row in dataset.rows
        if cell_text(row.get(header)).strip() in ("", _MISSING_IDENTITY)
    ]
    removed = len(dataset.rows) - len(kept)
    if removed:
        logger.info("%d rows with an existing %s were removed from %s", removed, identity_field, dataset.file_name)
    return LoadResult(
        dataset=dataset.model_copy(update={"rows": kept}),
        filtered_rows=removed,
    )
