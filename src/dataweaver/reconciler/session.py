"""Manual reconciliation workflow over the unmatched candidates.

A session owns the two datasets and everything derived from them. Each
B row is always in exactly one of ``matched_rows`` or ``candidates``;
selections only move rows across when :meth:`ReconciliationSession.commit_all`
runs.
"""

import logging
from typing import Dict, List, Optional, Set

from .._io import cell_text, find_header, get_field, key_text
from .._types import CommitResult, Dataset, MatchCandidate, MergeRunResult, Row
from .fuzzy import auto_match
from .merger import DEFAULT_IDENTITY_FIELD, SEQUENCE_FIELD, join_datasets, number_rows, overlay_rows

logger = logging.getLogger(__name__)


class ReconciliationSession:
    """Join, auto-match and manual review state for one pair of datasets.

    Parameters
    ----------
    dataset_a : Dataset, optional
        Reference dataset (carries the identity field).
    dataset_b : Dataset, optional
        Incoming dataset whose rows are being matched.
    identity_field : str
        Field an A row needs to be a join target.
    """

    def __init__(
        self,
        dataset_a: Optional[Dataset] = None,
        dataset_b: Optional[Dataset] = None,
        identity_field: str = DEFAULT_IDENTITY_FIELD,
    ) -> None:
        self.dataset_a = dataset_a
        self.dataset_b = dataset_b
        self.identity_field = identity_field
        self.merge_key = ""
        self.matched_rows: List[Row] = []
        self.candidates: List[MatchCandidate] = []
        self.selections: Dict[str, Row] = {}

    # ------------------------------------------------------------------
    # Dataset lifecycle
    # ------------------------------------------------------------------

    def load(self, dataset_a: Optional[Dataset] = None, dataset_b: Optional[Dataset] = None) -> None:
        """Replace one or both datasets; derived state is discarded."""
        if dataset_a is not None:
            self.dataset_a = dataset_a
        if dataset_b is not None:
            self.dataset_b = dataset_b
        self._clear_results()

    def reset(self) -> None:
        """Drop both datasets and every derived result."""
        self.dataset_a = None
        self.dataset_b = None
        self.merge_key = ""
        self._clear_results()

    def _clear_results(self) -> None:
        self.matched_rows = []
        self.candidates = []
        self.selections = {}

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    @property
    def key_a(self) -> str:
        headers = self.dataset_a.headers if self.dataset_a else []
        return find_header(headers, self.merge_key) or ""

    @property
    def key_b(self) -> str:
        headers = self.dataset_b.headers if self.dataset_b else []
        return find_header(headers, self.merge_key) or ""

    def run(self, merge_key: str) -> MergeRunResult:
        """Join the datasets on *merge_key* and auto-match the leftovers.

        Everything derived from a previous run, selections included, is
        recomputed from scratch.
        """
        self._clear_results()
        self.merge_key = merge_key

        joined = join_datasets(self.dataset_a, self.dataset_b, merge_key, self.identity_field)
        if not joined.ok:
            logger.warning("Merge on %r failed: %s", merge_key, joined.error)
            return MergeRunResult(error=joined.error)

        self.matched_rows = number_rows(joined.matched_rows)
        self.candidates = auto_match(
            joined.unmatched_rows_b,
            self.dataset_a.rows,
            self.key_a,
            self.key_b,
            identity_field=self.identity_field,
        )
        for candidate in self.candidates:
            if candidate.auto_selected:
                self.selections[self.selection_key(candidate.source_row)] = candidate.best_match

        return MergeRunResult(
            matched_count=len(self.matched_rows),
            unmatched_count=len(self.candidates),
            auto_selected=len(self.selections),
        )

    # ------------------------------------------------------------------
    # Manual review
    # ------------------------------------------------------------------

    def selection_key(self, row_b: Row) -> str:
        """Key a B row is tracked under: its merge-key value as text."""
        return cell_text(row_b.get(self.key_b))

    def is_selected(self, key: str) -> bool:
        return key in self.selections

    def select(self, key: str, row_a: Row) -> None:
        """Choose *row_a* for the candidate keyed *key*.

        The same A row may be selected for several candidates; conflicts
        are only settled by commit order.

        Raises:
            KeyError: If no pending candidate has this key.
        """
        if not any(self.selection_key(c.source_row) == key for c in self.candidates):
            raise KeyError(f"No unmatched row with key {key!r}")
        self.selections[key] = row_a
        logger.debug("Selected target for %r", key)

    def deselect(self, key: str) -> None:
        """Return the candidate keyed *key* to the unresolved state."""
        self.selections.pop(key, None)

    def commit_all(self) -> CommitResult:
        """Move every selected candidate into the matched rows.

        Committed rows are numbered after the existing matched rows and
        their selections are consumed. With nothing selected this is a
        no-op reporting zero changes.
        """
        committed_keys: Set[str] = set()
        new_rows: List[Row] = []
        for candidate in self.candidates:
            key = self.selection_key(candidate.source_row)
            target = self.selections.get(key)
            if target:
                new_rows.append(overlay_rows(target, candidate.source_row))
                committed_keys.add(key)

        for row in new_rows:
            row[SEQUENCE_FIELD] = len(self.matched_rows) + 1
            self.matched_rows.append(row)

        if committed_keys:
            self.candidates = [
                c for c in self.candidates
                if self.selection_key(c.source_row) not in committed_keys
            ]
            for key in committed_keys:
                del self.selections[key]
            logger.info("Committed %d manual matches", len(new_rows))

        return CommitResult(
            committed=len(new_rows),
            matched_count=len(self.matched_rows),
            unmatched_count=len(self.candidates),
        )

    def available_targets(self, key: str) -> List[Row]:
        """A rows offered for the candidate keyed *key* in the review list.

        Only rows with an identity value are offered. Rows whose merge-key
        value is already used by a matched row or by another selection are
        hidden, except the one currently chosen (or proposed) for this
        candidate.
        """
        if self.dataset_a is None:
            return []
        key_a = self.key_a
        taken = {key_text(get_field(r, key_a)) for r in self.matched_rows}
        taken.update(key_text(r.get(key_a)) for r in self.selections.values() if r)
        taken.discard("")

        current = self.selections.get(key)
        if current is None:
            for candidate in self.candidates:
                if self.selection_key(candidate.source_row) == key:
                    current = candidate.best_match
                    break
        current_value = key_text(current.get(key_a)) if current else None

        targets = []
        for row in self.dataset_a.rows:
            value = key_text(row.get(key_a))
            if value == current_value:
                targets.append(row)
            elif value not in taken and cell_text(get_field(row, self.identity_field)).strip():
                targets.append(row)
        return targets

    def summary(self) -> Dict[str, int]:
        """Counts of matched, unmatched and selected rows."""
        return {
            "matched": len(self.matched_rows),
            "unmatched": len(self.candidates),
            "selected": len(self.selections),
        }
