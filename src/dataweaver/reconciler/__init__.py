"""Dataweaver Reconciler -- Exact-key joins, fuzzy candidates, manual review.

Public API:
    collapse / tokenize      -- Value canonicalization for matching
    similarity_score         -- Tiered 0/50/85/100 name confidence
    auto_match               -- Best A row for every unmatched B row
    join_datasets            -- Deterministic first-valid-match join
    choose_merge_key         -- Default merge key for two datasets
    ReconciliationSession    -- Select / deselect / commit workflow
    preview_status_updates   -- Ticket status diff against the case sheet
"""

from .normalize import collapse, tokenize

from .fuzzy import (
    AUTO_SELECT_THRESHOLD,
    auto_match,
    best_match,
    confidence_tier,
    similarity_score,
)

from .merger import (
    DEFAULT_IDENTITY_FIELD,
    choose_merge_key,
    common_headers,
    join_datasets,
    merged_headers,
    number_rows,
    overlay_rows,
)

from .session import ReconciliationSession

from .tickets import (
    SheetRow,
    build_row_map,
    extract_ticket_number,
    plan_status_update,
    preview_status_updates,
    sort_by_ticket,
)

__all__ = [
    # Normalize
    "collapse",
    "tokenize",
    # Fuzzy
    "AUTO_SELECT_THRESHOLD",
    "auto_match",
    "best_match",
    "confidence_tier",
    "similarity_score",
    # Merge
    "DEFAULT_IDENTITY_FIELD",
    "choose_merge_key",
    "common_headers",
    "join_datasets",
    "merged_headers",
    "number_rows",
    "overlay_rows",
    # Session
    "ReconciliationSession",
    # Tickets
    "SheetRow",
    "build_row_map",
    "extract_ticket_number",
    "plan_status_update",
    "preview_status_updates",
    "sort_by_ticket",
]
