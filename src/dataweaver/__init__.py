"""Dataweaver -- Dataset joining, fuzzy matching and ticket-sheet reconciliation.

Merge a reference roster with an incoming export, review the rows that
did not join exactly, and keep a shared case sheet in step with the
help desk.

Quick start::

    from dataweaver import ReconciliationSession, load_dataset

    a = load_dataset("students.xlsx").dataset
    b = load_dataset("bulk_ids.xlsx").dataset

    session = ReconciliationSession(a, b)
    result = session.run("Nama")
    print(result.matched_count, "matched,", result.unmatched_count, "to review")
    session.commit_all()
"""

__version__ = "0.4.0"

# Reconciler
from .reconciler import (
    ReconciliationSession,
    auto_match,
    build_row_map,
    choose_merge_key,
    collapse,
    join_datasets,
    preview_status_updates,
    similarity_score,
    tokenize,
)

# Ingestion
from .ingestion import (
    apply_column_mappings,
    check_duplicates,
    convert_json,
    fetch_sheet_csv,
    flatten_json,
    load_dataset,
    load_workbook_grid,
    load_workbook_records,
    validate_incoming,
    validate_reference,
)

# Remote sheets (always available -- stdlib HTTP only)
from .sheets import (
    GoogleSheetsClient,
    InMemorySheetStore,
    SheetStoreError,
    UndoLedger,
    import_rows,
    update_statuses,
)

# Export, report, settings
from .export import build_export_rows, export_merged, to_tsv
from .dates import format_datetime
from .report import build_daily_report
from .config import Settings, load_settings, save_settings

__all__ = [
    "__version__",
    # Reconciler
    "ReconciliationSession",
    "auto_match",
    "build_row_map",
    "choose_merge_key",
    "collapse",
    "join_datasets",
    "preview_status_updates",
    "similarity_score",
    "tokenize",
    # Ingestion
    "apply_column_mappings",
    "check_duplicates",
    "convert_json",
    "fetch_sheet_csv",
    "flatten_json",
    "load_dataset",
    "load_workbook_grid",
    "load_workbook_records",
    "validate_incoming",
    "validate_reference",
    # Sheets
    "GoogleSheetsClient",
    "InMemorySheetStore",
    "SheetStoreError",
    "UndoLedger",
    "import_rows",
    "update_statuses",
    # Export / report / settings
    "build_export_rows",
    "export_merged",
    "to_tsv",
    "format_datetime",
    "build_daily_report",
    "Settings",
    "load_settings",
    "save_settings",
]
