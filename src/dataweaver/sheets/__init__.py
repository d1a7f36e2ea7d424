"""Dataweaver Sheets -- remote sheet stores, undoable writes, and the undo ledger.

Core package includes the Google Sheets REST adapter and an in-memory store.
"""

from ._base import BaseClient, SheetStoreError
from .google import GoogleSheetsClient
from .links import csv_export_url, parse_a1, parse_append_start, parse_spreadsheet_id
from .memory import InMemorySheetStore
from .operations import (
    DEFAULT_SHEET_NAME,
    import_rows,
    plan_import,
    preview_updates,
    resolve_spreadsheet,
    update_statuses,
)
from .store import SheetStore
from .undo import UndoLedger

__all__ = [
    "BaseClient",
    "SheetStoreError",
    "SheetStore",
    "GoogleSheetsClient",
    "InMemorySheetStore",
    "UndoLedger",
    "csv_export_url",
    "parse_a1",
    "parse_append_start",
    "parse_spreadsheet_id",
    "DEFAULT_SHEET_NAME",
    "import_rows",
    "plan_import",
    "preview_updates",
    "resolve_spreadsheet",
    "update_statuses",
]
