"""Undoable writes to the case sheet: ticket import and status update.

Each function takes the store and the ledger explicitly. Planning is
pure; only the final step talks to the store.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List

from .._io import cell_text, get_field
from .._types import (
    Dataset,
    ImportPlan,
    ImportResult,
    ImportUndo,
    Row,
    SpreadsheetInfo,
    StatusPreview,
    UpdateResult,
)
from ..reconciler.tickets import (
    READ_COLUMNS,
    TICKET_OP_FIELD,
    TITLE_COLUMN,
    TITLE_FIELD,
    build_row_map,
    plan_status_update,
    preview_status_updates,
)
from ._base import SheetStoreError
from .links import INVALID_LINK_MESSAGE, parse_append_start, parse_spreadsheet_id
from .store import SheetStore
from .undo import UndoLedger

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "All Case"

# Columns A-D and P-S of the case sheet are left blank on import
_LEADING_BLANKS = 4
_TRAILING_BLANKS = 4


def resolve_spreadsheet(store: SheetStore, url: str) -> SpreadsheetInfo:
    """Turn a share link into a spreadsheet id and its title."""
    if not url:
        return SpreadsheetInfo(error="URL is empty. Please provide a Google Sheet URL.")
    spreadsheet_id = parse_spreadsheet_id(url)
    if spreadsheet_id is None:
        return SpreadsheetInfo(error=INVALID_LINK_MESSAGE)
    try:
        title = store.get_title(spreadsheet_id)
    except SheetStoreError as exc:
        return SpreadsheetInfo(spreadsheet_id=spreadsheet_id, error=f"Analysis Failed: {exc}")
    if not title:
        return SpreadsheetInfo(spreadsheet_id=spreadsheet_id, error="Could not retrieve the spreadsheet title.")
    return SpreadsheetInfo(spreadsheet_id=spreadsheet_id, title=title)


def plan_import(dataset: Dataset, existing_titles: Iterable[Any]) -> ImportPlan:
    """Split rows into new and already-present titles and lay them out.

    A new row is four blank cells, the dataset's columns except the
    ticket note, four blank cells, then the ticket note (column T).
    Rows without a title are neither imported nor reported.
    """
    existing = {cell_text(t) for t in existing_titles}
    main_headers = [h for h in dataset.headers if h.lower() != TICKET_OP_FIELD.lower()]

    plan = ImportPlan()
    for row in dataset.rows:
        title = cell_text(get_field(row, TITLE_FIELD))
        if not title:
            continue
        if title in existing:
            plan.duplicates.append(title)
            continue
        plan.new_rows.append(row)
        plan.values.append(
            [""] * _LEADING_BLANKS
            + [_export_value(row.get(h)) for h in main_headers]
            + [""] * _TRAILING_BLANKS
            + [_export_value(get_field(row, TICKET_OP_FIELD))]
        )
    return plan


def _export_value(value: Any) -> Any:
    return value if value not in (None, "") else ""


def import_rows(
    store: SheetStore,
    ledger: UndoLedger,
    url: str,
    dataset: Dataset,
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> ImportResult:
    """Append the dataset's new tickets to the case sheet.

    On success the append is recorded in *ledger* as the undoable
    mutation. Any earlier undo record is forfeited.
    """
    spreadsheet_id = parse_spreadsheet_id(url)
    if spreadsheet_id is None:
        return ImportResult(error=INVALID_LINK_MESSAGE)
    if not dataset.rows:
        return ImportResult(error="No data provided to import.")

    ledger.clear()
    try:
        sheet_id = store.get_sheet_id(spreadsheet_id, sheet_name)
        if sheet_id is None:
            return ImportResult(
                error=f'The target sheet named "{sheet_name}" was not found in the spreadsheet.'
            )
        titles = store.read_range(spreadsheet_id, f"{sheet_name}!{TITLE_COLUMN}:{TITLE_COLUMN}")
        plan = plan_import(dataset, (cell for row in titles for cell in row))
        if not plan.new_rows:
            return ImportResult(
                message="No new data to import.",
                duplicate_count=len(plan.duplicates),
                duplicates=plan.duplicates,
            )
        updated_range = store.append_rows(spreadsheet_id, sheet_name, plan.values)
    except SheetStoreError as exc:
        logger.warning("Import failed: %s", exc)
        return ImportResult(error=f"Import Error: {exc}")

    result = ImportResult(
        message="Import complete.",
        imported_count=len(plan.new_rows),
        duplicate_count=len(plan.duplicates),
        duplicates=plan.duplicates,
    )
    start_index = parse_append_start(updated_range)
    if start_index is None:
        logger.warning("Could not parse appended range %r; import cannot be undone", updated_range)
        result.message = "Import complete, but could not parse the updated range for undo action."
        return result

    result.undo = ImportUndo(
        spreadsheet_id=spreadsheet_id,
        sheet_id=sheet_id,
        start_index=start_index,
        count=len(plan.new_rows),
    )
    ledger.record_mutation(result.undo)
    logger.info(
        "Imported %d rows at index %d (%d duplicates skipped)",
        result.imported_count, start_index, result.duplicate_count,
    )
    return result


def _read_row_map(store: SheetStore, spreadsheet_id: str, sheet_name: str):
    return build_row_map(store.read_range(spreadsheet_id, f"{sheet_name}!{READ_COLUMNS}"))


def preview_updates(
    store: SheetStore,
    url: str,
    rows: List[Row],
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> StatusPreview:
    """List the status and ticket-note changes an update would make."""
    if not rows:
        return StatusPreview(error="No data provided to preview.")
    spreadsheet_id = parse_spreadsheet_id(url)
    if spreadsheet_id is None:
        return StatusPreview(error=INVALID_LINK_MESSAGE)
    try:
        row_map = _read_row_map(store, spreadsheet_id, sheet_name)
    except SheetStoreError as exc:
        return StatusPreview(error=str(exc))
    return preview_status_updates(rows, row_map)


def update_statuses(
    store: SheetStore,
    ledger: UndoLedger,
    url: str,
    rows: List[Row],
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> UpdateResult:
    """Write changed statuses and ticket notes in one batch.

    The overwritten values are captured before the write and recorded
    in *ledger*; any earlier undo record is forfeited.
    """
    if not rows:
        return UpdateResult(error="No data provided to update.")
    spreadsheet_id = parse_spreadsheet_id(url)
    if spreadsheet_id is None:
        return UpdateResult(error=INVALID_LINK_MESSAGE)

    ledger.clear()
    try:
        preview = preview_status_updates(rows, _read_row_map(store, spreadsheet_id, sheet_name))
        if not preview.changes:
            return UpdateResult(
                message="No changes detected. Everything is up-to-date.",
                skipped=preview.skipped,
            )
        plan, undo = plan_status_update(preview.changes, spreadsheet_id, sheet_name)
        store.batch_write(plan)
    except SheetStoreError as exc:
        logger.warning("Status update failed: %s", exc)
        return UpdateResult(error=str(exc))

    ledger.record_mutation(undo)
    logger.info("Updated %d rows in %s", len(preview.changes), sheet_name)
    return UpdateResult(
        message=f"Successfully updated {len(preview.changes)} rows.",
        updated_rows=preview.changes,
        skipped=preview.skipped,
        undo=undo,
    )
