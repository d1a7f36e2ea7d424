"""Ticket-status reconciliation against the case sheet.

Local rows carry a free-text ``Title`` with an embedded ``#<digits>``
ticket number. The sheet is read as columns G..T, where G holds the
status, M the title and T the operator ticket note.
"""

import logging
import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from .._io import cell_text, get_field
from .._types import CellChange, Row, StatusChange, StatusPreview, UpdateUndo, WritePlan, WriteRange

logger = logging.getLogger(__name__)

TICKET_RE = re.compile(r"#(\d+)")

STATUS_COLUMN = "G"
TITLE_COLUMN = "M"
TICKET_OP_COLUMN = "T"
READ_COLUMNS = f"{STATUS_COLUMN}:{TICKET_OP_COLUMN}"

TITLE_FIELD = "Title"
STATUS_FIELD = "Status"
TICKET_OP_FIELD = "Ticket OP"

# Offsets inside a G..T row
_STATUS_OFFSET = 0
_TITLE_OFFSET = 6
_TICKET_OP_OFFSET = 13


class SheetRow(NamedTuple):
    """Current state of one ticket row in the sheet."""
    row_index: int  # 1-based
    status: str
    ticket_op: str
    title: str


def extract_ticket_number(title: Any) -> Optional[str]:
    """Return the digits of the first ``#<digits>`` in *title*, if any."""
    if not isinstance(title, str):
        return None
    match = TICKET_RE.search(title)
    return match.group(1) if match else None


def _cell(row: List[Any], offset: int) -> Any:
    return row[offset] if offset < len(row) else None


def build_row_map(values: List[List[Any]]) -> Dict[str, SheetRow]:
    """Index sheet rows read from columns G..T by ticket number.

    Row positions are 1-based, matching a range read from row 1. A
    ticket number seen twice keeps the later row.
    """
    row_map: Dict[str, SheetRow] = {}
    for index, row in enumerate(values or []):
        title = _cell(row, _TITLE_OFFSET)
        ticket = extract_ticket_number(title)
        if ticket is None:
            continue
        row_map[ticket] = SheetRow(
            row_index=index + 1,
            status=cell_text(_cell(row, _STATUS_OFFSET)),
            ticket_op=cell_text(_cell(row, _TICKET_OP_OFFSET)),
            title=title,
        )
    return row_map


def preview_status_updates(rows: List[Row], row_map: Dict[str, SheetRow]) -> StatusPreview:
    """Diff local ticket rows against the sheet.

    Only rows whose status or ticket note differs from the sheet are
    returned. Rows without an embedded ticket number are not an error;
    they are counted in ``skipped``.
    """
    if not rows:
        return StatusPreview(error="No data provided to preview.")

    changes: List[StatusChange] = []
    skipped = 0
    for row in rows:
        title = get_field(row, TITLE_FIELD)
        ticket = extract_ticket_number(title)
        if ticket is None:
            skipped += 1
            continue
        current = row_map.get(ticket)
        if current is None:
            logger.debug("Ticket #%s not present in sheet", ticket)
            continue
        new_status = cell_text(get_field(row, STATUS_FIELD))
        new_ticket_op = cell_text(get_field(row, TICKET_OP_FIELD))
        if current.status != new_status or current.ticket_op != new_ticket_op:
            changes.append(StatusChange(
                title=title,
                row_index=current.row_index,
                old_status=current.status,
                new_status=new_status,
                old_ticket_op=current.ticket_op,
                new_ticket_op=new_ticket_op,
            ))

    if skipped:
        logger.warning("Skipped %d rows without a ticket number", skipped)
    return StatusPreview(changes=changes, skipped=skipped)


def plan_status_update(
    changes: List[StatusChange],
    spreadsheet_id: str,
    sheet_name: str,
) -> Tuple[WritePlan, UpdateUndo]:
    """Build the batched write for *changes* and the matching undo record.

    Each change overwrites exactly the status and ticket-note cells of
    its row; the undo record captures the values being replaced.
    """
    plan = WritePlan(spreadsheet_id=spreadsheet_id)
    cells: List[CellChange] = []
    for change in changes:
        status_range = f"{sheet_name}!{STATUS_COLUMN}{change.row_index}"
        op_range = f"{sheet_name}!{TICKET_OP_COLUMN}{change.row_index}"
        plan.data.append(WriteRange(range=status_range, values=[[change.new_status]]))
        plan.data.append(WriteRange(range=op_range, values=[[change.new_ticket_op]]))
        cells.append(CellChange(range=status_range, old_value=change.old_status, new_value=change.new_status))
        cells.append(CellChange(range=op_range, old_value=change.old_ticket_op, new_value=change.new_ticket_op))

    undo = UpdateUndo(spreadsheet_id=spreadsheet_id, changes=cells, row_count=len(changes))
    return plan, undo


def sort_by_ticket(rows: List[Row]) -> List[Row]:
    """Order rows by ticket number; rows without one go last, stably."""
    def _key(row: Row):
        ticket = extract_ticket_number(get_field(row, TITLE_FIELD))
        return (ticket is None, int(ticket) if ticket is not None else 0)

    return sorted(rows, key=_key)
