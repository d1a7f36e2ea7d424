"""Share-link and A1 range helpers."""

import re
from typing import NamedTuple, Optional

from .._io import column_index

SPREADSHEET_ID_RE = re.compile(r"spreadsheets/d/([a-zA-Z0-9\-_]+)")
APPEND_START_RE = re.compile(r"!A(\d+):")
_A1_RE = re.compile(r"^(?P<col>[A-Za-z]*)(?P<row>\d*)$")

INVALID_LINK_MESSAGE = "Invalid Google Sheets URL format. Please use a valid share link."


class A1Range(NamedTuple):
    """A parsed A1 range; ``None`` bounds are open-ended."""
    sheet: str
    start_col: Optional[int]  # 0-based
    start_row: Optional[int]  # 1-based
    end_col: Optional[int]
    end_row: Optional[int]


def parse_spreadsheet_id(url: str) -> Optional[str]:
    """Extract the spreadsheet id from a share link, or None if malformed."""
    if not url:
        return None
    match = SPREADSHEET_ID_RE.search(url)
    return match.group(1) if match else None


def csv_export_url(spreadsheet_id: str) -> str:
    return f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv"


def quote_sheet(sheet_name: str) -> str:
    """Quote a sheet name for use in an A1 range when it needs it."""
    if re.fullmatch(r"[A-Za-z0-9_]+", sheet_name):
        return sheet_name
    return "'" + sheet_name.replace("'", "''") + "'"


def _cell_ref(ref: str):
    match = _A1_RE.match(ref.strip())
    if not match:
        raise ValueError(f"Malformed cell reference: {ref!r}")
    col = column_index(match.group("col")) if match.group("col") else None
    row = int(match.group("row")) if match.group("row") else None
    return col, row


def parse_a1(range_: str) -> A1Range:
    """Parse ``Sheet!G5``, ``Sheet!G:T``, ``'My Sheet'!A1:T9`` or a bare sheet name.

    Raises:
        ValueError: If the cell part cannot be parsed.
    """
    if "!" not in range_:
        return A1Range(range_.strip("'"), None, None, None, None)
    sheet, _, cells = range_.rpartition("!")
    sheet = sheet.strip()
    if sheet.startswith("'") and sheet.endswith("'"):
        sheet = sheet[1:-1].replace("''", "'")
    start, _, end = cells.partition(":")
    start_col, start_row = _cell_ref(start)
    if end:
        end_col, end_row = _cell_ref(end)
    else:
        end_col, end_row = start_col, start_row
    return A1Range(sheet, start_col, start_row, end_col, end_row)


def parse_append_start(updated_range: str) -> Optional[int]:
    """0-based start row of an append, from a range like ``'All Case'!A2414:T2414``."""
    match = APPEND_START_RE.search(updated_range or "")
    return int(match.group(1)) - 1 if match else None
