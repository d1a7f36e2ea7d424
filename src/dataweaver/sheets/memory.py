"""In-process sheet store for tests, demos and offline runs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .._io import column_name
from .._types import WritePlan
from ._base import SheetStoreError
from .links import parse_a1, quote_sheet

logger = logging.getLogger(__name__)


class _Sheet:
    def __init__(self, sheet_id: int, title: str, rows: List[List[Any]]):
        self.sheet_id = sheet_id
        self.title = title
        self.rows = [list(r) for r in rows]


class InMemorySheetStore:
    """A :class:`~dataweaver.sheets.store.SheetStore` backed by Python lists.

    Reads trim trailing empty cells and rows the way the Sheets API does.
    """

    def __init__(self) -> None:
        self._titles: Dict[str, str] = {}
        self._sheets: Dict[str, List[_Sheet]] = {}
        self._next_sheet_id = 0

    def add_spreadsheet(
        self,
        spreadsheet_id: str,
        title: str,
        sheets: Optional[Dict[str, List[List[Any]]]] = None,
    ) -> None:
        self._titles[spreadsheet_id] = title
        self._sheets[spreadsheet_id] = []
        for name, rows in (sheets or {}).items():
            self._sheets[spreadsheet_id].append(_Sheet(self._next_sheet_id, name, rows))
            self._next_sheet_id += 1

    def rows(self, spreadsheet_id: str, sheet_name: str) -> List[List[Any]]:
        """Direct access to a sheet's rows (for inspection)."""
        return self._sheet_by_name(spreadsheet_id, sheet_name).rows

    # ------------------------------------------------------------------
    # SheetStore
    # ------------------------------------------------------------------

    def get_title(self, spreadsheet_id: str) -> str:
        self._require(spreadsheet_id)
        return self._titles[spreadsheet_id]

    def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> Optional[int]:
        wanted = sheet_name.strip().lower()
        for sheet in self._require(spreadsheet_id):
            if sheet.title.strip().lower() == wanted:
                return sheet.sheet_id
        return None

    def read_range(self, spreadsheet_id: str, range_: str) -> List[List[Any]]:
        a1 = parse_a1(range_)
        sheet = self._sheet_by_name(spreadsheet_id, a1.sheet)
        first_row = (a1.start_row or 1) - 1
        last_row = a1.end_row if a1.end_row is not None else len(sheet.rows)
        first_col = a1.start_col or 0

        values = []
        for row in sheet.rows[first_row:last_row]:
            last_col = a1.end_col + 1 if a1.end_col is not None else len(row)
            cells = list(row[first_col:last_col])
            while cells and cells[-1] in ("", None):
                cells.pop()
            values.append(cells)
        while values and not values[-1]:
            values.pop()
        return values

    def batch_write(self, plan: WritePlan) -> None:
        for item in plan.data:
            a1 = parse_a1(item.range)
            sheet = self._sheet_by_name(plan.spreadsheet_id, a1.sheet)
            top = (a1.start_row or 1) - 1
            left = a1.start_col or 0
            for r, values in enumerate(item.values):
                self._set_row(sheet, top + r, left, values)
        logger.debug("Wrote %d ranges to %s", len(plan.data), plan.spreadsheet_id)

    def append_rows(self, spreadsheet_id: str, sheet_name: str, values: List[List[Any]]) -> str:
        sheet = self._sheet_by_name(spreadsheet_id, sheet_name)
        last = len(sheet.rows)
        while last > 0 and not any(c not in ("", None) for c in sheet.rows[last - 1]):
            last -= 1
        del sheet.rows[last:]
        for row in values:
            sheet.rows.append(list(row))
        width = max((len(r) for r in values), default=1)
        return f"{quote_sheet(sheet.title)}!A{last + 1}:{column_name(width)}{last + len(values)}"

    def delete_rows(self, spreadsheet_id: str, sheet_id: int, start_index: int, end_index: int) -> None:
        for sheet in self._require(spreadsheet_id):
            if sheet.sheet_id == sheet_id:
                del sheet.rows[start_index:end_index]
                return
        raise SheetStoreError(f"No sheet with id {sheet_id}.", kind="not_found", status=404)

    # ------------------------------------------------------------------

    def _require(self, spreadsheet_id: str) -> List[_Sheet]:
        if spreadsheet_id not in self._sheets:
            raise SheetStoreError("Requested entity was not found.", kind="not_found", status=404)
        return self._sheets[spreadsheet_id]

    def _sheet_by_name(self, spreadsheet_id: str, sheet_name: str) -> _Sheet:
        wanted = sheet_name.strip().lower()
        for sheet in self._require(spreadsheet_id):
            if sheet.title.strip().lower() == wanted:
                return sheet
        raise SheetStoreError(
            f"Unable to parse range: {sheet_name}", kind="malformed", status=400,
        )

    @staticmethod
    def _set_row(sheet: _Sheet, row_index: int, left: int, values: List[Any]) -> None:
        while len(sheet.rows) <= row_index:
            sheet.rows.append([])
        row = sheet.rows[row_index]
        while len(row) < left + len(values):
            row.append("")
        row[left:left + len(values)] = values
