"""The remote tabular store interface the reconciler writes through."""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from .._types import WritePlan


class SheetStore(Protocol):
    """Operations needed from a spreadsheet service.

    Implementations raise :class:`~dataweaver.sheets._base.SheetStoreError`
    on failure.
    """

    def get_title(self, spreadsheet_id: str) -> str:
        ...

    def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> Optional[int]:
        """Numeric id of the sheet titled *sheet_name* (case and space insensitive)."""
        ...

    def read_range(self, spreadsheet_id: str, range_: str) -> List[List[Any]]:
        ...

    def batch_write(self, plan: WritePlan) -> None:
        ...

    def append_rows(self, spreadsheet_id: str, sheet_name: str, values: List[List[Any]]) -> str:
        """Append *values* after the last row; return the updated A1 range."""
        ...

    def delete_rows(self, spreadsheet_id: str, sheet_id: int, start_index: int, end_index: int) -> None:
        """Delete rows ``[start_index, end_index)`` (0-based)."""
        ...
