"""One-level undo for the last remote mutation."""

from __future__ import annotations

import logging
from typing import Optional

from .._types import ImportUndo, UndoRecord, UndoResult, WritePlan, WriteRange
from ._base import SheetStoreError
from .store import SheetStore

logger = logging.getLogger(__name__)


class UndoLedger:
    """Holds at most one undo record.

    Recording a mutation replaces the previous record, so only the most
    recent import or status update can be reversed, and only once.
    """

    def __init__(self) -> None:
        self._record: Optional[UndoRecord] = None

    @property
    def record(self) -> Optional[UndoRecord]:
        return self._record

    def record_mutation(self, record: Optional[UndoRecord]) -> None:
        """Replace the held record; ``None`` forfeits the previous one."""
        self._record = record

    def clear(self) -> None:
        self._record = None

    def undo(self, store: SheetStore) -> UndoResult:
        """Reverse the held mutation through *store* and empty the ledger.

        A failed remote call keeps the record so the undo can be retried.
        """
        record = self._record
        if record is None:
            return UndoResult(error="Nothing to undo.")

        try:
            if isinstance(record, ImportUndo):
                store.delete_rows(
                    record.spreadsheet_id,
                    record.sheet_id,
                    record.start_index,
                    record.start_index + record.count,
                )
                message = f"Successfully undone import of {record.count} rows."
            else:
                plan = WritePlan(
                    spreadsheet_id=record.spreadsheet_id,
                    data=[WriteRange(range=c.range, values=[[c.old_value]]) for c in record.changes],
                )
                if plan.data:
                    store.batch_write(plan)
                message = f"Successfully undone update of {record.row_count} rows."
        except SheetStoreError as exc:
            logger.warning("Undo of %s failed: %s", record.kind, exc)
            return UndoResult(error=str(exc))

        self._record = None
        logger.info(message)
        return UndoResult(message=message)
