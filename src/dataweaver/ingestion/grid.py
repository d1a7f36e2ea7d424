"""Column-letter normalisation: copy columns of one grid into another."""

import logging
from typing import List

from .._io import column_index
from .._types import ColumnMapping, GridResult, SheetGrid
from .excel_loader import grid_from_rows

logger = logging.getLogger(__name__)


def apply_column_mappings(
    grid_a: SheetGrid,
    grid_b: SheetGrid,
    mappings: List[ColumnMapping],
) -> GridResult:
    """Copy A's mapped columns into B row by row.

    Row *i* of A feeds row *i* of B. When A is longer, B is extended with
    empty rows as wide as its widest original row. Short B rows are padded
    up to the target column. Source cells past the end of an A row are
    left alone. Grid B is not modified; a new grid is returned.
    """
    valid = [m for m in mappings if m.source_column and m.target_column]
    if not valid:
        return GridResult(error="Please configure at least one valid column mapping.")

    rows_b = [list(r) for r in grid_b.rows]
    width_b = max((len(r) for r in rows_b), default=0)

    for i in range(max(len(grid_a.rows), len(rows_b))):
        if i >= len(rows_b):
            rows_b.append([""] * width_b)
        if i >= len(grid_a.rows):
            continue
        row_a, row_b = grid_a.rows[i], rows_b[i]
        for mapping in valid:
            source = column_index(mapping.source_column)
            target = column_index(mapping.target_column)
            if 0 <= source < len(row_a):
                while len(row_b) <= target:
                    row_b.append("")
                row_b[target] = row_a[source]

    logger.info("Applied %d column mappings over %d rows", len(valid), len(rows_b))
    name = f"Normalized_{grid_b.name}" if grid_b.name else "Normalized"
    return GridResult(grid=grid_from_rows(rows_b, name=name))
