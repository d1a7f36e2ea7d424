"""Spreadsheet workbook loading as header-keyed rows or as a raw grid."""

import logging
from pathlib import Path
from zipfile import BadZipFile
from typing import Any, Dict, List, Union

import pandas as pd

from .._io import cell_text, column_name
from .._types import Dataset, GridResult, LoadResult, Row, SheetGrid

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = "Could not find any data in the sheets of this Excel file."


def _is_empty(value: Any) -> bool:
    return cell_text(value) == ""


def _read_all_sheets(path: Union[str, Path], **kwargs) -> Dict[str, pd.DataFrame]:
    return pd.read_excel(path, sheet_name=None, dtype=object, **kwargs)


def load_workbook_records(file_path: Union[str, Path]) -> LoadResult:
    """Load the first sheet holding data as a :class:`Dataset`.

    The first row is the header row. Empty cells are left out of each
    row mapping and fully empty rows are skipped.

    Args:
        file_path: Path to an .xlsx/.xls workbook.

    Returns:
        LoadResult with the dataset, or ``error`` when no sheet has data
        or the file cannot be read.
    """
    try:
        sheets = _read_all_sheets(file_path)
    except (OSError, ValueError, BadZipFile) as exc:
        logger.warning("Failed to read workbook %s: %s", file_path, exc)
        return LoadResult(error=f"There was an issue reading the Excel file: {exc}")

    for name, df in sheets.items():
        headers = [str(c) for c in df.columns if not _is_unnamed_empty(df, c)]
        rows: List[Row] = []
        for record in df.to_dict(orient="records"):
            row = {str(k): v for k, v in record.items() if str(k) in headers and not _is_empty(v)}
            if row:
                rows.append(row)
        if rows:
            logger.info("Loaded %d rows from sheet %r of %s", len(rows), name, file_path)
            return LoadResult(dataset=Dataset(headers=headers, rows=rows, file_name=Path(file_path).name))

    return LoadResult(error=EMPTY_FILE_MESSAGE)


def _is_unnamed_empty(df: pd.DataFrame, column: Any) -> bool:
    """Pandas names blank header cells ``Unnamed: N``; drop them when the column is empty."""
    return str(column).startswith("Unnamed:") and df[column].isna().all()


def load_workbook_grid(file_path: Union[str, Path]) -> GridResult:
    """Load the first non-empty sheet as raw rows with Excel column letters.

    Trailing empty cells are trimmed from each row; ``columns`` spans
    the widest row.
    """
    try:
        sheets = _read_all_sheets(file_path, header=None)
    except (OSError, ValueError, BadZipFile) as exc:
        logger.warning("Failed to read workbook %s: %s", file_path, exc)
        return GridResult(error=f"There was an issue reading the Excel file: {exc}")

    for name, df in sheets.items():
        rows = []
        for values in df.itertuples(index=False, name=None):
            cells = ["" if _is_empty(v) else v for v in values]
            while cells and cells[-1] == "":
                cells.pop()
            rows.append(cells)
        while rows and not rows[-1]:
            rows.pop()
        if rows:
            return GridResult(grid=grid_from_rows(rows, name=Path(file_path).name))

    return GridResult(error=EMPTY_FILE_MESSAGE)


def grid_from_rows(rows: List[List[Any]], name: str = "") -> SheetGrid:
    """Wrap raw rows in a :class:`SheetGrid` with lettered columns."""
    width = max((len(r) for r in rows), default=0)
    return SheetGrid(
        name=name,
        columns=[column_name(i + 1) for i in range(width)],
        rows=[list(r) for r in rows],
    )


def write_grid(grid: SheetGrid, output_path: Union[str, Path], sheet_name: str = "Normalized Data") -> str:
    """Write a grid to a workbook without a header row."""
    pd.DataFrame(grid.rows).to_excel(output_path, sheet_name=sheet_name, header=False, index=False)
    return str(output_path)
