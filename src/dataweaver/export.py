"""Merged-data workbook export and clipboard TSV rendering."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ._io import cell_text, get_field
from ._types import Dataset, ExportResult, Row
from .dates import FORMAT_REPORT, format_datetime

logger = logging.getLogger(__name__)

EXPORT_SHEET_NAME = "Merged Data"
DATE_FIELDS = ("Created At", "Resolved At")

# Headers the bulk-upload template repeats on a second, capitalised row
_KEY_HEADERS = ("id", "name", "nisn")


def build_export_rows(rows: List[Row], selected_headers: List[str]) -> List[List[Any]]:
    """Two header rows followed by one value row per merged row.

    For ``id``, ``name`` and ``nisn`` the first header row holds the
    lower-case name and the second the capitalised one; other headers
    are written once with a blank beneath.
    """
    header_1 = [h.lower() if h.lower() in _KEY_HEADERS else h for h in selected_headers]
    header_2 = [h[:1].upper() + h[1:] if h.lower() in _KEY_HEADERS else "" for h in selected_headers]

    body = []
    for row in rows:
        values = []
        for header in selected_headers:
            value = get_field(row, header)
            values.append("" if value is None else value)
        body.append(values)
    return [header_1, header_2] + body


def export_merged(
    rows: List[Row],
    selected_headers: List[str],
    output_path: Union[str, Path],
) -> ExportResult:
    """Write the merged rows to a workbook with a "Merged Data" sheet.

    Returns:
        ExportResult with the path written, or ``error`` when no header is
        selected or the workbook cannot be written.
    """
    if not selected_headers:
        return ExportResult(error="Please select at least one header to export.")
    data = build_export_rows(rows, selected_headers)
    try:
        pd.DataFrame(data).to_excel(output_path, sheet_name=EXPORT_SHEET_NAME, header=False, index=False)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to write %s: %s", output_path, exc)
        return ExportResult(error=f"Could not write the export file: {exc}")
    logger.info("Exported %d rows to %s", len(rows), output_path)
    return ExportResult(path=str(output_path), row_count=len(rows))


def _tsv_cell(value: Any) -> str:
    text = cell_text(value)
    if "\t" in text or "\n" in text or '"' in text:
        text = '"' + text.replace('"', '""') + '"'
    return text


def to_tsv(dataset: Dataset, date_formats: Optional[Dict[str, str]] = None) -> str:
    """Render rows (no header line) as tab-separated text.

    Cells holding a tab, newline or quote are quoted with doubled quotes.
    ``Created At`` and ``Resolved At`` go through :func:`format_datetime`
    with the format from *date_formats* (``report`` by default).
    """
    date_formats = date_formats or {}
    lines = []
    for row in dataset.rows:
        cells = []
        for header in dataset.headers:
            value = row.get(header)
            if header in DATE_FIELDS:
                value = format_datetime(value, date_formats.get(header, FORMAT_REPORT))
            cells.append(_tsv_cell(value))
        lines.append("\t".join(cells))
    return "\n".join(lines)
