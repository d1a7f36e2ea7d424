"""Dataweaver Ingestion -- workbooks, CSV and JSON, sheet exports, and upload checks."""

from .csv_loader import (
    fetch_sheet_csv,
    load_csv,
    load_dataset,
    load_json,
    parse_csv_text,
    sheet_csv_export_url,
)
from .duplicates import check_duplicates, find_identity_header
from .excel_loader import grid_from_rows, load_workbook_grid, load_workbook_records, write_grid
from .grid import apply_column_mappings
from .json_converter import DEFAULT_TEMPLATE, convert_json, flatten_json
from .validation import drop_rows_with_identity, validate_incoming, validate_reference

__all__ = [
    "check_duplicates",
    "find_identity_header",
    "fetch_sheet_csv",
    "load_csv",
    "load_dataset",
    "load_json",
    "parse_csv_text",
    "sheet_csv_export_url",
    "grid_from_rows",
    "load_workbook_grid",
    "load_workbook_records",
    "write_grid",
    "apply_column_mappings",
    "DEFAULT_TEMPLATE",
    "convert_json",
    "flatten_json",
    "drop_rows_with_identity",
    "validate_incoming",
    "validate_reference",
]
