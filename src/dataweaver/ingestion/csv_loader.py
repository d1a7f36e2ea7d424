"""CSV and JSON loading utilities, including the published-sheet CSV export."""

import io
import json
import logging
from pathlib import Path
from typing import List, Union
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import pandas as pd

from .._types import Dataset, LoadResult, Row
from .excel_loader import load_workbook_records
from ..sheets.links import INVALID_LINK_MESSAGE, csv_export_url, parse_spreadsheet_id

logger = logging.getLogger(__name__)


def _frame_to_dataset(df: pd.DataFrame, file_name: str = "") -> Dataset:
    headers = [str(c).strip() for c in df.columns]
    df.columns = headers
    rows: List[Row] = []
    for record in df.to_dict(orient="records"):
        if any(v != "" for v in record.values()):
            rows.append(record)
    return Dataset(headers=headers, rows=rows, file_name=file_name)


def parse_csv_text(text: str) -> Dataset:
    """Parse CSV text into a dataset of trimmed string cells.

    The first line is the header row. Quoted fields may contain commas;
    values past the header width are dropped, missing ones read as empty,
    and rows whose cells are all empty are dropped.

    Raises:
        pandas.errors.ParserError: If the text is not valid CSV.
    """
    text = text.strip()
    if not text:
        return Dataset()
    width = len(pd.read_csv(io.StringIO(text), nrows=0, skipinitialspace=True).columns)
    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        usecols=list(range(width)),
        index_col=False,
    )
    df = df.fillna("")
    for column in df.columns:
        df[column] = df[column].str.strip()
    return _frame_to_dataset(df)


def load_csv(file_path: Union[str, Path]) -> LoadResult:
    """Load a CSV file as a dataset.

    Args:
        file_path: Path to the CSV file.

    Returns:
        LoadResult with the dataset, or ``error`` when the file is missing
        or holds no data rows.
    """
    path = Path(file_path)
    if not path.exists():
        return LoadResult(error=f"File not found: {file_path}")

    try:
        dataset = parse_csv_text(path.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as exc:
        logger.warning("Failed to read CSV %s: %s", file_path, exc)
        return LoadResult(error=f"There was an issue reading the CSV file: {exc}")
    if not dataset.rows:
        return LoadResult(error=f"No data rows found in {path.name}.")
    dataset.file_name = path.name
    return LoadResult(dataset=dataset)


def load_json(file_path: Union[str, Path]) -> LoadResult:
    """Load a JSON file (array of objects or a single object) as a dataset."""
    path = Path(file_path)
    if not path.exists():
        return LoadResult(error=f"File not found: {file_path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as exc:
        return LoadResult(error=f"Invalid JSON: {exc}")

    if isinstance(data, list):
        records = [item for item in data if isinstance(item, dict)]
    elif isinstance(data, dict):
        records = [data]
    else:
        return LoadResult(error="Unsupported JSON structure")

    headers: List[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)
    return LoadResult(dataset=Dataset(headers=headers, rows=records, file_name=path.name))


def sheet_csv_export_url(url: str) -> str:
    """CSV export URL for a share link, or ``""`` when the link is malformed."""
    spreadsheet_id = parse_spreadsheet_id(url)
    return csv_export_url(spreadsheet_id) if spreadsheet_id else ""


def fetch_sheet_csv(url: str, timeout: int = 30) -> LoadResult:
    """Fetch the first sheet of a link-shared spreadsheet through its CSV export."""
    if not url:
        return LoadResult(error="Please provide a Google Sheets URL.")
    export_url = sheet_csv_export_url(url)
    if not export_url:
        return LoadResult(error=INVALID_LINK_MESSAGE)

    req = Request(export_url, headers={"Accept": "text/csv"})
    try:
        with urlopen(req, timeout=timeout) as resp:
            text = resp.read().decode("utf-8-sig")
    except HTTPError as exc:
        return LoadResult(
            error=(
                f"Failed to fetch sheet. Status: {exc.code}. Make sure the sheet "
                'sharing setting is "Anyone with the link".'
            )
        )
    except URLError as exc:
        logger.warning("CSV export fetch failed: %s", exc.reason)
        return LoadResult(error=f"Connection error: {exc.reason}")

    if not text:
        return LoadResult(error="The Google Sheet appears to be empty or could not be read.")
    try:
        dataset = parse_csv_text(text)
    except pd.errors.ParserError as exc:
        logger.warning("Sheet export is not valid CSV: %s", exc)
        return LoadResult(error=f"Could not parse the sheet data: {exc}")
    if not dataset.rows:
        return LoadResult(error="No data found in the sheet (after the header row).")
    logger.info("Fetched %d rows from sheet export", len(dataset.rows))
    return LoadResult(dataset=dataset)


def load_dataset(file_path: Union[str, Path]) -> LoadResult:
    """Load a workbook, CSV or JSON file by its extension."""
    suffix = Path(file_path).suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        return load_workbook_records(file_path)
    if suffix == ".json":
        return load_json(file_path)
    return load_csv(file_path)
