"""Duplicate NIS check across every sheet of several student workbooks.

Each sheet's header row is located within its first rows by looking for
a NIS column, a name column and a date-of-birth column. Rows below it
are checked for NIS values used more than once (across all files), for
a missing NIS and for a missing date of birth.
"""

import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from zipfile import BadZipFile

import pandas as pd

from .._io import cell_text
from .._types import DuplicateReport, IdentityHeader, StudentRecord

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 20

NIS_HEADERS = ("nis", "no. induk")
NAME_HEADERS = ("nama", "nama siswa", "nama lengkap")
# "Nama ..." headers that name someone other than the student
NAME_EXCLUDE = ("kelas", "sekolah", "wali", "ayah", "ibu", "orang tua")
DOB_KEYWORDS = ("tanggal lahir", "tgl lahir")

_DIGIT_RE = re.compile(r"\d")


def _first_index(headers: List[str], predicate: Callable[[str], bool]) -> int:
    return next((i for i, h in enumerate(headers) if predicate(h)), -1)


def _nis_index(headers: List[str]) -> int:
    index = _first_index(headers, lambda h: h in NIS_HEADERS)
    if index < 0:
        index = _first_index(headers, lambda h: "nis" in h and "nisn" not in h)
    if index < 0:
        index = _first_index(headers, lambda h: "nis" in h)
    return index


def _name_index(headers: List[str]) -> int:
    index = _first_index(headers, lambda h: h in NAME_HEADERS)
    if index < 0:
        index = _first_index(headers, lambda h: "nama" in h and not any(k in h for k in NAME_EXCLUDE))
    if index < 0:
        index = _first_index(headers, lambda h: "nama" in h)
    return index


def find_identity_header(
    rows: Sequence[Sequence[Any]],
    scan_rows: int = HEADER_SCAN_ROWS,
) -> Optional[IdentityHeader]:
    """Find the first row that has NIS, name and date-of-birth headers.

    Exact header names win over partial ones: ``NIS`` before a header
    merely containing "nis" (NISN only as a last resort), and ``Nama``
    before "nama" headers that name a parent, class or school.

    Returns:
        The header location, or None when none of the first *scan_rows*
        rows qualifies.
    """
    for i, row in enumerate(rows[:scan_rows]):
        headers = [cell_text(v).strip().lower() for v in row]
        nis = _nis_index(headers)
        name = _name_index(headers)
        dob = _first_index(headers, lambda h: any(k in h for k in DOB_KEYWORDS))
        if nis >= 0 and name >= 0 and dob >= 0:
            return IdentityHeader(row_index=i, nis_index=nis, name_index=name, dob_index=dob)
    return None


def _is_blank_dob(value: Any) -> bool:
    text = cell_text(value).strip()
    return not text or text.startswith("#")  # Excel error values such as #VALUE!


def check_duplicates(file_paths: Sequence[Union[str, Path]]) -> DuplicateReport:
    """Check every sheet of *file_paths* for duplicate, empty NIS and empty birth dates.

    A NIS without any digit counts as empty. Rows whose name is empty
    (or repeats the "Nama" header) are only used for the duplicate
    check. Unreadable files and sheets without a recognisable header
    are listed in the report and skipped.

    Args:
        file_paths: Workbooks to check.

    Returns:
        DuplicateReport; ``error`` is set only when no file is given.
    """
    if not file_paths:
        return DuplicateReport(error="Please provide at least one Excel file to check for duplicates.")

    by_nis: Dict[str, List[StudentRecord]] = {}
    report = DuplicateReport()

    for file_path in file_paths:
        file_name = Path(file_path).name
        try:
            sheets = pd.read_excel(file_path, sheet_name=None, header=None, dtype=object, keep_default_na=False)
        except (OSError, ValueError, BadZipFile) as exc:
            logger.warning("Failed to read workbook %s: %s", file_path, exc)
            report.file_errors.append(f"Error reading {file_name}: {exc}")
            continue

        for sheet_name, df in sheets.items():
            rows = [list(values) for values in df.itertuples(index=False, name=None)]
            if not rows:
                continue
            header = find_identity_header(rows)
            if header is None:
                logger.warning("No header row found in %s -> %s; skipping sheet", file_name, sheet_name)
                report.skipped_sheets.append(f"{file_name} -> {sheet_name}")
                continue

            for row in rows[header.row_index + 1:]:
                nis = cell_text(row[header.nis_index]).strip()
                name = cell_text(row[header.name_index]).strip()
                has_name = bool(name) and name.lower() != "nama"

                if has_name and _is_blank_dob(row[header.dob_index]):
                    report.empty_dob.append(StudentRecord(name=name, file_name=file_name, sheet_name=sheet_name))
                if not _DIGIT_RE.search(nis):
                    if has_name:
                        report.empty_nis.append(StudentRecord(name=name, file_name=file_name, sheet_name=sheet_name))
                    continue
                by_nis.setdefault(nis, []).append(
                    StudentRecord(nis=nis, name=name, file_name=file_name, sheet_name=sheet_name)
                )

    report.duplicates = [r for records in by_nis.values() if len(records) > 1 for r in records]
    logger.info(
        "Checked %d files: %d duplicate entries, %d empty NIS, %d empty birth dates",
        len(file_paths), len(report.duplicates), len(report.empty_nis), len(report.empty_dob),
    )
    return report
