"""Shared test fixtures for dataweaver."""

import json

import pandas as pd
import pytest

from dataweaver._types import Dataset
from dataweaver.sheets import InMemorySheetStore, UndoLedger

SHEET_URL = "https://docs.google.com/spreadsheets/d/sheet-123/edit#gid=0"


@pytest.fixture
def students_a():
    """Reference roster: every row but one carries a NISN."""
    return Dataset(
        headers=["Nama", "NISN", "Kelas"],
        file_name="nisn.xlsx",
        rows=[
            {"Nama": "Jane Doe", "NISN": "0012345671", "Kelas": "7A"},
            {"Nama": "Budi Santoso", "NISN": "0012345672", "Kelas": "7B"},
            {"Nama": "Siti Rahmawati", "NISN": "0012345673", "Kelas": "7A"},
            {"Nama": "Ahmad Fauzi", "NISN": "", "Kelas": "7C"},  # no identity
            {"Nama": "Dewi Lestari Putri", "NISN": "0012345675", "Kelas": "7C"},
        ],
    )


@pytest.fixture
def students_b():
    """Incoming bulk export keyed by lower-case ``nama``."""
    return Dataset(
        headers=["id", "nama", "NISN"],
        file_name="bulk.xlsx",
        rows=[
            {"id": 101, "nama": "jane doe", "NISN": ""},         # exact (case-insensitive)
            {"id": 102, "nama": "Budi  Santoso ", "NISN": ""},   # collapses to exact
            {"id": 103, "nama": "Siti Rahma", "NISN": ""},       # one shared token
            {"id": 104, "nama": "Ahmad Fauzi", "NISN": ""},      # A row has no NISN
            {"id": 105, "nama": "Lestari Dewi", "NISN": ""},     # two shared tokens
            {"id": 106, "nama": "Zaki", "NISN": ""},             # nothing in common
        ],
    )


@pytest.fixture
def ticket_rows():
    """Converted ticket rows as produced by the JSON converter."""
    return [
        {"Client Name": "SMPN 1", "Title": "Login error #1001", "Status": "Solved", "Ticket OP": "done"},
        {"Client Name": "SMPN 2", "Title": "Report card #1002", "Status": "L2", "Ticket OP": "escalated"},
        {"Client Name": "SMPN 1", "Title": "No ticket number", "Status": "L1", "Ticket OP": ""},
        {"Client Name": "SMPN 3", "Title": "Sync issue #1003", "Status": "L1", "Ticket OP": ""},
    ]


def case_sheet_row(status, title, ticket_op=""):
    """A full A..T case-sheet row with the given status (G), title (M) and note (T)."""
    row = [""] * 20
    row[6] = status
    row[12] = title
    row[19] = ticket_op
    return row


@pytest.fixture
def sheet_store():
    """In-memory spreadsheet with a header row and three tickets in 'All Case'."""
    store = InMemorySheetStore()
    store.add_spreadsheet(
        "sheet-123",
        "Case Tracker",
        {
            "All Case": [
                case_sheet_row("Status", "Title", "Ticket OP"),
                case_sheet_row("L1", "Login error #1001", ""),
                case_sheet_row("L2", "Report card #1002", "escalated"),
                case_sheet_row("L1", "Sync issue #1003", ""),
            ],
        },
    )
    return store


@pytest.fixture
def ledger():
    return UndoLedger()


@pytest.fixture
def sheet_url():
    return SHEET_URL


@pytest.fixture
def roster_xlsx(tmp_path):
    """Write a reference workbook with an empty first sheet."""
    path = tmp_path / "roster.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame().to_excel(writer, sheet_name="Cover", index=False)
        pd.DataFrame([
            {"Nama": "Jane Doe", "NISN": 12345671, "Kelas": "7A"},
            {"Nama": "Budi Santoso", "NISN": 12345672, "Kelas": None},
        ]).to_excel(writer, sheet_name="Siswa", index=False)
    return str(path)


@pytest.fixture
def bulk_xlsx(tmp_path):
    """Write an incoming workbook where one row already has a NISN."""
    path = tmp_path / "bulk.xlsx"
    pd.DataFrame([
        {"id": 101, "Nama": "jane doe", "NISN": None},
        {"id": 102, "Nama": "Budi Santosa", "NISN": "-"},
        {"id": 103, "Nama": "Citra", "NISN": 999},
    ]).to_excel(path, index=False)
    return str(path)


@pytest.fixture
def tickets_json(tmp_path):
    """Write a help-desk ticket export."""
    path = tmp_path / "tickets.json"
    data = [
        {
            "ticket": {"title": "Sync issue #1003", "status": "pending"},
            "Title": "Sync issue #1003",
            "Status": "pending",
            "Client Name": "SMPN 3",
            "Created At": "2024-10-05T09:15:00",
            "custom_fields": [{"name": "Detail Module", "value": "Rapor"}],
        },
        {
            "Title": "Login error #1001",
            "Status": "resolved",
            "Client Name": "SMPN 1",
            "Created At": "October 5, 2024, 3:07 PM",
            "custom_fields": [{"name": "Detail Module", "value": "Login"}],
        },
    ]
    path.write_text(json.dumps(data))
    return str(path)


def _write_workbook(path, sheets):
    with pd.ExcelWriter(path) as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
    return str(path)


@pytest.fixture
def write_workbook():
    """Write raw rows (no header handling) to one sheet per entry."""
    return _write_workbook


@pytest.fixture
def class_files(tmp_path):
    """Two class workbooks sharing NIS 1001, with a notes sheet and gaps."""
    seventh = _write_workbook(tmp_path / "kelas7.xlsx", {
        "7A": [
            ["Daftar Siswa Kelas 7A", "", "", "", ""],
            ["No", "NIS", "NISN", "Nama Siswa", "Tanggal Lahir"],
            [1, 1001, "0012", "Jane Doe", "2011-01-02"],
            [2, 1002, "0013", "Budi", ""],
            [3, "", "0014", "Siti", "2011-03-04"],
        ],
        "Catatan": [["catatan"], ["tidak ada"]],
    })
    eighth = _write_workbook(tmp_path / "kelas8.xlsx", {
        "8A": [
            ["NIS", "Nama", "Tgl Lahir"],
            [1001, "Jane D.", "2010-05-05"],
            ["-", "Nama", ""],
            ["#N/A", "Rudi", "#VALUE!"],
        ],
    })
    return [seventh, eighth]
