"""Shared result types for the dataweaver library.

All library functions return Python objects (dicts, Pydantic models).
Expected failures are carried in ``error`` rather than raised.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

Row = Dict[str, Any]


class _Result(BaseModel):
    """Base for results that may carry a structured failure."""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# -- Data model --

class Dataset(BaseModel):
    """A tabular source: ordered headers plus header-keyed rows."""
    headers: List[str] = Field(default_factory=list)
    rows: List[Row] = Field(default_factory=list)
    file_name: str = ""


class SheetGrid(BaseModel):
    """A raw sheet: Excel column letters and rows of cell values."""
    name: str = ""
    columns: List[str] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)


class MatchCandidate(BaseModel):
    """An unmatched row from B with its best-guess partner in A."""
    source_row: Row
    best_match: Optional[Row] = None
    score: int = 0
    auto_selected: bool = False


# -- Reconciler types --

class JoinResult(_Result):
    """Result of the exact-key join of two datasets."""
    matched_rows: List[Row] = Field(default_factory=list)
    unmatched_rows_b: List[Row] = Field(default_factory=list)


class MergeRunResult(_Result):
    """Result of a full merge run (join plus auto-match)."""
    matched_count: int = 0
    unmatched_count: int = 0
    auto_selected: int = 0


class CommitResult(_Result):
    """Result of committing the selected candidates."""
    committed: int = 0
    matched_count: int = 0
    unmatched_count: int = 0


# -- Ingestion types --

class LoadResult(_Result):
    """Result of loading a dataset from a file or a remote export."""
    dataset: Optional[Dataset] = None
    filtered_rows: int = 0


class ConvertResult(_Result):
    """Result of converting pasted JSON into a ticket table."""
    dataset: Optional[Dataset] = None


# -- Remote sheet types --

class SpreadsheetInfo(_Result):
    """A share link resolved to a spreadsheet id and title."""
    spreadsheet_id: str = ""
    title: str = ""


class WriteRange(BaseModel):
    """One range of a batch write."""
    range: str
    values: List[List[Any]]


class WritePlan(BaseModel):
    """A fully specified batch write handed to the sheet store."""
    spreadsheet_id: str = ""
    value_input_option: str = "USER_ENTERED"
    data: List[WriteRange] = Field(default_factory=list)


class CellChange(BaseModel):
    """A single cell overwritten by a mutation."""
    range: str
    old_value: Any = ""
    new_value: Any = ""


class StatusChange(BaseModel):
    """A ticket row whose status or operator note differs from the sheet."""
    title: str
    row_index: int = 0  # 1-based sheet row
    old_status: str = ""
    new_status: str = ""
    old_ticket_op: str = ""
    new_ticket_op: str = ""


class ImportUndo(BaseModel):
    """Undo record for an append: the contiguous block of new rows."""
    kind: Literal["import"] = "import"
    spreadsheet_id: str
    sheet_id: int
    start_index: int  # 0-based
    count: int


class UpdateUndo(BaseModel):
    """Undo record for a status update: every overwritten cell."""
    kind: Literal["update"] = "update"
    spreadsheet_id: str
    changes: List[CellChange] = Field(default_factory=list)
    row_count: int = 0


UndoRecord = Annotated[Union[ImportUndo, UpdateUndo], Field(discriminator="kind")]


class ImportPlan(BaseModel):
    """Rows to append and titles skipped as already present."""
    new_rows: List[Row] = Field(default_factory=list)
    values: List[List[Any]] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)


class ImportResult(_Result):
    """Result of importing rows into the remote sheet."""
    message: str = ""
    imported_count: int = 0
    duplicate_count: int = 0
    duplicates: List[str] = Field(default_factory=list)
    undo: Optional[ImportUndo] = None


class StatusPreview(_Result):
    """Pending status changes and the number of rows without a ticket id."""
    changes: List[StatusChange] = Field(default_factory=list)
    skipped: int = 0


class UpdateResult(_Result):
    """Result of writing status changes to the remote sheet."""
    message: str = ""
    updated_rows: List[StatusChange] = Field(default_factory=list)
    skipped: int = 0
    undo: Optional[UpdateUndo] = None


class UndoResult(_Result):
    """Result of reversing the last remote mutation."""
    message: str = ""


# -- Report types --

class DailyReport(BaseModel):
    """Status totals and case lists for a day's ticket table."""
    report_date: str = ""
    total_cases: int = 0
    escalated_l1: int = 0
    escalated_l2: int = 0
    escalated_l3: int = 0
    pending: int = 0
    solved: int = 0
    trending_client: str = "N/A"
    trending_case: str = "N/A"
    latest_entry_time: str = "N/A"
    unresolved_cases: List[str] = Field(default_factory=list)
    solved_cases: List[str] = Field(default_factory=list)

    def render(self) -> str:
        """Plain-text report, ready to paste into chat."""
        def numbered(lines: List[str], empty: str) -> str:
            return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, 1)) or empty

        text = (
            f"Case report {self.report_date} (update last entry time {self.latest_entry_time})\n"
            "\n"
            f"Total cases: {self.total_cases}\n"
            f"Escalated L1: {self.escalated_l1}\n"
            f"Escalated L2: {self.escalated_l2}\n"
            f"Escalated L3: {self.escalated_l3}\n"
            f"Pending: {self.pending}\n"
            f"Solved: {self.solved}\n"
            f"Client Trend: {self.trending_client}\n"
            f"Case Trend: {self.trending_case}\n"
            "\n"
            "Summary of unresolved case details:\n"
            f"{numbered(self.unresolved_cases, 'No unresolved cases.')}\n"
            "\n"
            "Solved cases:\n"
            f"{numbered(self.solved_cases, 'No solved cases yet.')}\n"
        )
        return text.strip()


# -- Normalisation types --

class ColumnMapping(BaseModel):
    """Copy column *source_column* of grid A into *target_column* of grid B."""
    source_column: str = ""
    target_column: str = ""


class GridResult(_Result):
    """Result of loading or transforming a raw sheet grid."""
    grid: Optional[SheetGrid] = None


class ExportResult(_Result):
    """Result of writing merged rows to a workbook."""
    path: str = ""
    row_count: int = 0


# -- Duplicate check types --

class StudentRecord(BaseModel):
    """A student row found while checking workbooks for duplicate NIS."""
    nis: str = ""
    name: str
    file_name: str
    sheet_name: str


class IdentityHeader(BaseModel):
    """Location of the header row and its NIS, name and birth-date columns."""
    row_index: int
    nis_index: int
    name_index: int
    dob_index: int


class DuplicateReport(_Result):
    """Duplicate NIS values plus rows missing a NIS or a date of birth."""
    duplicates: List[StudentRecord] = Field(default_factory=list)
    empty_nis: List[StudentRecord] = Field(default_factory=list)
    empty_dob: List[StudentRecord] = Field(default_factory=list)
    skipped_sheets: List[str] = Field(default_factory=list)
    file_errors: List[str] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.duplicates or self.empty_nis or self.empty_dob)

    def duplicate_groups(self) -> Dict[str, List[StudentRecord]]:
        groups: Dict[str, List[StudentRecord]] = {}
        for record in self.duplicates:
            groups.setdefault(record.nis, []).append(record)
        return groups

    def render(self) -> str:
        """Plain-text summary of every problem found."""
        sections = []
        groups = self.duplicate_groups()
        if groups:
            lines = ["Duplicated NIS:"]
            for nis, records in groups.items():
                names = " and ".join(r.name for r in records)
                sheets = ", ".join(dict.fromkeys(r.sheet_name for r in records))
                lines.append(f"- {nis} is used by {names} in sheet {sheets}")
            sections.append("\n".join(lines))
        if self.empty_nis:
            sections.append("\n".join(
                ["Students with an empty NIS:"] + [f"- {r.name} sheet {r.sheet_name}" for r in self.empty_nis]
            ))
        if self.empty_dob:
            sections.append("\n".join(
                ["Students with an empty date of birth:"] + [f"- {r.name} sheet {r.sheet_name}" for r in self.empty_dob]
            ))
        return "\n\n".join(sections) or "No problems found."
