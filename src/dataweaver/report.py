"""Daily case report over a converted ticket table."""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Iterable, List, Optional

from ._io import cell_text, get_field
from ._types import DailyReport, Dataset, Row
from .dates import parse_datetime

logger = logging.getLogger(__name__)

CLIENT_FIELD = "Client Name"
DETAIL_MODULE_FIELD = "Detail Module"
CREATED_AT_FIELD = "Created At"

UNRESOLVED_STATUSES = ("l1", "l2", "l3", "pending", "on hold")
PENDING_STATUSES = ("pending", "on hold")
NOT_AVAILABLE = "N/A"


def _status(row: Row) -> str:
    return cell_text(get_field(row, "Status")).lower()


def most_frequent(rows: Iterable[Row], field: str) -> str:
    """Most common non-empty value of *field*; the first to reach the top count wins."""
    counts = Counter(cell_text(get_field(r, field)) for r in rows if get_field(r, field))
    best, best_count = NOT_AVAILABLE, 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def latest_entry(rows: Iterable[Row]) -> Optional[datetime]:
    latest = None
    for row in rows:
        created = parse_datetime(get_field(row, CREATED_AT_FIELD))
        if created is None:
            continue
        created = created.replace(tzinfo=None)
        if latest is None or created > latest:
            latest = created
    return latest


def _case_line(*parts) -> str:
    return " ".join(cell_text(p) for p in parts if p).strip()


def build_daily_report(dataset: Dataset, report_date: Optional[date] = None) -> DailyReport:
    """Tally statuses and list open and solved cases.

    Args:
        dataset: Converted ticket rows (Client Name, Status, Title, ...).
        report_date: Date shown in the heading; today when omitted.
    """
    rows = dataset.rows
    statuses = [_status(r) for r in rows]

    trending_client = most_frequent(rows, CLIENT_FIELD)
    client_rows = [r for r in rows if cell_text(get_field(r, CLIENT_FIELD)) == trending_client]
    latest = latest_entry(rows)

    unresolved: List[str] = []
    solved: List[str] = []
    for row, status in zip(rows, statuses):
        client = get_field(row, CLIENT_FIELD)
        title = get_field(row, "Title")
        if not (client and title):
            continue
        if status in UNRESOLVED_STATUSES:
            unresolved.append(_case_line(client, title, get_field(row, "Status")))
        elif status == "solved":
            solved.append(_case_line(client, title))

    report = DailyReport(
        report_date=(report_date or date.today()).strftime("%d/%m/%Y"),
        total_cases=len(rows),
        escalated_l1=statuses.count("l1"),
        escalated_l2=statuses.count("l2"),
        escalated_l3=statuses.count("l3"),
        pending=sum(1 for s in statuses if s in PENDING_STATUSES),
        solved=statuses.count("solved"),
        trending_client=trending_client,
        trending_case=most_frequent(client_rows, DETAIL_MODULE_FIELD),
        latest_entry_time=latest.strftime("%I:%M %p") if latest else NOT_AVAILABLE,
        unresolved_cases=unresolved,
        solved_cases=solved,
    )
    logger.debug("Built report over %d cases", len(rows))
    return report

