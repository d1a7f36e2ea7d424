"""Ticket timestamp formatting."""

from datetime import datetime
from typing import Any, Optional

FORMAT_ORIGIN = "origin"
FORMAT_REPORT = "report"
FORMAT_JAM = "jam"
DATE_FORMATS = (FORMAT_ORIGIN, FORMAT_REPORT, FORMAT_JAM)

# e.g. "October 5, 2024, 3:07 PM" as exported by the help desk
LONG_DATE_FORMAT = "%B %d, %Y, %I:%M %p"


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp or a long help-desk date; None when neither fits."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        return datetime.strptime(value.strip(), LONG_DATE_FORMAT)
    except ValueError:
        return None


def format_datetime(value: Any, fmt: str = FORMAT_REPORT) -> str:
    """Render a timestamp as ``report`` (YYYY-MM-DD HH:MM) or ``jam`` (HH:MM AM/PM).

    ``origin`` returns the value unchanged. Values that cannot be parsed
    are returned as given; non-string or empty values give ``""``.
    """
    if not value or not isinstance(value, str):
        return ""
    if fmt == FORMAT_ORIGIN:
        return value

    parsed = parse_datetime(value)
    if parsed is None:
        return value
    if fmt == FORMAT_REPORT:
        return parsed.strftime("%Y-%m-%d %H:%M")
    if fmt == FORMAT_JAM:
        return parsed.strftime("%I:%M %p")
    return value
