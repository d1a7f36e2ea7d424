"""Shared cell and field access helpers."""

import math
from typing import Any, Iterable, Optional

from ._types import Row


def cell_text(value: Any) -> str:
    """Render a cell value as text; None and NaN become empty."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def find_header(headers: Optional[Iterable[str]], name: str) -> Optional[str]:
    """Return the header spelled as in *headers* that equals *name* ignoring case."""
    if not headers or not name:
        return None
    wanted = name.lower()
    for header in headers:
        if header.lower() == wanted:
            return header
    return None


def get_field(row: Row, name: str) -> Any:
    """Case-insensitive field lookup; the row itself is never rewritten."""
    if name in row:
        return row[name]
    key = find_header(row.keys(), name)
    return row[key] if key is not None else None


def key_text(value: Any) -> str:
    """Join-key form of a value: trimmed and lower-cased."""
    return cell_text(value).strip().lower()


def column_name(number: int) -> str:
    """Excel column letters for a 1-based column number (1 -> A, 27 -> AA)."""
    letters = ""
    while number > 0:
        number, rem = divmod(number - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """0-based column index for Excel letters; -1 for an empty string."""
    if not letters:
        return -1
    number = 0
    for char in letters.upper():
        number = number * 26 + (ord(char) - 64)
    return number - 1
