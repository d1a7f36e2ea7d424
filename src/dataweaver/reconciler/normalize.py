"""Value canonicalization for name matching."""

import re
from typing import Any, List

from .._io import cell_text

_COLLAPSE_RE = re.compile(r"[\s\-.,']")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPLIT_RE = re.compile(r"\s+")


def collapse(value: Any) -> str:
    """Lower-case *value* and strip whitespace, hyphens, periods, commas and apostrophes."""
    return _COLLAPSE_RE.sub("", cell_text(value).lower())


def tokenize(value: Any) -> List[str]:
    """Lower-case *value*, blank out punctuation and split on whitespace runs."""
    text = _PUNCT_RE.sub(" ", cell_text(value).lower())
    return [token for token in _SPLIT_RE.split(text) if token]
