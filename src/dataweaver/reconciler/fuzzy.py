"""Name similarity scoring and best-candidate auto-matching.

Scores are coarse confidence tiers (0, 50, 85, 100) meant for a
human-reviewed workflow rather than a continuous ratio.
"""

import logging
from typing import Any, List, Optional

from .._io import cell_text, get_field
from .._types import MatchCandidate, Row
from .normalize import collapse, tokenize

logger = logging.getLogger(__name__)

SCORE_EXACT = 100
SCORE_MULTI_TOKEN = 85
SCORE_SINGLE_TOKEN = 50
SCORE_NONE = 0

# Candidates scoring above this are selected without user action
AUTO_SELECT_THRESHOLD = 80


def similarity_score(value_a: Any, value_b: Any) -> int:
    """Score how likely two field values name the same record.

    Args:
        value_a: Value from the reference dataset.
        value_b: Value from the incoming dataset.

    Returns:
        100 when the collapsed forms are equal, 85 when two or more
        distinct tokens are shared, 50 for exactly one shared token,
        otherwise 0. Empty inputs always score 0.
    """
    collapsed_a = collapse(value_a)
    collapsed_b = collapse(value_b)
    if not collapsed_a or not collapsed_b:
        return SCORE_NONE
    if collapsed_a == collapsed_b:
        return SCORE_EXACT

    tokens_a = set(tokenize(value_a))
    tokens_b = set(tokenize(value_b))
    if not tokens_a or not tokens_b:
        return SCORE_NONE

    shared = len(tokens_a & tokens_b)
    if shared >= 2:
        return SCORE_MULTI_TOKEN
    if shared == 1:
        return SCORE_SINGLE_TOKEN
    return SCORE_NONE


def confidence_tier(score: int) -> str:
    """Review colour band for a score: high, good, weak or none."""
    if score > 95:
        return "high"
    if score >= 80:
        return "good"
    if score >= 40:
        return "weak"
    return "none"


def best_match(value_b: Any, rows_a: List[Row], key_a: str) -> MatchCandidate:
    """Find the highest-scoring row of *rows_a* for a single value.

    Ties keep the first row encountered; a row only replaces the current
    best on a strictly higher score.
    """
    best: Optional[Row] = None
    highest = SCORE_NONE
    if cell_text(value_b):
        for row_a in rows_a:
            value_a = get_field(row_a, key_a)
            if not cell_text(value_a):
                continue
            score = similarity_score(value_a, value_b)
            if score > highest:
                highest = score
                best = row_a
                if score == SCORE_EXACT:
                    break
    return MatchCandidate(source_row={}, best_match=best, score=highest)


def auto_match(
    unmatched_b: List[Row],
    rows_a: List[Row],
    key_a: str,
    key_b: str,
    identity_field: Optional[str] = None,
    threshold: int = AUTO_SELECT_THRESHOLD,
) -> List[MatchCandidate]:
    """Pair every unmatched B row with its best-scoring A row.

    Every A row is considered for every B row; the same A row may be the
    best match of several candidates at once.

    Args:
        unmatched_b: Rows of B left over by the exact-key join.
        rows_a: All rows of A.
        key_a: Merge-key header as spelled in A.
        key_b: Merge-key header as spelled in B.
        identity_field: If given, A rows with an empty value in this field
            are not considered as targets.
        threshold: Scores strictly above this are flagged ``auto_selected``.

    Returns:
        Candidates sorted by score, highest first (stable for equal scores).
    """
    targets = rows_a
    if identity_field:
        targets = [r for r in rows_a if cell_text(get_field(r, identity_field)).strip()]

    candidates: List[MatchCandidate] = []
    auto_count = 0
    for row_b in unmatched_b:
        found = best_match(get_field(row_b, key_b), targets, key_a)
        selected = found.best_match is not None and found.score > threshold
        if selected:
            auto_count += 1
        candidates.append(MatchCandidate(
            source_row=row_b,
            best_match=found.best_match,
            score=found.score,
            auto_selected=selected,
        ))

    candidates.sort(key=lambda c: c.score, reverse=True)
    logger.info(
        "Auto-matched %d of %d unmatched rows against %d targets",
        auto_count, len(candidates), len(targets),
    )
    return candidates
