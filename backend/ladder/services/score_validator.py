"""
Tennis legality rules for a parsed score.

Accepted per set: 6-0..6-4, 7-5, 7-6, or a match tie-break to 10+ won by 2.
A match needs at least two sets and cannot finish level on sets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ladder.services.score_parser import SetScore, parse_score_text

TIEBREAK_MIN_POINTS = 10

MSG_TOO_FEW_SETS = "Enter at least 2 sets (e.g. 6-4 6-3)."
MSG_NEGATIVE = "Scores must be non-negative numbers."
MSG_TIED_SET = "A set can't be tied."
MSG_TIEBREAK_MARGIN = "Match tie-break must be won by 2 points."
MSG_IMPOSSIBLE_SET = "Impossible set score. Use 6-x, 7-5, 7-6, or match tie-break 10+."
MSG_TIED_MATCH = "Match can't end tied on sets. Add a deciding set / match tie-break."


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""


@dataclass(frozen=True)
class ScoreCheck:
    """Combined parse + validate outcome for a raw score string."""

    ok: bool
    sets: List[SetScore] = field(default_factory=list)
    message: str = ""
    token: Optional[str] = None


def _set_error(a: int, b: int) -> Optional[str]:
    if a < 0 or b < 0:
        return MSG_NEGATIVE
    if a == b:
        return MSG_TIED_SET

    hi = max(a, b)
    lo = min(a, b)
    if hi >= TIEBREAK_MIN_POINTS:
        if hi - lo < 2:
            return MSG_TIEBREAK_MARGIN
        return None

    if hi == 6 and lo <= 4:
        return None
    if hi == 7 and lo in (5, 6):
        return None
    return MSG_IMPOSSIBLE_SET


def validate_sets(sets: Sequence[SetScore]) -> ValidationResult:
    """Check set pairs against the ladder's scoring rules, first failure wins."""
    if len(sets) < 2:
        return ValidationResult(ok=False, message=MSG_TOO_FEW_SETS)

    a_sets = 0
    b_sets = 0
    for a, b in sets:
        error = _set_error(a, b)
        if error:
            return ValidationResult(ok=False, message=error)
        if a > b:
            a_sets += 1
        else:
            b_sets += 1

    if a_sets == b_sets:
        return ValidationResult(ok=False, message=MSG_TIED_MATCH)

    return ValidationResult(ok=True)


def check_score(raw: Optional[str]) -> ScoreCheck:
    parsed = parse_score_text(raw)
    if not parsed.valid:
        return ScoreCheck(ok=False, message=parsed.message, token=parsed.token)

    validity = validate_sets(parsed.sets)
    if not validity.ok:
        return ScoreCheck(ok=False, sets=parsed.sets, message=validity.message)

    return ScoreCheck(ok=True, sets=parsed.sets)
