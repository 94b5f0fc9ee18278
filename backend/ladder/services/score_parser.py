"""
Score parser for free-text tennis score strings.

Supports formats like:
  "6-4 6-3"         → 2 sets
  "7-6 6-7 10-8"    → 3 sets, last one a match tie-break
  "6:4 6:3"         → colon separator variant
  "6-4\n6-3"        → newlines/tabs count as whitespace

Only reads the numbers; legality is checked by score_validator.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

SetScore = Tuple[int, int]  # (side_a_points, side_b_points)

_DIGITS = re.compile(r"[0-9]+")

EMPTY_SCORE_MESSAGE = "Please enter a score (e.g. 6-4 6-3)."


@dataclass(frozen=True)
class ParseResult:
    valid: bool
    sets: List[SetScore] = field(default_factory=list)
    message: str = ""
    token: Optional[str] = None  # offending token when parsing failed


def _unreadable(token: str) -> ParseResult:
    return ParseResult(valid=False, message=f'Couldn\'t read set: "{token}"', token=token)


def _parse_field(raw: str) -> Optional[int]:
    # ASCII digits only; int() would also take "1_0", "+6" and full-width digits
    if not _DIGITS.fullmatch(raw):
        return None
    return int(raw)


def _parse_token(token: str) -> Optional[SetScore]:
    # "-" takes precedence; "6-4:3" is unreadable rather than re-split on ":"
    if "-" in token:
        bits = token.split("-")
    elif ":" in token:
        bits = token.split(":")
    else:
        return None
    if len(bits) != 2:
        return None

    a = _parse_field(bits[0])
    b = _parse_field(bits[1])
    if a is None or b is None:
        return None
    return (a, b)


def parse_score_text(raw: Optional[str]) -> ParseResult:
    """Split a score string into ordered (a, b) set pairs.

    Returns a failed ParseResult (never raises) with a display-ready message
    naming the token that could not be read.
    """
    text = (raw or "").strip()
    if not text:
        return ParseResult(valid=False, message=EMPTY_SCORE_MESSAGE)

    sets: List[SetScore] = []
    # str.split() with no argument collapses every whitespace run
    for token in text.split():
        pair = _parse_token(token)
        if pair is None:
            return _unreadable(token)
        sets.append(pair)

    return ParseResult(valid=True, sets=sets)
