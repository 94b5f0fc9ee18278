"""
Reduce validated sets to per-side totals and apply them to player counters.

Side A is always the challenger, side B the opponent.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from ladder.services.ladder_state import Player
from ladder.services.score_parser import SetScore


@dataclass(frozen=True)
class MatchTotals:
    sets_won_a: int
    sets_won_b: int
    games_won_a: int
    games_won_b: int


@dataclass(frozen=True)
class StatDelta:
    """One participant's share of a match."""

    won: bool
    sets_won: int
    sets_lost: int
    games_won: int
    games_lost: int
    bucket: Optional[str] = None


def aggregate_sets(sets: Sequence[SetScore]) -> MatchTotals:
    a_sets = sum(1 for a, b in sets if a > b)
    b_sets = sum(1 for a, b in sets if b > a)
    a_games = sum(a for a, _ in sets)
    b_games = sum(b for _, b in sets)
    return MatchTotals(
        sets_won_a=a_sets,
        sets_won_b=b_sets,
        games_won_a=a_games,
        games_won_b=b_games,
    )


def delta_for_side(totals: MatchTotals, is_a: bool, won: bool, bucket: Optional[str] = None) -> StatDelta:
    if is_a:
        return StatDelta(
            won=won,
            sets_won=totals.sets_won_a,
            sets_lost=totals.sets_won_b,
            games_won=totals.games_won_a,
            games_lost=totals.games_won_b,
            bucket=bucket,
        )
    return StatDelta(
        won=won,
        sets_won=totals.sets_won_b,
        sets_lost=totals.sets_won_a,
        games_won=totals.games_won_b,
        games_lost=totals.games_won_a,
        bucket=bucket,
    )


def _clamp0(value: int) -> int:
    return max(0, value)


def apply_delta(player: Player, delta: StatDelta, direction: int = 1) -> Player:
    """Add (direction=1) or remove (direction=-1) a match's contribution.

    Removal clamps every counter at zero.
    """
    sign = 1 if direction >= 0 else -1
    changes = {
        "matches_played": _clamp0(player.matches_played + sign),
        "matches_won": _clamp0(player.matches_won + sign * (1 if delta.won else 0)),
        "sets_won": _clamp0(player.sets_won + sign * delta.sets_won),
        "sets_lost": _clamp0(player.sets_lost + sign * delta.sets_lost),
        "games_won": _clamp0(player.games_won + sign * delta.games_won),
        "games_lost": _clamp0(player.games_lost + sign * delta.games_lost),
    }
    if delta.bucket:
        changes[delta.bucket] = _clamp0(getattr(player, delta.bucket) + sign)
    return replace(player, **changes)
