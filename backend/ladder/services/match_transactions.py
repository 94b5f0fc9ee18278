"""
Match transactions: add, delete and edit a logged match.

Each operation takes the current Snapshot and returns the next one. Nothing is
mutated in place, so a rejected transaction leaves the caller's snapshot as it
was. Failures raise a LadderError subclass whose message is shown to the user
verbatim.

Guarantees:
    - Stats and ladder moves are applied or reversed together
    - Reversal always uses the start positions frozen on the match record
    - A stored score that no longer validates does not block deletion; its
      stat reversal is skipped and logged
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from ladder.services.ladder_engine import apply_move, reverse_move, should_move
from ladder.services.ladder_state import (
    MatchRecord,
    Player,
    Snapshot,
    WinnerRole,
    as_utc,
    month_bucket,
    replace_players,
    utc_now,
)
from ladder.services.result_aggregator import aggregate_sets, apply_delta, delta_for_side
from ladder.services.score_parser import SetScore
from ladder.services.score_validator import check_score

logger = logging.getLogger(__name__)


class LadderError(ValueError):
    """Base class for rejected ladder transactions."""

    @property
    def reason(self) -> str:
        return str(self)


class ScoreRejected(LadderError):
    """Score text could not be read or breaks a scoring rule."""


class PlayerRejected(LadderError):
    """Unknown, unnamed or duplicated participant."""


class PlayerNotFound(PlayerRejected):
    pass


class MatchNotFound(LadderError):
    pass


@dataclass(frozen=True)
class MatchInput:
    date: date
    position_played_for: int
    challenger_pid: str
    winner: WinnerRole
    score: str
    surface: str


@dataclass(frozen=True)
class MatchEdit:
    date: date
    winner: WinnerRole
    score: str
    surface: str


def new_match_id() -> str:
    return uuid.uuid4().hex[:12]


def _require_score(raw: str) -> List[SetScore]:
    result = check_score(raw)
    if not result.ok:
        raise ScoreRejected(result.message)
    return result.sets


def _apply_stats(
    players: Sequence[Player],
    challenger_pid: str,
    opponent_pid: str,
    winner: WinnerRole,
    sets: Sequence[SetScore],
    played_on: Optional[date],
    direction: int,
) -> Tuple[Player, ...]:
    totals = aggregate_sets(sets)
    bucket = month_bucket(played_on)
    challenger_won = winner == WinnerRole.CHALLENGER

    updated = {}
    for p in players:
        if p.pid == challenger_pid:
            delta = delta_for_side(totals, is_a=True, won=challenger_won, bucket=bucket)
        elif p.pid == opponent_pid:
            delta = delta_for_side(totals, is_a=False, won=not challenger_won, bucket=bucket)
        else:
            continue
        updated[p.pid] = apply_delta(p, delta, direction)
    return replace_players(players, updated)


def _record_result(
    players: Sequence[Player],
    challenger: Player,
    opponent: Player,
    played_on: date,
    winner: WinnerRole,
    score: str,
    surface: str,
    sets: Sequence[SetScore],
    match_id: str,
    recorded_at: datetime,
) -> Tuple[Tuple[Player, ...], MatchRecord]:
    """Freeze start positions, apply the ladder move and +1 stat deltas."""
    challenger_start = challenger.position
    opponent_start = opponent.position

    next_players = tuple(players)
    applied = False
    if should_move(winner == WinnerRole.CHALLENGER, challenger_start, opponent_start):
        next_players, applied = apply_move(next_players, challenger.pid, opponent_start)

    next_players = _apply_stats(
        next_players, challenger.pid, opponent.pid, winner, sets, played_on, direction=1
    )

    record = MatchRecord(
        id=match_id,
        date=played_on,
        position_played_for=opponent_start,
        challenger_pid=challenger.pid,
        opponent_pid=opponent.pid,
        winner=winner,
        score=score.strip(),
        surface=surface,
        challenger_start_pos=challenger_start,
        opponent_start_pos=opponent_start,
        ladder_move_applied=applied,
        recorded_at=recorded_at,
    )
    return next_players, record


def _reverse_result(players: Sequence[Player], match: MatchRecord) -> Tuple[Player, ...]:
    next_players = tuple(players)

    stored = check_score(match.score)
    if stored.ok:
        next_players = _apply_stats(
            next_players,
            match.challenger_pid,
            match.opponent_pid,
            match.winner,
            stored.sets,
            match.date,
            direction=-1,
        )
    else:
        logger.warning(
            "Stored score %r on match %s no longer validates (%s); skipping stat reversal",
            match.score,
            match.id,
            stored.message,
        )

    if match.ladder_move_applied:
        next_players = reverse_move(
            next_players,
            match.challenger_pid,
            match.challenger_start_pos,
            match.opponent_start_pos,
        )
    return next_players


def _get_match(snapshot: Snapshot, match_id: str) -> MatchRecord:
    match = snapshot.match(match_id)
    if match is None:
        raise MatchNotFound("Match not found.")
    return match


def add_match(
    snapshot: Snapshot,
    data: MatchInput,
    match_id: Optional[str] = None,
    recorded_at: Optional[datetime] = None,
) -> Tuple[Snapshot, MatchRecord]:
    """Log a new challenge match and return (next_snapshot, record)."""
    position = data.position_played_for
    opponent = snapshot.player_at(position) if 1 <= position <= snapshot.player_count else None
    if opponent is None:
        raise PlayerRejected("Invalid position selected.")
    if not opponent.is_named:
        raise PlayerRejected(f"The player at position #{position} has no name yet.")

    if not data.challenger_pid:
        raise PlayerRejected("Pick a Challenger.")
    challenger = snapshot.player(data.challenger_pid)
    if challenger is None or not challenger.is_named or not snapshot.is_active(challenger):
        raise PlayerRejected("Challenger is missing / has no name.")
    if challenger.pid == opponent.pid:
        raise PlayerRejected("Challenger can't play themselves.")

    sets = _require_score(data.score)

    players, record = _record_result(
        snapshot.players,
        challenger,
        opponent,
        data.date,
        data.winner,
        data.score,
        data.surface,
        sets,
        match_id or new_match_id(),
        as_utc(recorded_at) if recorded_at else utc_now(),
    )
    logger.info(
        "Match %s added: %s (#%d) vs %s (#%d), winner=%s, ladder_move=%s",
        record.id,
        challenger.pid,
        record.challenger_start_pos,
        opponent.pid,
        record.opponent_start_pos,
        record.winner.value,
        record.ladder_move_applied,
    )
    return replace(snapshot, players=players, matches=(record,) + snapshot.matches), record


def delete_match(snapshot: Snapshot, match_id: str) -> Snapshot:
    """Reverse a match's stats and ladder move, then drop it from the log."""
    match = _get_match(snapshot, match_id)
    players = _reverse_result(snapshot.players, match)
    matches = tuple(m for m in snapshot.matches if m.id != match_id)
    logger.info("Match %s deleted (ladder move reversed: %s)", match_id, match.ladder_move_applied)
    return replace(snapshot, players=players, matches=matches)


def edit_match(snapshot: Snapshot, match_id: str, data: MatchEdit) -> Tuple[Snapshot, MatchRecord]:
    """Replace a match's date/winner/score/surface.

    The old result is reversed first; the new one is then decided against the
    post-reversal roster, so the edit may trigger a different ladder move.
    """
    match = _get_match(snapshot, match_id)
    sets = _require_score(data.score)

    if snapshot.player(match.challenger_pid) is None or snapshot.player(match.opponent_pid) is None:
        raise PlayerRejected("Challenger is missing / has no name.")

    players = _reverse_result(snapshot.players, match)
    challenger = next(p for p in players if p.pid == match.challenger_pid)
    opponent = next(p for p in players if p.pid == match.opponent_pid)

    players, record = _record_result(
        players,
        challenger,
        opponent,
        data.date,
        data.winner,
        data.score,
        data.surface,
        sets,
        match.id,
        match.recorded_at,
    )
    matches = tuple(record if m.id == match_id else m for m in snapshot.matches)
    logger.info(
        "Match %s edited: winner=%s, ladder_move=%s (was %s)",
        match_id,
        record.winner.value,
        record.ladder_move_applied,
        match.ladder_move_applied,
    )
    return replace(snapshot, players=players, matches=matches), record
