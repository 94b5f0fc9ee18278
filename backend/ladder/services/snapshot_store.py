"""
Load and save the ladder Snapshot through SQLModel.

The engine works on a detached Snapshot; this module is the only place that
maps it to and from table rows. A save writes the whole snapshot, bumps the
revision counter and commits, so the last successful save wins.
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ladder.models.match import LadderMatch
from ladder.models.player import LadderPlayer
from ladder.models.setting import PLAYER_COUNT_KEY, REVISION_KEY, LadderSetting
from ladder.services.ladder_state import (
    CAPACITY,
    DEFAULT_PLAYER_COUNT,
    MatchRecord,
    Player,
    Snapshot,
    WinnerRole,
    as_utc,
    clamp_player_count,
)

logger = logging.getLogger(__name__)

_WINNER_VALUES = {r.value for r in WinnerRole}


def _player_from_row(row: LadderPlayer) -> Player:
    return Player(
        pid=row.pid,
        position=row.position,
        name=row.name or "",
        matches_played=row.matches_played,
        matches_won=row.matches_won,
        sets_won=row.sets_won,
        sets_lost=row.sets_lost,
        games_won=row.games_won,
        games_lost=row.games_lost,
        apr=row.apr,
        may=row.may,
        jun=row.jun,
        jul=row.jul,
        aug=row.aug,
    )


def _match_from_row(row: LadderMatch) -> MatchRecord:
    # Unknown winner values fall back to the challenged player, as the form defaults to
    winner = WinnerRole(row.winner) if row.winner in _WINNER_VALUES else WinnerRole.OPPONENT
    return MatchRecord(
        id=row.id,
        date=row.date,
        position_played_for=row.position_played_for,
        challenger_pid=row.challenger_pid,
        opponent_pid=row.opponent_pid,
        winner=winner,
        score=row.score,
        surface=row.surface,
        challenger_start_pos=row.challenger_start_pos,
        opponent_start_pos=row.opponent_start_pos,
        ladder_move_applied=bool(row.ladder_move_applied),
        recorded_at=as_utc(row.created_at),
    )


def _fill_missing_slots(players: List[Player], capacity: int) -> List[Player]:
    """Create empty slots for any position 1..capacity nobody holds."""
    taken_positions = {p.position for p in players}
    taken_pids = {p.pid for p in players}
    filled = list(players)
    for pos in range(1, capacity + 1):
        if pos in taken_positions:
            continue
        pid = f"p{pos}"
        suffix = 2
        while pid in taken_pids:
            pid = f"p{pos}_{suffix}"
            suffix += 1
        taken_pids.add(pid)
        filled.append(Player(pid=pid, position=pos))
    return sorted(filled, key=lambda p: p.position)


def get_setting(session: Session, key: str, default=None):
    row = session.get(LadderSetting, key)
    if row is None or row.value is None:
        return default
    return row.value


def _put_setting(session: Session, key: str, value) -> None:
    row = session.get(LadderSetting, key)
    if row is None:
        row = LadderSetting(key=key, value=value)
    else:
        row.value = value
    session.add(row)


def get_revision(session: Session) -> int:
    return int(get_setting(session, REVISION_KEY, 0))


def load_snapshot(session: Session, capacity: int = CAPACITY) -> Snapshot:
    """Read the stored ladder; an empty database yields a fresh roster."""
    rows = session.exec(select(LadderPlayer).order_by(LadderPlayer.position)).all()
    players = _fill_missing_slots([_player_from_row(r) for r in rows], capacity)

    match_rows = session.exec(select(LadderMatch).order_by(LadderMatch.created_at.desc())).all()
    matches = tuple(_match_from_row(r) for r in match_rows)

    player_count = clamp_player_count(get_setting(session, PLAYER_COUNT_KEY, DEFAULT_PLAYER_COUNT))
    return Snapshot(player_count=player_count, players=tuple(players), matches=matches)


def _write_players(session: Session, players) -> None:
    existing: Dict[str, LadderPlayer] = {r.pid: r for r in session.exec(select(LadderPlayer)).all()}
    keep = set()
    for player in players:
        keep.add(player.pid)
        row = existing.get(player.pid)
        if row is None:
            row = LadderPlayer(**asdict(player))
        else:
            for key, value in asdict(player).items():
                setattr(row, key, value)
        session.add(row)
    for pid, row in existing.items():
        if pid not in keep:
            session.delete(row)


def _write_matches(session: Session, matches) -> None:
    existing: Dict[str, LadderMatch] = {r.id: r for r in session.exec(select(LadderMatch)).all()}
    keep = set()
    for m in matches:
        keep.add(m.id)
        values = {
            "date": m.date,
            "position_played_for": m.position_played_for,
            "challenger_pid": m.challenger_pid,
            "opponent_pid": m.opponent_pid,
            "winner": m.winner.value,
            "score": m.score,
            "surface": m.surface,
            "challenger_start_pos": m.challenger_start_pos,
            "opponent_start_pos": m.opponent_start_pos,
            "ladder_move_applied": m.ladder_move_applied,
            "created_at": m.recorded_at,
        }
        row = existing.get(m.id)
        if row is None:
            row = LadderMatch(id=m.id, **values)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        session.add(row)
    for match_id, row in existing.items():
        if match_id not in keep:
            session.delete(row)


def save_snapshot(session: Session, snapshot: Snapshot, previous: Optional[Snapshot] = None) -> int:
    """Persist the full snapshot and return the new revision.

    Raises SQLAlchemyError after rolling back if the commit fails.
    """
    try:
        if previous is None or previous.players != snapshot.players:
            _write_players(session, snapshot.players)
        if previous is None or previous.matches != snapshot.matches:
            _write_matches(session, snapshot.matches)
        _put_setting(session, PLAYER_COUNT_KEY, snapshot.player_count)
        revision = get_revision(session) + 1
        _put_setting(session, REVISION_KEY, revision)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to save ladder snapshot")
        raise

    logger.info("Ladder snapshot saved (revision %d, %d matches)", revision, len(snapshot.matches))
    return revision
