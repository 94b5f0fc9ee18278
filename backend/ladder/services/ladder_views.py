"""
Read-only projections over a Snapshot: sorted table, leaderboard, match log
and per-player history. Nothing here changes state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ladder.services.ladder_state import COUNTER_FIELDS, MatchRecord, Player, Snapshot, WinnerRole

SORT_KEYS: Tuple[str, ...] = ("position", "name", "set_diff", "game_diff") + COUNTER_FIELDS
SORT_ASC = "asc"
SORT_DESC = "desc"

UNKNOWN_NAME = "(Unknown)"
INACTIVE_SUFFIX = " (Inactive)"

RESULT_WIN = "win"
RESULT_LOSS = "loss"


@dataclass(frozen=True)
class MatchView:
    match: MatchRecord
    challenger_name: str
    opponent_name: str
    winner_name: str


@dataclass(frozen=True)
class HistoryEntry:
    match: MatchRecord
    role: str  # "challenger" | "opponent"
    opponent_name: str
    won: bool


def _sort_value(player: Player, key: str):
    if key == "name":
        return player.name.lower()
    return getattr(player, key)


def sort_players(snapshot: Snapshot, sort_key: str = "position", direction: str = SORT_ASC) -> List[Player]:
    """Active players ordered by any column; ties fall back to position in the same direction."""
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort column: {sort_key}")
    if direction not in (SORT_ASC, SORT_DESC):
        raise ValueError(f"Unknown sort direction: {direction}")

    return sorted(
        snapshot.active_players(),
        key=lambda p: (_sort_value(p, sort_key), p.position),
        reverse=direction == SORT_DESC,
    )


def leaderboard(snapshot: Snapshot, size: int = 3) -> List[Player]:
    named = [p for p in snapshot.active_players() if p.is_named]
    return sorted(named, key=lambda p: p.position)[:size]


def challenger_choices(snapshot: Snapshot) -> List[Player]:
    """Players that may be picked as a challenger."""
    return leaderboard(snapshot, size=len(snapshot.players))


def display_name(snapshot: Snapshot, pid: str) -> str:
    player = snapshot.player(pid)
    base = player.name if player and player.name else UNKNOWN_NAME
    if not snapshot.is_active(player):
        return base + INACTIVE_SUFFIX
    return base


def newest_first(matches) -> List[MatchRecord]:
    return sorted(matches, key=lambda m: (m.date, m.recorded_at), reverse=True)


def match_log(snapshot: Snapshot) -> List[MatchView]:
    views = []
    for m in newest_first(snapshot.matches):
        challenger_name = display_name(snapshot, m.challenger_pid)
        opponent_name = display_name(snapshot, m.opponent_pid)
        winner_name = challenger_name if m.winner == WinnerRole.CHALLENGER else opponent_name
        views.append(
            MatchView(
                match=m,
                challenger_name=challenger_name,
                opponent_name=opponent_name,
                winner_name=winner_name,
            )
        )
    return views


def player_history(snapshot: Snapshot, pid: str) -> List[HistoryEntry]:
    entries = []
    for m in newest_first(m for m in snapshot.matches if m.involves(pid)):
        is_challenger = m.challenger_pid == pid
        other = m.opponent_pid if is_challenger else m.challenger_pid
        entries.append(
            HistoryEntry(
                match=m,
                role=WinnerRole.CHALLENGER.value if is_challenger else WinnerRole.OPPONENT.value,
                opponent_name=display_name(snapshot, other),
                won=m.winner_pid == pid,
            )
        )
    return entries


def latest_results(snapshot: Snapshot) -> Dict[str, str]:
    """Most recent win/loss per player id."""
    results: Dict[str, str] = {}
    for m in newest_first(snapshot.matches):
        for pid in (m.challenger_pid, m.opponent_pid):
            if pid not in results:
                results[pid] = RESULT_WIN if m.winner_pid == pid else RESULT_LOSS
    return results
