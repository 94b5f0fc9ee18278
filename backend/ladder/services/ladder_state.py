"""
In-memory ladder state used by the ranking engine.

Everything here is a frozen dataclass: transactions build the next Snapshot
with dataclasses.replace and never mutate the current one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

CAPACITY = 60
DEFAULT_PLAYER_COUNT = 40
MIN_PLAYER_COUNT = 2

SURFACES = ("Clay", "Indoor", "Outdoor Hard Court")
DEFAULT_SURFACE = "Outdoor Hard Court"

# Calendar month number → season bucket. Other months count towards no bucket.
SEASON_MONTHS: Dict[int, str] = {4: "apr", 5: "may", 6: "jun", 7: "jul", 8: "aug"}
MONTH_BUCKETS: Tuple[str, ...] = tuple(SEASON_MONTHS.values())

COUNTER_FIELDS: Tuple[str, ...] = (
    "matches_played",
    "matches_won",
    "sets_won",
    "sets_lost",
    "games_won",
    "games_lost",
) + MONTH_BUCKETS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WinnerRole(str, Enum):
    CHALLENGER = "challenger"
    OPPONENT = "opponent"


@dataclass(frozen=True)
class Player:
    pid: str
    position: int
    name: str = ""
    matches_played: int = 0
    matches_won: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    apr: int = 0
    may: int = 0
    jun: int = 0
    jul: int = 0
    aug: int = 0

    @property
    def is_named(self) -> bool:
        return bool(self.name.strip())

    @property
    def set_diff(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def game_diff(self) -> int:
        return self.games_won - self.games_lost


@dataclass(frozen=True)
class MatchRecord:
    id: str
    date: date
    position_played_for: int
    challenger_pid: str
    opponent_pid: str
    winner: WinnerRole
    score: str
    surface: str
    challenger_start_pos: int
    opponent_start_pos: int
    ladder_move_applied: bool
    recorded_at: datetime = field(default_factory=utc_now)

    @property
    def winner_pid(self) -> str:
        return self.challenger_pid if self.winner == WinnerRole.CHALLENGER else self.opponent_pid

    def involves(self, pid: str) -> bool:
        return pid in (self.challenger_pid, self.opponent_pid)


@dataclass(frozen=True)
class Snapshot:
    player_count: int
    players: Tuple[Player, ...]
    matches: Tuple[MatchRecord, ...] = ()

    def player(self, pid: str) -> Optional[Player]:
        for p in self.players:
            if p.pid == pid:
                return p
        return None

    def player_at(self, position: int) -> Optional[Player]:
        for p in self.players:
            if p.position == position:
                return p
        return None

    def match(self, match_id: str) -> Optional[MatchRecord]:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None

    def is_active(self, player: Optional[Player]) -> bool:
        return player is not None and 1 <= player.position <= self.player_count

    def active_players(self) -> Tuple[Player, ...]:
        return tuple(p for p in self.players if self.is_active(p))


def clamp_player_count(value: int) -> int:
    return min(CAPACITY, max(MIN_PLAYER_COUNT, int(value)))


def empty_player(position: int) -> Player:
    return Player(pid=f"p{position}", position=position)


def empty_snapshot(player_count: int = DEFAULT_PLAYER_COUNT, capacity: int = CAPACITY) -> Snapshot:
    """Fresh roster: every slot created once with zero counters and no name."""
    return Snapshot(
        player_count=clamp_player_count(player_count),
        players=tuple(empty_player(pos) for pos in range(1, capacity + 1)),
    )


def month_bucket(played_on: Optional[date]) -> Optional[str]:
    if played_on is None:
        return None
    return SEASON_MONTHS.get(played_on.month)


def replace_players(players: Iterable[Player], updated: Dict[str, Player]) -> Tuple[Player, ...]:
    return tuple(updated.get(p.pid, p) for p in players)
