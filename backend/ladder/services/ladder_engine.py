"""
Ladder position moves.

An upset inserts the challenger at the beaten player's position and pushes
everyone in between down one place. Reversal is the exact inverse and must be
given the start positions frozen on the match record, never current ones.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from ladder.services.ladder_state import Player

logger = logging.getLogger(__name__)


def _find(players: Iterable[Player], pid: str):
    for p in players:
        if p.pid == pid:
            return p
    return None


def should_move(challenger_won: bool, challenger_pos: int, opponent_pos: int) -> bool:
    """An upset: the challenger won from a worse (higher-numbered) position."""
    return challenger_won and challenger_pos > opponent_pos


def apply_move(
    players: Sequence[Player], challenger_pid: str, target_position: int
) -> Tuple[Tuple[Player, ...], bool]:
    """Move the challenger up to target_position.

    Returns (players, applied). Nothing changes when the challenger is unknown
    or already holds target_position or better.
    """
    challenger = _find(players, challenger_pid)
    if challenger is None:
        return tuple(players), False

    start = challenger.position
    if start <= target_position:
        return tuple(players), False

    moved: List[Player] = []
    for p in players:
        if p.pid == challenger_pid:
            moved.append(replace(p, position=target_position))
        elif target_position <= p.position < start:
            moved.append(replace(p, position=p.position + 1))
        else:
            moved.append(p)

    logger.info("Ladder move: %s %d -> %d", challenger_pid, start, target_position)
    return tuple(moved), True


def reverse_move(
    players: Sequence[Player],
    challenger_pid: str,
    challenger_start_pos: int,
    opponent_start_pos: int,
) -> Tuple[Player, ...]:
    """Undo apply_move using the positions recorded when the match was logged."""
    if _find(players, challenger_pid) is None:
        return tuple(players)

    restored: List[Player] = []
    for p in players:
        if p.pid == challenger_pid:
            restored.append(replace(p, position=challenger_start_pos))
        elif opponent_start_pos < p.position <= challenger_start_pos:
            restored.append(replace(p, position=p.position - 1))
        else:
            restored.append(p)

    logger.info(
        "Ladder move reversed: %s back to %d (was won at %d)",
        challenger_pid,
        challenger_start_pos,
        opponent_start_pos,
    )
    return tuple(restored)


def check_positions(players: Sequence[Player], capacity: int) -> List[str]:
    """Return human-readable problems with a roster's position assignment."""
    errors: List[str] = []
    for p in players:
        if not 1 <= p.position <= capacity:
            errors.append(f"Player {p.pid} has position {p.position} outside 1..{capacity}")

    counts = Counter(p.position for p in players)
    for position, count in sorted(counts.items()):
        if count > 1:
            errors.append(f"Position {position} is held by {count} players")

    pid_counts = Counter(p.pid for p in players)
    for pid, count in sorted(pid_counts.items()):
        if count > 1:
            errors.append(f"Player id {pid} appears {count} times")
    return errors
