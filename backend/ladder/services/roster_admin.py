"""
Roster administration: active player count and manual player corrections.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional

from ladder.services.ladder_engine import check_positions
from ladder.services.ladder_state import (
    CAPACITY,
    COUNTER_FIELDS,
    Snapshot,
    clamp_player_count,
    replace_players,
)
from ladder.services.match_transactions import LadderError, PlayerNotFound

logger = logging.getLogger(__name__)


class RosterRejected(LadderError):
    """Imported or corrected roster data breaks a roster invariant."""


def set_player_count(snapshot: Snapshot, value: int) -> Snapshot:
    """Change how many positions are in use; slots beyond it keep their data."""
    count = clamp_player_count(value)
    if count != snapshot.player_count:
        logger.info("Active player count %d -> %d", snapshot.player_count, count)
    return replace(snapshot, player_count=count)


def update_player(
    snapshot: Snapshot,
    pid: str,
    name: Optional[str] = None,
    counters: Optional[Dict[str, int]] = None,
) -> Snapshot:
    """Rename a slot or overwrite its counters by hand."""
    player = snapshot.player(pid)
    if player is None:
        raise PlayerNotFound("Player not found.")

    changes: Dict[str, object] = {}
    if name is not None:
        changes["name"] = str(name)
    for key, value in (counters or {}).items():
        if key not in COUNTER_FIELDS:
            raise RosterRejected(f"Unknown counter: {key}")
        if value < 0:
            raise RosterRejected(f"{key} can't be negative.")
        changes[key] = int(value)

    updated = replace(player, **changes)
    return replace(snapshot, players=replace_players(snapshot.players, {pid: updated}))


def validate_snapshot(snapshot: Snapshot, capacity: int = CAPACITY) -> Snapshot:
    """Check an imported snapshot before it replaces the stored one."""
    errors = check_positions(snapshot.players, capacity)

    pids = {p.pid for p in snapshot.players}
    seen = set()
    for m in snapshot.matches:
        if m.id in seen:
            errors.append(f"Match id {m.id} appears more than once")
        seen.add(m.id)
        if m.challenger_pid not in pids or m.opponent_pid not in pids:
            errors.append(f"Match {m.id} references an unknown player")

    if errors:
        raise RosterRejected("; ".join(errors))
    return replace(snapshot, player_count=clamp_player_count(snapshot.player_count))
