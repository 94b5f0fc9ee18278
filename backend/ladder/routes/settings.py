"""
Ladder settings, change polling and whole-snapshot export/import.
"""

from datetime import date, datetime
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from ladder.database import get_session
from ladder.services.ladder_state import (
    CAPACITY,
    MIN_PLAYER_COUNT,
    MONTH_BUCKETS,
    SURFACES,
    MatchRecord,
    Player,
    Snapshot,
    WinnerRole,
    as_utc,
)
from ladder.services.match_transactions import LadderError
from ladder.services.roster_admin import set_player_count, validate_snapshot
from ladder.services.snapshot_store import get_revision, load_snapshot
from ladder.utils.admin_pin import require_admin_pin
from ladder.utils.snapshot_guards import commit_snapshot, http_error_for

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class SettingsResponse(BaseModel):
    player_count: int
    capacity: int
    min_player_count: int
    surfaces: List[str]
    month_buckets: List[str]
    revision: int


class SettingsUpdateRequest(BaseModel):
    # Out-of-range values are clamped rather than rejected
    player_count: int


class RevisionResponse(BaseModel):
    revision: int


class SnapshotPlayer(BaseModel):
    pid: str
    position: int
    name: str = ""
    matches_played: int = Field(default=0, ge=0)
    matches_won: int = Field(default=0, ge=0)
    sets_won: int = Field(default=0, ge=0)
    sets_lost: int = Field(default=0, ge=0)
    games_won: int = Field(default=0, ge=0)
    games_lost: int = Field(default=0, ge=0)
    apr: int = Field(default=0, ge=0)
    may: int = Field(default=0, ge=0)
    jun: int = Field(default=0, ge=0)
    jul: int = Field(default=0, ge=0)
    aug: int = Field(default=0, ge=0)


class SnapshotMatch(BaseModel):
    id: str
    date: date
    position_played_for: int
    challenger_pid: str
    opponent_pid: str
    winner: WinnerRole
    score: str
    surface: str = ""
    challenger_start_pos: int
    opponent_start_pos: int
    ladder_move_applied: bool = False
    recorded_at: datetime

    @field_validator("recorded_at")
    @classmethod
    def validate_recorded_at(cls, v):
        # Imported files may carry naive timestamps; stored ones are UTC
        return as_utc(v)


class SnapshotPayload(BaseModel):
    player_count: int
    players: List[SnapshotPlayer]
    matches: List[SnapshotMatch] = []


class SnapshotSaveResponse(BaseModel):
    ok: bool
    revision: int


def _snapshot_to_payload(snapshot: Snapshot) -> SnapshotPayload:
    return SnapshotPayload(
        player_count=snapshot.player_count,
        players=[SnapshotPlayer(**vars(p)) for p in snapshot.players],
        matches=[SnapshotMatch(**vars(m)) for m in snapshot.matches],
    )


def _payload_to_snapshot(payload: SnapshotPayload) -> Snapshot:
    return Snapshot(
        player_count=payload.player_count,
        players=tuple(Player(**p.model_dump()) for p in payload.players),
        matches=tuple(MatchRecord(**m.model_dump()) for m in payload.matches),
    )


# ============================================================================
# Settings Endpoints
# ============================================================================


@router.get("/ladder/settings", response_model=SettingsResponse)
def get_settings(session: Session = Depends(get_session)):
    snapshot = load_snapshot(session)
    return SettingsResponse(
        player_count=snapshot.player_count,
        capacity=CAPACITY,
        min_player_count=MIN_PLAYER_COUNT,
        surfaces=list(SURFACES),
        month_buckets=list(MONTH_BUCKETS),
        revision=get_revision(session),
    )


@router.put(
    "/ladder/settings",
    response_model=SettingsResponse,
    dependencies=[Depends(require_admin_pin)],
)
def update_settings(payload: SettingsUpdateRequest, session: Session = Depends(get_session)):
    """Change how many ladder positions are in use.

    Hidden slots keep their names, stats and match history and come back when
    the count is raised again.
    """
    snapshot = load_snapshot(session)
    updated = set_player_count(snapshot, payload.player_count)
    revision = commit_snapshot(session, updated, previous=snapshot)
    return SettingsResponse(
        player_count=updated.player_count,
        capacity=CAPACITY,
        min_player_count=MIN_PLAYER_COUNT,
        surfaces=list(SURFACES),
        month_buckets=list(MONTH_BUCKETS),
        revision=revision,
    )


@router.get("/ladder/revision", response_model=RevisionResponse)
def get_ladder_revision(session: Session = Depends(get_session)):
    """Poll target: the revision increases on every successful save."""
    return RevisionResponse(revision=get_revision(session))


# ============================================================================
# Snapshot Export / Import
# ============================================================================


@router.get("/ladder/snapshot", response_model=SnapshotPayload)
def export_snapshot(session: Session = Depends(get_session)):
    return _snapshot_to_payload(load_snapshot(session))


@router.put(
    "/ladder/snapshot",
    response_model=SnapshotSaveResponse,
    dependencies=[Depends(require_admin_pin)],
)
def import_snapshot(payload: SnapshotPayload, session: Session = Depends(get_session)):
    """Replace the stored ladder with a full snapshot (last write wins)."""
    try:
        snapshot = validate_snapshot(_payload_to_snapshot(payload))
    except LadderError as exc:
        raise http_error_for(exc)

    revision = commit_snapshot(session, snapshot)
    return SnapshotSaveResponse(ok=True, revision=revision)
