"""
Ladder Player API Routes
Sorted ladder table, leaderboard, challenger picker, per-player history and
manual player corrections.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from ladder.database import get_session
from ladder.services.ladder_state import Player, Snapshot
from ladder.services.ladder_views import (
    SORT_ASC,
    challenger_choices,
    latest_results,
    leaderboard,
    player_history,
    sort_players,
)
from ladder.services.match_transactions import LadderError
from ladder.services.roster_admin import update_player
from ladder.services.snapshot_store import load_snapshot
from ladder.utils.admin_pin import require_admin_pin
from ladder.utils.snapshot_guards import commit_snapshot, http_error_for

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class PlayerResponse(BaseModel):
    pid: str
    position: int
    name: str
    is_active: bool
    matches_played: int
    matches_won: int
    sets_won: int
    sets_lost: int
    set_diff: int
    games_won: int
    games_lost: int
    game_diff: int
    apr: int
    may: int
    jun: int
    jul: int
    aug: int
    latest_result: Optional[str] = None  # "win" | "loss" | None


class PlayerUpdateRequest(BaseModel):
    name: Optional[str] = None
    matches_played: Optional[int] = Field(default=None, ge=0)
    matches_won: Optional[int] = Field(default=None, ge=0)
    sets_won: Optional[int] = Field(default=None, ge=0)
    sets_lost: Optional[int] = Field(default=None, ge=0)
    games_won: Optional[int] = Field(default=None, ge=0)
    games_lost: Optional[int] = Field(default=None, ge=0)
    apr: Optional[int] = Field(default=None, ge=0)
    may: Optional[int] = Field(default=None, ge=0)
    jun: Optional[int] = Field(default=None, ge=0)
    jul: Optional[int] = Field(default=None, ge=0)
    aug: Optional[int] = Field(default=None, ge=0)


class PlayerHistoryEntry(BaseModel):
    match_id: str
    date: date
    position_played_for: int
    surface: str
    score: str
    role: str  # "challenger" | "opponent"
    opponent_name: str
    won: bool
    recorded_at: datetime


def player_response(snapshot: Snapshot, player: Player, latest: Optional[str] = None) -> PlayerResponse:
    return PlayerResponse(
        pid=player.pid,
        position=player.position,
        name=player.name,
        is_active=snapshot.is_active(player),
        matches_played=player.matches_played,
        matches_won=player.matches_won,
        sets_won=player.sets_won,
        sets_lost=player.sets_lost,
        set_diff=player.set_diff,
        games_won=player.games_won,
        games_lost=player.games_lost,
        game_diff=player.game_diff,
        apr=player.apr,
        may=player.may,
        jun=player.jun,
        jul=player.jul,
        aug=player.aug,
        latest_result=latest,
    )


# ============================================================================
# Read Endpoints
# ============================================================================


@router.get("/ladder/players", response_model=List[PlayerResponse])
def list_players(
    sort: str = Query("position", description="Column to sort by"),
    direction: str = Query(SORT_ASC, description="asc or desc"),
    session: Session = Depends(get_session),
):
    """Active ladder players sorted by any column (display only)."""
    snapshot = load_snapshot(session)
    try:
        players = sort_players(snapshot, sort, direction)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    latest = latest_results(snapshot)
    return [player_response(snapshot, p, latest.get(p.pid)) for p in players]


@router.get("/ladder/leaderboard", response_model=List[PlayerResponse])
def get_leaderboard(session: Session = Depends(get_session)):
    """Top 3 named players by ladder position."""
    snapshot = load_snapshot(session)
    return [player_response(snapshot, p) for p in leaderboard(snapshot)]


@router.get("/ladder/challengers", response_model=List[PlayerResponse])
def get_challengers(session: Session = Depends(get_session)):
    """Named active players that can be picked as a challenger."""
    snapshot = load_snapshot(session)
    return [player_response(snapshot, p) for p in challenger_choices(snapshot)]


@router.get("/ladder/players/{pid}/matches", response_model=List[PlayerHistoryEntry])
def get_player_matches(pid: str, session: Session = Depends(get_session)):
    """All results for one player, most recent first (inactive players included)."""
    snapshot = load_snapshot(session)
    if snapshot.player(pid) is None:
        raise HTTPException(status_code=404, detail="Player not found")

    return [
        PlayerHistoryEntry(
            match_id=entry.match.id,
            date=entry.match.date,
            position_played_for=entry.match.position_played_for,
            surface=entry.match.surface,
            score=entry.match.score,
            role=entry.role,
            opponent_name=entry.opponent_name,
            won=entry.won,
            recorded_at=entry.match.recorded_at,
        )
        for entry in player_history(snapshot, pid)
    ]


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.patch(
    "/ladder/players/{pid}",
    response_model=PlayerResponse,
    dependencies=[Depends(require_admin_pin)],
)
def patch_player(pid: str, payload: PlayerUpdateRequest, session: Session = Depends(get_session)):
    """Rename a ladder slot or correct its counters by hand."""
    snapshot = load_snapshot(session)
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    name = fields.pop("name", None)
    try:
        updated = update_player(snapshot, pid, name=name, counters=fields)
    except LadderError as exc:
        raise http_error_for(exc)

    commit_snapshot(session, updated, previous=snapshot)
    return player_response(updated, updated.player(pid))
