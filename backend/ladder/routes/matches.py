"""
Ladder Match API Routes
Match log plus the add / edit / delete transactions. Every write loads the
stored snapshot, runs one transaction and saves the result.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from ladder.database import get_session
from ladder.services.ladder_state import DEFAULT_SURFACE, SURFACES, WinnerRole
from ladder.services.ladder_views import MatchView, match_log
from ladder.services.match_transactions import (
    LadderError,
    MatchEdit,
    MatchInput,
    add_match,
    delete_match,
    edit_match,
)
from ladder.services.score_validator import check_score
from ladder.services.snapshot_store import load_snapshot
from ladder.utils.admin_pin import require_admin_pin
from ladder.utils.snapshot_guards import commit_snapshot, http_error_for

router = APIRouter()

PlayedOn = date  # "date" is also a field name below


# ============================================================================
# Request/Response Models
# ============================================================================


def _check_surface(v: str) -> str:
    if v not in SURFACES:
        raise ValueError(f"surface must be one of: {', '.join(SURFACES)}")
    return v


class MatchCreateRequest(BaseModel):
    date: PlayedOn = Field(default_factory=date.today)
    position_played_for: int = Field(ge=1)
    challenger_pid: str = ""
    winner: WinnerRole = WinnerRole.OPPONENT  # Defaults to the challenged player
    surface: str = DEFAULT_SURFACE
    score: str

    @field_validator("surface")
    @classmethod
    def validate_surface(cls, v):
        return _check_surface(v)


class MatchUpdateRequest(BaseModel):
    date: date
    winner: WinnerRole
    surface: str = DEFAULT_SURFACE
    score: str

    @field_validator("surface")
    @classmethod
    def validate_surface(cls, v):
        return _check_surface(v)


class MatchResponse(BaseModel):
    id: str
    date: date
    position_played_for: int
    challenger_pid: str
    opponent_pid: str
    challenger_name: str
    opponent_name: str
    winner: WinnerRole
    winner_name: str
    score: str
    surface: str
    challenger_start_pos: int
    opponent_start_pos: int
    ladder_move_applied: bool
    recorded_at: datetime


class ScoreCheckRequest(BaseModel):
    score: str


class ScoreCheckResponse(BaseModel):
    ok: bool
    message: str = ""
    token: Optional[str] = None
    sets: List[List[int]] = []


def _view_to_response(view: MatchView) -> MatchResponse:
    m = view.match
    return MatchResponse(
        id=m.id,
        date=m.date,
        position_played_for=m.position_played_for,
        challenger_pid=m.challenger_pid,
        opponent_pid=m.opponent_pid,
        challenger_name=view.challenger_name,
        opponent_name=view.opponent_name,
        winner=m.winner,
        winner_name=view.winner_name,
        score=m.score,
        surface=m.surface,
        challenger_start_pos=m.challenger_start_pos,
        opponent_start_pos=m.opponent_start_pos,
        ladder_move_applied=m.ladder_move_applied,
        recorded_at=m.recorded_at,
    )


def _response_for(snapshot, match_id: str) -> MatchResponse:
    view = next(v for v in match_log(snapshot) if v.match.id == match_id)
    return _view_to_response(view)


# ============================================================================
# Match Endpoints
# ============================================================================


@router.get("/ladder/matches", response_model=List[MatchResponse])
def list_matches(session: Session = Depends(get_session)):
    """Match log, most recent first."""
    snapshot = load_snapshot(session)
    return [_view_to_response(v) for v in match_log(snapshot)]


@router.post(
    "/ladder/matches",
    response_model=MatchResponse,
    status_code=201,
    dependencies=[Depends(require_admin_pin)],
)
def create_match(payload: MatchCreateRequest, session: Session = Depends(get_session)):
    """Record a challenge match; an upset moves the challenger up the ladder."""
    snapshot = load_snapshot(session)
    try:
        updated, record = add_match(
            snapshot,
            MatchInput(
                date=payload.date,
                position_played_for=payload.position_played_for,
                challenger_pid=payload.challenger_pid,
                winner=payload.winner,
                score=payload.score,
                surface=payload.surface,
            ),
        )
    except LadderError as exc:
        raise http_error_for(exc)

    commit_snapshot(session, updated, previous=snapshot)
    return _response_for(updated, record.id)


@router.put(
    "/ladder/matches/{match_id}",
    response_model=MatchResponse,
    dependencies=[Depends(require_admin_pin)],
)
def update_match(match_id: str, payload: MatchUpdateRequest, session: Session = Depends(get_session)):
    """Replace a match's date, winner, score and surface; ladder effects are re-decided."""
    snapshot = load_snapshot(session)
    try:
        updated, record = edit_match(
            snapshot,
            match_id,
            MatchEdit(date=payload.date, winner=payload.winner, score=payload.score, surface=payload.surface),
        )
    except LadderError as exc:
        raise http_error_for(exc)

    commit_snapshot(session, updated, previous=snapshot)
    return _response_for(updated, record.id)


@router.delete(
    "/ladder/matches/{match_id}",
    status_code=204,
    dependencies=[Depends(require_admin_pin)],
)
def remove_match(match_id: str, session: Session = Depends(get_session)):
    """Delete a match, reversing its stats and any ladder move it caused."""
    snapshot = load_snapshot(session)
    try:
        updated = delete_match(snapshot, match_id)
    except LadderError as exc:
        raise http_error_for(exc)

    commit_snapshot(session, updated, previous=snapshot)
    return None


@router.post("/ladder/score-check", response_model=ScoreCheckResponse)
def score_check(payload: ScoreCheckRequest):
    """Dry-run score validation for the match form."""
    result = check_score(payload.score)
    return ScoreCheckResponse(
        ok=result.ok,
        message=result.message,
        token=result.token,
        sets=[[a, b] for a, b in result.sets],
    )
