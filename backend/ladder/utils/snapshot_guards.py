"""
Snapshot Guards and Utilities

Reusable helpers for routes that run a ladder transaction:
- Translate engine rejections into HTTP errors
- Persist the next snapshot, reporting storage failures as 500
"""

from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ladder.services.ladder_state import Snapshot
from ladder.services.match_transactions import LadderError, MatchNotFound, PlayerNotFound
from ladder.services.snapshot_store import save_snapshot


def http_error_for(exc: LadderError) -> HTTPException:
    """
    Map an engine rejection to an HTTPException carrying its reason.

    Returns:
        404 for MatchNotFound or an unknown player id, 422 otherwise
    """
    if isinstance(exc, (MatchNotFound, PlayerNotFound)):
        return HTTPException(status_code=404, detail=exc.reason)
    return HTTPException(status_code=422, detail=exc.reason)


def commit_snapshot(session: Session, snapshot: Snapshot, previous: Optional[Snapshot] = None) -> int:
    """
    Save the next snapshot and return its revision.

    Raises:
        HTTPException 500: the save failed (the session has been rolled back)
    """
    try:
        return save_snapshot(session, snapshot, previous)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to save ladder: {exc.__class__.__name__}") from exc
