"""Key/value ladder settings (active player count, snapshot revision)."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

PLAYER_COUNT_KEY = "player_count"
REVISION_KEY = "revision"


class LadderSetting(SQLModel, table=True):
    __tablename__ = "ladder_setting"

    key: str = Field(primary_key=True)
    value: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )
