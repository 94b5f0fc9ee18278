from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class LadderPlayer(SQLModel, table=True):
    __tablename__ = "ladder_player"

    pid: str = Field(primary_key=True)  # Stable id ("p1".."p60"), independent of position
    position: int = Field(index=True)  # 1 = top of the ladder
    name: str = Field(default="")  # Empty = unnamed placeholder slot

    matches_played: int = Field(default=0)
    matches_won: int = Field(default=0)
    sets_won: int = Field(default=0)
    sets_lost: int = Field(default=0)
    games_won: int = Field(default=0)
    games_lost: int = Field(default=0)

    # Season month buckets (matches played per month)
    apr: int = Field(default=0)
    may: int = Field(default=0)
    jun: int = Field(default=0)
    jul: int = Field(default=0)
    aug: int = Field(default=0)

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )
