from datetime import date, datetime, timezone

from sqlmodel import Field, SQLModel


class LadderMatch(SQLModel, table=True):
    __tablename__ = "ladder_match"

    id: str = Field(primary_key=True)
    date: date
    position_played_for: int
    challenger_pid: str = Field(index=True)
    opponent_pid: str = Field(index=True)
    winner: str  # "challenger" | "opponent"
    score: str  # Original score text, re-parsed on delete/edit
    surface: str = Field(default="")

    # Frozen at record time; reversal uses these, never current positions
    challenger_start_pos: int
    opponent_start_pos: int
    ladder_move_applied: bool = Field(default=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
