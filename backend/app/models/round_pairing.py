from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

from app.utils.clock import utcnow


class RoundPairing(SQLModel, table=True):
    """One row per paired round, written in the same transaction as the round's matches."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "round_number", name="uq_round_pairing"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int
    match_count: int = Field(default=0)
    bye_player_id: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
