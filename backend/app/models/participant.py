from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from app.utils.clock import utcnow

if TYPE_CHECKING:
    from app.models.tournament import Tournament


class ArmyListStatus(str, Enum):
    NOT_SUBMITTED = "NOT_SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Participant(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "user_id", name="uq_tournament_participant"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    user_id: int = Field(index=True)  # identity service user id
    name: str
    confirmed: bool = Field(default=False)
    is_paid: bool = Field(default=False)
    army_list_status: ArmyListStatus = Field(
        default=ArmyListStatus.NOT_SUBMITTED, sa_column=Column(String, nullable=False)
    )
    is_beginner: bool = Field(default=False)
    registered_at: datetime = Field(default_factory=utcnow)

    # Standings projection - written only by standings.refresh_participant_standings
    tournament_points: int = Field(default=0)
    score_points: int = Field(default=0)
    wins: int = Field(default=0)
    draws: int = Field(default=0)
    losses: int = Field(default=0)
    matches_played: int = Field(default=0)

    tournament: "Tournament" = Relationship(back_populates="participants")
