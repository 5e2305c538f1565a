from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from app.utils.clock import utcnow

if TYPE_CHECKING:
    from app.models.match import Match
    from app.models.participant import Participant
    from app.models.round_definition import RoundDefinition


class TournamentStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RoundStartMode(str, Enum):
    ALL_MATCHES_TOGETHER = "ALL_MATCHES_TOGETHER"
    INDIVIDUAL_MATCHES = "INDIVIDUAL_MATCHES"


class TournamentPointsSystem(str, Enum):
    FIXED = "FIXED"
    POINT_DIFFERENCE_STRICT = "POINT_DIFFERENCE_STRICT"
    POINT_DIFFERENCE_LENIENT = "POINT_DIFFERENCE_LENIENT"


TERMINAL_STATUSES = (TournamentStatus.COMPLETED, TournamentStatus.CANCELLED)


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    organizer_id: int = Field(index=True)
    status: TournamentStatus = Field(default=TournamentStatus.DRAFT, sa_column=Column(String, nullable=False))
    max_participants: Optional[int] = None

    # Round timing
    number_of_rounds: int
    round_duration_minutes: int
    score_submission_extra_minutes: int = Field(default=0)
    round_start_mode: RoundStartMode = Field(
        default=RoundStartMode.ALL_MATCHES_TOGETHER, sa_column=Column(String, nullable=False)
    )

    # Tournament points ("large points")
    tournament_points_system: TournamentPointsSystem = Field(
        default=TournamentPointsSystem.FIXED, sa_column=Column(String, nullable=False)
    )
    points_for_win: int = Field(default=3)
    points_for_draw: int = Field(default=1)
    points_for_loss: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    completed_at: Optional[datetime] = Field(default=None)

    # Relationships (tournament owns definitions, participants and matches)
    round_definitions: List["RoundDefinition"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    participants: List["Participant"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    matches: List["Match"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
