from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

from app.utils.clock import utcnow

if TYPE_CHECKING:
    from app.models.tournament import Tournament


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"  # result recorded (score, bye or split)
    FINISHED = "FINISHED"  # deadline passed without a result


class MatchWinner(str, Enum):
    PLAYER1 = "PLAYER1"
    PLAYER2 = "PLAYER2"
    DRAW = "DRAW"


class MatchResolution(str, Enum):
    SCORED = "SCORED"
    BYE = "BYE"
    SPLIT = "SPLIT"


class Match(SQLModel, table=True):
    __table_args__ = (
        # A participant appears as player 1 at most once per round
        SAUniqueConstraint("tournament_id", "round_number", "player1_id", name="uq_match_round_player1"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int = Field(index=True)
    table_number: Optional[int] = Field(default=None)  # null for a bye

    # Participant user ids; player2_id null -> bye
    player1_id: int
    player2_id: Optional[int] = Field(default=None)

    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, sa_column=Column(String, nullable=False))
    start_time: Optional[datetime] = Field(default=None)
    game_end_time: Optional[datetime] = Field(default=None)
    result_submission_deadline: Optional[datetime] = Field(default=None)

    player1_total_score: Optional[int] = Field(default=None)
    player2_total_score: Optional[int] = Field(default=None)
    match_winner: Optional[MatchWinner] = Field(default=None, sa_column=Column(String, nullable=True))
    resolution: Optional[MatchResolution] = Field(default=None, sa_column=Column(String, nullable=True))

    created_at: datetime = Field(default_factory=utcnow)

    tournament: "Tournament" = Relationship(back_populates="matches")

    @property
    def is_bye(self) -> bool:
        return self.player2_id is None

    @property
    def has_result(self) -> bool:
        return self.status == MatchStatus.COMPLETED and self.match_winner is not None
