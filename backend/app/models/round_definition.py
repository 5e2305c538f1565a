from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.tournament import Tournament


class PairingAlgorithm(str, Enum):
    STANDARD = "STANDARD"
    CUSTOM = "CUSTOM"


class PlayerLevelPairingStrategy(str, Enum):
    NONE = "NONE"
    BEGINNERS_WITH_VETERANS = "BEGINNERS_WITH_VETERANS"
    BEGINNERS_WITH_BEGINNERS = "BEGINNERS_WITH_BEGINNERS"


class TableAssignmentStrategy(str, Enum):
    BEST_FIRST = "BEST_FIRST"
    RANDOM = "RANDOM"


class RoundDefinition(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_definition"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int  # 1..number_of_rounds

    # Scenario (ids/names come from the game-system catalogue)
    deployment_id: Optional[int] = None
    deployment_name: Optional[str] = None
    primary_mission_id: Optional[int] = None
    primary_mission_name: Optional[str] = None
    is_split_map_layout: bool = Field(default=False)
    map_layout_even: Optional[str] = None
    map_layout_odd: Optional[str] = None

    # Bye / split awards (large = tournament points, small = score points)
    bye_large_points: int = Field(default=0)
    bye_small_points: int = Field(default=0)
    split_large_points: int = Field(default=0)
    split_small_points: int = Field(default=0)

    pairing_algorithm: PairingAlgorithm = Field(
        default=PairingAlgorithm.STANDARD, sa_column=Column(String, nullable=False)
    )
    # Round 1 only
    player_level_pairing_strategy: PlayerLevelPairingStrategy = Field(
        default=PlayerLevelPairingStrategy.NONE, sa_column=Column(String, nullable=False)
    )
    # Rounds > 1 only
    table_assignment_strategy: TableAssignmentStrategy = Field(
        default=TableAssignmentStrategy.BEST_FIRST, sa_column=Column(String, nullable=False)
    )

    tournament: "Tournament" = Relationship(back_populates="round_definitions")
