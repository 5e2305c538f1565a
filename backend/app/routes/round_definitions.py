from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, model_validator
from sqlmodel import Session

from app.auth import get_acting_user_id
from app.database import get_session
from app.models.round_definition import (
    PairingAlgorithm,
    PlayerLevelPairingStrategy,
    TableAssignmentStrategy,
)
from app.models.tournament import Tournament
from app.services import tournament_orchestrator
from app.services.errors import TournamentEngineError
from app.services.round_definitions import get_round_definition, list_round_definitions
from app.utils.camel import CamelModel
from app.utils.http_errors import to_http_exception

router = APIRouter()


class RoundDefinitionResponse(CamelModel):
    id: Optional[int] = None
    tournament_id: int
    round_number: int
    deployment_id: Optional[int] = None
    deployment_name: Optional[str] = None
    primary_mission_id: Optional[int] = None
    primary_mission_name: Optional[str] = None
    is_split_map_layout: bool
    map_layout_even: Optional[str] = None
    map_layout_odd: Optional[str] = None
    bye_large_points: int
    bye_small_points: int
    split_large_points: int
    split_small_points: int
    pairing_algorithm: PairingAlgorithm
    player_level_pairing_strategy: PlayerLevelPairingStrategy
    table_assignment_strategy: TableAssignmentStrategy


class RoundDefinitionUpdate(CamelModel):
    deployment_id: Optional[int] = None
    deployment_name: Optional[str] = None
    primary_mission_id: Optional[int] = None
    primary_mission_name: Optional[str] = None
    is_split_map_layout: Optional[bool] = None
    map_layout_even: Optional[str] = None
    map_layout_odd: Optional[str] = None
    bye_large_points: Optional[int] = Field(default=None, ge=0)
    bye_small_points: Optional[int] = Field(default=None, ge=0)
    split_large_points: Optional[int] = Field(default=None, ge=0)
    split_small_points: Optional[int] = Field(default=None, ge=0)
    pairing_algorithm: Optional[PairingAlgorithm] = None
    player_level_pairing_strategy: Optional[PlayerLevelPairingStrategy] = None
    table_assignment_strategy: Optional[TableAssignmentStrategy] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        # Scenario ids, names and layouts may be cleared; points and options may not
        nullable = {
            "deployment_id",
            "deployment_name",
            "primary_mission_id",
            "primary_mission_name",
            "map_layout_even",
            "map_layout_odd",
        }
        for name in self.model_fields_set - nullable:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments/{tournament_id}/round-definitions", response_model=List[RoundDefinitionResponse])
def get_round_definitions(tournament_id: int, session: Session = Depends(get_session)):
    _get_tournament_or_404(session, tournament_id)
    return list_round_definitions(session, tournament_id)


@router.get("/tournaments/{tournament_id}/round-definitions/{round_number}", response_model=RoundDefinitionResponse)
def get_single_round_definition(tournament_id: int, round_number: int, session: Session = Depends(get_session)):
    tournament = _get_tournament_or_404(session, tournament_id)
    if not 1 <= round_number <= tournament.number_of_rounds:
        raise HTTPException(status_code=404, detail=f"Round {round_number} does not exist in this tournament")
    return get_round_definition(session, tournament_id, round_number)


@router.put("/tournaments/{tournament_id}/round-definitions/{round_number}", response_model=RoundDefinitionResponse)
def update_round_definition(
    tournament_id: int,
    round_number: int,
    definition_data: RoundDefinitionUpdate,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Edit scenario, bye/split points and pairing options until the round starts"""
    try:
        return tournament_orchestrator.update_round_definition(
            session,
            tournament_id,
            round_number,
            definition_data.model_dump(exclude_unset=True),
            acting_user_id,
        )
    except TournamentEngineError as e:
        raise to_http_exception(e)
