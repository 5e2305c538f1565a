from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, field_validator, model_validator
from sqlmodel import Session, select

from app.auth import get_acting_user_id
from app.database import get_session
from app.models.tournament import (
    RoundStartMode,
    Tournament,
    TournamentPointsSystem,
    TournamentStatus,
)
from app.routes.participants import ParticipantStatsResponse, stats_response
from app.services import podium as podium_service
from app.services import tournament_orchestrator
from app.services.errors import TournamentEngineError
from app.services.podium import Podium
from app.services.round_definitions import default_large_points, refresh_default_points, sync_round_definitions
from app.utils.camel import CamelModel
from app.utils.clock import utcnow
from app.utils.http_errors import to_http_exception

router = APIRouter()

# Settings may change only before play begins
EDITABLE_STATUSES = (TournamentStatus.DRAFT, TournamentStatus.ACTIVE)
POINTS_FIELDS = ("tournament_points_system", "points_for_win", "points_for_draw")


class TournamentCreate(CamelModel):
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    max_participants: Optional[int] = Field(default=None, ge=2)
    number_of_rounds: int = Field(ge=1)
    round_duration_minutes: int = Field(ge=1)
    score_submission_extra_minutes: int = Field(default=0, ge=0)
    round_start_mode: RoundStartMode = RoundStartMode.ALL_MATCHES_TOGETHER
    tournament_points_system: TournamentPointsSystem = TournamentPointsSystem.FIXED
    points_for_win: int = 3
    points_for_draw: int = 1
    points_for_loss: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @model_validator(mode="after")
    def validate_fixed_points(self):
        if not self.points_for_win >= self.points_for_draw >= self.points_for_loss:
            raise ValueError("pointsForWin >= pointsForDraw >= pointsForLoss required")
        return self


class TournamentUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    max_participants: Optional[int] = Field(default=None, ge=2)
    number_of_rounds: Optional[int] = Field(default=None, ge=1)
    round_duration_minutes: Optional[int] = Field(default=None, ge=1)
    score_submission_extra_minutes: Optional[int] = Field(default=None, ge=0)
    round_start_mode: Optional[RoundStartMode] = None
    tournament_points_system: Optional[TournamentPointsSystem] = None
    points_for_win: Optional[int] = None
    points_for_draw: Optional[int] = None
    points_for_loss: Optional[int] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nullable = {"description", "location", "start_date", "max_participants"}
        for name in self.model_fields_set - nullable:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TournamentResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    organizer_id: int
    status: TournamentStatus
    max_participants: Optional[int] = None
    number_of_rounds: int
    round_duration_minutes: int
    score_submission_extra_minutes: int
    round_start_mode: RoundStartMode
    tournament_points_system: TournamentPointsSystem
    points_for_win: int
    points_for_draw: int
    points_for_loss: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class PodiumResponse(CamelModel):
    first: Optional[ParticipantStatsResponse] = None
    second: Optional[ParticipantStatsResponse] = None
    third: Optional[ParticipantStatsResponse] = None


def _podium_response(podium: Podium) -> PodiumResponse:
    return PodiumResponse(
        first=stats_response(podium.first) if podium.first else None,
        second=stats_response(podium.second) if podium.second else None,
        third=stats_response(podium.third) if podium.third else None,
    )


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(status: Optional[TournamentStatus] = None, session: Session = Depends(get_session)):
    """List tournaments, optionally filtered by status"""
    query = select(Tournament).order_by(Tournament.id)
    if status is not None:
        query = query.where(Tournament.status == status)
    return session.exec(query).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(
    tournament_data: TournamentCreate,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Create a DRAFT tournament organized by the acting user, with one round definition per round"""
    tournament = Tournament(**tournament_data.model_dump(), organizer_id=acting_user_id)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    sync_round_definitions(session, tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return _get_tournament_or_404(session, tournament_id)


@router.put("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(
    tournament_id: int,
    tournament_data: TournamentUpdate,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Update tournament settings (DRAFT / ACTIVE only); round definitions follow number_of_rounds"""
    tournament = _get_tournament_or_404(session, tournament_id)
    try:
        tournament_orchestrator.require_organizer(tournament, acting_user_id)
        tournament_orchestrator.require_status(tournament, EDITABLE_STATUSES, "edit tournament settings")
    except TournamentEngineError as e:
        raise to_http_exception(e)

    previous_points = default_large_points(tournament)
    update_data = tournament_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(tournament, field, value)

    if not tournament.points_for_win >= tournament.points_for_draw >= tournament.points_for_loss:
        raise HTTPException(status_code=422, detail="pointsForWin >= pointsForDraw >= pointsForLoss required")

    tournament.updated_at = utcnow()
    session.add(tournament)
    if any(name in update_data for name in POINTS_FIELDS):
        # Bye/split defaults follow the points system until the organizer overrides them
        refresh_default_points(session, tournament, previous_points)
    if "number_of_rounds" in update_data:
        sync_round_definitions(session, tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.post("/tournaments/{tournament_id}/activate", response_model=TournamentResponse)
def activate_tournament(
    tournament_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """DRAFT -> ACTIVE (registration open, pairings can be created)"""
    try:
        return tournament_orchestrator.activate_tournament(session, tournament_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)


@router.post("/tournaments/{tournament_id}/cancel", response_model=TournamentResponse)
def cancel_tournament(
    tournament_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Cancel a tournament that has not completed; no further pairing or round operations are accepted"""
    try:
        return tournament_orchestrator.cancel_tournament(session, tournament_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)


@router.post("/tournaments/{tournament_id}/complete", response_model=PodiumResponse)
def complete_tournament(
    tournament_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Close the tournament once every round is resolved; returns the podium"""
    try:
        podium = tournament_orchestrator.complete_tournament(session, tournament_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return _podium_response(podium)


@router.get("/tournaments/{tournament_id}/podium", response_model=PodiumResponse)
def get_podium(tournament_id: int, session: Session = Depends(get_session)):
    """Top three of the final standings; positions without a participant are null"""
    tournament = _get_tournament_or_404(session, tournament_id)
    try:
        podium = podium_service.get_podium(session, tournament)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return _podium_response(podium)
