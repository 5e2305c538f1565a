from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.auth import get_acting_user_id
from app.database import get_session
from app.models.participant import ArmyListStatus, Participant
from app.models.tournament import Tournament, TournamentStatus
from app.services import tournament_orchestrator
from app.services.errors import TournamentEngineError
from app.services.standings import StandingEntry, compute_standings, frozen_standings
from app.utils.camel import CamelModel
from app.utils.http_errors import to_http_exception
from app.utils.tournament_locks import tournament_lock

router = APIRouter()

REGISTRATION_STATUSES = (TournamentStatus.DRAFT, TournamentStatus.ACTIVE)


class ParticipantRegister(CamelModel):
    user_id: Optional[int] = None  # defaults to the acting user
    name: str
    is_beginner: bool = False


class ParticipantResponse(CamelModel):
    id: int
    tournament_id: int
    user_id: int
    name: str
    confirmed: bool
    is_paid: bool
    army_list_status: ArmyListStatus
    is_beginner: bool
    registered_at: datetime
    tournament_points: int
    score_points: int
    wins: int
    draws: int
    losses: int
    matches_played: int


class ParticipantStatsResponse(CamelModel):
    user_id: int
    user_name: str
    rank: int
    wins: int
    draws: int
    losses: int
    tournament_points: int
    score_points: int
    matches_played: int


def stats_response(entry: StandingEntry) -> ParticipantStatsResponse:
    return ParticipantStatsResponse(
        user_id=entry.user_id,
        user_name=entry.name,
        rank=entry.rank,
        wins=entry.wins,
        draws=entry.draws,
        losses=entry.losses,
        tournament_points=entry.tournament_points,
        score_points=entry.score_points,
        matches_played=entry.matches_played,
    )


def _get_participant_or_404(session: Session, tournament_id: int, user_id: int) -> Participant:
    participant = session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id, Participant.user_id == user_id)
    ).first()
    if not participant:
        raise HTTPException(status_code=404, detail=f"User {user_id} is not registered for this tournament")
    return participant


@router.post("/tournaments/{tournament_id}/participants", response_model=ParticipantResponse, status_code=201)
def register_participant(
    tournament_id: int,
    registration: ParticipantRegister,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """
    Register a participant. Players register themselves; the organizer may
    register anyone. Registration is open while the tournament is DRAFT or ACTIVE.
    """
    with tournament_lock(tournament_id):
        try:
            tournament = tournament_orchestrator.load_tournament(session, tournament_id)
            user_id = registration.user_id if registration.user_id is not None else acting_user_id
            if user_id != acting_user_id:
                tournament_orchestrator.require_organizer(tournament, acting_user_id)
            tournament_orchestrator.require_status(tournament, REGISTRATION_STATUSES, "register participants")
        except TournamentEngineError as e:
            raise to_http_exception(e)

        existing = session.exec(
            select(Participant).where(Participant.tournament_id == tournament_id, Participant.user_id == user_id)
        ).first()
        if existing:
            raise HTTPException(
                status_code=409, detail=f"ALREADY_REGISTERED: User {user_id} is already registered"
            )

        if tournament.max_participants is not None:
            count = len(session.exec(select(Participant.id).where(Participant.tournament_id == tournament_id)).all())
            if count >= tournament.max_participants:
                raise HTTPException(
                    status_code=409,
                    detail=f"TOURNAMENT_FULL: Tournament allows at most {tournament.max_participants} participants",
                )

        participant = Participant(
            tournament_id=tournament_id,
            user_id=user_id,
            name=registration.name.strip(),
            is_beginner=registration.is_beginner,
        )
        session.add(participant)
        session.commit()
        session.refresh(participant)
        return participant


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    """Participants in registration order"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return session.exec(
        select(Participant)
        .where(Participant.tournament_id == tournament_id)
        .order_by(Participant.registered_at, Participant.id)
    ).all()


@router.get("/tournaments/{tournament_id}/participants/stats", response_model=List[ParticipantStatsResponse])
def get_participant_stats(tournament_id: int, session: Session = Depends(get_session)):
    """Ranked standings. Live while the tournament runs, frozen once it is COMPLETED."""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    if tournament.status == TournamentStatus.COMPLETED:
        standings = frozen_standings(session, tournament_id)
    else:
        standings = compute_standings(session, tournament_id)
    return [stats_response(entry) for entry in standings]


@router.post("/tournaments/{tournament_id}/participants/{user_id}/confirm", response_model=ParticipantResponse)
def confirm_participant(
    tournament_id: int,
    user_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Organizer confirms a registration; only confirmed participants are paired"""
    with tournament_lock(tournament_id):
        try:
            tournament = tournament_orchestrator.load_tournament(session, tournament_id)
            tournament_orchestrator.require_organizer(tournament, acting_user_id)
            tournament_orchestrator.require_status(
                tournament,
                (TournamentStatus.DRAFT, TournamentStatus.ACTIVE, TournamentStatus.IN_PROGRESS),
                "confirm participants",
            )
        except TournamentEngineError as e:
            raise to_http_exception(e)

        participant = _get_participant_or_404(session, tournament_id, user_id)
        participant.confirmed = True
        session.add(participant)
        session.commit()
        session.refresh(participant)
        return participant


@router.patch("/tournaments/{tournament_id}/participants/{user_id}/payment", response_model=ParticipantResponse)
def update_payment_status(
    tournament_id: int,
    user_id: int,
    is_paid: bool = Query(..., alias="isPaid"),
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Organizer records whether the entry fee was paid"""
    try:
        tournament = tournament_orchestrator.load_tournament(session, tournament_id)
        tournament_orchestrator.require_organizer(tournament, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)

    participant = _get_participant_or_404(session, tournament_id, user_id)
    participant.is_paid = is_paid
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant
