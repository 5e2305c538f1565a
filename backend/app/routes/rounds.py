"""
Round endpoints: pairing creation, round/match starts, deadline extension,
split resolution and the polled rounds view.

Every mutating call goes through the tournament orchestrator (lock, organizer
and status checks). Reads first mark overdue matches FINISHED so the polled
view reflects passed deadlines without a background timer.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.auth import get_acting_user_id
from app.database import get_session
from app.models.match import Match, MatchResolution, MatchStatus, MatchWinner
from app.models.participant import Participant
from app.models.tournament import Tournament, TournamentStatus
from app.services import round_lifecycle, tournament_orchestrator
from app.services.errors import TournamentEngineError
from app.services.round_lifecycle import RoundState
from app.services.standings import compute_standings
from app.utils.camel import CamelModel
from app.utils.clock import utcnow
from app.utils.http_errors import to_http_exception

router = APIRouter()


class MatchPairResponse(CamelModel):
    match_id: int
    round_number: int
    table_number: Optional[int] = None
    player1_id: int
    player1_name: str
    player1_tournament_points: int = 0
    player2_id: Optional[int] = None
    player2_name: Optional[str] = None
    player2_tournament_points: Optional[int] = None
    status: MatchStatus
    start_time: Optional[datetime] = None
    game_end_time: Optional[datetime] = None
    game_duration_minutes: int
    result_submission_deadline: Optional[datetime] = None
    scores_submitted: bool
    player1_total_score: Optional[int] = None
    player2_total_score: Optional[int] = None
    match_winner: Optional[MatchWinner] = None
    resolution: Optional[MatchResolution] = None


class RoundViewResponse(CamelModel):
    round_number: int
    status: RoundState
    matches: List[MatchPairResponse]
    can_start: bool


class PairingsResponse(CamelModel):
    round_number: int
    matches: List[MatchPairResponse]
    bye_player_id: Optional[int] = None
    rematches: int = 0


class RoundStartResponse(CamelModel):
    round_number: int
    started_matches: int


class DeadlineExtensionResponse(CamelModel):
    round_number: int
    additional_minutes: int
    extended_matches: int


class RoundStatusResponse(CamelModel):
    round_number: int
    all_scores_submitted: bool
    players_without_scores: List[str]
    total_matches: int
    completed_matches: int


# ============================================================================
# Response builders
# ============================================================================


def participant_names(session: Session, tournament_id: int) -> Dict[int, str]:
    participants = session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    return {p.user_id: p.name for p in participants}


def current_tournament_points(session: Session, tournament_id: int) -> Dict[int, int]:
    return {entry.user_id: entry.tournament_points for entry in compute_standings(session, tournament_id)}


def match_pair_response(
    match: Match, tournament: Tournament, names: Dict[int, str], points: Dict[int, int]
) -> MatchPairResponse:
    return MatchPairResponse(
        match_id=match.id,
        round_number=match.round_number,
        table_number=match.table_number,
        player1_id=match.player1_id,
        player1_name=names.get(match.player1_id, str(match.player1_id)),
        player1_tournament_points=points.get(match.player1_id, 0),
        player2_id=match.player2_id,
        player2_name=None if match.is_bye else names.get(match.player2_id, str(match.player2_id)),
        player2_tournament_points=None if match.is_bye else points.get(match.player2_id, 0),
        status=match.status,
        start_time=match.start_time,
        game_end_time=match.game_end_time,
        game_duration_minutes=tournament.round_duration_minutes,
        result_submission_deadline=match.result_submission_deadline,
        scores_submitted=match.has_result,
        player1_total_score=match.player1_total_score,
        player2_total_score=match.player2_total_score,
        match_winner=match.match_winner,
        resolution=match.resolution,
    )


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _pairings_response(session: Session, tournament_id: int, result) -> PairingsResponse:
    tournament = session.get(Tournament, tournament_id)
    names = participant_names(session, tournament_id)
    points = current_tournament_points(session, tournament_id)
    return PairingsResponse(
        round_number=result.round_number,
        matches=[match_pair_response(m, tournament, names, points) for m in result.matches],
        bye_player_id=result.bye_player_id,
        rematches=result.rematches,
    )


# ============================================================================
# Pairings
# ============================================================================


@router.post("/tournaments/{tournament_id}/rounds/start-first", response_model=PairingsResponse, status_code=201)
def create_first_round(
    tournament_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Pair round 1 from confirmed participants (tournament moves to IN_PROGRESS)"""
    try:
        result = tournament_orchestrator.create_first_round_pairings(session, tournament_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return _pairings_response(session, tournament_id, result)


@router.post("/tournaments/{tournament_id}/rounds/start-next", response_model=PairingsResponse, status_code=201)
def create_next_round(
    tournament_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Swiss-pair the next round once the latest round has every result"""
    try:
        result = tournament_orchestrator.create_next_round_pairings(session, tournament_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return _pairings_response(session, tournament_id, result)


# ============================================================================
# Round / match starts
# ============================================================================


@router.post("/tournaments/{tournament_id}/rounds/{round_number}/start", response_model=RoundStartResponse)
def start_round(
    tournament_id: int,
    round_number: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    try:
        started = tournament_orchestrator.start_round(session, tournament_id, round_number, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return RoundStartResponse(round_number=round_number, started_matches=started)


@router.post(
    "/tournaments/{tournament_id}/rounds/{round_number}/matches/{match_id}/start",
    response_model=MatchPairResponse,
)
def start_individual_match(
    tournament_id: int,
    round_number: int,
    match_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    try:
        match = tournament_orchestrator.start_individual_match(
            session, tournament_id, round_number, match_id, acting_user_id
        )
    except TournamentEngineError as e:
        raise to_http_exception(e)
    tournament = session.get(Tournament, tournament_id)
    return match_pair_response(
        match, tournament, participant_names(session, tournament_id), current_tournament_points(session, tournament_id)
    )


@router.post("/tournaments/{tournament_id}/rounds/{round_number}/extend", response_model=DeadlineExtensionResponse)
def extend_round_deadline(
    tournament_id: int,
    round_number: int,
    additional_minutes: int = Query(..., alias="additionalMinutes", ge=1),
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Push back the result submission deadline of the round's open matches"""
    try:
        extended = tournament_orchestrator.extend_submission_deadline(
            session, tournament_id, round_number, additional_minutes, acting_user_id
        )
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return DeadlineExtensionResponse(
        round_number=round_number, additional_minutes=additional_minutes, extended_matches=extended
    )


@router.post(
    "/tournaments/{tournament_id}/rounds/{round_number}/matches/{match_id}/split",
    response_model=MatchPairResponse,
)
def resolve_split(
    tournament_id: int,
    round_number: int,
    match_id: int,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """Organizer accepts a missing result; both players get the round's split points"""
    try:
        match = tournament_orchestrator.resolve_split(session, tournament_id, round_number, match_id, acting_user_id)
    except TournamentEngineError as e:
        raise to_http_exception(e)
    tournament = session.get(Tournament, tournament_id)
    return match_pair_response(
        match, tournament, participant_names(session, tournament_id), current_tournament_points(session, tournament_id)
    )


# ============================================================================
# Read side
# ============================================================================


@router.get("/tournaments/{tournament_id}/rounds/all", response_model=List[RoundViewResponse])
def get_rounds_view(tournament_id: int, session: Session = Depends(get_session)):
    """All created rounds with their matches, derived status and whether the organizer can start them"""
    tournament = _get_tournament_or_404(session, tournament_id)
    now = utcnow()
    round_lifecycle.expire_overdue_matches(session, tournament_id, now)

    names = participant_names(session, tournament_id)
    points = current_tournament_points(session, tournament_id)
    in_progress = tournament.status == TournamentStatus.IN_PROGRESS

    views: List[RoundViewResponse] = []
    previous: Optional[List[Match]] = None
    for round_number in round_lifecycle.get_created_round_numbers(session, tournament_id):
        matches = round_lifecycle.get_round_matches(session, tournament_id, round_number)
        views.append(
            RoundViewResponse(
                round_number=round_number,
                status=round_lifecycle.derive_round_state(matches, now),
                matches=[match_pair_response(m, tournament, names, points) for m in matches],
                can_start=round_lifecycle.can_start_round(in_progress, matches, previous, now),
            )
        )
        previous = matches
    return views


@router.get(
    "/tournaments/{tournament_id}/rounds/{round_number}/organizer-status",
    response_model=RoundStatusResponse,
)
def get_round_organizer_status(tournament_id: int, round_number: int, session: Session = Depends(get_session)):
    """Result collection progress; playersWithoutScores lists players whose deadline passed without a result"""
    _get_tournament_or_404(session, tournament_id)
    now = utcnow()
    round_lifecycle.expire_overdue_matches(session, tournament_id, now)

    matches = round_lifecycle.get_round_matches(session, tournament_id, round_number)
    if not matches:
        raise HTTPException(status_code=404, detail=f"Round {round_number} has no pairings")
    summary = round_lifecycle.organizer_status(matches, round_number, participant_names(session, tournament_id), now)
    return RoundStatusResponse(
        round_number=summary.round_number,
        all_scores_submitted=summary.all_scores_submitted,
        players_without_scores=summary.players_without_scores,
        total_matches=summary.total_matches,
        completed_matches=summary.completed_matches,
    )
