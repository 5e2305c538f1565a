from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlmodel import Session

from app.auth import get_acting_user_id
from app.database import get_session
from app.models.match import Match
from app.models.tournament import Tournament
from app.routes.rounds import (
    MatchPairResponse,
    current_tournament_points,
    match_pair_response,
    participant_names,
)
from app.services import tournament_orchestrator
from app.services.errors import TournamentEngineError
from app.utils.camel import CamelModel
from app.utils.http_errors import to_http_exception

router = APIRouter()


class MatchResultSubmit(CamelModel):
    player1_score: int = Field(ge=0)
    player2_score: int = Field(ge=0)


def _match_response(session: Session, match: Match) -> MatchPairResponse:
    tournament = session.get(Tournament, match.tournament_id)
    return match_pair_response(
        match,
        tournament,
        participant_names(session, match.tournament_id),
        current_tournament_points(session, match.tournament_id),
    )


@router.get("/matches/{match_id}", response_model=MatchPairResponse)
def get_match(match_id: int, session: Session = Depends(get_session)):
    match = session.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return _match_response(session, match)


@router.post("/matches/{match_id}/result", response_model=MatchPairResponse)
def submit_match_result(
    match_id: int,
    result: MatchResultSubmit,
    acting_user_id: int = Depends(get_acting_user_id),
    session: Session = Depends(get_session),
):
    """
    Submit per-player total scores. Either player may submit before the
    submission deadline; the organizer may submit or correct at any time.
    The winner follows from the higher score; equal scores are a draw.
    """
    try:
        match = tournament_orchestrator.submit_match_result(
            session, match_id, result.player1_score, result.player2_score, acting_user_id
        )
    except TournamentEngineError as e:
        raise to_http_exception(e)
    return _match_response(session, match)
