"""
Tournament Orchestrator - entry point for every mutating engine operation.

Each operation:
1. Takes the tournament's lock (one mutation per tournament at a time)
2. Loads the tournament and checks the acting user is its organizer
3. Checks the tournament status allows the operation
4. Delegates to the pairing engine / table assignment / round lifecycle
5. Commits once, then refreshes the standings projection where results changed

Terminal tournaments (COMPLETED, CANCELLED) reject every further pairing,
round or result operation.

Pairing creation is the one operation that is not safe to blindly retry:
a second call for a round that already has pairings fails with
PairingsAlreadyExist, backed by the round_pairing unique key on
(tournament_id, round_number) when two processes race.
"""

import logging
import os
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.match import Match, MatchResolution, MatchStatus, MatchWinner
from app.models.participant import Participant
from app.models.round_definition import RoundDefinition, TableAssignmentStrategy
from app.models.round_pairing import RoundPairing
from app.models.tournament import TERMINAL_STATUSES, Tournament, TournamentStatus
from app.services import round_lifecycle
from app.services.errors import (
    InvalidStatusTransition,
    MatchNotFound,
    NotTournamentOrganizer,
    PairingsAlreadyExist,
    RoundAlreadyStarted,
    RoundLimitReached,
    RoundNotReady,
    RoundsIncomplete,
    TournamentNotFound,
    TournamentNotInProgress,
)
from app.services.pairing_engine import (
    PairingResult,
    PlayerEntry,
    build_first_round_pairings,
    build_swiss_pairings,
)
from app.services.podium import Podium, podium_from_standings
from app.services.round_definitions import apply_round_definition_update, get_round_definition
from app.services.standings import compute_standings, refresh_participant_standings
from app.services.table_assignment import assign_tables
from app.utils.clock import utcnow
from app.utils.tournament_locks import discard_tournament_lock, tournament_lock

logger = logging.getLogger(__name__)

# Allowed forward moves; CANCELLED is reachable from every non-terminal status
ALLOWED_TRANSITIONS: Dict[str, Sequence[str]] = {
    TournamentStatus.DRAFT: (TournamentStatus.ACTIVE, TournamentStatus.CANCELLED),
    TournamentStatus.ACTIVE: (TournamentStatus.IN_PROGRESS, TournamentStatus.CANCELLED),
    TournamentStatus.IN_PROGRESS: (TournamentStatus.COMPLETED, TournamentStatus.CANCELLED),
    TournamentStatus.COMPLETED: (),
    TournamentStatus.CANCELLED: (),
}


@dataclass
class PairingBuildResult:
    """Outcome of creating one round's pairings"""
    round_number: int
    matches: List[Match] = field(default_factory=list)
    bye_player_id: Optional[int] = None
    rematches: int = 0


# ============================================================================
# Guards
# ============================================================================


def pairing_seed() -> Optional[int]:
    """PAIRING_RANDOM_SEED from the environment, if set."""
    raw = os.getenv("PAIRING_RANDOM_SEED", "").strip()
    return int(raw) if raw else None


def load_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


def require_organizer(tournament: Tournament, acting_user_id: Optional[int]) -> None:
    if acting_user_id is None or acting_user_id != tournament.organizer_id:
        raise NotTournamentOrganizer(f"User {acting_user_id} is not the organizer of tournament {tournament.id}")


def require_status(tournament: Tournament, allowed: Sequence[TournamentStatus], action: str) -> None:
    if tournament.status not in allowed:
        allowed_names = ", ".join(s.value for s in allowed)
        raise TournamentNotInProgress(
            f"Cannot {action} while tournament is {TournamentStatus(tournament.status).value} "
            f"(requires {allowed_names})"
        )


def transition_status(tournament: Tournament, new_status: TournamentStatus) -> None:
    current = TournamentStatus(tournament.status)
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(f"Cannot move tournament from {current.value} to {new_status.value}")
    tournament.status = new_status
    tournament.updated_at = utcnow()


def _confirmed_participants(session: Session, tournament_id: int) -> List[Participant]:
    return list(
        session.exec(
            select(Participant)
            .where(Participant.tournament_id == tournament_id, Participant.confirmed == True)  # noqa: E712
            .order_by(Participant.registered_at, Participant.id)
        ).all()
    )


# ============================================================================
# Tournament status
# ============================================================================


def activate_tournament(session: Session, tournament_id: int, acting_user_id: int) -> Tournament:
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        transition_status(tournament, TournamentStatus.ACTIVE)
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
        logger.info("Tournament %d activated", tournament_id)
        return tournament


def cancel_tournament(session: Session, tournament_id: int, acting_user_id: int) -> Tournament:
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        transition_status(tournament, TournamentStatus.CANCELLED)
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
        logger.info("Tournament %d cancelled", tournament_id)
    discard_tournament_lock(tournament_id)
    return tournament


# ============================================================================
# Pairings
# ============================================================================


def _persist_pairings(
    session: Session, tournament: Tournament, round_number: int, result: PairingResult
) -> PairingBuildResult:
    """
    Write the round marker and one Match per pairing in a single commit.
    Byes are recorded as completed wins.
    """
    session.add(
        RoundPairing(
            tournament_id=tournament.id,
            round_number=round_number,
            match_count=len(result.pairings),
            bye_player_id=result.bye_player_id,
        )
    )
    matches: List[Match] = []
    for pairing in result.pairings:
        match = Match(
            tournament_id=tournament.id,
            round_number=round_number,
            table_number=pairing.table_number,
            player1_id=pairing.player1_id,
            player2_id=pairing.player2_id,
            status=MatchStatus.SCHEDULED,
        )
        if pairing.is_bye:
            match.status = MatchStatus.COMPLETED
            match.match_winner = MatchWinner.PLAYER1
            match.resolution = MatchResolution.BYE
        session.add(match)
        matches.append(match)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise PairingsAlreadyExist(f"Round {round_number} already has pairings")

    for match in matches:
        session.refresh(match)

    if result.bye_player_id is not None:
        # Bye points count immediately
        refresh_participant_standings(session, tournament.id)
        session.commit()

    logger.info(
        "Tournament %d round %d paired: %d match(es), bye=%s, rematches=%d",
        tournament.id,
        round_number,
        len(matches),
        result.bye_player_id,
        result.rematches,
    )
    return PairingBuildResult(
        round_number=round_number,
        matches=matches,
        bye_player_id=result.bye_player_id,
        rematches=result.rematches,
    )


def create_first_round_pairings(
    session: Session, tournament_id: int, acting_user_id: int, rng: Optional[random.Random] = None
) -> PairingBuildResult:
    """
    Pair round 1 from confirmed participants and move the tournament to IN_PROGRESS.

    Raises:
        TournamentNotInProgress: tournament not ACTIVE / IN_PROGRESS
        PairingsAlreadyExist: round 1 already paired
        InsufficientParticipants: fewer than two confirmed participants
    """
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(
            tournament, (TournamentStatus.ACTIVE, TournamentStatus.IN_PROGRESS), "create first round pairings"
        )
        if round_lifecycle.get_round_matches(session, tournament_id, 1):
            raise PairingsAlreadyExist("Round 1 already has pairings")

        participants = _confirmed_participants(session, tournament_id)
        players = [PlayerEntry(user_id=p.user_id, is_beginner=p.is_beginner, name=p.name) for p in participants]
        definition = get_round_definition(session, tournament_id, 1)

        result = build_first_round_pairings(
            players,
            algorithm=definition.pairing_algorithm,
            level_strategy=definition.player_level_pairing_strategy,
            rng=rng or random.Random(pairing_seed()),
        )
        # Round 1 order is already random; tables follow creation order
        assign_tables(result.pairings, TableAssignmentStrategy.BEST_FIRST)

        if tournament.status == TournamentStatus.ACTIVE:
            transition_status(tournament, TournamentStatus.IN_PROGRESS)
            session.add(tournament)

        return _persist_pairings(session, tournament, 1, result)


def create_next_round_pairings(
    session: Session, tournament_id: int, acting_user_id: int, table_seed: Optional[int] = None
) -> PairingBuildResult:
    """
    Swiss-pair the round after the latest created one.

    Raises:
        TournamentNotInProgress: tournament not IN_PROGRESS
        RoundNotReady: no round created yet, or latest round unresolved
        RoundLimitReached: number_of_rounds already created
    """
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "create next round pairings")

        created = round_lifecycle.get_created_round_numbers(session, tournament_id)
        if not created:
            raise RoundNotReady("Round 1 pairings have not been created yet")
        current = created[-1]
        next_round = current + 1
        if next_round > tournament.number_of_rounds:
            raise RoundLimitReached(f"All {tournament.number_of_rounds} rounds have already been created")
        if not round_lifecycle.is_round_resolved(round_lifecycle.get_round_matches(session, tournament_id, current)):
            raise RoundNotReady(f"Round {current} must have every result recorded before pairing round {next_round}")

        confirmed = {p.user_id for p in _confirmed_participants(session, tournament_id)}
        ranked = [entry.user_id for entry in compute_standings(session, tournament_id) if entry.user_id in confirmed]

        earlier = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
        history = [(m.player1_id, m.player2_id) for m in earlier]
        bye_counts: Dict[int, int] = {}
        for m in earlier:
            if m.is_bye:
                bye_counts[m.player1_id] = bye_counts.get(m.player1_id, 0) + 1

        result = build_swiss_pairings(ranked, history, bye_counts)

        definition = get_round_definition(session, tournament_id, next_round)
        if table_seed is None:
            base_seed = pairing_seed()
            table_seed = None if base_seed is None else base_seed + next_round
        assign_tables(result.pairings, definition.table_assignment_strategy, seed=table_seed)

        return _persist_pairings(session, tournament, next_round, result)


# ============================================================================
# Rounds
# ============================================================================


def start_round(
    session: Session, tournament_id: int, round_number: int, acting_user_id: int, now: Optional[datetime] = None
) -> int:
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "start a round")
        return round_lifecycle.start_round(session, tournament, round_number, now or utcnow())


def start_individual_match(
    session: Session,
    tournament_id: int,
    round_number: int,
    match_id: int,
    acting_user_id: int,
    now: Optional[datetime] = None,
) -> Match:
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "start a match")
        return round_lifecycle.start_individual_match(session, tournament, round_number, match_id, now or utcnow())


def extend_submission_deadline(
    session: Session,
    tournament_id: int,
    round_number: int,
    additional_minutes: int,
    acting_user_id: int,
    now: Optional[datetime] = None,
) -> int:
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "extend a submission deadline")
        return round_lifecycle.extend_submission_deadline(
            session, tournament, round_number, additional_minutes, now or utcnow()
        )


def submit_match_result(
    session: Session,
    match_id: int,
    player1_score: int,
    player2_score: int,
    acting_user_id: int,
    now: Optional[datetime] = None,
) -> Match:
    """Record a match result (players before the deadline, organizer any time) and refresh standings."""
    match = session.get(Match, match_id)
    if not match:
        raise MatchNotFound(f"Match {match_id} not found")

    with tournament_lock(match.tournament_id):
        tournament = load_tournament(session, match.tournament_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "submit a result")
        session.refresh(match)
        round_lifecycle.record_match_result(
            session, tournament, match, player1_score, player2_score, acting_user_id, now or utcnow()
        )
        session.commit()
        refresh_participant_standings(session, tournament.id)
        session.commit()
        session.refresh(match)
        logger.info(
            "Tournament %d round %d: result %s-%s recorded for match %d",
            tournament.id,
            match.round_number,
            player1_score,
            player2_score,
            match_id,
        )
        return match


def resolve_split(
    session: Session,
    tournament_id: int,
    round_number: int,
    match_id: int,
    acting_user_id: int,
    now: Optional[datetime] = None,
) -> Match:
    """Organizer accepts a missing result; both players receive the round's split points."""
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "resolve a match")
        match = session.get(Match, match_id)
        if not match or match.tournament_id != tournament_id or match.round_number != round_number:
            raise MatchNotFound(f"Match {match_id} is not part of round {round_number}")

        round_lifecycle.resolve_split(session, match, now or utcnow())
        session.commit()
        refresh_participant_standings(session, tournament_id)
        session.commit()
        session.refresh(match)
        logger.info("Tournament %d round %d: match %d resolved as split", tournament_id, round_number, match_id)
        return match


def update_round_definition(
    session: Session, tournament_id: int, round_number: int, update_data: Dict[str, Any], acting_user_id: int
) -> RoundDefinition:
    """
    Edit a round definition until that round starts.

    Raises:
        TournamentNotInProgress: tournament is COMPLETED / CANCELLED
        RoundLimitReached: round_number outside 1..number_of_rounds
        RoundAlreadyStarted: a match of the round already started
    """
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        if tournament.status in TERMINAL_STATUSES:
            raise TournamentNotInProgress(
                f"Round definitions of a {TournamentStatus(tournament.status).value} tournament cannot be edited"
            )
        if not 1 <= round_number <= tournament.number_of_rounds:
            raise RoundLimitReached(
                f"Round {round_number} is outside 1..{tournament.number_of_rounds} for this tournament"
            )
        matches = round_lifecycle.get_round_matches(session, tournament_id, round_number)
        if any(m.start_time is not None for m in matches):
            raise RoundAlreadyStarted(f"Round {round_number} has started; its definition is locked")

        definition = get_round_definition(session, tournament_id, round_number)
        apply_round_definition_update(definition, update_data)
        session.add(definition)
        session.commit()
        session.refresh(definition)
        return definition


# ============================================================================
# Completion
# ============================================================================


def complete_tournament(session: Session, tournament_id: int, acting_user_id: int) -> Podium:
    """
    Close the tournament: every round must be created and resolved.
    Standings are written one last time (frozen) and the podium returned.

    Raises:
        TournamentNotInProgress: tournament not IN_PROGRESS
        RoundsIncomplete: some round missing or with unrecorded results
    """
    with tournament_lock(tournament_id):
        tournament = load_tournament(session, tournament_id)
        require_organizer(tournament, acting_user_id)
        require_status(tournament, (TournamentStatus.IN_PROGRESS,), "complete the tournament")

        unfinished = [
            round_number
            for round_number in range(1, tournament.number_of_rounds + 1)
            if not round_lifecycle.is_round_resolved(
                round_lifecycle.get_round_matches(session, tournament_id, round_number)
            )
        ]
        if unfinished:
            raise RoundsIncomplete(
                f"Rounds without every result recorded: {', '.join(str(n) for n in unfinished)}"
            )

        standings = refresh_participant_standings(session, tournament_id)
        transition_status(tournament, TournamentStatus.COMPLETED)
        tournament.completed_at = utcnow()
        session.add(tournament)
        session.commit()

        logger.info("Tournament %d completed with %d ranked participant(s)", tournament_id, len(standings))
    discard_tournament_lock(tournament_id)
    return podium_from_standings(standings)
