"""
Round Lifecycle: start, deadline extension, result recording, round status.

A round has no row of its own; its state is derived from its matches:

    NOT_STARTED -> IN_PROGRESS -> AWAITING_RESULTS -> COMPLETED

- NOT_STARTED: no pairings yet, or no playing match has started
- IN_PROGRESS: play is under way
- AWAITING_RESULTS: every playing match started and its planned game end
  passed, but some results are missing
- COMPLETED: every match has a result or its submission deadline passed

A round is *resolved* only when every match has a recorded result. Matches
whose deadline passed without a result are marked FINISHED lazily on read
and reported through playersWithoutScores; the organizer extends the
deadline, enters the result, or accepts a split.

Timing per match:
    game_end_time              = start_time + round_duration_minutes
    result_submission_deadline = game_end_time + score_submission_extra_minutes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from app.models.match import Match, MatchResolution, MatchStatus, MatchWinner
from app.models.tournament import RoundStartMode, Tournament
from app.services.errors import (
    InvalidRoundStartMode,
    MatchNotFound,
    NotMatchParticipant,
    ResultSubmissionRejected,
    RoundAlreadyCompleted,
    RoundAlreadyStarted,
    RoundNotReady,
)

logger = logging.getLogger(__name__)


class RoundState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_RESULTS = "AWAITING_RESULTS"
    COMPLETED = "COMPLETED"


@dataclass
class RoundStatusSummary:
    """Organizer view of one round's result collection."""
    round_number: int
    all_scores_submitted: bool
    players_without_scores: List[str] = field(default_factory=list)
    total_matches: int = 0
    completed_matches: int = 0


# ============================================================================
# Derivation helpers
# ============================================================================


def match_timing(tournament: Tournament, start_time: datetime) -> Tuple[datetime, datetime]:
    """(planned game end, result submission deadline) for a match starting at *start_time*."""
    game_end = start_time + timedelta(minutes=tournament.round_duration_minutes)
    deadline = game_end + timedelta(minutes=tournament.score_submission_extra_minutes or 0)
    return game_end, deadline


def is_expired(match: Match, now: datetime) -> bool:
    """Started, no result, submission deadline passed."""
    if match.status == MatchStatus.FINISHED:
        return True
    return (
        match.status == MatchStatus.IN_PROGRESS
        and match.result_submission_deadline is not None
        and match.result_submission_deadline <= now
    )


def derive_round_state(matches: List[Match], now: datetime) -> RoundState:
    playing = [m for m in matches if not m.is_bye]
    if not matches or not any(m.start_time is not None for m in playing):
        return RoundState.NOT_STARTED

    if all(m.has_result or is_expired(m, now) for m in matches):
        return RoundState.COMPLETED

    all_started = all(m.start_time is not None for m in playing)
    play_over = all(m.has_result or (m.game_end_time is not None and m.game_end_time <= now) for m in playing)
    if all_started and play_over:
        return RoundState.AWAITING_RESULTS
    return RoundState.IN_PROGRESS


def is_round_resolved(matches: List[Match]) -> bool:
    """Every match of the round has a recorded result (score, bye or split)."""
    return bool(matches) and all(m.has_result for m in matches)


def get_round_matches(session: Session, tournament_id: int, round_number: int) -> List[Match]:
    """Matches of a round, ordered by table (byes last)."""
    matches = session.exec(
        select(Match)
        .where(Match.tournament_id == tournament_id, Match.round_number == round_number)
        .order_by(Match.id)
    ).all()
    return sorted(matches, key=lambda m: (m.table_number is None, m.table_number or 0, m.id))


def get_created_round_numbers(session: Session, tournament_id: int) -> List[int]:
    rows = session.exec(select(Match.round_number).where(Match.tournament_id == tournament_id).distinct()).all()
    return sorted(rows)


def expire_overdue_matches(session: Session, tournament_id: int, now: datetime) -> int:
    """Mark started matches past their deadline without a result as FINISHED. Returns rows changed."""
    overdue = session.exec(
        select(Match).where(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.IN_PROGRESS,
            Match.result_submission_deadline.is_not(None),
            Match.result_submission_deadline <= now,
        )
    ).all()
    for match in overdue:
        match.status = MatchStatus.FINISHED
        session.add(match)
    if overdue:
        session.commit()
        logger.info(
            "Tournament %d: %d match(es) passed their submission deadline without a result",
            tournament_id,
            len(overdue),
        )
    return len(overdue)


# ============================================================================
# Transitions
# ============================================================================


def _require_previous_round_resolved(session: Session, tournament: Tournament, round_number: int) -> None:
    if round_number <= 1:
        return
    previous = get_round_matches(session, tournament.id, round_number - 1)
    if not is_round_resolved(previous):
        raise RoundNotReady(f"Round {round_number - 1} must have every result recorded before round {round_number}")


def start_round(session: Session, tournament: Tournament, round_number: int, now: datetime) -> int:
    """
    Start a round. Returns the number of matches started.

    ALL_MATCHES_TOGETHER: every playing match gets start time and deadline now.
    INDIVIDUAL_MATCHES: nothing is started here; each match is started on its own.

    The update only touches matches whose start_time is still NULL, so two
    concurrent starts cannot both succeed.

    Raises:
        RoundNotReady: round has no pairings, or previous round unresolved
        RoundAlreadyStarted: some match of the round already started
    """
    matches = get_round_matches(session, tournament.id, round_number)
    if not matches:
        raise RoundNotReady(f"Round {round_number} has no pairings yet")
    playing = [m for m in matches if not m.is_bye]
    if any(m.start_time is not None for m in playing):
        raise RoundAlreadyStarted(f"Round {round_number} has already started")
    _require_previous_round_resolved(session, tournament, round_number)

    if tournament.round_start_mode == RoundStartMode.INDIVIDUAL_MATCHES:
        logger.info(
            "Tournament %d round %d uses individual match starts; no matches started",
            tournament.id,
            round_number,
        )
        return 0

    game_end, deadline = match_timing(tournament, now)
    result = session.connection().execute(
        update(Match)
        .where(
            Match.tournament_id == tournament.id,
            Match.round_number == round_number,
            Match.player2_id.is_not(None),
            Match.start_time.is_(None),
        )
        .values(
            start_time=now,
            game_end_time=game_end,
            result_submission_deadline=deadline,
            status=MatchStatus.IN_PROGRESS.value,
        )
    )
    if result.rowcount == 0:
        session.rollback()
        raise RoundAlreadyStarted(f"Round {round_number} has already started")
    session.commit()

    logger.info(
        "Tournament %d round %d started: %d match(es), deadline %s",
        tournament.id,
        round_number,
        result.rowcount,
        deadline.isoformat(),
    )
    return result.rowcount


def start_individual_match(
    session: Session, tournament: Tournament, round_number: int, match_id: int, now: datetime
) -> Match:
    """
    Start one match of a round (INDIVIDUAL_MATCHES mode only).

    Raises:
        InvalidRoundStartMode: tournament starts whole rounds together
        MatchNotFound: match not in round
        RoundNotReady: match is a bye, or previous round unresolved
        RoundAlreadyStarted: match already started
    """
    if tournament.round_start_mode != RoundStartMode.INDIVIDUAL_MATCHES:
        raise InvalidRoundStartMode(
            "Tournament starts all matches of a round together; start the round instead of a single match"
        )

    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament.id or match.round_number != round_number:
        raise MatchNotFound(f"Match {match_id} is not part of round {round_number}")
    if match.is_bye:
        raise RoundNotReady(f"Match {match_id} is a bye and cannot be started")
    if match.start_time is not None:
        raise RoundAlreadyStarted(f"Match {match_id} has already started")
    _require_previous_round_resolved(session, tournament, round_number)

    game_end, deadline = match_timing(tournament, now)
    result = session.connection().execute(
        update(Match)
        .where(Match.id == match_id, Match.start_time.is_(None))
        .values(
            start_time=now,
            game_end_time=game_end,
            result_submission_deadline=deadline,
            status=MatchStatus.IN_PROGRESS.value,
        )
    )
    if result.rowcount == 0:
        session.rollback()
        raise RoundAlreadyStarted(f"Match {match_id} has already started")
    session.commit()
    session.refresh(match)

    logger.info("Tournament %d round %d: match %d started", tournament.id, round_number, match_id)
    return match


def extend_submission_deadline(
    session: Session, tournament: Tournament, round_number: int, additional_minutes: int, now: datetime
) -> int:
    """
    Push back the submission deadline of every started, unresolved match in the round.

    Matches already marked FINISHED reopen (IN_PROGRESS) when the new deadline
    lies in the future. Returns the number of matches extended.

    Raises:
        ValueError: additional_minutes not positive
        RoundNotReady: round not started
        RoundAlreadyCompleted: every result already recorded
    """
    if additional_minutes <= 0:
        raise ValueError("additional_minutes must be positive")

    matches = get_round_matches(session, tournament.id, round_number)
    state = derive_round_state(matches, now)
    if state == RoundState.NOT_STARTED:
        raise RoundNotReady(f"Round {round_number} has not started")
    if is_round_resolved(matches):
        raise RoundAlreadyCompleted(f"Round {round_number} already has every result recorded")

    delta = timedelta(minutes=additional_minutes)
    extended = 0
    for match in matches:
        if match.is_bye or match.start_time is None or match.has_result:
            continue
        match.result_submission_deadline = (match.result_submission_deadline or now) + delta
        if match.status == MatchStatus.FINISHED and match.result_submission_deadline > now:
            match.status = MatchStatus.IN_PROGRESS
        session.add(match)
        extended += 1
    session.commit()

    logger.info(
        "Tournament %d round %d: deadline extended by %d minute(s) on %d match(es)",
        tournament.id,
        round_number,
        additional_minutes,
        extended,
    )
    return extended


def _winner_from_scores(player1_score: int, player2_score: int) -> MatchWinner:
    if player1_score > player2_score:
        return MatchWinner.PLAYER1
    if player2_score > player1_score:
        return MatchWinner.PLAYER2
    return MatchWinner.DRAW


def record_match_result(
    session: Session,
    tournament: Tournament,
    match: Match,
    player1_score: int,
    player2_score: int,
    acting_user_id: int,
    now: datetime,
) -> Match:
    """
    Record per-player total scores; the winner follows from the higher score.

    Players of the match may submit until the deadline. The organizer may
    submit at any time and may overwrite an earlier result. Caller commits.

    Raises:
        NotMatchParticipant: acting user neither a player nor the organizer
        ResultSubmissionRejected: bye, not started, deadline passed, or already recorded
    """
    is_organizer = acting_user_id == tournament.organizer_id
    if not is_organizer and acting_user_id not in (match.player1_id, match.player2_id):
        raise NotMatchParticipant(f"User {acting_user_id} is not a player of match {match.id}")
    if match.is_bye:
        raise ResultSubmissionRejected("Byes are scored automatically")
    if match.start_time is None:
        raise ResultSubmissionRejected(f"Match {match.id} has not started")
    if match.has_result and not is_organizer:
        raise ResultSubmissionRejected(f"Match {match.id} already has a result")
    if not is_organizer and is_expired(match, now):
        raise ResultSubmissionRejected(
            f"Submission deadline for match {match.id} has passed; ask the organizer to extend it"
        )
    if player1_score < 0 or player2_score < 0:
        raise ResultSubmissionRejected("Scores cannot be negative")

    match.player1_total_score = player1_score
    match.player2_total_score = player2_score
    match.match_winner = _winner_from_scores(player1_score, player2_score)
    match.resolution = MatchResolution.SCORED
    match.status = MatchStatus.COMPLETED
    match.game_end_time = now
    session.add(match)
    return match


def resolve_split(session: Session, match: Match, now: datetime) -> Match:
    """
    Organizer accepts a missing result: both players get the round's split points.
    Caller commits.
    """
    if match.is_bye:
        raise ResultSubmissionRejected("Byes are scored automatically")
    if match.start_time is None:
        raise ResultSubmissionRejected(f"Match {match.id} has not started")
    if match.has_result:
        raise ResultSubmissionRejected(f"Match {match.id} already has a result")

    match.player1_total_score = None
    match.player2_total_score = None
    match.match_winner = MatchWinner.DRAW
    match.resolution = MatchResolution.SPLIT
    match.status = MatchStatus.COMPLETED
    match.game_end_time = now
    session.add(match)
    return match


# ============================================================================
# Read side
# ============================================================================


def organizer_status(
    matches: List[Match], round_number: int, names: Dict[int, str], now: datetime
) -> RoundStatusSummary:
    """Result collection progress; players_without_scores covers matches past their deadline."""
    missing: List[str] = []
    for match in matches:
        if match.is_bye or not is_expired(match, now):
            continue
        for user_id in (match.player1_id, match.player2_id):
            missing.append(names.get(user_id, str(user_id)))

    completed = sum(1 for m in matches if m.has_result)
    return RoundStatusSummary(
        round_number=round_number,
        all_scores_submitted=bool(matches) and completed == len(matches),
        players_without_scores=missing,
        total_matches=len(matches),
        completed_matches=completed,
    )


def can_start_round(
    tournament_in_progress: bool, matches: List[Match], previous: Optional[List[Match]], now: datetime
) -> bool:
    if not tournament_in_progress or not matches:
        return False
    if derive_round_state(matches, now) != RoundState.NOT_STARTED:
        return False
    return previous is None or is_round_resolved(previous)
