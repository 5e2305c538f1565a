"""
Standings Calculator

Derives per-participant wins/draws/losses, tournament points (TP, "large
points") and score points (SP, "small points") from recorded match results.

Tournament points per match depend on the tournament's points system:
- FIXED: points_for_win / points_for_draw / points_for_loss by match winner
- POINT_DIFFERENCE_STRICT / _LENIENT: the raw score difference maps to a
  bracket; the higher raw score takes the large value, the other side the small one
Byes and splits use the round definition's bye/split points instead.

Score points are each side's raw total score.

Ordering: TP desc, SP desc, wins desc. Participants still level after that
share a rank and keep registration order.

Only COMPLETED matches count. Standings are a pure read of committed match
data; refresh_participant_standings() copies them onto Participant rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlmodel import Session, select

from app.models.match import Match, MatchResolution, MatchStatus, MatchWinner
from app.models.participant import Participant
from app.models.round_definition import RoundDefinition
from app.models.tournament import Tournament, TournamentPointsSystem
from app.services.round_definitions import default_round_definition

logger = logging.getLogger(__name__)

OUTCOME_WIN = "W"
OUTCOME_DRAW = "D"
OUTCOME_LOSS = "L"

# (max score difference inclusive, winner TP, loser TP); anything larger -> FINAL_BRACKET
STRICT_BRACKETS: List[Tuple[int, int, int]] = [
    (0, 10, 10),
    (5, 11, 9),
    (10, 12, 8),
    (15, 13, 7),
    (20, 14, 6),
]
LENIENT_BRACKETS: List[Tuple[int, int, int]] = [
    (5, 10, 10),
    (10, 11, 9),
    (15, 12, 8),
    (20, 13, 7),
    (25, 14, 6),
]
FINAL_BRACKET: Tuple[int, int] = (15, 5)
EQUAL_SCORE_POINTS = 10


@dataclass
class SidePoints:
    tournament_points: int
    score_points: int
    outcome: str  # "W" | "D" | "L"


@dataclass
class StandingEntry:
    user_id: int
    name: str
    wins: int = 0
    draws: int = 0
    losses: int = 0
    tournament_points: int = 0
    score_points: int = 0
    matches_played: int = 0
    byes: int = 0
    rank: int = 0

    def sort_key(self) -> Tuple[int, int, int]:
        return (-self.tournament_points, -self.score_points, -self.wins)


def bracket_points(system: TournamentPointsSystem, score_a: int, score_b: int) -> Tuple[int, int]:
    """Map a raw score pair to (TP for side a, TP for side b) under a point-difference system."""
    if score_a == score_b:
        return EQUAL_SCORE_POINTS, EQUAL_SCORE_POINTS

    brackets = STRICT_BRACKETS if system == TournamentPointsSystem.POINT_DIFFERENCE_STRICT else LENIENT_BRACKETS
    diff = abs(score_a - score_b)
    large, small = FINAL_BRACKET
    for max_diff, winner_tp, loser_tp in brackets:
        if diff <= max_diff:
            large, small = winner_tp, loser_tp
            break
    return (large, small) if score_a > score_b else (small, large)


def _outcomes(winner: Optional[str]) -> Tuple[str, str]:
    if winner == MatchWinner.PLAYER1:
        return OUTCOME_WIN, OUTCOME_LOSS
    if winner == MatchWinner.PLAYER2:
        return OUTCOME_LOSS, OUTCOME_WIN
    return OUTCOME_DRAW, OUTCOME_DRAW


def match_points(
    match: Match, tournament: Tournament, definition: RoundDefinition
) -> Tuple[SidePoints, Optional[SidePoints]]:
    """Points earned by (player1, player2) in a recorded match. player2 side is None for a bye."""
    if match.is_bye or match.resolution == MatchResolution.BYE:
        return SidePoints(definition.bye_large_points, definition.bye_small_points, OUTCOME_WIN), None

    if match.resolution == MatchResolution.SPLIT:
        split = SidePoints(definition.split_large_points, definition.split_small_points, OUTCOME_DRAW)
        return split, SidePoints(split.tournament_points, split.score_points, OUTCOME_DRAW)

    score1 = match.player1_total_score or 0
    score2 = match.player2_total_score or 0
    outcome1, outcome2 = _outcomes(match.match_winner)

    if tournament.tournament_points_system == TournamentPointsSystem.FIXED:
        fixed = {
            OUTCOME_WIN: tournament.points_for_win,
            OUTCOME_DRAW: tournament.points_for_draw,
            OUTCOME_LOSS: tournament.points_for_loss,
        }
        tp1, tp2 = fixed[outcome1], fixed[outcome2]
    else:
        tp1, tp2 = bracket_points(tournament.tournament_points_system, score1, score2)

    return SidePoints(tp1, score1, outcome1), SidePoints(tp2, score2, outcome2)


def _apply(entry: StandingEntry, points: SidePoints) -> None:
    entry.tournament_points += points.tournament_points
    entry.score_points += points.score_points
    entry.matches_played += 1
    if points.outcome == OUTCOME_WIN:
        entry.wins += 1
    elif points.outcome == OUTCOME_DRAW:
        entry.draws += 1
    else:
        entry.losses += 1


def rank_standings(entries: Iterable[StandingEntry]) -> List[StandingEntry]:
    """Stable sort by TP, SP, wins (all desc) and assign competition ranks (1, 1, 3, ...)."""
    ordered = sorted(entries, key=lambda e: e.sort_key())
    previous_key = None
    for position, entry in enumerate(ordered, start=1):
        key = entry.sort_key()
        entry.rank = position if key != previous_key else ordered[position - 2].rank
        previous_key = key
    return ordered


def tally_standings(
    participants: Sequence[Tuple[int, str]],
    matches: Iterable[Match],
    tournament: Tournament,
    definitions: Mapping[int, RoundDefinition],
) -> List[StandingEntry]:
    """Pure standings computation.

    Args:
        participants: (user_id, name) in registration order
        matches: any matches of the tournament; only COMPLETED ones count
        definitions: round definitions keyed by round number
    """
    table: Dict[int, StandingEntry] = {uid: StandingEntry(user_id=uid, name=name) for uid, name in participants}

    for match in matches:
        if match.status != MatchStatus.COMPLETED or match.match_winner is None:
            continue
        definition = definitions.get(match.round_number) or default_round_definition(tournament, match.round_number)
        side1, side2 = match_points(match, tournament, definition)

        entry1 = table.setdefault(match.player1_id, StandingEntry(user_id=match.player1_id, name=str(match.player1_id)))
        _apply(entry1, side1)
        if side2 is None:
            entry1.byes += 1
        else:
            entry2 = table.setdefault(
                match.player2_id, StandingEntry(user_id=match.player2_id, name=str(match.player2_id))
            )
            _apply(entry2, side2)

    return rank_standings(table.values())


def compute_standings(session: Session, tournament_id: int) -> List[StandingEntry]:
    """Ranked standings for a tournament from its COMPLETED matches. Read-only and idempotent."""
    tournament = session.get(Tournament, tournament_id)
    if tournament is None:
        return []

    participants = session.exec(
        select(Participant)
        .where(Participant.tournament_id == tournament_id)
        .order_by(Participant.registered_at, Participant.id)
    ).all()
    matches = session.exec(
        select(Match).where(Match.tournament_id == tournament_id).order_by(Match.round_number, Match.id)
    ).all()
    definitions = {
        d.round_number: d
        for d in session.exec(select(RoundDefinition).where(RoundDefinition.tournament_id == tournament_id)).all()
    }

    in_matches = {m.player1_id for m in matches} | {m.player2_id for m in matches if m.player2_id is not None}
    listed = [(p.user_id, p.name) for p in participants if p.confirmed or p.user_id in in_matches]
    return tally_standings(listed, matches, tournament, definitions)


def refresh_participant_standings(session: Session, tournament_id: int) -> List[StandingEntry]:
    """Recompute standings and copy them onto Participant rows. Caller commits."""
    standings = compute_standings(session, tournament_id)
    by_user = {entry.user_id: entry for entry in standings}

    participants = session.exec(select(Participant).where(Participant.tournament_id == tournament_id)).all()
    for participant in participants:
        entry = by_user.get(participant.user_id) or StandingEntry(user_id=participant.user_id, name=participant.name)
        participant.tournament_points = entry.tournament_points
        participant.score_points = entry.score_points
        participant.wins = entry.wins
        participant.draws = entry.draws
        participant.losses = entry.losses
        participant.matches_played = entry.matches_played
        session.add(participant)

    logger.debug("Refreshed standings for tournament %d (%d participants)", tournament_id, len(participants))
    return standings


def frozen_standings(session: Session, tournament_id: int) -> List[StandingEntry]:
    """Standings as stored on Participant rows (used once a tournament is COMPLETED)."""
    participants = session.exec(
        select(Participant)
        .where(Participant.tournament_id == tournament_id)
        .order_by(Participant.registered_at, Participant.id)
    ).all()
    entries = [
        StandingEntry(
            user_id=p.user_id,
            name=p.name,
            wins=p.wins,
            draws=p.draws,
            losses=p.losses,
            tournament_points=p.tournament_points,
            score_points=p.score_points,
            matches_played=p.matches_played,
        )
        for p in participants
        if p.confirmed or p.matches_played
    ]
    return rank_standings(entries)
