"""
Round definitions: one per round number 1..number_of_rounds.

Created with the tournament, kept in step with number_of_rounds while the
tournament has not started, editable by the organizer until the round starts.
"""

from typing import Any, Dict, List, Tuple

from sqlmodel import Session, select

from app.models.round_definition import RoundDefinition
from app.models.tournament import Tournament, TournamentPointsSystem

# Top bracket value under point-difference systems
POINT_DIFFERENCE_BYE_POINTS = 15
POINT_DIFFERENCE_SPLIT_POINTS = 10


def default_large_points(tournament: Tournament) -> Tuple[int, int]:
    """(bye, split) tournament points implied by the points system."""
    if tournament.tournament_points_system == TournamentPointsSystem.FIXED:
        return tournament.points_for_win, tournament.points_for_draw
    return POINT_DIFFERENCE_BYE_POINTS, POINT_DIFFERENCE_SPLIT_POINTS


def default_round_definition(tournament: Tournament, round_number: int) -> RoundDefinition:
    """Unsaved definition with bye/split points derived from the tournament's points system."""
    bye_large, split_large = default_large_points(tournament)

    return RoundDefinition(
        tournament_id=tournament.id,
        round_number=round_number,
        bye_large_points=bye_large,
        bye_small_points=0,
        split_large_points=split_large,
        split_small_points=0,
    )


def list_round_definitions(session: Session, tournament_id: int) -> List[RoundDefinition]:
    return list(
        session.exec(
            select(RoundDefinition)
            .where(RoundDefinition.tournament_id == tournament_id)
            .order_by(RoundDefinition.round_number)
        ).all()
    )


def get_round_definition(session: Session, tournament_id: int, round_number: int) -> RoundDefinition:
    """Stored definition, or an unsaved default when the round has none."""
    definition = session.exec(
        select(RoundDefinition).where(
            RoundDefinition.tournament_id == tournament_id,
            RoundDefinition.round_number == round_number,
        )
    ).first()
    if definition is None:
        tournament = session.get(Tournament, tournament_id)
        definition = default_round_definition(tournament, round_number)
    return definition


def sync_round_definitions(session: Session, tournament: Tournament) -> int:
    """
    Make the stored definitions cover exactly rounds 1..number_of_rounds.

    Adds missing definitions with defaults and deletes trailing ones.
    Returns the number of rows added or removed. Caller commits.
    """
    existing = {d.round_number: d for d in list_round_definitions(session, tournament.id)}
    changed = 0
    for round_number in range(1, tournament.number_of_rounds + 1):
        if round_number not in existing:
            session.add(default_round_definition(tournament, round_number))
            changed += 1
    for round_number, definition in existing.items():
        if round_number > tournament.number_of_rounds:
            session.delete(definition)
            changed += 1
    return changed


def refresh_default_points(session: Session, tournament: Tournament, previous: Tuple[int, int]) -> int:
    """
    Move stored definitions still on the *previous* (bye, split) defaults to the
    tournament's current ones. Values the organizer changed are kept.

    Returns the number of definitions changed. Caller commits.
    """
    bye_large, split_large = default_large_points(tournament)
    changed = 0
    for definition in list_round_definitions(session, tournament.id):
        touched = False
        if definition.bye_large_points == previous[0] and definition.bye_large_points != bye_large:
            definition.bye_large_points = bye_large
            touched = True
        if definition.split_large_points == previous[1] and definition.split_large_points != split_large:
            definition.split_large_points = split_large
            touched = True
        if touched:
            session.add(definition)
            changed += 1
    return changed


def apply_round_definition_update(definition: RoundDefinition, update_data: Dict[str, Any]) -> RoundDefinition:
    for field_name, value in update_data.items():
        setattr(definition, field_name, value)
    return definition
