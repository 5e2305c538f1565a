"""Podium: top three of the final standings of a COMPLETED tournament."""

from dataclasses import dataclass
from typing import List, Optional

from sqlmodel import Session

from app.models.tournament import Tournament, TournamentStatus
from app.services.errors import TournamentNotCompleted
from app.services.standings import StandingEntry, frozen_standings


@dataclass
class Podium:
    first: Optional[StandingEntry] = None
    second: Optional[StandingEntry] = None
    third: Optional[StandingEntry] = None


def podium_from_standings(standings: List[StandingEntry]) -> Podium:
    """Positions beyond the number of participants stay None."""
    places: List[Optional[StandingEntry]] = list(standings[:3]) + [None] * (3 - min(len(standings), 3))
    return Podium(first=places[0], second=places[1], third=places[2])


def get_podium(session: Session, tournament: Tournament) -> Podium:
    if tournament.status != TournamentStatus.COMPLETED:
        raise TournamentNotCompleted(
            f"Podium is available once the tournament is COMPLETED (current status: {TournamentStatus(tournament.status).value})"
        )
    return podium_from_standings(frozen_standings(session, tournament.id))
