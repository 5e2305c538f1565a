from app.models.match import Match, MatchResolution, MatchStatus, MatchWinner
from app.models.participant import ArmyListStatus, Participant
from app.models.round_definition import (
    PairingAlgorithm,
    PlayerLevelPairingStrategy,
    RoundDefinition,
    TableAssignmentStrategy,
)
from app.models.round_pairing import RoundPairing
from app.models.tournament import RoundStartMode, Tournament, TournamentPointsSystem, TournamentStatus

__all__ = [
    "Tournament",
    "TournamentStatus",
    "RoundStartMode",
    "TournamentPointsSystem",
    "RoundDefinition",
    "PairingAlgorithm",
    "PlayerLevelPairingStrategy",
    "TableAssignmentStrategy",
    "RoundPairing",
    "Participant",
    "ArmyListStatus",
    "Match",
    "MatchStatus",
    "MatchWinner",
    "MatchResolution",
]
