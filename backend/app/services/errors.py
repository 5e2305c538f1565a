"""
Engine errors.

Every rejection the engine can produce is a TournamentEngineError subclass
carrying a machine-readable code and the HTTP status the routes map it to.
"""


class TournamentEngineError(Exception):
    """Base exception for pairing/round/standings rejections"""

    code = "TOURNAMENT_ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def detail(self) -> str:
        return f"{self.code}: {self.message}"


class InsufficientParticipants(TournamentEngineError):
    code = "INSUFFICIENT_PARTICIPANTS"
    status_code = 400


class RoundNotReady(TournamentEngineError):
    """Previous round unresolved, or the round has no pairings yet"""

    code = "ROUND_NOT_READY"
    status_code = 409


class PairingsAlreadyExist(TournamentEngineError):
    code = "PAIRINGS_ALREADY_EXIST"
    status_code = 409


class RoundAlreadyStarted(TournamentEngineError):
    code = "ROUND_ALREADY_STARTED"
    status_code = 409


class RoundsIncomplete(TournamentEngineError):
    code = "ROUNDS_INCOMPLETE"
    status_code = 409


class InvalidRoundStartMode(TournamentEngineError):
    code = "INVALID_ROUND_START_MODE"
    status_code = 400


class TournamentNotInProgress(TournamentEngineError):
    """Operation attempted against the wrong Tournament.status"""

    code = "TOURNAMENT_NOT_IN_PROGRESS"
    status_code = 409


class RoundLimitReached(TournamentEngineError):
    code = "ROUND_LIMIT_REACHED"
    status_code = 409


class TournamentNotCompleted(TournamentEngineError):
    code = "TOURNAMENT_NOT_COMPLETED"
    status_code = 409


class InvalidStatusTransition(TournamentEngineError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409


class ResultSubmissionRejected(TournamentEngineError):
    code = "RESULT_SUBMISSION_REJECTED"
    status_code = 422


class NotTournamentOrganizer(TournamentEngineError):
    code = "NOT_TOURNAMENT_ORGANIZER"
    status_code = 403


class NotMatchParticipant(TournamentEngineError):
    code = "NOT_MATCH_PARTICIPANT"
    status_code = 403


class RoundAlreadyCompleted(TournamentEngineError):
    code = "ROUND_ALREADY_COMPLETED"
    status_code = 409


class TournamentNotFound(TournamentEngineError):
    code = "TOURNAMENT_NOT_FOUND"
    status_code = 404


class MatchNotFound(TournamentEngineError):
    code = "MATCH_NOT_FOUND"
    status_code = 404
