"""
Error kinds raised by the match/court core.

Every error carries a stable ``kind`` (what API clients see) and the HTTP
status the boundary layer answers with. Validation errors are raised before
any mutation; StoreError wraps persistence failures, including rolled back
transactions.
"""


class TrackerError(Exception):
    """Base exception for all tournament tracker errors"""

    kind = "TrackerError"
    status_code = 500
    default_message = "Tournament tracker error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ========== Not found ==========


class NotFoundError(TrackerError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class TournamentNotFound(NotFoundError):
    kind = "TournamentNotFound"
    default_message = "Tournament not found"


class MatchNotFound(NotFoundError):
    kind = "MatchNotFound"
    default_message = "Match not found"


class PlayerNotFound(NotFoundError):
    kind = "PlayerNotFound"
    default_message = "Player not found"


class CourtNotFound(NotFoundError):
    """Raised when releasing a court for a match that holds none"""

    kind = "CourtNotFound"
    default_message = "Match holds no court"


class QueueEntryNotFound(NotFoundError):
    """Raised when asking for the queue placement of a match that is not queued"""

    kind = "QueueEntryNotFound"
    default_message = "Match is not in the court queue"


# ========== Match state ==========


class MatchStateError(TrackerError):
    kind = "MatchStateError"
    status_code = 409
    default_message = "Match is in the wrong state for this operation"


class MatchAlreadyStarted(MatchStateError):
    kind = "MatchAlreadyStarted"
    default_message = "Match has already started"


class MatchAlreadyCompleted(MatchStateError):
    kind = "MatchAlreadyCompleted"
    default_message = "Match already has a result"


class MatchNotStarted(MatchStateError):
    kind = "MatchNotStarted"
    default_message = "Match has not started"


class PlayerMissing(MatchStateError):
    kind = "PlayerMissing"
    default_message = "Both players must be checked in to start the match"


class PlayerAlreadyRegistered(MatchStateError):
    kind = "PlayerAlreadyRegistered"
    default_message = "Player already registered to match"


class CourtAlreadyExists(MatchStateError):
    kind = "CourtAlreadyExists"
    default_message = "Court name already used in this tournament"


# ========== Validation ==========


class ValidationError(TrackerError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid request"


class InvalidPlayerRegistration(ValidationError):
    kind = "InvalidPlayerRegistration"
    default_message = "Player is not part of the match roster"


class InvalidWinner(ValidationError):
    kind = "InvalidWinner"
    default_message = "Winner must be one of the match players"


class InvalidResult(ValidationError):
    kind = "InvalidResult"
    default_message = "Result string is not a valid score"


class InvalidRoster(ValidationError):
    kind = "InvalidRoster"
    default_message = "Invalid roster, two different players are needed"


class InvalidDate(ValidationError):
    kind = "InvalidDate"
    default_message = "Invalid start or end date"


class InvalidStartTime(ValidationError):
    kind = "InvalidStartTime"
    default_message = "Invalid start time"


# ========== Persistence ==========


class StoreError(TrackerError):
    """Any failure of the underlying store; the enclosing transaction is rolled back"""

    kind = "StoreError"
    status_code = 500
    default_message = "Internal database error"
