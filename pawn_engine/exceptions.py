"""Custom exception hierarchy for pawn-engine."""


class PawnEngineError(Exception):
    """Base exception for all pawn-engine errors."""


class EntityNotFoundError(PawnEngineError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidTransitionError(PawnEngineError):
    """Raised when a loan status change is not allowed by the lifecycle."""


class PersistenceError(PawnEngineError):
    """Raised when a store read or write fails."""


class NotificationError(PawnEngineError):
    """Raised when a notification cannot be dispatched."""


class ConfigurationError(PawnEngineError):
    """Raised when configuration is invalid or missing."""


class ScheduleError(ConfigurationError):
    """Raised when a schedule expression cannot be parsed."""


class JobCancelledError(PawnEngineError):
    """Raised when a job context has been cancelled."""
