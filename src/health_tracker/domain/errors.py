"""Error taxonomy for the goal and progress engine."""


class TrackerError(Exception):
    """Base class for engine errors surfaced to callers."""


class InvalidArgumentError(TrackerError, ValueError):
    """Raised for out-of-range numbers, unknown fields, or malformed dates."""


class NotFoundError(TrackerError, LookupError):
    """Raised when a goal, progress, meal, food, or activity id is unknown."""


class ConflictError(TrackerError):
    """Raised for a duplicate active goal or a stale progress write."""


class InvalidTransitionError(TrackerError):
    """Raised for an illegal meal status change."""
