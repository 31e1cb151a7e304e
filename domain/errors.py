"""Error taxonomy shared by the interview stores, engine and facade."""
from __future__ import annotations


class InterviewError(Exception):
    """Base class for every error the interview core reports to callers."""


class ValidationError(InterviewError):
    """Caller input was rejected; never retried."""


class NotFoundError(InterviewError):
    """A template or session does not exist (or is not visible)."""


class ForbiddenError(InterviewError):
    """The caller does not own the requested resource."""


class InvalidStateError(InterviewError):
    """The operation is not valid for the session's current status."""


class ConflictError(InterviewError):
    """A concurrent mutation of the same session won the race."""


class SessionStartError(InterviewError):
    """The first question could not be generated; no session was created."""


class GenerationError(InterviewError):
    """The completion service failed or replied with unusable content."""


class StorageError(InterviewError):
    """The persistence layer failed."""


__all__ = [
    "ConflictError",
    "ForbiddenError",
    "GenerationError",
    "InterviewError",
    "InvalidStateError",
    "NotFoundError",
    "SessionStartError",
    "StorageError",
    "ValidationError",
]
