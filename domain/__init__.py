from __future__ import annotations  # Re-export interview domain types

from .errors import (  # noqa: F401
    ConflictError,
    ForbiddenError,
    GenerationError,
    InterviewError,
    InvalidStateError,
    NotFoundError,
    SessionStartError,
    StorageError,
    ValidationError,
)
from .models import (  # noqa: F401
    ConversationEntry,
    InterviewSession,
    InterviewTemplate,
    OwnerConfig,
    RespondentInfo,
    SessionStatus,
    SessionSummary,
    TERMINAL_STATUSES,
    TemplateStatus,
    Turn,
    TurnRole,
    conversation_of,
    utc_now,
)

__all__ = [
    "ConflictError",
    "ConversationEntry",
    "ForbiddenError",
    "GenerationError",
    "InterviewError",
    "InterviewSession",
    "InterviewTemplate",
    "InvalidStateError",
    "NotFoundError",
    "OwnerConfig",
    "RespondentInfo",
    "SessionStartError",
    "SessionStatus",
    "SessionSummary",
    "StorageError",
    "TERMINAL_STATUSES",
    "TemplateStatus",
    "Turn",
    "TurnRole",
    "ValidationError",
    "conversation_of",
    "utc_now",
]
