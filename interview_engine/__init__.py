from __future__ import annotations  # Re-export the session state machine

from .engine import CompletionResolver, SessionEngine
from .locks import SessionLocks
from .results import AnswerOutcome, SessionStart

__all__ = ["AnswerOutcome", "CompletionResolver", "SessionEngine", "SessionLocks", "SessionStart"]
