from __future__ import annotations  # Interview domain records

import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

TemplateStatus = Literal["active", "archived"]
SessionStatus = Literal["in_progress", "completed", "abandoned"]
TurnRole = Literal["asker", "respondent"]

TERMINAL_STATUSES = frozenset({"completed", "abandoned"})


def utc_now() -> str:  # ISO timestamp used for every stored record
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")


class RespondentInfo(BaseModel):  # Optional details supplied by the respondent
    name: Optional[str] = None
    email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class InterviewTemplate(BaseModel):  # Reusable interview definition
    template_id: str
    title: str
    prompt: str
    question_limit: int = Field(ge=1)
    owner_id: str
    status: TemplateStatus = "active"
    share_token: str
    created_at: str
    updated_at: str


class InterviewSession(BaseModel):  # One respondent's run against a template
    session_id: str
    template_id: str
    status: SessionStatus = "in_progress"
    current_question: int = Field(default=0, ge=0)
    respondent: Optional[RespondentInfo] = None
    started_at: str
    completed_at: Optional[str] = None
    version: int = Field(default=0, ge=0)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Turn(BaseModel):  # Immutable transcript entry
    sequence: int
    session_id: str
    role: TurnRole
    content: str
    question_number: Optional[int] = None
    created_at: str


class ConversationEntry(BaseModel):  # Role/content pair handed to the generators
    role: TurnRole
    content: str


class SessionSummary(BaseModel):  # End-of-session summary produced by finalize
    summary_id: str
    session_id: str
    template_id: str
    summary: str = ""
    key_insights: List[str] = Field(default_factory=list)
    structured_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class OwnerConfig(BaseModel):  # Completion settings scoped to a template owner
    owner_id: str
    api_key: Optional[str] = Field(default=None, repr=False)
    model: Optional[str] = None
    created_at: str
    updated_at: str


def conversation_of(turns: List[Turn]) -> List[ConversationEntry]:  # Strip store metadata from turns
    return [ConversationEntry(role=turn.role, content=turn.content) for turn in turns]


__all__ = [
    "ConversationEntry",
    "InterviewSession",
    "InterviewTemplate",
    "OwnerConfig",
    "RespondentInfo",
    "SessionStatus",
    "SessionSummary",
    "TERMINAL_STATUSES",
    "TemplateStatus",
    "Turn",
    "TurnRole",
    "conversation_of",
    "utc_now",
]
