from __future__ import annotations  # Results returned by the session state machine

from typing import Optional

from pydantic import BaseModel, Field

from domain.models import InterviewSession


class SessionStart(BaseModel):  # Newly created session with its opening question
    session_id: str
    first_question: str
    question_number: int = 1
    total_questions: int = Field(ge=1)
    session: InterviewSession


class AnswerOutcome(BaseModel):  # Result of recording one answer
    completed: bool
    next_question: Optional[str] = None
    question_number: Optional[int] = None
    total_questions: int = Field(ge=1)


__all__ = ["AnswerOutcome", "SessionStart"]
