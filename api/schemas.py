"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.models import InterviewSession, InterviewTemplate, SessionSummary, Turn


class SaveConfigReq(BaseModel):
    api_key: str = Field(min_length=1)
    model: Optional[str] = None


class ConfigStatusResp(BaseModel):
    has_api_key: bool
    model: Optional[str] = None


class CreateTemplateReq(BaseModel):
    prompt: str
    title: Optional[str] = None
    question_limit: Optional[int] = None


class TemplateCreatedResp(BaseModel):
    template: InterviewTemplate
    share_url: str


class TemplateDetailsResp(BaseModel):
    template: InterviewTemplate
    sessions: List[InterviewSession] = Field(default_factory=list)


class TemplateOverviewResp(BaseModel):
    template_id: str
    title: str
    question_limit: int


class RespondentReq(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StartReq(BaseModel):
    respondent: Optional[RespondentReq] = None


class StartResp(BaseModel):
    session_id: str
    first_question: str
    question_number: int
    total_questions: int


class AnswerReq(BaseModel):
    answer: str


class AnswerResp(BaseModel):
    completed: bool
    next_question: Optional[str] = None
    question_number: Optional[int] = None
    total_questions: int


class AckResp(BaseModel):
    success: bool = True


class SummaryResp(BaseModel):
    session: InterviewSession
    summary: Optional[SessionSummary] = None


class TranscriptResp(BaseModel):
    session: InterviewSession
    turns: List[Turn] = Field(default_factory=list)
    summary: Optional[SessionSummary] = None
