"""Interview facade: maps external operations onto stores and the session engine."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from config import load_config
from config.settings import settings
from domain.errors import ForbiddenError, NotFoundError, ValidationError
from domain.models import (
    InterviewSession,
    InterviewTemplate,
    RespondentInfo,
    SessionSummary,
    Turn,
)
from interview_engine import AnswerOutcome, CompletionResolver, SessionEngine, SessionLocks, SessionStart
from storage.migrate import migrate
from storage.owners import OwnerConfigStore
from storage.templates import TemplateStore
from storage.transcripts import TranscriptStore

from .completion import RouteCompletionResolver

logger = logging.getLogger(__name__)


class TemplateCreated(BaseModel):
    template: InterviewTemplate
    share_url: str


class TemplateOverview(BaseModel):
    template_id: str
    title: str
    question_limit: int


class TemplateDetails(BaseModel):
    template: InterviewTemplate
    sessions: List[InterviewSession] = Field(default_factory=list)


class SummaryView(BaseModel):
    session: InterviewSession
    summary: Optional[SessionSummary] = None


class TranscriptView(BaseModel):
    session: InterviewSession
    turns: List[Turn] = Field(default_factory=list)
    summary: Optional[SessionSummary] = None


class Acknowledgement(BaseModel):
    success: bool = True


class OwnerConfigStatus(BaseModel):
    has_api_key: bool
    model: Optional[str] = None


class InterviewService:
    """Operator and respondent operations over templates and sessions."""

    def __init__(
        self,
        *,
        templates: TemplateStore,
        transcripts: TranscriptStore,
        owners: OwnerConfigStore,
        engine: SessionEngine,
    ) -> None:
        self._templates = templates
        self._transcripts = transcripts
        self._owners = owners
        self._engine = engine

    # Operator operations

    def create_template(
        self,
        *,
        prompt: str,
        owner_id: str,
        question_limit: Optional[int] = None,
        title: Optional[str] = None,
    ) -> TemplateCreated:
        """Validate and store a new template.

        Raises:
            ValidationError: On a blank prompt or owner, or an out-of-range limit.
        """

        clean_prompt = (prompt or "").strip()
        if not clean_prompt:
            raise ValidationError("Interview prompt is required")
        if not (owner_id or "").strip():
            raise ValidationError("Owner id is required")
        limit = settings.DEFAULT_QUESTION_LIMIT if question_limit is None else question_limit
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ValidationError("Question limit must be an integer")
        if not settings.MIN_QUESTION_LIMIT <= limit <= settings.MAX_QUESTION_LIMIT:
            raise ValidationError(
                f"Question limit must be between {settings.MIN_QUESTION_LIMIT} and {settings.MAX_QUESTION_LIMIT}"
            )
        template = self._templates.create(
            title=_title(title, clean_prompt),
            prompt=clean_prompt,
            question_limit=limit,
            owner_id=owner_id,
        )
        logger.info("Created template %s for owner %s", template.template_id, owner_id)
        return TemplateCreated(template=template, share_url=f"{settings.SHARE_PATH_PREFIX}{template.share_token}")

    def list_templates(self, owner_id: str) -> List[InterviewTemplate]:
        return self._templates.list_for_owner(owner_id)

    def get_template(self, template_id: str, owner_id: str) -> TemplateDetails:
        template = self._owned_template(template_id, owner_id)
        return TemplateDetails(template=template, sessions=self._transcripts.list_sessions(template_id))

    def archive_template(self, template_id: str, owner_id: str) -> InterviewTemplate:
        """Stop new sessions against a template; running sessions are unaffected."""

        self._owned_template(template_id, owner_id)
        return self._templates.set_status(template_id, "archived")

    def list_sessions_for_template(self, template_id: str, owner_id: str) -> List[InterviewSession]:
        self._owned_template(template_id, owner_id)
        return self._transcripts.list_sessions(template_id)

    def fetch_transcript(self, session_id: str, owner_id: str) -> TranscriptView:
        session = self._owned_session(session_id, owner_id)
        return TranscriptView(
            session=session,
            turns=self._transcripts.list_turns(session_id),
            summary=self._transcripts.get_summary(session_id),
        )

    def abandon_session(self, session_id: str, owner_id: str) -> InterviewSession:
        self._owned_session(session_id, owner_id)
        return self._engine.abandon(session_id)

    def save_owner_config(self, owner_id: str, *, api_key: str, model: Optional[str] = None) -> Acknowledgement:
        key = (api_key or "").strip()
        if not key:
            raise ValidationError("API key is required")
        self._owners.upsert(owner_id, api_key=key, model=(model or "").strip() or None)
        return Acknowledgement()

    def owner_config_status(self, owner_id: str) -> OwnerConfigStatus:
        config = self._owners.get(owner_id)
        if config is None:
            return OwnerConfigStatus(has_api_key=False)
        return OwnerConfigStatus(has_api_key=bool(config.api_key), model=config.model)

    # Respondent operations

    def resolve_template_by_token(self, share_token: str) -> TemplateOverview:
        """Look up an active template by its shareable token.

        Raises:
            NotFoundError: If the token is unknown or the template is archived.
        """

        template = self._templates.find_by_token(share_token)
        if template is None or template.status != "active":
            raise NotFoundError("Interview not found or no longer active")
        return TemplateOverview(
            template_id=template.template_id,
            title=template.title,
            question_limit=template.question_limit,
        )

    def start(self, template_id: str, respondent: Optional[RespondentInfo] = None) -> SessionStart:
        return self._engine.start(template_id, respondent)

    def submit_answer(self, session_id: str, answer: str) -> AnswerOutcome:
        return self._engine.submit_answer(session_id, answer)

    def complete_early(self, session_id: str) -> Acknowledgement:
        self._engine.complete_early(session_id)
        return Acknowledgement()

    def fetch_summary(self, session_id: str) -> SummaryView:
        session = self._transcripts.get_session(session_id)
        return SummaryView(session=session, summary=self._transcripts.get_summary(session_id))

    def _owned_template(self, template_id: str, owner_id: str) -> InterviewTemplate:
        template = self._templates.get(template_id)
        if template.owner_id != owner_id:
            raise ForbiddenError("Access denied")
        return template

    def _owned_session(self, session_id: str, owner_id: str) -> InterviewSession:
        session = self._transcripts.get_session(session_id)
        self._owned_template(session.template_id, owner_id)
        return session


def build_service(
    *,
    db_path: Optional[str] = None,
    config_path: Optional[Path] = None,
    resolver: Optional[CompletionResolver] = None,
    locks: Optional[SessionLocks] = None,
) -> InterviewService:
    """Wire stores, completion resolver and engine against one database."""

    path = db_path or settings.DB_PATH
    migrate(path)
    templates = TemplateStore(path)
    transcripts = TranscriptStore(path)
    owners = OwnerConfigStore(path)
    if resolver is None:
        app_config = load_config(config_path or Path(settings.APP_CONFIG_PATH))
        resolver = RouteCompletionResolver(app_config, owners)
    engine = SessionEngine(templates=templates, transcripts=transcripts, resolver=resolver, locks=locks)
    return InterviewService(templates=templates, transcripts=transcripts, owners=owners, engine=engine)


def _title(title: Optional[str], prompt: str) -> str:
    clean = " ".join((title or "").split())
    if clean:
        return clean[: settings.TITLE_MAX_CHARS]
    compact = " ".join(prompt.split())
    if len(compact) <= settings.TITLE_MAX_CHARS:
        return compact
    return compact[: settings.TITLE_MAX_CHARS - 1].rstrip() + "…"


__all__ = [
    "Acknowledgement",
    "InterviewService",
    "OwnerConfigStatus",
    "SummaryView",
    "TemplateCreated",
    "TemplateDetails",
    "TemplateOverview",
    "TranscriptView",
    "build_service",
]
