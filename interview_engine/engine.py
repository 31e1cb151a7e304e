"""Interview session state machine.

A session moves from ``in_progress`` to one of the terminal statuses
``completed`` or ``abandoned`` and never leaves a terminal status. Every
mutation runs under the session's in-process lock and lands through a
version-checked write in the transcript store, so question numbers stay
strictly sequential even when several requests race on the same session.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Optional, Protocol
from uuid import uuid4

from config.settings import settings
from domain.errors import ConflictError, GenerationError, InvalidStateError, NotFoundError, SessionStartError, ValidationError
from domain.models import (
    InterviewSession,
    InterviewTemplate,
    RespondentInfo,
    SessionStatus,
    SessionSummary,
    conversation_of,
    utc_now,
)
from llm_gateway import CompletionSet
from observability import log_event, span
from question_generator import QuestionRequest, generate_question
from storage.templates import TemplateStore
from storage.transcripts import TranscriptStore
from summary_generator import SummaryRequest, generate_summary

from .locks import SessionLocks
from .results import AnswerOutcome, SessionStart

logger = logging.getLogger(__name__)


class CompletionResolver(Protocol):
    def resolve(self, owner_id: str) -> CompletionSet: ...


class SessionEngine:
    """Drive sessions through question generation, answers and finalize."""

    def __init__(
        self,
        *,
        templates: TemplateStore,
        transcripts: TranscriptStore,
        resolver: CompletionResolver,
        locks: Optional[SessionLocks] = None,
        lock_wait_s: Optional[float] = None,
    ) -> None:
        self._templates = templates
        self._transcripts = transcripts
        self._resolver = resolver
        self._locks = locks or SessionLocks()
        self._lock_wait_s = settings.LOCK_WAIT_S if lock_wait_s is None else lock_wait_s
        self._completions: "OrderedDict[str, CompletionSet]" = OrderedDict()
        self._cache_size = settings.COMPLETION_CACHE_SIZE
        self._completions_guard = threading.Lock()

    def start(self, template_id: str, respondent: Optional[RespondentInfo] = None) -> SessionStart:
        """Create a session and ask its first question as one unit of work.

        Raises:
            NotFoundError: If the template is unknown or archived.
            SessionStartError: If the first question could not be generated.
        """

        template = self._templates.get(template_id)
        if template.status != "active":
            raise NotFoundError(f"Interview template '{template_id}' is not active")
        completions = self._resolver.resolve(template.owner_id)
        session_id = uuid4().hex
        request = QuestionRequest(
            topic=template.prompt,
            transcript=[],
            question_number=1,
            total_questions=template.question_limit,
        )
        try:
            with span(session_id, "question", template_id=template_id, question_number=1):
                question = generate_question(request, completion=completions.questions)
        except GenerationError as exc:
            logger.error("Unable to start session for template %s: %s", template_id, exc)
            raise SessionStartError("Unable to generate the first question") from exc
        session, _ = self._transcripts.create_session(
            session_id=session_id,
            template_id=template_id,
            first_question=question,
            respondent=respondent,
        )
        self._remember(session.session_id, completions)
        log_event("session_started", session.session_id, template_id=template_id, question_number=1)
        return SessionStart(
            session_id=session.session_id,
            first_question=question,
            question_number=1,
            total_questions=template.question_limit,
            session=session,
        )

    def submit_answer(self, session_id: str, answer: str) -> AnswerOutcome:
        """Record an answer, then either ask the next question or finalize.

        The answer is committed before any generation happens. If an answer to
        the current question is already stored (a retry after a failed or
        dropped generation), it is not appended again.

        Raises:
            ValidationError: If ``answer`` is blank.
            NotFoundError: If the session is unknown.
            InvalidStateError: If the session is not in progress.
            GenerationError: If the next question could not be generated.
            ConflictError: If another request is mutating the session.
        """

        text = (answer or "").strip()
        if not text:
            raise ValidationError("Answer text is required")
        with self._locks.hold(session_id, wait=False):
            session = self._transcripts.get_session(session_id)
            if session.status != "in_progress":
                raise InvalidStateError(f"Session '{session_id}' is not active")
            template = self._templates.get(session.template_id)
            self._record_answer(session, text)
            if session.current_question >= template.question_limit:
                self._finalize(session, template)
                return AnswerOutcome(completed=True, total_questions=template.question_limit)
            next_number = session.current_question + 1
            request = QuestionRequest(
                topic=template.prompt,
                transcript=conversation_of(self._transcripts.list_turns(session_id)),
                question_number=next_number,
                total_questions=template.question_limit,
            )
            with span(session_id, "question", question_number=next_number):
                question = generate_question(request, completion=self._completions_for(session, template).questions)
            self._transcripts.advance(session, question=question)
        log_event("question_asked", session_id, question_number=next_number)
        return AnswerOutcome(
            completed=False,
            next_question=question,
            question_number=next_number,
            total_questions=template.question_limit,
        )

    def complete_early(self, session_id: str) -> InterviewSession:
        """Finalize an in-progress session; a completed session is returned unchanged.

        Another process may finalize the same session concurrently; losing
        that race is reported as success once the session reads completed.

        Raises:
            NotFoundError: If the session is unknown.
            InvalidStateError: If the session was abandoned.
            ConflictError: If the session stayed locked past the wait limit.
        """

        with self._locks.hold(session_id, wait=True, timeout=self._lock_wait_s):
            session = self._transcripts.get_session(session_id)
            if session.status == "completed":
                return session
            if session.status != "in_progress":
                raise InvalidStateError(f"Session '{session_id}' was {session.status}")
            template = self._templates.get(session.template_id)
            try:
                return self._finalize(session, template)
            except ConflictError:
                return self._settled(session_id, "completed")

    def abandon(self, session_id: str) -> InterviewSession:
        """Close an in-progress session without a summary; repeated calls are no-ops.

        Raises:
            NotFoundError: If the session is unknown.
            InvalidStateError: If the session already completed.
        """

        with self._locks.hold(session_id, wait=True, timeout=self._lock_wait_s):
            session = self._transcripts.get_session(session_id)
            if session.status == "abandoned":
                return session
            if session.status != "in_progress":
                raise InvalidStateError(f"Session '{session_id}' was {session.status}")
            try:
                closed = self._transcripts.close(session, status="abandoned")
            except ConflictError:
                return self._settled(session_id, "abandoned")
        self._forget(session_id)
        log_event("session_abandoned", session_id, status=closed.status)
        return closed

    def _settled(self, session_id: str, status: SessionStatus) -> InterviewSession:
        # A version conflict on close; accept it when the winner reached the same status.
        current = self._transcripts.get_session(session_id)
        if current.status != status:
            raise ConflictError(f"Session '{session_id}' changed concurrently")
        self._forget(session_id)
        log_event("session_settled", session_id, status=current.status)
        return current

    def _record_answer(self, session: InterviewSession, text: str) -> None:
        question_number = session.current_question
        existing = self._transcripts.find_turn(session.session_id, "respondent", question_number)
        if existing is None:
            try:
                self._transcripts.append_answer(session.session_id, text, question_number)
            except ConflictError:
                # Another process stored this answer first; the version check settles the rest.
                logger.info("Answer to question %d of %s recorded concurrently", question_number, session.session_id)
            else:
                log_event("answer_recorded", session.session_id, question_number=question_number)
                return
        elif existing.content != text:
            logger.warning(
                "Session %s already has an answer to question %d; keeping the stored one",
                session.session_id,
                question_number,
            )
        log_event("answer_replayed", session.session_id, question_number=question_number)

    def _finalize(self, session: InterviewSession, template: InterviewTemplate) -> InterviewSession:
        request = SummaryRequest(
            topic=template.prompt,
            transcript=conversation_of(self._transcripts.list_turns(session.session_id)),
        )
        summary: Optional[SessionSummary] = None
        try:
            with span(session.session_id, "summary"):
                draft = generate_summary(request, completion=self._completions_for(session, template).summaries)
        except GenerationError as exc:
            logger.warning("Completing session %s without a summary: %s", session.session_id, exc)
            log_event("summary_failed", session.session_id, error=str(exc))
        else:
            summary = SessionSummary(
                summary_id=uuid4().hex,
                session_id=session.session_id,
                template_id=template.template_id,
                summary=draft.summary,
                key_insights=draft.key_insights,
                structured_data=draft.structured_data,
                created_at=utc_now(),
            )
        completed = self._transcripts.close(session, status="completed", summary=summary)
        self._forget(session.session_id)
        log_event(
            "session_completed",
            session.session_id,
            status=completed.status,
            question_number=completed.current_question,
            outcome="summary" if summary is not None else "no_summary",
        )
        return completed

    def _completions_for(self, session: InterviewSession, template: InterviewTemplate) -> CompletionSet:
        with self._completions_guard:
            cached = self._completions.get(session.session_id)
            if cached is not None:
                self._completions.move_to_end(session.session_id)
                return cached
        resolved = self._resolver.resolve(template.owner_id)
        self._remember(session.session_id, resolved)
        return resolved

    def _remember(self, session_id: str, completions: CompletionSet) -> None:
        # Least recently used entries fall back to the resolver on their next turn.
        with self._completions_guard:
            self._completions[session_id] = completions
            self._completions.move_to_end(session_id)
            while len(self._completions) > self._cache_size:
                self._completions.popitem(last=False)

    def _forget(self, session_id: str) -> None:
        with self._completions_guard:
            self._completions.pop(session_id, None)


__all__ = ["CompletionResolver", "SessionEngine"]
