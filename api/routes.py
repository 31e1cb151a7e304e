"""FastAPI routes for interview templates and sessions."""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from api.schemas import (
    AckResp,
    AnswerReq,
    AnswerResp,
    ConfigStatusResp,
    CreateTemplateReq,
    SaveConfigReq,
    StartReq,
    StartResp,
    SummaryResp,
    TemplateCreatedResp,
    TemplateDetailsResp,
    TemplateOverviewResp,
    TranscriptResp,
)
from domain.errors import (
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
from domain.models import InterviewSession, InterviewTemplate, RespondentInfo
from services.interviews import InterviewService, build_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interviews")
admin_router = APIRouter(prefix="/api/admin")

_STATUS_CODES = (
    (ValidationError, 400),
    (InvalidStateError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (SessionStartError, 502),
    (GenerationError, 502),
    (StorageError, 500),
)

_service: Optional[InterviewService] = None
_service_guard = threading.Lock()


def get_service() -> InterviewService:
    global _service
    with _service_guard:
        if _service is None:
            _service = build_service()
        return _service


def owner_id(x_owner_id: Optional[str] = Header(default=None)) -> str:
    value = (x_owner_id or "").strip()
    if not value:
        raise HTTPException(status_code=401, detail="Owner id header is required")
    return value


def _http_error(exc: InterviewError) -> HTTPException:
    for error_type, status in _STATUS_CODES:
        if isinstance(exc, error_type):
            if status >= 500:
                logger.error("Interview operation failed: %s", exc)
            return HTTPException(status_code=status, detail=str(exc))
    logger.exception("Unmapped interview error")
    return HTTPException(status_code=500, detail="Unexpected interview error")


# Respondent routes


@router.get("/by-token/{share_token}", response_model=TemplateOverviewResp)
def resolve_template(share_token: str, service: InterviewService = Depends(get_service)) -> TemplateOverviewResp:
    try:
        overview = service.resolve_template_by_token(share_token)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return TemplateOverviewResp(**overview.model_dump())


@router.post("/{template_id}/sessions", response_model=StartResp)
def start_session(
    template_id: str,
    req: Optional[StartReq] = None,
    service: InterviewService = Depends(get_service),
) -> StartResp:
    respondent = None
    if req is not None and req.respondent is not None:
        respondent = RespondentInfo(**req.respondent.model_dump())
    try:
        started = service.start(template_id, respondent)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return StartResp(
        session_id=started.session_id,
        first_question=started.first_question,
        question_number=started.question_number,
        total_questions=started.total_questions,
    )


@router.post("/sessions/{session_id}/answer", response_model=AnswerResp)
def submit_answer(
    session_id: str,
    req: AnswerReq,
    service: InterviewService = Depends(get_service),
) -> AnswerResp:
    try:
        outcome = service.submit_answer(session_id, req.answer)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return AnswerResp(**outcome.model_dump())


@router.post("/sessions/{session_id}/complete", response_model=AckResp)
def complete_early(session_id: str, service: InterviewService = Depends(get_service)) -> AckResp:
    try:
        ack = service.complete_early(session_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return AckResp(success=ack.success)


@router.get("/sessions/{session_id}/summary", response_model=SummaryResp)
def fetch_summary(session_id: str, service: InterviewService = Depends(get_service)) -> SummaryResp:
    try:
        view = service.fetch_summary(session_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return SummaryResp(session=view.session, summary=view.summary)


# Operator routes


@admin_router.post("/config", response_model=AckResp)
def save_config(
    req: SaveConfigReq,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> AckResp:
    try:
        ack = service.save_owner_config(owner, api_key=req.api_key, model=req.model)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return AckResp(success=ack.success)


@admin_router.get("/config", response_model=ConfigStatusResp)
def config_status(
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> ConfigStatusResp:
    try:
        status = service.owner_config_status(owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return ConfigStatusResp(has_api_key=status.has_api_key, model=status.model)


@admin_router.post("/templates", response_model=TemplateCreatedResp, status_code=201)
def create_template(
    req: CreateTemplateReq,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> TemplateCreatedResp:
    try:
        created = service.create_template(
            prompt=req.prompt,
            owner_id=owner,
            question_limit=req.question_limit,
            title=req.title,
        )
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return TemplateCreatedResp(template=created.template, share_url=created.share_url)


@admin_router.get("/templates", response_model=List[InterviewTemplate])
def list_templates(
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> List[InterviewTemplate]:
    try:
        return service.list_templates(owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@admin_router.get("/templates/{template_id}", response_model=TemplateDetailsResp)
def template_details(
    template_id: str,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> TemplateDetailsResp:
    try:
        details = service.get_template(template_id, owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return TemplateDetailsResp(template=details.template, sessions=details.sessions)


@admin_router.get("/templates/{template_id}/sessions", response_model=List[InterviewSession])
def list_sessions(
    template_id: str,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> List[InterviewSession]:
    try:
        return service.list_sessions_for_template(template_id, owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@admin_router.post("/templates/{template_id}/archive", response_model=InterviewTemplate)
def archive_template(
    template_id: str,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> InterviewTemplate:
    try:
        return service.archive_template(template_id, owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@admin_router.get("/sessions/{session_id}", response_model=TranscriptResp)
def fetch_transcript(
    session_id: str,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> TranscriptResp:
    try:
        view = service.fetch_transcript(session_id, owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return TranscriptResp(session=view.session, turns=view.turns, summary=view.summary)


@admin_router.post("/sessions/{session_id}/abandon", response_model=InterviewSession)
def abandon_session(
    session_id: str,
    owner: str = Depends(owner_id),
    service: InterviewService = Depends(get_service),
) -> InterviewSession:
    try:
        return service.abandon_session(session_id, owner)
    except InterviewError as exc:
        raise _http_error(exc) from exc
