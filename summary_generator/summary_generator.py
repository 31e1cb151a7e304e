from __future__ import annotations  # End-of-session summary generation

import json
import logging
from textwrap import dedent
from typing import Any, Dict, List

from langchain_core.messages import BaseMessage, HumanMessage
from pydantic import BaseModel, Field

from domain.errors import GenerationError
from domain.models import ConversationEntry
from llm_gateway import CompletionService, LlmGatewayError, strip_code_fences


logger = logging.getLogger(__name__)

SUMMARY_ROUTE_KEY = "summary_generator.summarize"  # Registry key for summary route configuration

_SUMMARY_KEYS = ("summary",)
_INSIGHT_KEYS = ("keyInsights", "key_insights")
_DATA_KEYS = ("structuredData", "structured_data")


class SummaryRequest(BaseModel):  # Inputs needed to summarize a session
    topic: str
    transcript: List[ConversationEntry] = Field(default_factory=list)


class SummaryDraft(BaseModel):  # Parsed three-part summary
    summary: str = ""
    key_insights: List[str] = Field(default_factory=list)
    structured_data: Dict[str, Any] = Field(default_factory=dict)


def generate_summary(request: SummaryRequest, *, completion: CompletionService) -> SummaryDraft:  # Ask the completion service for a structured summary
    try:
        reply = completion.complete(build_instruction(request), build_conversation(request))
    except LlmGatewayError as exc:
        logger.warning("Summary generation failed: %s", exc)
        raise GenerationError("Unable to generate summary") from exc
    return parse_summary(reply)


def build_instruction(request: SummaryRequest) -> str:  # System instruction requesting the three-part shape
    return dedent(
        f"""
        You are analyzing a completed interview. The interview was run with this goal:
        "{request.topic.strip()}"

        Read the transcript and produce:
        1. summary: a thorough summary of the interview in two or three paragraphs.
        2. keyInsights: five to ten short insight statements, most important first.
        3. structuredData: a JSON object holding the concrete facts, preferences and
           figures the interviewee shared, using descriptive keys of your choice.

        Respond with a single JSON object of the form
        {{"summary": "...", "keyInsights": ["...", "..."], "structuredData": {{...}}}}
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()


def build_conversation(request: SummaryRequest) -> List[BaseMessage]:  # Flatten the transcript into one analysis request
    return [
        HumanMessage(
            content=(
                "Interview transcript:\n\n"
                f"{format_transcript(request.transcript)}\n\n"
                "Provide the summary, key insights and structured data as specified."
            )
        )
    ]


def format_transcript(entries: List[ConversationEntry]) -> str:  # Render speaker-labelled transcript text
    lines = []
    for entry in entries:
        speaker = "Interviewer" if entry.role == "asker" else "Interviewee"
        lines.append(f"{speaker}: {entry.content.strip()}")
    return "\n\n".join(lines) if lines else "(no exchanges)"


def parse_summary(reply: str) -> SummaryDraft:  # Parse the reply, defaulting malformed parts individually
    data = _load_object(reply or "")
    if not any(key in data for key in _SUMMARY_KEYS + _INSIGHT_KEYS + _DATA_KEYS):
        raise GenerationError("Summary reply is missing summary, keyInsights and structuredData")
    return SummaryDraft(
        summary=_text(_first(data, _SUMMARY_KEYS)),
        key_insights=_insights(_first(data, _INSIGHT_KEYS)),
        structured_data=_mapping(_first(data, _DATA_KEYS)),
    )


def _load_object(reply: str) -> Dict[str, Any]:
    text = strip_code_fences(reply)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise GenerationError("Summary reply is not JSON") from None
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError as exc:
            raise GenerationError("Summary reply is not JSON") from exc
    if not isinstance(data, dict):
        raise GenerationError("Summary reply is not a JSON object")
    return data


def _first(data: Dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _insights(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    insights: List[str] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            continue
        text = str(item).strip()
        if text:
            insights.append(text)
    return insights


def _mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}
