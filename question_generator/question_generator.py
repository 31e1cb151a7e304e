from __future__ import annotations  # Next-question generation for adaptive interviews

import json
import logging
import re
from textwrap import dedent
from typing import List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import BaseModel, Field, model_validator

from domain.errors import GenerationError
from domain.models import ConversationEntry
from llm_gateway import CompletionService, LlmGatewayError, strip_code_fences


logger = logging.getLogger(__name__)

QUESTION_ROUTE_KEY = "question_generator.next_question"  # Registry key for question route configuration

_NUMBER_PREFIX = re.compile(r"^(?:question\s*\d+\s*(?:of\s*\d+)?|q\d+)\s*[:.)\-]\s*", re.IGNORECASE)
_QUOTES = "\"'“”‘’"


class QuestionRequest(BaseModel):  # Inputs needed to produce one question
    topic: str
    transcript: List[ConversationEntry] = Field(default_factory=list)
    question_number: int = Field(ge=1)
    total_questions: int = Field(ge=1)

    @model_validator(mode="after")
    def _within_budget(self) -> "QuestionRequest":
        if self.question_number > self.total_questions:
            raise ValueError("question_number exceeds total_questions")
        return self


def generate_question(request: QuestionRequest, *, completion: CompletionService) -> str:  # Ask the completion service for the next question
    try:
        reply = completion.complete(build_instruction(request), build_conversation(request))
    except LlmGatewayError as exc:
        logger.warning("Question %d generation failed: %s", request.question_number, exc)
        raise GenerationError(f"Unable to generate question {request.question_number}") from exc
    return parse_question(reply)


def build_instruction(request: QuestionRequest) -> str:  # System instruction with goal and pacing
    return dedent(
        f"""
        You are an experienced interviewer. The goal of this interview is:
        "{request.topic.strip()}"

        You are about to ask question {request.question_number} of {request.total_questions}.
        {_pacing(request.question_number, request.total_questions)}

        Write the next question so that it:
        - builds on specific details the interviewee has already shared,
        - moves the conversation toward the interview goal,
        - is open-ended and invites a detailed answer,
        - does not repeat a question that was already asked.

        Reply with the question text only: no numbering, no preamble, no quotes.
        """
    ).strip()


def build_conversation(request: QuestionRequest) -> List[BaseMessage]:  # Replay the transcript as chat history
    messages: List[BaseMessage] = []
    for entry in request.transcript:
        content = entry.content.strip()
        if not content:
            continue
        if entry.role == "asker":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    messages.append(
        HumanMessage(
            content=(
                f"Ask question {request.question_number} of {request.total_questions} now."
                if messages
                else f"Begin the interview with question 1 of {request.total_questions}."
            )
        )
    )
    return messages


def parse_question(reply: str) -> str:  # Validate the plain-text question contract
    text = strip_code_fences(reply or "")
    if text.startswith("{"):
        text = _question_from_json(text)
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    text = " ".join(lines)
    text = _NUMBER_PREFIX.sub("", text).strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] in _QUOTES and not _has_quote(text[1:-1]):
        text = text[1:-1].strip()
    if not text:
        raise GenerationError("Completion service returned an empty question")
    return text


def _has_quote(text: str) -> bool:
    return any(char in _QUOTES for char in text)


def _question_from_json(text: str) -> str:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(data, dict) and isinstance(data.get("question"), str):
        return data["question"]
    raise GenerationError("Completion service returned structured data without a question")


def _pacing(question_number: int, total_questions: int) -> str:
    if total_questions == 1:
        return "This is the only question, so make it broad enough to capture what matters most."
    if question_number == 1:
        return "This is the opening question: keep it broad and welcoming."
    if question_number == total_questions:
        return "This is the final question: close the interview and invite any last thoughts."
    if question_number * 3 > total_questions * 2:
        return "The interview is nearing its end: consolidate what you have learned and fill the gaps."
    return "Explore the topic in depth and follow up on the most interesting details."
