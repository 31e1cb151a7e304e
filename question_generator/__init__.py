from __future__ import annotations  # Re-export question_generator public API

from .question_generator import (  # noqa: F401
    QUESTION_ROUTE_KEY,
    QuestionRequest,
    build_conversation,
    build_instruction,
    generate_question,
    parse_question,
)

__all__ = [
    "QUESTION_ROUTE_KEY",
    "QuestionRequest",
    "build_conversation",
    "build_instruction",
    "generate_question",
    "parse_question",
]
