from __future__ import annotations  # Re-export summary_generator public API

from .summary_generator import (  # noqa: F401
    SUMMARY_ROUTE_KEY,
    SummaryDraft,
    SummaryRequest,
    build_conversation,
    build_instruction,
    format_transcript,
    generate_summary,
    parse_summary,
)

__all__ = [
    "SUMMARY_ROUTE_KEY",
    "SummaryDraft",
    "SummaryRequest",
    "build_conversation",
    "build_instruction",
    "format_transcript",
    "generate_summary",
    "parse_summary",
]
