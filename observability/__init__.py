"""Observability utilities for the interview server."""
from .logger import format_event, log_event
from .tracing import span

__all__ = ["format_event", "log_event", "span"]
