"""Session event logging.

Each event is emitted once on the ``interview`` logger. The record carries the
event payload; the console renders it as a ``key=value`` line and the
optional rotating file stores it as one JSON object per line.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import threading
import time
import uuid
from typing import Any, Dict

from config.settings import settings

_EVENT_ATTR = "interview_event"
_SUMMARY_KEYS = ("template_id", "question_number", "status", "name", "ms", "outcome", "error")

_logger = logging.getLogger("interview")
_logger.propagate = False
_setup_guard = threading.Lock()


class _EventLineFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class _EventJsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, _EVENT_ATTR, None)
        if event is None:
            event = {"ts": record.created, "message": record.getMessage()}
        return json.dumps(event, ensure_ascii=False, default=str)


def _configure() -> None:
    with _setup_guard:
        _logger.setLevel(settings.LOG_LEVEL.upper())
        if _logger.handlers:
            return

        console = logging.StreamHandler(stream=sys.stdout)
        console.setFormatter(_EventLineFormatter())
        _logger.addHandler(console)

        if not settings.LOG_TO_FILE:
            return
        directory = os.path.dirname(settings.LOG_FILE)
        if directory:
            os.makedirs(directory, exist_ok=True)
        events_file = logging.handlers.RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        events_file.setFormatter(_EventJsonFormatter())
        _logger.addHandler(events_file)


def format_event(evt: Dict[str, Any]) -> str:
    """Render an event payload as a single human-readable line."""

    base = f"session={evt.get('session_id')} kind={evt.get('kind')}"
    extras = [f"{key}={evt[key]}" for key in _SUMMARY_KEYS if key in evt]
    return base + (" " + " ".join(extras) if extras else "")


def log_event(kind: str, session_id: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one session event; ``fields`` land in the JSON line verbatim."""

    _configure()
    event: Dict[str, Any] = {
        "ts": time.time(),
        "trace": uuid.uuid4().hex,
        "kind": kind,
        "session_id": session_id,
        **fields,
    }
    _logger.log(level, format_event(event), extra={_EVENT_ATTR: event})


__all__ = ["format_event", "log_event"]
