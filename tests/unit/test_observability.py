import json
import logging

import pytest

from observability import format_event, log_event, span
from observability.admin_cli import main


def test_format_event_keeps_known_keys_in_order():
    line = format_event(
        {"kind": "span", "session_id": "s1", "ms": 12, "name": "question", "secret": "x", "outcome": "ok"}
    )

    assert line == "session=s1 kind=span name=question ms=12 outcome=ok"


def test_span_logs_outcome_on_error(monkeypatch):
    events = []
    monkeypatch.setattr(
        "observability.tracing.log_event",
        lambda kind, session_id, **fields: events.append((kind, session_id, fields)),
    )

    with span("s1", "summary"):
        pass
    with pytest.raises(ValueError):
        with span("s1", "question", question_number=2):
            raise ValueError("bad")

    assert [event[2]["outcome"] for event in events] == ["ok", "error"]
    assert events[1][2]["question_number"] == 2
    assert all(event[0] == "span" for event in events)


def test_log_event_writes_human_line(monkeypatch):
    records = []

    class _Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = _Collect()
    logger = logging.getLogger("interview")
    logger.addHandler(handler)
    try:
        log_event("session_started", "s9", template_id="t1")
    finally:
        logger.removeHandler(handler)

    assert [record.getMessage() for record in records] == ["session=s9 kind=session_started template_id=t1"]
    assert records[0].interview_event["kind"] == "session_started"
    assert records[0].interview_event["template_id"] == "t1"


def test_json_formatter_renders_event_payload():
    from observability.logger import _EventJsonFormatter

    record = logging.LogRecord("interview", logging.INFO, "", 0, "line", (), None)
    record.interview_event = {"kind": "span", "session_id": "s1", "ms": 3}

    assert json.loads(_EventJsonFormatter().format(record)) == {"kind": "span", "session_id": "s1", "ms": 3}


def test_admin_cli_prints_sessions_and_transcript(service, make_template, capsys, tmp_db):
    template = make_template(question_limit=1)
    started = service.start(template.template_id)
    service.submit_answer(started.session_id, "Mountains")

    main(["--db", tmp_db, "--sessions", template.template_id, "--transcript", started.session_id])

    out = capsys.readouterr().out
    assert f"{started.session_id} status=completed" in out
    assert f"Q1 Interviewer: {started.first_question}" in out
    assert "Q1 Respondent: Mountains" in out
    assert "Summary: The respondent wants a quiet beach holiday in September." in out
    assert "- Prefers warm weather" in out
