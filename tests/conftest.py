import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from llm_gateway import CompletionSet
from services.interviews import build_service
from storage.migrate import migrate

SUMMARY_REPLY = (
    '{"summary": "The respondent wants a quiet beach holiday in September.",'
    ' "keyInsights": ["Prefers warm weather", "Travels with family"],'
    ' "structuredData": {"destination": "beach", "month": "September"}}'
)


class ScriptedCompletion:
    """Completion double that replays scripted replies and records every call.

    A scripted exception instance is raised instead of returned. Once the
    script runs out, questions are numbered by call count.
    """

    def __init__(self, replies=None, default=None):
        self.replies = list(replies or [])
        self.default = default
        self.calls = []

    def complete(self, instruction, conversation):
        self.calls.append((instruction, list(conversation)))
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            return f"What stands out to you about part {len(self.calls)}?"
        return reply


class StaticResolver:
    def __init__(self, questions, summaries):
        self.completions = CompletionSet(questions=questions, summaries=summaries)
        self.owners = []

    def resolve(self, owner_id):
        self.owners.append(owner_id)
        return self.completions


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def questions():
    return ScriptedCompletion()


@pytest.fixture
def summaries():
    return ScriptedCompletion(default=SUMMARY_REPLY)


@pytest.fixture
def resolver(questions, summaries):
    return StaticResolver(questions, summaries)


@pytest.fixture
def service(tmp_db, resolver):
    return build_service(db_path=tmp_db, resolver=resolver)


@pytest.fixture
def make_template(service):
    def _make(question_limit=3, prompt="Learn about vacation preferences", owner_id="owner-1"):
        return service.create_template(prompt=prompt, owner_id=owner_id, question_limit=question_limit).template

    return _make
