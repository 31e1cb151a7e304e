"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_templates (
  template_id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  prompt TEXT NOT NULL,
  question_limit INTEGER NOT NULL,
  owner_id TEXT NOT NULL,
  status TEXT NOT NULL,
  share_token TEXT NOT NULL UNIQUE,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  session_id TEXT PRIMARY KEY,
  template_id TEXT NOT NULL,
  status TEXT NOT NULL,
  current_question INTEGER NOT NULL,
  respondent_json TEXT,
  started_at TEXT NOT NULL,
  completed_at TEXT,
  version INTEGER NOT NULL DEFAULT 0,
  updated_at TEXT NOT NULL,
  FOREIGN KEY(template_id) REFERENCES interview_templates(template_id)
);
""",
    """
CREATE TABLE IF NOT EXISTS session_turns (
  sequence INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL,
  role TEXT NOT NULL,
  content TEXT NOT NULL,
  question_number INTEGER NOT NULL,
  created_at TEXT NOT NULL,
  UNIQUE(session_id, role, question_number),
  FOREIGN KEY(session_id) REFERENCES interview_sessions(session_id)
);
""",
    """
CREATE TABLE IF NOT EXISTS session_summaries (
  summary_id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL UNIQUE,
  template_id TEXT NOT NULL,
  summary TEXT NOT NULL,
  key_insights_json TEXT NOT NULL,
  structured_data_json TEXT NOT NULL,
  created_at TEXT NOT NULL,
  FOREIGN KEY(session_id) REFERENCES interview_sessions(session_id)
);
""",
    """
CREATE TABLE IF NOT EXISTS owner_configs (
  owner_id TEXT PRIMARY KEY,
  api_key TEXT,
  model TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_templates_owner ON interview_templates(owner_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_template ON interview_sessions(template_id, started_at);",
]


def migrate(db_path: str = "data/interviews.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
