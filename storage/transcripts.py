"""Session, transcript and summary persistence.

Every session mutation is a compare-and-swap on the ``version`` column: the
caller passes the session it read, and the write only lands if nobody else
has bumped the version since. Turn rows are append-only and ordered by their
``sequence`` primary key.
"""
from __future__ import annotations

import json
import sqlite3
from typing import List, Optional, Tuple
from uuid import uuid4

from domain.errors import ConflictError, InvalidStateError, NotFoundError
from domain.models import (
    InterviewSession,
    RespondentInfo,
    SessionStatus,
    SessionSummary,
    Turn,
    TurnRole,
    utc_now,
)

from .sqlite import get_conn

_SESSION_COLUMNS = (
    "session_id, template_id, status, current_question, respondent_json, started_at, completed_at, version"
)
_TURN_COLUMNS = "sequence, session_id, role, content, question_number, created_at"


class TranscriptStore:
    """SQLite-backed sessions, turns and summaries."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def create_session(
        self,
        *,
        template_id: str,
        session_id: Optional[str] = None,
        first_question: str,
        respondent: Optional[RespondentInfo] = None,
    ) -> Tuple[InterviewSession, Turn]:
        """Create an in-progress session together with its first question.

        Both rows are written in one transaction, so a session is never
        visible without its opening question.
        """

        now = utc_now()
        session = InterviewSession(
            session_id=session_id or uuid4().hex,
            template_id=template_id,
            status="in_progress",
            current_question=1,
            respondent=respondent,
            started_at=now,
            version=0,
        )
        with get_conn(self._db_path) as conn:
            conn.execute(
                f"""
                INSERT INTO interview_sessions ({_SESSION_COLUMNS}, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.template_id,
                    session.status,
                    session.current_question,
                    respondent.model_dump_json() if respondent is not None else None,
                    session.started_at,
                    None,
                    session.version,
                    now,
                ),
            )
            turn = _insert_turn(conn, session.session_id, "asker", first_question, 1)
        return session, turn

    def get_session(self, session_id: str) -> InterviewSession:
        """Load a session.

        Raises:
            NotFoundError: If ``session_id`` is unknown.
        """

        with get_conn(self._db_path) as conn:
            row = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Session '{session_id}' not found")
        return _session_from_row(row)

    def list_sessions(self, template_id: str) -> List[InterviewSession]:
        """List a template's sessions, newest first."""

        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM interview_sessions
                WHERE template_id = ?
                ORDER BY started_at DESC, session_id DESC
                """,
                (template_id,),
            ).fetchall()
        return [_session_from_row(row) for row in rows]

    def list_turns(self, session_id: str) -> List[Turn]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                f"SELECT {_TURN_COLUMNS} FROM session_turns WHERE session_id = ? ORDER BY sequence ASC",
                (session_id,),
            ).fetchall()
        return [_turn_from_row(row) for row in rows]

    def find_turn(self, session_id: str, role: TurnRole, question_number: int) -> Optional[Turn]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                f"""
                SELECT {_TURN_COLUMNS}
                FROM session_turns
                WHERE session_id = ? AND role = ? AND question_number = ?
                """,
                (session_id, role, question_number),
            ).fetchone()
        return _turn_from_row(row) if row is not None else None

    def append_answer(self, session_id: str, content: str, question_number: int) -> Turn:
        """Append the respondent's answer to ``question_number``.

        The insert only happens while the session is still in progress.

        Raises:
            ConflictError: If an answer for that question is already stored.
            InvalidStateError: If the session is no longer in progress.
        """

        now = utc_now()
        with get_conn(self._db_path) as conn:
            try:
                cur = conn.execute(
                    """
                    INSERT INTO session_turns (session_id, role, content, question_number, created_at)
                    SELECT ?, 'respondent', ?, ?, ?
                    WHERE EXISTS (
                        SELECT 1 FROM interview_sessions
                        WHERE session_id = ? AND status = 'in_progress'
                    )
                    """,
                    (session_id, content, question_number, now, session_id),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(
                    f"Answer to question {question_number} already recorded for session '{session_id}'"
                ) from exc
            if cur.rowcount == 0:
                raise InvalidStateError(f"Session '{session_id}' is not in progress")
            row = conn.execute(
                f"SELECT {_TURN_COLUMNS} FROM session_turns WHERE sequence = ?",
                (cur.lastrowid,),
            ).fetchone()
        return _turn_from_row(row)

    def advance(self, session: InterviewSession, *, question: str) -> Tuple[InterviewSession, Turn]:
        """Append the next question and bump the session's index atomically.

        Raises:
            ConflictError: If ``session`` is stale or the question number is taken.
        """

        next_number = session.current_question + 1
        now = utc_now()
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE interview_sessions
                SET current_question = ?, version = version + 1, updated_at = ?
                WHERE session_id = ? AND version = ? AND status = 'in_progress'
                """,
                (next_number, now, session.session_id, session.version),
            )
            if cur.rowcount == 0:
                raise ConflictError(f"Session '{session.session_id}' changed concurrently")
            try:
                turn = _insert_turn(conn, session.session_id, "asker", question, next_number)
            except sqlite3.IntegrityError as exc:
                raise ConflictError(
                    f"Question {next_number} already asked in session '{session.session_id}'"
                ) from exc
        updated = session.model_copy(
            update={"current_question": next_number, "version": session.version + 1}
        )
        return updated, turn

    def close(
        self,
        session: InterviewSession,
        *,
        status: SessionStatus,
        summary: Optional[SessionSummary] = None,
    ) -> InterviewSession:
        """Move an in-progress session into a terminal status.

        A completed session gets its ``completed_at`` stamp and, when given,
        its summary in the same transaction.

        Raises:
            ConflictError: If ``session`` is stale.
        """

        now = utc_now()
        completed_at = now if status == "completed" else None
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE interview_sessions
                SET status = ?, completed_at = ?, version = version + 1, updated_at = ?
                WHERE session_id = ? AND version = ? AND status = 'in_progress'
                """,
                (status, completed_at, now, session.session_id, session.version),
            )
            if cur.rowcount == 0:
                raise ConflictError(f"Session '{session.session_id}' changed concurrently")
            if summary is not None:
                try:
                    conn.execute(
                        """
                        INSERT INTO session_summaries (
                            summary_id,
                            session_id,
                            template_id,
                            summary,
                            key_insights_json,
                            structured_data_json,
                            created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            summary.summary_id,
                            summary.session_id,
                            summary.template_id,
                            summary.summary,
                            json.dumps(summary.key_insights, ensure_ascii=False),
                            json.dumps(summary.structured_data, ensure_ascii=False),
                            summary.created_at,
                        ),
                    )
                except sqlite3.IntegrityError as exc:
                    raise ConflictError(
                        f"Summary already stored for session '{session.session_id}'"
                    ) from exc
        return session.model_copy(
            update={"status": status, "completed_at": completed_at, "version": session.version + 1}
        )

    def get_summary(self, session_id: str) -> Optional[SessionSummary]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                """
                SELECT summary_id, session_id, template_id, summary, key_insights_json, structured_data_json, created_at
                FROM session_summaries
                WHERE session_id = ?
                """,
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return SessionSummary(
            summary_id=row["summary_id"],
            session_id=row["session_id"],
            template_id=row["template_id"],
            summary=row["summary"],
            key_insights=json.loads(row["key_insights_json"]),
            structured_data=json.loads(row["structured_data_json"]),
            created_at=row["created_at"],
        )


def _insert_turn(
    conn: sqlite3.Connection,
    session_id: str,
    role: TurnRole,
    content: str,
    question_number: int,
) -> Turn:
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO session_turns (session_id, role, content, question_number, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (session_id, role, content, question_number, now),
    )
    return Turn(
        sequence=int(cur.lastrowid),
        session_id=session_id,
        role=role,
        content=content,
        question_number=question_number,
        created_at=now,
    )


def _session_from_row(row: sqlite3.Row) -> InterviewSession:
    respondent = row["respondent_json"]
    return InterviewSession(
        session_id=row["session_id"],
        template_id=row["template_id"],
        status=row["status"],
        current_question=row["current_question"],
        respondent=RespondentInfo.model_validate_json(respondent) if respondent else None,
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        version=row["version"],
    )


def _turn_from_row(row: sqlite3.Row) -> Turn:
    return Turn(
        sequence=row["sequence"],
        session_id=row["session_id"],
        role=row["role"],
        content=row["content"],
        question_number=row["question_number"],
        created_at=row["created_at"],
    )


__all__ = ["TranscriptStore"]
