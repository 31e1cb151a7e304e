"""Persistence helpers for interview templates."""
from __future__ import annotations

import sqlite3
from typing import List, Optional
from uuid import uuid4

from domain.errors import ConflictError, NotFoundError
from domain.models import InterviewTemplate, TemplateStatus, utc_now

from .sqlite import get_conn

_COLUMNS = (
    "template_id, title, prompt, question_limit, owner_id, status, share_token, created_at, updated_at"
)


def new_share_token() -> str:
    """Return a fresh shareable token for a template."""

    return f"interview-{uuid4().hex[:12]}"


class TemplateStore:
    """SQLite-backed storage for interview templates."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def create(
        self,
        *,
        title: str,
        prompt: str,
        question_limit: int,
        owner_id: str,
    ) -> InterviewTemplate:
        """Persist a new active template with a unique share token."""

        now = utc_now()
        template = InterviewTemplate(
            template_id=uuid4().hex,
            title=title,
            prompt=prompt,
            question_limit=question_limit,
            owner_id=owner_id,
            status="active",
            share_token=new_share_token(),
            created_at=now,
            updated_at=now,
        )
        with get_conn(self._db_path) as conn:
            try:
                conn.execute(
                    f"INSERT INTO interview_templates ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        template.template_id,
                        template.title,
                        template.prompt,
                        template.question_limit,
                        template.owner_id,
                        template.status,
                        template.share_token,
                        template.created_at,
                        template.updated_at,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Share token already in use") from exc
        return template

    def get(self, template_id: str) -> InterviewTemplate:
        """Load a template by id.

        Raises:
            NotFoundError: If no template has ``template_id``.
        """

        with get_conn(self._db_path) as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM interview_templates WHERE template_id = ?",
                (template_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Interview template '{template_id}' not found")
        return _template_from_row(row)

    def find_by_token(self, share_token: str) -> Optional[InterviewTemplate]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM interview_templates WHERE share_token = ?",
                (share_token,),
            ).fetchone()
        return _template_from_row(row) if row is not None else None

    def list_for_owner(self, owner_id: str) -> List[InterviewTemplate]:
        """List an owner's templates, newest first."""

        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS}
                FROM interview_templates
                WHERE owner_id = ?
                ORDER BY created_at DESC, template_id DESC
                """,
                (owner_id,),
            ).fetchall()
        return [_template_from_row(row) for row in rows]

    def set_status(self, template_id: str, status: TemplateStatus) -> InterviewTemplate:
        now = utc_now()
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                "UPDATE interview_templates SET status = ?, updated_at = ? WHERE template_id = ?",
                (status, now, template_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Interview template '{template_id}' not found")
        return self.get(template_id)


def _template_from_row(row: sqlite3.Row) -> InterviewTemplate:
    return InterviewTemplate(
        template_id=row["template_id"],
        title=row["title"],
        prompt=row["prompt"],
        question_limit=row["question_limit"],
        owner_id=row["owner_id"],
        status=row["status"],
        share_token=row["share_token"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = ["TemplateStore", "new_share_token"]
