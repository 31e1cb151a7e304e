"""Persistence helpers for owner-scoped completion settings."""
from __future__ import annotations

import sqlite3
from typing import Optional

from domain.models import OwnerConfig, utc_now

from .sqlite import get_conn

_SELECT = "SELECT owner_id, api_key, model, created_at, updated_at FROM owner_configs WHERE owner_id = ?"


class OwnerConfigStore:
    """SQLite-backed storage for per-owner completion settings."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def upsert(self, owner_id: str, *, api_key: Optional[str], model: Optional[str] = None) -> OwnerConfig:
        """Insert or replace the owner's settings, keeping the original creation time."""

        now = utc_now()
        with get_conn(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO owner_configs (owner_id, api_key, model, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(owner_id) DO UPDATE SET
                    api_key = excluded.api_key,
                    model = excluded.model,
                    updated_at = excluded.updated_at
                """,
                (owner_id, api_key, model, now, now),
            )
            row = conn.execute(_SELECT, (owner_id,)).fetchone()
        return _config_from_row(row)

    def get(self, owner_id: str) -> Optional[OwnerConfig]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(_SELECT, (owner_id,)).fetchone()
        return _config_from_row(row) if row is not None else None


def _config_from_row(row: sqlite3.Row) -> OwnerConfig:
    return OwnerConfig(
        owner_id=row["owner_id"],
        api_key=row["api_key"],
        model=row["model"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = ["OwnerConfigStore"]
