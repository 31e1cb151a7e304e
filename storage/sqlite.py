"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from config.settings import settings
from domain.errors import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def get_conn(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection inside a single transaction.

    The transaction is committed when the block exits cleanly and rolled back
    otherwise. ``sqlite3`` failures are re-raised as ``StorageError``.
    """

    path = db_path or settings.DB_PATH
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    try:
        conn = sqlite3.connect(path, timeout=settings.DB_TIMEOUT_S)
    except sqlite3.Error as exc:
        raise StorageError(f"Unable to open database: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        logger.error("SQLite operation failed: %s", exc)
        raise StorageError(str(exc)) from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
