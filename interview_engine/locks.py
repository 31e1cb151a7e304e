"""Per-session mutexes, reclaimed once no caller holds or waits on them."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from domain.errors import ConflictError


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SessionLocks:
    """Serialize mutations of a single session inside this process."""

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, session_id: str, *, wait: bool, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the session's lock for the duration of the block.

        With ``wait=False`` a busy session fails immediately; with ``wait=True``
        the caller blocks for up to ``timeout`` seconds (forever when None).

        Raises:
            ConflictError: If the lock could not be acquired.
        """

        entry = self._checkout(session_id)
        try:
            if wait:
                acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
            else:
                acquired = entry.lock.acquire(blocking=False)
            if not acquired:
                raise ConflictError(f"Session '{session_id}' is being updated by another request")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(session_id)

    def active(self) -> int:
        """Number of sessions with a live lock entry."""

        with self._guard:
            return len(self._entries)

    def _checkout(self, session_id: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(session_id)
            if entry is None:
                entry = _Entry()
                self._entries[session_id] = entry
            entry.users += 1
            return entry

    def _checkin(self, session_id: str) -> None:
        with self._guard:
            entry = self._entries.get(session_id)
            if entry is None:
                return
            entry.users -= 1
            if entry.users <= 0:
                del self._entries[session_id]


__all__ = ["SessionLocks"]
