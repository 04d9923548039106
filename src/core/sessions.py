"""
Per-session credential store.

The browser only holds a signed cookie with an opaque session id; the Zoho
tokens stay server side in a ``session id -> CredentialRecord`` map. Records
are immutable and replaced as a whole, so a reader never sees a half-updated
token set. Each session has its own lock so concurrent requests on one
session serialize their check-and-refresh.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable

from core.config import SESSION_MAX_AGE_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialRecord:
    """Zoho credentials of one authenticated session."""

    access_token: str
    refresh_token: str | None
    expires_in: int  # seconds
    issued_at: float  # epoch seconds
    api_domain: str

    def remaining(self, now: float) -> float:
        """Seconds until the access token expires."""
        return self.issued_at + self.expires_in - now

    @classmethod
    def from_token_response(
        cls, data: dict[str, Any], issued_at: float, default_api_domain: str
    ) -> "CredentialRecord":
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=int(data.get("expires_in", 3600)),
            issued_at=issued_at,
            api_domain=data.get("api_domain") or default_api_domain,
        )


class SessionStore:
    """In-process map of session ids to credential records.

    Sessions idle for longer than ``max_age`` seconds are evicted on the next
    ``get`` or ``put``, matching the lifetime of the session cookie.
    """

    def __init__(
        self,
        max_age: float = SESSION_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_age = max_age
        self._clock = clock
        self._records: dict[str, CredentialRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_seen: dict[str, float] = {}

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    def _evict_idle(self, now: float) -> None:
        cutoff = now - self.max_age
        for session_id, seen in list(self._last_seen.items()):
            lock = self._locks.get(session_id)
            if seen < cutoff and not (lock and lock.locked()):
                logger.info("Evicting idle session %s...", session_id[:8])
                self.destroy(session_id)

    def get(self, session_id: str | None) -> CredentialRecord | None:
        now = self._clock()
        self._evict_idle(now)
        if not session_id:
            return None
        record = self._records.get(session_id)
        if record is not None:
            self._last_seen[session_id] = now
        return record

    def put(self, session_id: str, record: CredentialRecord) -> None:
        now = self._clock()
        self._evict_idle(now)
        self._records[session_id] = record
        self._last_seen[session_id] = now

    def destroy(self, session_id: str | None) -> CredentialRecord | None:
        """Drop a session's credentials; returns what was removed."""
        if not session_id:
            return None
        self._locks.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        return self._records.pop(session_id, None)

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def clear(self) -> None:
        self._records.clear()
        self._locks.clear()
        self._last_seen.clear()

    def __len__(self) -> int:
        return len(self._records)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    """FastAPI dependency returning the process-wide store."""
    return session_store
