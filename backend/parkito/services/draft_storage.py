# backend/parkito/services/draft_storage.py
"""
Key-value storages backing session drafts.

A storage instance stands for one browser session: the pending store writes
``{prefix}{parking_id}`` keys into it without knowing which session it is.
Storages may raise on I/O problems; the pending store is responsible for
turning those into "no draft".
"""

from datetime import datetime, timedelta
import logging
import threading
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis import Redis

logger = logging.getLogger(__name__)


class DraftStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryDraftStorage:
    """Process-local storage, used in tests and when no Redis is configured."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class InMemoryDraftSessions:
    """
    Process-local storages keyed by draft session, used when no Redis is configured.

    Each session expires after ``ttl_seconds`` without a request, like the
    Redis keys do. Expired sessions are pruned whenever any session is looked up.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], datetime] = datetime.now) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Tuple[InMemoryDraftStorage, datetime]] = {}
        self._lock = threading.Lock()

    def _prune(self, now: datetime) -> None:
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Dropped %d expired draft session(s)", len(expired))

    def storage_for(self, session_id: str) -> InMemoryDraftStorage:
        if not session_id:
            raise ValueError("session_id must be provided")
        with self._lock:
            now = self._clock()
            self._prune(now)
            entry = self._sessions.get(session_id)
            storage = entry[0] if entry is not None else InMemoryDraftStorage()
            self._sessions[session_id] = (storage, now + timedelta(seconds=self.ttl_seconds))
            return storage

    def __len__(self) -> int:
        return len(self._sessions)


class RedisDraftStorage:
    """
    Redis storage scoped to one draft session.

    Keys are namespaced by session id and expire after ``ttl_seconds`` of
    inactivity, which is how a closed browser session eventually drops its
    drafts.
    """

    def __init__(self, client: Redis, session_id: str, ttl_seconds: int) -> None:
        if not session_id:
            raise ValueError("session_id must be provided")
        self.client = client
        self.session_id = session_id
        self.ttl_seconds = ttl_seconds

    def _key(self, key: str) -> str:
        return f"draft:{self.session_id}:{key}"

    def get(self, key: str) -> Optional[str]:
        namespaced = self._key(key)
        value = self.client.get(namespaced)
        if value is not None:
            self.client.expire(namespaced, self.ttl_seconds)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value, ex=self.ttl_seconds)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))
