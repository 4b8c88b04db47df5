from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from parkito.services.draft_storage import (
    InMemoryDraftSessions,
    InMemoryDraftStorage,
    RedisDraftStorage,
)


class TestInMemoryDraftStorage:
    def test_roundtrip_and_delete(self):
        storage = InMemoryDraftStorage()

        storage.set("k", "v")
        assert storage.get("k") == "v"
        assert len(storage) == 1

        storage.delete("k")
        storage.delete("missing")
        assert storage.get("k") is None


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **delta) -> None:
        self.now += timedelta(**delta)


class TestInMemoryDraftSessions:
    """Session storages expire after a period without requests."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock(datetime(2025, 6, 1, 12, 0))

    def test_same_session_gets_same_storage(self, clock):
        sessions = InMemoryDraftSessions(ttl_seconds=3600, clock=clock)

        sessions.storage_for("a").set("k", "v")

        assert sessions.storage_for("a").get("k") == "v"
        assert sessions.storage_for("b").get("k") is None
        assert len(sessions) == 2

    def test_expired_session_draft_is_dropped(self, clock):
        sessions = InMemoryDraftSessions(ttl_seconds=3600, clock=clock)
        sessions.storage_for("a").set("k", "v")

        clock.tick(hours=2)

        assert sessions.storage_for("a").get("k") is None

    def test_access_extends_lifetime(self, clock):
        sessions = InMemoryDraftSessions(ttl_seconds=3600, clock=clock)
        sessions.storage_for("a").set("k", "v")

        clock.tick(minutes=45)
        sessions.storage_for("a")
        clock.tick(minutes=45)

        assert sessions.storage_for("a").get("k") == "v"

    def test_idle_sessions_are_pruned_on_any_lookup(self, clock):
        sessions = InMemoryDraftSessions(ttl_seconds=60, clock=clock)
        for i in range(100):
            sessions.storage_for(f"s{i}")

        clock.tick(minutes=5)
        sessions.storage_for("fresh")

        assert len(sessions) == 1

    def test_session_id_is_required(self, clock):
        with pytest.raises(ValueError):
            InMemoryDraftSessions(ttl_seconds=60, clock=clock).storage_for("")


class TestRedisDraftStorage:
    """Keys are namespaced per session and expire after inactivity."""

    @pytest.fixture
    def client(self) -> MagicMock:
        return MagicMock()

    def test_set_uses_session_namespace_and_ttl(self, client):
        storage = RedisDraftStorage(client, "sess-1", ttl_seconds=600)

        storage.set("parkito-availability-pending-7", "{}")

        client.set.assert_called_once_with(
            "draft:sess-1:parkito-availability-pending-7", "{}", ex=600
        )

    def test_get_refreshes_expiry_and_decodes(self, client):
        client.get.return_value = b'{"updates": {}}'
        storage = RedisDraftStorage(client, "sess-1", ttl_seconds=600)

        assert storage.get("k") == '{"updates": {}}'
        client.expire.assert_called_once_with("draft:sess-1:k", 600)

    def test_get_missing_key_does_not_touch_expiry(self, client):
        client.get.return_value = None
        storage = RedisDraftStorage(client, "sess-1", ttl_seconds=600)

        assert storage.get("k") is None
        client.expire.assert_not_called()

    def test_delete(self, client):
        RedisDraftStorage(client, "sess-1", ttl_seconds=600).delete("k")

        client.delete.assert_called_once_with("draft:sess-1:k")

    def test_requires_session_id(self, client):
        with pytest.raises(ValueError):
            RedisDraftStorage(client, "", ttl_seconds=600)
