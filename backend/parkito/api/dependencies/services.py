# backend/parkito/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends

from ...core.config import settings
from ...core.redis import get_redis_client
from ...integrations.functions_client import FunctionsClient
from ...services.bulk_replay import BulkReplayService
from ...services.draft_storage import DraftStorage, InMemoryDraftSessions, RedisDraftStorage
from ...services.parking_info_service import ParkingInfoService
from ...services.pending_store import PendingAvailabilityStore
from .auth import get_draft_session_id

# Fallback storages keyed by draft session when no Redis is configured
_memory_sessions = InMemoryDraftSessions(settings.pending_draft_ttl_seconds)


@lru_cache(maxsize=1)
def get_functions_client() -> FunctionsClient:
    """Get singleton backend client."""
    return FunctionsClient(
        project_url=settings.supabase_project_url,
        anon_key=settings.supabase_anon_key,
        timeout=settings.functions_timeout_seconds,
    )


@lru_cache(maxsize=1)
def _parking_info_service_singleton() -> ParkingInfoService:
    return ParkingInfoService(get_functions_client())


def get_parking_info_service() -> ParkingInfoService:
    """Get the parking info service; one instance so its cache is shared."""
    return _parking_info_service_singleton()


def get_draft_storage(session_id: str = Depends(get_draft_session_id)) -> DraftStorage:
    """
    Get the draft storage of the calling browser session.

    Uses Redis when configured, otherwise a process-local storage per session that
    expires after the same period of inactivity.
    """
    client = get_redis_client()
    if client is not None:
        return RedisDraftStorage(client, session_id, settings.pending_draft_ttl_seconds)
    return _memory_sessions.storage_for(session_id)


def get_pending_store(storage: DraftStorage = Depends(get_draft_storage)) -> PendingAvailabilityStore:
    return PendingAvailabilityStore(storage)


def get_bulk_replay_service(
    store: PendingAvailabilityStore = Depends(get_pending_store),
    client: FunctionsClient = Depends(get_functions_client),
    parking_info: ParkingInfoService = Depends(get_parking_info_service),
) -> BulkReplayService:
    return BulkReplayService(store, client, parking_info)
