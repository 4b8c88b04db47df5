# backend/parkito/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_access_token, get_draft_session_id
from .services import (
    get_bulk_replay_service,
    get_draft_storage,
    get_functions_client,
    get_parking_info_service,
    get_pending_store,
)

__all__ = [
    # Auth
    "get_access_token",
    "get_draft_session_id",
    # Services
    "get_functions_client",
    "get_parking_info_service",
    "get_draft_storage",
    "get_pending_store",
    "get_bulk_replay_service",
]
