# backend/parkito/services/parking_info_service.py
"""
Parking info reads with a short-lived in-memory cache.

Availability rows are refetched in full per parking; the cache only spares
repeated calendar and editor reads between commits. A commit invalidates
the parking's entry.
"""

from datetime import datetime, timedelta
import logging
import threading
from typing import Dict, Optional, Tuple

from ..core.config import settings
from ..core.exceptions import ExternalServiceException, NotFoundException
from ..integrations.functions_client import FunctionsClient, FunctionsClientError
from ..schemas.availability import ParkingFullInfo
from .base import BaseService

logger = logging.getLogger(__name__)


class ParkingInfoService(BaseService):
    def __init__(self, client: FunctionsClient, ttl_seconds: Optional[int] = None):
        super().__init__()
        self.client = client
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.parking_info_cache_ttl_seconds
        )
        self._memory_cache: Dict[str, Tuple[ParkingFullInfo, datetime]] = {}
        self._lock = threading.Lock()

    def _cached(self, parking_id: str) -> Optional[ParkingFullInfo]:
        with self._lock:
            entry = self._memory_cache.get(parking_id)
            if entry is None:
                return None
            info, expires_at = entry
            if expires_at <= datetime.now():
                del self._memory_cache[parking_id]
                return None
            return info

    @BaseService.measure_operation("get_parking_info")
    def get_parking_info(
        self, parking_id: str, access_token: str, *, use_cache: bool = True
    ) -> ParkingFullInfo:
        """Return the parking and its rows, raising NotFoundException when it does not exist."""
        if use_cache and self.ttl_seconds > 0:
            cached = self._cached(parking_id)
            if cached is not None:
                logger.debug("Parking info cache hit for %s", parking_id)
                return cached

        try:
            info = self.client.fetch_parking_info(parking_id, access_token=access_token)
        except FunctionsClientError as exc:
            raise ExternalServiceException(
                f"Could not load parking {parking_id}",
                status_code=exc.status_code,
                details={"backend_error": exc.error_body},
            ) from exc

        if info is None:
            raise NotFoundException(f"Parking {parking_id} not found", code="PARKING_NOT_FOUND")

        if self.ttl_seconds > 0:
            with self._lock:
                self._memory_cache[parking_id] = (
                    info,
                    datetime.now() + timedelta(seconds=self.ttl_seconds),
                )
        return info

    def invalidate(self, parking_id: str) -> None:
        with self._lock:
            self._memory_cache.pop(parking_id, None)
        logger.debug("Parking info cache invalidated for %s", parking_id)
