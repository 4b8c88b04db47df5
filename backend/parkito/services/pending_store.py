# backend/parkito/services/pending_store.py
"""
Pending-edit store: the per-parking draft of staged availability changes.

Every mutation reads the whole draft, changes it and writes it back, so one
call is atomic with respect to the draft blob. Two sessions writing the same
storage key race with last-writer-wins semantics; the store is a scratch pad
for a single host, not a shared resource.

Invariant: a date is never both in ``updates`` and in ``delete_dates``.

Storage failures and corrupt drafts are logged and read as "no draft"; they
never reach the caller.
"""

from datetime import date
import json
import logging
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError

from ..core.config import settings
from ..schemas.pending import PendingAvailability, PendingDayUpdate
from .draft_storage import DraftStorage

logger = logging.getLogger(__name__)

OnChanged = Optional[Callable[[], None]]

_STORAGE_ERRORS = (RedisError, OSError)


class PendingAvailabilityStore:
    """Draft store keyed by parking id on top of an injected session storage."""

    def __init__(self, storage: DraftStorage, key_prefix: Optional[str] = None) -> None:
        self.storage = storage
        self.key_prefix = key_prefix if key_prefix is not None else settings.pending_key_prefix

    def key_for(self, parking_id: str) -> str:
        return f"{self.key_prefix}{parking_id}"

    def get_pending(self, parking_id: Optional[str]) -> Optional[PendingAvailability]:
        """Return the draft of a parking, or None when absent or unreadable."""
        if not parking_id:
            return None
        try:
            raw = self.storage.get(self.key_for(parking_id))
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not read availability draft for %s: %s", parking_id, exc)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("draft is not an object")
            return PendingAvailability.model_validate(data)
        except (ValueError, ValidationError) as exc:
            logger.warning("Discarding unreadable availability draft for %s: %s", parking_id, exc)
            return None

    def set_pending(
        self,
        parking_id: Optional[str],
        draft: PendingAvailability,
        on_changed: OnChanged = None,
    ) -> None:
        if not parking_id:
            return
        try:
            self.storage.set(self.key_for(parking_id), draft.to_storage())
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not write availability draft for %s: %s", parking_id, exc)
            return
        if on_changed is not None:
            on_changed()

    def has_pending(self, parking_id: Optional[str]) -> bool:
        draft = self.get_pending(parking_id)
        return draft is not None and not draft.is_empty

    def _current(self, parking_id: str) -> PendingAvailability:
        return self.get_pending(parking_id) or PendingAvailability()

    def merge_update(
        self,
        parking_id: Optional[str],
        day: date,
        day_update: PendingDayUpdate,
        on_changed: OnChanged = None,
    ) -> None:
        """Stage one day's state, withdrawing any staged deletion of that date."""
        if not parking_id:
            return
        prev = self._current(parking_id)
        updates = dict(prev.updates)
        updates[day] = day_update
        draft = PendingAvailability(
            updates=updates,
            delete_dates=[d for d in prev.delete_dates if d != day],
            delete_ids=list(prev.delete_ids),
        )
        self.set_pending(parking_id, draft, on_changed)

    def merge_delete_one_day(
        self,
        parking_id: Optional[str],
        day: date,
        on_changed: OnChanged = None,
    ) -> None:
        """Stage deletion of every record of one date, dropping its staged update."""
        if not parking_id:
            return
        prev = self._current(parking_id)
        updates = {d: u for d, u in prev.updates.items() if d != day}
        delete_dates = list(prev.delete_dates)
        if day not in delete_dates:
            delete_dates.append(day)
        draft = PendingAvailability(
            updates=updates,
            delete_dates=delete_dates,
            delete_ids=list(prev.delete_ids),
        )
        self.set_pending(parking_id, draft, on_changed)

    def merge_delete_ids(
        self,
        parking_id: Optional[str],
        ids: Iterable[int],
        date_to_unstage: Optional[date] = None,
        on_changed: OnChanged = None,
    ) -> None:
        """Stage deletion of specific records, optionally dropping one staged update."""
        if not parking_id:
            return
        prev = self._current(parking_id)
        updates = dict(prev.updates)
        if date_to_unstage is not None:
            updates.pop(date_to_unstage, None)
        delete_ids: List[int] = list(prev.delete_ids)
        for record_id in ids:
            if record_id not in delete_ids:
                delete_ids.append(record_id)
        draft = PendingAvailability(
            updates=updates,
            delete_dates=list(prev.delete_dates),
            delete_ids=delete_ids,
        )
        self.set_pending(parking_id, draft, on_changed)

    def clear_pending(self, parking_id: Optional[str], on_changed: OnChanged = None) -> None:
        """Drop the whole draft, e.g. after a successful commit."""
        if not parking_id:
            return
        try:
            self.storage.delete(self.key_for(parking_id))
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not clear availability draft for %s: %s", parking_id, exc)
            return
        if on_changed is not None:
            on_changed()
