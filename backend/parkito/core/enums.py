# backend/parkito/core/enums.py
"""
Core enums for the Parkito host dashboard.

Values are the exact strings exchanged with the backend and stored in
session drafts, so they must never be renamed.
"""

from enum import Enum
from typing import Any, Optional


class RecurrenceFrequency(str, Enum):
    """
    Repeat frequency of an availability edit.

    The values are the recurrence tags persisted in ``recurrence_rule``.
    """

    NEVER = "mai"
    DAILY = "ogni_giorno"
    WEEKLY = "ogni_settimana"
    BIWEEKLY = "ogni_due_settimane"
    MONTHLY = "ogni_mese"

    @classmethod
    def parse(cls, value: Any) -> Optional["RecurrenceFrequency"]:
        """Resolve a stored tag or an English name; unknown values give None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        if not normalized:
            return None
        for member in cls:
            if normalized == member.value or normalized == member.name.lower():
                return member
        return None

    @property
    def repeats(self) -> bool:
        return self is not RecurrenceFrequency.NEVER


class DayState(str, Enum):
    """Calendar display classification of a single day."""

    DEFAULT = "default"
    CUSTOM_PRICE = "custom-price"
    TIME_SLOTS = "time-slots"
    UNAVAILABLE = "unavailable"
    TIME_SLOT_UNAVAILABLE = "time-slot-unavailable"


class AvailabilityType(str, Enum):
    """Kind of upsert sent to the save-availability function."""

    ALWAYS_AVAILABLE = "ALWAYS_AVAILABLE"
    TIME_SLOT = "TIME_SLOT"
    UNAVAILABLE = "UNAVAILABLE"


class DeleteScope(str, Enum):
    """Scope chosen by the host when deleting a recurring day."""

    THIS_DAY = "this_day"
    ALL_FUTURE = "all_future"


class EditorLoadSource(str, Enum):
    """Where the availability editor took a day's initial state from."""

    PENDING_UPDATE = "pending_update"
    PENDING_DELETE = "pending_delete"
    NO_RECORDS = "no_records"
    WHOLE_DAY_RECORD = "whole_day_record"
    TIME_SLOT_RECORDS = "time_slot_records"
    RANGE = "range"


class DeleteOutcome(str, Enum):
    """Result of asking the editor to delete the selected day."""

    STAGED = "staged"
    SCOPE_REQUIRED = "scope_required"
    NOTHING_TO_DELETE = "nothing_to_delete"
    NO_CONTEXT = "no_context"
