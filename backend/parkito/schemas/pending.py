# backend/parkito/schemas/pending.py
"""
Session draft schemas.

A draft holds the availability edits a host has staged for one parking but
not yet committed. It is serialised with camelCase keys:

    {"updates": {"2025-06-01": {...}}, "deleteDates": ["2025-06-02"], "deleteIds": [42]}

A date must never be both in ``updates`` and in ``deleteDates``; the pending
store enforces this on every merge.
"""

from datetime import date, time
from typing import Any, Dict, List, Optional

from pydantic import Field, field_serializer, field_validator

from ..core.enums import RecurrenceFrequency
from ..utils.time_helpers import coerce_time, time_to_string
from ._strict_base import CamelModel


def _coerce_price(value: Any) -> Any:
    # Form inputs used to be stored verbatim, so "" means "no override"
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return float(stripped) if stripped else None
    return value


def _coerce_recurrence(value: Any) -> RecurrenceFrequency:
    return RecurrenceFrequency.parse(value) or RecurrenceFrequency.NEVER


class PendingSlot(CamelModel):
    """One staged time slot of a day."""

    start_time: time
    end_time: time
    is_available: bool = True
    hourly_price: Optional[float] = None
    recurrence: RecurrenceFrequency = Field(default=RecurrenceFrequency.NEVER, alias="ripetizione")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, v: Any) -> Any:
        return coerce_time(v) if isinstance(v, (str, time)) else v

    @field_validator("hourly_price", mode="before")
    @classmethod
    def _parse_price(cls, v: Any) -> Any:
        return _coerce_price(v)

    @field_validator("recurrence", mode="before")
    @classmethod
    def _parse_recurrence(cls, v: Any) -> RecurrenceFrequency:
        return _coerce_recurrence(v)

    @field_serializer("start_time", "end_time")
    def _serialize_time(self, v: time) -> str:
        return time_to_string(v)


class PendingDayUpdate(CamelModel):
    """Staged state of one day: whole-day fields plus optional slots.

    An empty ``slots`` list means the whole-day fields apply.
    """

    whole_day_available: bool = True
    whole_day_hourly_price: Optional[float] = None
    whole_day_recurrence: RecurrenceFrequency = Field(
        default=RecurrenceFrequency.NEVER, alias="wholeDayRipetizione"
    )
    slots: List[PendingSlot] = Field(default_factory=list)

    @field_validator("whole_day_hourly_price", mode="before")
    @classmethod
    def _parse_price(cls, v: Any) -> Any:
        return _coerce_price(v)

    @field_validator("whole_day_recurrence", mode="before")
    @classmethod
    def _parse_recurrence(cls, v: Any) -> RecurrenceFrequency:
        return _coerce_recurrence(v)


class PendingAvailability(CamelModel):
    """Whole draft of one parking."""

    updates: Dict[date, PendingDayUpdate] = Field(default_factory=dict)
    delete_dates: List[date] = Field(default_factory=list)
    delete_ids: List[int] = Field(default_factory=list)

    @field_validator("delete_dates", "delete_ids", mode="before")
    @classmethod
    def _list_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("updates", mode="before")
    @classmethod
    def _dict_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @property
    def is_empty(self) -> bool:
        return not self.updates and not self.delete_dates and not self.delete_ids

    def to_storage(self) -> str:
        return self.model_dump_json(by_alias=True)
