# backend/parkito/services/editor_slots.py
"""
Editable time slots of the availability editor.

Slots are kept contiguous: moving a slot's start moves the previous slot's
end, moving its end moves the next slot's start. All times snap to quarter
hours and never end after 23:45.
"""

from dataclasses import dataclass, replace
from datetime import time
from typing import Dict, List, Optional, Sequence

from ..core.constants import (
    DEFAULT_FIRST_SLOT_START,
    LAST_SLOT_END,
    MIN_SLOT_DURATION_MINUTES,
    SLOT_GRANULARITY_MINUTES,
)
from ..core.enums import RecurrenceFrequency
from ..schemas.availability import AvailabilityRecord
from ..schemas.pending import PendingSlot
from ..utils.time_helpers import (
    is_end_after_start,
    minutes_between,
    minutes_to_time,
    time_to_minutes,
)

ERROR_END_BEFORE_START = "End time must be after start time"
ERROR_TOO_SHORT = "A slot must last at least 1 hour"

_UNSET = object()


@dataclass(frozen=True)
class EditorSlot:
    start_time: time
    end_time: time
    is_available: bool = True
    hourly_price: Optional[float] = None
    recurrence: RecurrenceFrequency = RecurrenceFrequency.NEVER
    id: Optional[int] = None

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    def to_pending(self) -> PendingSlot:
        return PendingSlot(
            start_time=self.start_time,
            end_time=self.end_time,
            is_available=self.is_available,
            hourly_price=self.hourly_price,
            recurrence=self.recurrence,
        )

    @classmethod
    def from_pending(cls, slot: PendingSlot) -> "EditorSlot":
        # Staged slots have no persisted identity
        return cls(
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_available=slot.is_available,
            hourly_price=slot.hourly_price,
            recurrence=slot.recurrence,
        )


def snap_to_quarter(t: time) -> time:
    """Round to the nearest quarter hour, never past 23:45."""
    total = time_to_minutes(t)
    snapped = int(total / SLOT_GRANULARITY_MINUTES + 0.5) * SLOT_GRANULARITY_MINUTES
    return minutes_to_time(min(snapped, time_to_minutes(LAST_SLOT_END)))


def _end_for_start(start: time) -> time:
    end_minutes = min(
        time_to_minutes(LAST_SLOT_END),
        time_to_minutes(start) + MIN_SLOT_DURATION_MINUTES,
    )
    return snap_to_quarter(minutes_to_time(end_minutes))


def next_slot_after(slots: Sequence[EditorSlot]) -> EditorSlot:
    """New slot starting where the last one ends (09:00 for the first), one hour long."""
    start = snap_to_quarter(slots[-1].end_time) if slots else DEFAULT_FIRST_SLOT_START
    return EditorSlot(start_time=start, end_time=_end_for_start(start))


def slot_from_record(record: AvailabilityRecord) -> EditorSlot:
    start = snap_to_quarter(record.start_time)
    if record.is_whole_day or record.end_time in (time(23, 59), time(0, 0)):
        end = LAST_SLOT_END
    else:
        end = snap_to_quarter(record.end_time)
    if (
        not is_end_after_start(start, end)
        or minutes_between(start, end) < MIN_SLOT_DURATION_MINUTES
    ):
        end = _end_for_start(start)
    return EditorSlot(
        start_time=start,
        end_time=end,
        is_available=record.is_available,
        hourly_price=record.hourly_price,
        recurrence=record.recurrence,
        id=record.id,
    )


def slots_from_records(records: Sequence[AvailabilityRecord]) -> List[EditorSlot]:
    """Turn a day's persisted rows into editable slots, one per row."""
    return [slot_from_record(record) for record in records]


def apply_slot_patch(
    slots: Sequence[EditorSlot],
    index: int,
    *,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    is_available: Optional[bool] = None,
    hourly_price: object = _UNSET,
    recurrence: Optional[RecurrenceFrequency] = None,
) -> List[EditorSlot]:
    """
    Return a new slot list with slot ``index`` patched.

    A new start becomes the previous slot's end; a new end becomes the next
    slot's start. Out-of-range indexes leave the list unchanged.
    """
    if not 0 <= index < len(slots):
        return list(slots)

    snapped_start = snap_to_quarter(start_time) if start_time is not None else None
    snapped_end = snap_to_quarter(end_time) if end_time is not None else None

    result: List[EditorSlot] = []
    for i, slot in enumerate(slots):
        if i == index:
            changes: Dict[str, object] = {}
            if snapped_start is not None:
                changes["start_time"] = snapped_start
            if snapped_end is not None:
                changes["end_time"] = snapped_end
            if is_available is not None:
                changes["is_available"] = is_available
            if hourly_price is not _UNSET:
                changes["hourly_price"] = hourly_price
            if recurrence is not None:
                changes["recurrence"] = recurrence
            result.append(replace(slot, **changes))
        elif i == index - 1 and snapped_start is not None:
            result.append(replace(slot, end_time=snapped_start))
        elif i == index + 1 and snapped_end is not None:
            result.append(replace(slot, start_time=snapped_end))
        else:
            result.append(slot)
    return result


def validate_slots(slots: Sequence[EditorSlot]) -> Dict[int, List[str]]:
    """Per-slot validation errors keyed by slot index; empty when all slots are valid."""
    errors: Dict[int, List[str]] = {}
    for i, slot in enumerate(slots):
        messages: List[str] = []
        if not is_end_after_start(slot.start_time, slot.end_time):
            messages.append(ERROR_END_BEFORE_START)
        if slot.duration_minutes < MIN_SLOT_DURATION_MINUTES:
            messages.append(ERROR_TOO_SHORT)
        if messages:
            errors[i] = messages
    return errors
