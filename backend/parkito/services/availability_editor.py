# backend/parkito/services/availability_editor.py
"""
Availability Editor Service for the Parkito host dashboard.

Edits the availability of one date (or one contiguous range of dates) and
stages the result in the pending-edit store. It never calls the backend:
committing the draft is the bulk replay service's job.

A day is edited in one of two modes:
- WholeDay: one availability flag, price and recurrence for the whole day
- TimeSlots: contiguous slots, each with its own flag, price and recurrence

On open the initial state is resolved in this order:
1. a staged update for the date, used verbatim
2. a staged deletion of the date, shown as available at the base price
3. no records for the date, available at the base price
4. a single whole-day record, shown in whole-day mode
5. otherwise one editable slot per record
"""

from dataclasses import dataclass, replace
from datetime import date, time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..core.enums import DeleteOutcome, EditorLoadSource, RecurrenceFrequency
from ..schemas.availability import AvailabilityRecord
from ..schemas.pending import PendingDayUpdate
from .base import BaseService
from .editor_slots import (
    EditorSlot,
    apply_slot_patch,
    next_slot_after,
    slots_from_records,
    validate_slots,
)
from .pending_store import OnChanged, PendingAvailabilityStore
from .series_lookup import current_recurrence_tag, future_series_ids

_UNSET: Any = object()


@dataclass(frozen=True)
class WholeDay:
    is_available: bool = True
    hourly_price: Optional[float] = None
    recurrence: RecurrenceFrequency = RecurrenceFrequency.NEVER

    kind = "whole_day"


@dataclass(frozen=True)
class TimeSlots:
    slots: Tuple[EditorSlot, ...]

    kind = "time_slots"


DayEditMode = Union[WholeDay, TimeSlots]


class AvailabilityEditor(BaseService):
    """
    Edit session for one parking.

    ``records`` are all server rows of the parking; they are needed both to
    load a day and to resolve "this day and all future" deletions.
    """

    def __init__(
        self,
        store: PendingAvailabilityStore,
        parking_id: Optional[str],
        records: Iterable[AvailabilityRecord] = (),
        base_hourly_price: Optional[float] = None,
        on_changed: OnChanged = None,
    ):
        super().__init__()
        self.store = store
        self.parking_id = parking_id
        self.records: List[AvailabilityRecord] = list(records)
        self.base_hourly_price = base_hourly_price
        self.on_changed = on_changed

        self.selected_date: Optional[date] = None
        self.range_dates: List[date] = []
        self.source: Optional[EditorLoadSource] = None
        self.day_records: List[AvailabilityRecord] = []
        self.whole_day = self._default_whole_day()
        self.slots: List[EditorSlot] = []

    def _default_whole_day(self) -> WholeDay:
        return WholeDay(is_available=True, hourly_price=self.base_hourly_price)

    # Loading

    def open_day(self, day: date) -> DayEditMode:
        """Open the editor on a single date and return its initial mode."""
        self.selected_date = day
        self.range_dates = []
        self.day_records = [r for r in self.records if r.record_date == day]
        self.whole_day = self._default_whole_day()
        self.slots = []

        pending = self.store.get_pending(self.parking_id)
        staged = pending.updates.get(day) if pending is not None else None

        if staged is not None:
            self.whole_day = WholeDay(
                is_available=staged.whole_day_available,
                hourly_price=staged.whole_day_hourly_price,
                recurrence=staged.whole_day_recurrence,
            )
            self.slots = [EditorSlot.from_pending(s) for s in staged.slots]
            self.source = EditorLoadSource.PENDING_UPDATE
        elif pending is not None and day in pending.delete_dates:
            self.source = EditorLoadSource.PENDING_DELETE
        elif not self.day_records:
            self.source = EditorLoadSource.NO_RECORDS
        elif len(self.day_records) == 1 and self.day_records[0].is_whole_day:
            record = self.day_records[0]
            price = record.hourly_price if record.hourly_price is not None else self.base_hourly_price
            self.whole_day = WholeDay(
                is_available=record.is_available,
                hourly_price=price,
                recurrence=record.recurrence,
            )
            self.source = EditorLoadSource.WHOLE_DAY_RECORD
        else:
            self.slots = slots_from_records(self.day_records)
            self.source = EditorLoadSource.TIME_SLOT_RECORDS

        return self.mode

    def open_range(self, dates: Iterable[date]) -> DayEditMode:
        """Open the editor on several dates; always starts as whole day at base price."""
        self.range_dates = sorted(set(dates))
        self.selected_date = self.range_dates[0] if self.range_dates else None
        self.day_records = []
        self.whole_day = self._default_whole_day()
        self.slots = []
        self.source = EditorLoadSource.RANGE
        return self.mode

    # State

    @property
    def is_range(self) -> bool:
        return bool(self.range_dates)

    @property
    def mode(self) -> DayEditMode:
        if self.slots:
            return TimeSlots(slots=tuple(self.slots))
        return self.whole_day

    @property
    def dates_in_scope(self) -> List[date]:
        if self.range_dates:
            return list(self.range_dates)
        return [self.selected_date] if self.selected_date is not None else []

    @property
    def slot_errors(self) -> Dict[int, List[str]]:
        return validate_slots(self.slots)

    @property
    def can_save(self) -> bool:
        return bool(self.parking_id) and bool(self.dates_in_scope) and not self.slot_errors

    @property
    def current_rule(self) -> Optional[str]:
        return current_recurrence_tag(self.day_records)

    @property
    def has_recurrence(self) -> bool:
        """True when the day's rows are part of a series or the edit repeats."""
        if self.current_rule is not None:
            return True
        mode = self.mode
        if isinstance(mode, WholeDay):
            return mode.recurrence.repeats
        return any(slot.recurrence.repeats for slot in mode.slots)

    @property
    def can_delete(self) -> bool:
        return (
            bool(self.parking_id)
            and self.selected_date is not None
            and not self.is_range
            and bool(self.day_records)
        )

    # Editing

    def set_whole_day(
        self,
        is_available: Optional[bool] = None,
        hourly_price: Any = _UNSET,
        recurrence: Optional[RecurrenceFrequency] = None,
    ) -> WholeDay:
        changes: Dict[str, Any] = {}
        if is_available is not None:
            changes["is_available"] = is_available
        if hourly_price is not _UNSET:
            changes["hourly_price"] = hourly_price
        if recurrence is not None:
            changes["recurrence"] = recurrence
        self.whole_day = replace(self.whole_day, **changes)
        return self.whole_day

    def set_slots(self, slots: Sequence[EditorSlot]) -> None:
        """Replace all slots as given; validation reports any problem."""
        self.slots = list(slots)

    def add_slot(self) -> EditorSlot:
        slot = next_slot_after(self.slots)
        self.slots.append(slot)
        return slot

    def remove_slot(self, index: int) -> None:
        if 0 <= index < len(self.slots):
            del self.slots[index]

    def update_slot(
        self,
        index: int,
        *,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        is_available: Optional[bool] = None,
        hourly_price: Any = _UNSET,
        recurrence: Optional[RecurrenceFrequency] = None,
    ) -> None:
        patch: Dict[str, Any] = {}
        if hourly_price is not _UNSET:
            patch["hourly_price"] = hourly_price
        self.slots = apply_slot_patch(
            self.slots,
            index,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
            recurrence=recurrence,
            **patch,
        )

    def to_pending_update(self) -> PendingDayUpdate:
        return PendingDayUpdate(
            whole_day_available=self.whole_day.is_available,
            whole_day_hourly_price=self.whole_day.hourly_price,
            whole_day_recurrence=self.whole_day.recurrence,
            slots=[slot.to_pending() for slot in self.slots],
        )

    # Staging

    def save(self) -> List[date]:
        """
        Stage the edited state for every date in scope.

        Returns the staged dates; an empty list means nothing was staged
        (missing parking or date, or invalid slots).
        """
        dates = self.dates_in_scope
        if not self.parking_id or not dates:
            return []
        if self.slot_errors:
            self.logger.info(
                f"Not staging availability for parking {self.parking_id}: invalid slots"
            )
            return []

        update = self.to_pending_update()
        for day in dates:
            self.store.merge_update(self.parking_id, day, update, self.on_changed)

        self.log_operation(
            "stage_availability",
            parking_id=self.parking_id,
            dates=len(dates),
            slots=len(self.slots),
        )
        return dates

    def request_delete(self) -> DeleteOutcome:
        """Stage a one-day deletion, or ask for a scope when the day recurs."""
        if not self.parking_id or self.selected_date is None:
            return DeleteOutcome.NO_CONTEXT
        if not self.can_delete:
            return DeleteOutcome.NOTHING_TO_DELETE
        if self.has_recurrence:
            return DeleteOutcome.SCOPE_REQUIRED
        self.delete_this_day()
        return DeleteOutcome.STAGED

    def delete_this_day(self) -> bool:
        if not self.parking_id or self.selected_date is None:
            return False
        self.store.merge_delete_one_day(self.parking_id, self.selected_date, self.on_changed)
        self.log_operation(
            "stage_delete_day", parking_id=self.parking_id, date=self.selected_date.isoformat()
        )
        return True

    def delete_all_future(self) -> List[int]:
        """Stage deletion of this day's series from the selected date onwards."""
        if not self.parking_id or self.selected_date is None:
            return []
        ids = future_series_ids(self.records, self.selected_date, self.day_records)
        self.store.merge_delete_ids(
            self.parking_id,
            ids,
            date_to_unstage=self.selected_date,
            on_changed=self.on_changed,
        )
        self.log_operation(
            "stage_delete_series",
            parking_id=self.parking_id,
            date=self.selected_date.isoformat(),
            ids=len(ids),
        )
        return ids
