# backend/parkito/services/calendar_view.py
"""
Calendar view of a parking's availability with the session draft overlaid.

The preview is read-only: server rows minus staged deletions, then staged
updates applied after recurrence expansion, so what the host sees matches
what a commit would produce.
"""

import calendar
from datetime import date, datetime, time
import logging
from typing import Dict, List, Optional, Sequence

from ..core.constants import WHOLE_DAY_END, WHOLE_DAY_START
from ..core.enums import DayState, RecurrenceFrequency
from ..schemas.availability import AvailabilityRecord, CalendarDayInfo, CalendarDayView
from ..schemas.pending import PendingAvailability, PendingDayUpdate
from .day_state import availability_to_days, group_by_date
from .recurrence import expand_recurrence_dates

logger = logging.getLogger(__name__)

RecordsByDate = Dict[date, List[AvailabilityRecord]]


def _synthetic_row(
    parking_id: str,
    day: date,
    start: time,
    end: time,
    is_available: bool,
    hourly_price: Optional[float],
    recurrence: RecurrenceFrequency,
) -> Optional[AvailabilityRecord]:
    if end <= start:
        logger.debug("Skipping staged slot with empty window on %s", day)
        return None
    return AvailabilityRecord(
        parking_id=parking_id,
        start_datetime=datetime.combine(day, start),
        end_datetime=datetime.combine(day, end),
        is_available=is_available,
        hourly_price=hourly_price,
        recurrence_rule=recurrence.value if recurrence.repeats else None,
    )


def pending_update_to_rows(
    day: date, update: PendingDayUpdate, parking_id: str = ""
) -> RecordsByDate:
    """Rows a staged day update produces, keyed by every date its recurrence reaches."""
    rows: RecordsByDate = {}
    if not update.slots:
        for target in expand_recurrence_dates(update.whole_day_recurrence, day):
            row = _synthetic_row(
                parking_id,
                target,
                WHOLE_DAY_START,
                WHOLE_DAY_END,
                update.whole_day_available,
                update.whole_day_hourly_price,
                update.whole_day_recurrence,
            )
            rows[target] = [row] if row is not None else []
        return rows

    for slot in update.slots:
        for target in expand_recurrence_dates(slot.recurrence, day):
            row = _synthetic_row(
                parking_id,
                target,
                slot.start_time,
                slot.end_time,
                slot.is_available,
                slot.hourly_price,
                slot.recurrence,
            )
            day_rows = rows.setdefault(target, [])
            if row is not None:
                day_rows.append(row)
    return rows


def effective_availability(
    records: Sequence[AvailabilityRecord],
    pending: Optional[PendingAvailability],
) -> RecordsByDate:
    """Server rows grouped by date with the draft applied on top."""
    if pending is None:
        return group_by_date(records)

    delete_ids = set(pending.delete_ids)
    delete_dates = set(pending.delete_dates)
    kept = [
        r
        for r in records
        if r.record_date not in delete_dates
        and not (r.id is not None and r.id in delete_ids)
    ]
    by_date = group_by_date(kept)

    for day, update in pending.updates.items():
        by_date.update(pending_update_to_rows(day, update))

    return by_date


def effective_days(
    by_date: RecordsByDate,
    default_price: Optional[float],
    pending: Optional[PendingAvailability] = None,
) -> List[CalendarDayInfo]:
    """Derived day infos; dates staged for deletion show as default at the base price."""
    delete_dates = set(pending.delete_dates) if pending is not None else set()
    derived = {info.date: info for info in availability_to_days(by_date, default_price)}
    result: List[CalendarDayInfo] = []
    for day in sorted(set(by_date) | delete_dates):
        if day in delete_dates or day not in derived:
            result.append(CalendarDayInfo(date=day, state=DayState.DEFAULT, price=default_price))
        else:
            result.append(derived[day])
    return result


def recurrent_dates(by_date: RecordsByDate) -> List[date]:
    return sorted(
        day for day, rows in by_date.items() if any(r.recurrence_tag for r in rows)
    )


def month_view(
    year: int,
    month: int,
    records: Sequence[AvailabilityRecord],
    default_price: Optional[float],
    pending: Optional[PendingAvailability] = None,
) -> List[CalendarDayView]:
    """One entry per day of the month; days without rows are default at the base price."""
    by_date = effective_availability(records, pending)
    infos = {info.date: info for info in effective_days(by_date, default_price, pending)}
    recurring = set(recurrent_dates(by_date))

    days: List[CalendarDayView] = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_number)
        info = infos.get(day)
        days.append(
            CalendarDayView(
                date=day,
                state=info.state if info is not None else DayState.DEFAULT,
                price=info.price if info is not None else default_price,
                recurrent=day in recurring,
            )
        )
    return days
