# backend/parkito/services/day_state.py
"""
Day-state derivation for the availability calendar.

Classifies the availability records of one date into a display state and a
representative price. Pure functions: the records are the source of truth
and the state is recomputed on every read.

Precedence (first match wins):
1. no records                          -> default
2. every record unavailable            -> unavailable when it is a single
                                          whole-day record, otherwise
                                          time-slot-unavailable
3. several records, some available     -> time-slot-unavailable if any is
                                          unavailable, else time-slots if any
                                          price differs, else default
4. one available record                -> custom-price if its price differs,
                                          else default
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.enums import DayState
from ..schemas.availability import AvailabilityRecord, CalendarDayInfo


def _differs_from_default(record: AvailabilityRecord, default_price: Optional[float]) -> bool:
    return (
        default_price is not None
        and record.hourly_price is not None
        and record.hourly_price != default_price
    )


def derive_day_state(
    records: Sequence[AvailabilityRecord],
    default_price: Optional[float],
) -> Tuple[DayState, Optional[float]]:
    """Return ``(state, price)`` for the records of a single date."""
    if not records:
        return DayState.DEFAULT, default_price

    first_price = records[0].hourly_price
    price = first_price if first_price is not None else default_price

    if all(not r.is_available for r in records):
        if len(records) == 1 and records[0].is_whole_day:
            return DayState.UNAVAILABLE, price
        return DayState.TIME_SLOT_UNAVAILABLE, price

    if len(records) > 1:
        if any(not r.is_available for r in records):
            return DayState.TIME_SLOT_UNAVAILABLE, price
        if any(_differs_from_default(r, default_price) for r in records):
            return DayState.TIME_SLOTS, price
        return DayState.DEFAULT, price

    if _differs_from_default(records[0], default_price):
        return DayState.CUSTOM_PRICE, price
    return DayState.DEFAULT, price


def derive_day_info(
    day: date,
    records: Sequence[AvailabilityRecord],
    default_price: Optional[float],
) -> CalendarDayInfo:
    state, price = derive_day_state(records, default_price)
    return CalendarDayInfo(date=day, state=state, price=price)


def group_by_date(records: Iterable[AvailabilityRecord]) -> Dict[date, List[AvailabilityRecord]]:
    """Group rows by the calendar date of their start, keeping input order."""
    by_date: Dict[date, List[AvailabilityRecord]] = defaultdict(list)
    for record in records:
        by_date[record.record_date].append(record)
    return dict(by_date)


def availability_to_days(
    by_date: Mapping[date, Sequence[AvailabilityRecord]],
    default_price: Optional[float],
) -> List[CalendarDayInfo]:
    """Derive one CalendarDayInfo per date key, sorted by date."""
    return [derive_day_info(day, by_date[day], default_price) for day in sorted(by_date)]


def build_modifiers_from_days(days: Iterable[CalendarDayInfo]) -> Dict[str, List[date]]:
    """Group dates by state under ``day-<state>`` keys, omitting empty states."""
    by_state: Dict[DayState, List[date]] = {state: [] for state in DayState}
    for info in days:
        by_state[info.state].append(info.date)
    return {f"day-{state.value}": dates for state, dates in by_state.items() if dates}
