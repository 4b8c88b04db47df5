# backend/parkito/services/recurrence.py
"""
Recurrence expansion for availability edits.

Turns a repeat frequency and an anchor date into the concrete dates an edit
applies to. Every series is capped at one year from the anchor:

    never      -> [anchor]
    daily      -> anchor .. anchor + 365 days (inclusive)
    weekly     -> anchor + 7k, k < 52, within 365 days
    biweekly   -> anchor + 14k, k < 52, within 365 days
    monthly    -> same day-of-month for 12 months, within one calendar year

Unknown frequencies fall back to the anchor alone.
"""

import calendar
from datetime import date, timedelta
import logging
from typing import Any, List, Optional, Union

from ..core.constants import ONE_YEAR_DAYS, ONE_YEAR_MONTHS, ONE_YEAR_WEEKS
from ..core.enums import RecurrenceFrequency

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

_WEEK_STEPS = {
    RecurrenceFrequency.WEEKLY: 7,
    RecurrenceFrequency.BIWEEKLY: 14,
}


def parse_iso_date(value: Optional[DateLike]) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or pass a date through); None when invalid."""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def add_months(day: date, months: int) -> date:
    """Advance by calendar months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _generate(frequency: RecurrenceFrequency, anchor: date) -> List[date]:
    cap = anchor + timedelta(days=ONE_YEAR_DAYS)

    if frequency is RecurrenceFrequency.DAILY:
        return [anchor + timedelta(days=offset) for offset in range(ONE_YEAR_DAYS + 1)]

    if frequency in _WEEK_STEPS:
        step = _WEEK_STEPS[frequency]
        dates: List[date] = []
        for week in range(ONE_YEAR_WEEKS):
            current = anchor + timedelta(days=week * step)
            if current > cap:
                break
            dates.append(current)
        return dates

    if frequency is RecurrenceFrequency.MONTHLY:
        year_cap = add_months(anchor, 12)
        dates = []
        for month in range(ONE_YEAR_MONTHS):
            current = add_months(anchor, month)
            if current > year_cap:
                break
            dates.append(current)
        return dates

    return [anchor]


def expand_recurrence_dates(
    frequency: Any,
    anchor: date,
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
) -> List[date]:
    """Expand a frequency into ordered, de-duplicated dates starting at the anchor."""
    parsed = RecurrenceFrequency.parse(frequency)
    if parsed is None or not parsed.repeats:
        return [anchor]

    dates = _generate(parsed, anchor)
    if range_start is not None:
        dates = [d for d in dates if d >= range_start]
    if range_end is not None:
        dates = [d for d in dates if d <= range_end]
    return dates


def expand_recurrence(
    frequency: Any,
    anchor: DateLike,
    range_start: Optional[DateLike] = None,
    range_end: Optional[DateLike] = None,
) -> List[str]:
    """
    Compute the ISO dates (YYYY-MM-DD) an edit with this frequency applies to.

    Used to build the ``dates`` array of a save-availability call and to
    preview staged edits on the calendar. Never raises: an unparsable anchor
    yields ``[anchor]`` as given.
    """
    anchor_date = parse_iso_date(anchor)
    if anchor_date is None:
        logger.debug("expand_recurrence: unparsable anchor %r", anchor)
        return [str(anchor)]

    dates = expand_recurrence_dates(
        frequency,
        anchor_date,
        range_start=parse_iso_date(range_start),
        range_end=parse_iso_date(range_end),
    )
    return [d.isoformat() for d in dates]
