# backend/parkito/schemas/availability.py
"""
Availability schemas for the Parkito host dashboard.

An availability record is an explicit override of a parking's default
availability and price for one time window on one date. No record for a
date means the parking is fully available at its base hourly price.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.constants import WHOLE_DAY_END, WHOLE_DAY_START
from ..core.enums import DayState, RecurrenceFrequency

# Alias so the `date` field name does not shadow the type
DateType = date


def _parse_end_of_day(value: Any) -> Any:
    """
    Turn a 'YYYY-MM-DDT24:00[:SS][offset]' timestamp into the following midnight.

    Only the date and hour are rewritten; seconds and any UTC offset are kept
    so the result compares with an offset-aware start.
    """
    if isinstance(value, str) and "T24:00" in value:
        head, _, rest = value.partition("T24:00")
        day = date.fromisoformat(head[:10])
        return f"{(day + timedelta(days=1)).isoformat()}T00:00{rest}"
    return value


class AvailabilityRecord(BaseModel):
    """One persisted override row as returned by the backend."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: Optional[int] = None
    parking_id: str = ""
    start_datetime: datetime
    end_datetime: datetime
    is_available: bool = True
    hourly_price: Optional[float] = None
    recurrence_rule: Optional[str] = None

    @field_validator("parking_id", mode="before")
    @classmethod
    def _stringify_parking_id(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("end_datetime", mode="before")
    @classmethod
    def _normalize_end_of_day(cls, v: Any) -> Any:
        return _parse_end_of_day(v)

    @model_validator(mode="after")
    def _validate_window(self) -> "AvailabilityRecord":
        """Ensure end is after start."""
        if self.end_datetime <= self.start_datetime:
            raise ValueError("end_datetime must be after start_datetime")
        return self

    @property
    def record_date(self) -> date:
        return self.start_datetime.date()

    @property
    def start_time(self) -> time:
        return self.start_datetime.time().replace(second=0, microsecond=0, tzinfo=None)

    @property
    def end_time(self) -> time:
        return self.end_datetime.time().replace(second=0, microsecond=0, tzinfo=None)

    @property
    def recurrence_tag(self) -> Optional[str]:
        """Trimmed recurrence tag, or None for one-off records."""
        if not isinstance(self.recurrence_rule, str):
            return None
        tag = self.recurrence_rule.strip()
        return tag or None

    @property
    def recurrence(self) -> RecurrenceFrequency:
        parsed = RecurrenceFrequency.parse(self.recurrence_tag)
        return parsed or RecurrenceFrequency.NEVER

    @property
    def is_whole_day(self) -> bool:
        """True for the canonical 00:00-23:59 (or 00:00-24:00) window."""
        if self.start_time != WHOLE_DAY_START:
            return False
        if self.end_datetime.date() == self.record_date:
            return self.end_time == WHOLE_DAY_END
        return (
            self.end_datetime.date() == self.record_date + timedelta(days=1)
            and self.end_time == time(0, 0)
        )


class ParkingSummary(BaseModel):
    """The parking fields the calendar needs."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    name: Optional[str] = None
    base_hourly_price: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else v


class ParkingFullInfo(BaseModel):
    """Parking plus its full list of availability overrides."""

    parking: ParkingSummary
    availability: List[AvailabilityRecord] = Field(default_factory=list)

    @property
    def base_hourly_price(self) -> Optional[float]:
        return self.parking.base_hourly_price


class CalendarDayInfo(BaseModel):
    """Derived display state of one calendar day. Never persisted."""

    model_config = ConfigDict(use_enum_values=False)

    date: DateType
    state: DayState
    price: Optional[float] = None


class CalendarDayView(CalendarDayInfo):
    """Day info plus the recurring badge shown in the month grid."""

    recurrent: bool = False


class MonthCalendarResponse(BaseModel):
    parking_id: str
    year: int
    month: int
    base_hourly_price: Optional[float] = None
    has_pending: bool = False
    days: List[CalendarDayView]
    modifiers: Dict[str, List[DateType]] = Field(default_factory=dict)
