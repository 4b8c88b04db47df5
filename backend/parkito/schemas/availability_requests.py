# backend/parkito/schemas/availability_requests.py
"""
Request and response schemas for the availability routes and for the
backend functions they proxy to.
"""

from datetime import date, time
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.enums import AvailabilityType, DeleteScope, RecurrenceFrequency
from ..utils.time_helpers import coerce_time
from ._strict_base import StrictModel, StrictRequestModel
from .availability import DateType
from .pending import PendingAvailability


class FunctionTime(BaseModel):
    """Time of day as the save-availability function expects it."""

    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    @classmethod
    def from_time(cls, t: time) -> "FunctionTime":
        return cls(hour=t.hour, minute=t.minute)

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, (str, time)):
            return cls.from_time(coerce_time(value))
        return value


class SaveAvailabilityPayload(BaseModel):
    """Upsert call sent to the save-availability function."""

    model_config = ConfigDict(populate_by_name=True)

    parking_id: str
    dates: List[str]
    availability_type: AvailabilityType = Field(alias="availabilityType")
    hourly_price: Optional[float] = None
    start_time: Optional[FunctionTime] = Field(default=None, alias="startTime")
    end_time: Optional[FunctionTime] = Field(default=None, alias="endTime")
    recurrence_rule: Optional[str] = None

    def to_body(self) -> dict:
        """JSON body with explicit nulls for price and rule; times only when set."""
        body = self.model_dump(mode="json", by_alias=True)
        for key in ("startTime", "endTime"):
            if body.get(key) is None:
                body.pop(key, None)
        return body


class SaveAvailabilityRequest(StrictRequestModel):
    """Body of POST /api/availability/save."""

    parking_id: Optional[str] = None
    dates: Optional[List[str]] = None
    ripetizione: Optional[str] = None
    selected_date_str: Optional[str] = Field(default=None, alias="selectedDateStr")
    range_start: Optional[str] = Field(default=None, alias="rangeStart")
    range_end: Optional[str] = Field(default=None, alias="rangeEnd")
    availability_type: Optional[str] = Field(default=None, alias="availabilityType")
    start_time: Optional[FunctionTime] = Field(default=None, alias="startTime")
    end_time: Optional[FunctionTime] = Field(default=None, alias="endTime")
    hourly_price: Optional[float] = None
    recurrence_rule: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, v: Any) -> Any:
        return FunctionTime.coerce(v)

    @field_validator("parking_id", mode="before")
    @classmethod
    def _stringify_parking_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class DeleteAvailabilityRequest(StrictRequestModel):
    """Body of POST /api/availability/delete."""

    availability_id: Optional[Union[int, str]] = None
    availability_ids: Optional[List[Union[int, str]]] = None

    @property
    def ids(self) -> List[Union[int, str]]:
        if self.availability_ids:
            return list(self.availability_ids)
        if self.availability_id is not None:
            return [self.availability_id]
        return []


class SaveAvailabilityResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    results: List[Any] = Field(default_factory=list)


class SuccessResponse(StrictModel):
    success: bool = True


class SlotInput(StrictRequestModel):
    """One slot of a day edit."""

    start_time: time
    end_time: time
    is_available: bool = True
    hourly_price: Optional[float] = None
    recurrence: RecurrenceFrequency = RecurrenceFrequency.NEVER

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, v: Any) -> Any:
        return coerce_time(v) if isinstance(v, str) else v

    @field_validator("recurrence", mode="before")
    @classmethod
    def _parse_recurrence(cls, v: Any) -> Any:
        return RecurrenceFrequency.parse(v) or v


class DayEditRequest(StrictRequestModel):
    """Body of PUT /api/parking/{parking_id}/pending/days/{day}."""

    whole_day_available: bool = True
    whole_day_hourly_price: Optional[float] = None
    whole_day_recurrence: RecurrenceFrequency = RecurrenceFrequency.NEVER
    slots: List[SlotInput] = Field(default_factory=list)
    range_dates: Optional[List[date]] = None

    @field_validator("whole_day_recurrence", mode="before")
    @classmethod
    def _parse_recurrence(cls, v: Any) -> Any:
        return RecurrenceFrequency.parse(v) or v


class DeleteDayRequest(StrictRequestModel):
    scope: Optional[DeleteScope] = None


class StageResponse(BaseModel):
    staged_dates: List[date]
    pending: Optional[PendingAvailability] = None


class DeleteDayResponse(BaseModel):
    status: Literal["staged", "scope_required", "nothing_to_delete"]
    pending: Optional[PendingAvailability] = None


class EditorSlotView(BaseModel):
    id: Optional[int] = None
    start_time: time
    end_time: time
    is_available: bool
    hourly_price: Optional[float] = None
    recurrence: RecurrenceFrequency


class EditorViewResponse(BaseModel):
    date: DateType
    mode: Literal["whole_day", "time_slots"]
    source: str
    whole_day_available: bool
    whole_day_hourly_price: Optional[float] = None
    whole_day_recurrence: RecurrenceFrequency
    slots: List[EditorSlotView] = Field(default_factory=list)
    has_recurrence: bool
    can_delete: bool


class CommitResponse(BaseModel):
    saved: int
    deleted: int
    committed: bool
