# backend/parkito/routes/parking_calendar.py
"""
Availability calendar routes for the Parkito host dashboard.

The calendar and the editor work on the server rows of a parking with the
session draft overlaid. Edits are only staged in the draft; nothing reaches
the backend until the host commits.

Router Endpoints:
    GET /{parking_id}/calendar - Month view with the draft overlaid
    GET /{parking_id}/editor/{day} - Initial editor state for a date
    GET /{parking_id}/pending - Current draft
    DELETE /{parking_id}/pending - Discard the draft
    PUT /{parking_id}/pending/days/{day} - Stage a day (or range) edit
    POST /{parking_id}/pending/days/{day}/delete - Stage a day deletion
    POST /{parking_id}/pending/commit - Replay the draft against the backend
"""

from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ..api.dependencies import (
    get_access_token,
    get_bulk_replay_service,
    get_parking_info_service,
    get_pending_store,
)
from ..core.enums import DeleteOutcome, DeleteScope
from ..core.exceptions import DomainException, ValidationException
from ..schemas.availability import MonthCalendarResponse
from ..schemas.availability_requests import (
    CommitResponse,
    DayEditRequest,
    DeleteDayRequest,
    DeleteDayResponse,
    EditorSlotView,
    EditorViewResponse,
    StageResponse,
    SuccessResponse,
)
from ..schemas.pending import PendingAvailability
from ..services.availability_editor import AvailabilityEditor
from ..services.bulk_replay import BulkReplayService
from ..services.calendar_view import month_view
from ..services.day_state import build_modifiers_from_days
from ..services.editor_slots import EditorSlot
from ..services.parking_info_service import ParkingInfoService
from ..services.pending_store import PendingAvailabilityStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/parking", tags=["calendar"])


def _editor_for(
    parking_id: str,
    access_token: str,
    store: PendingAvailabilityStore,
    parking_info: ParkingInfoService,
) -> AvailabilityEditor:
    info = parking_info.get_parking_info(parking_id, access_token)
    return AvailabilityEditor(
        store,
        parking_id,
        records=info.availability,
        base_hourly_price=info.base_hourly_price,
    )


def _editor_view(editor: AvailabilityEditor, day: date) -> EditorViewResponse:
    return EditorViewResponse(
        date=day,
        mode=editor.mode.kind,
        source=editor.source.value if editor.source is not None else "",
        whole_day_available=editor.whole_day.is_available,
        whole_day_hourly_price=editor.whole_day.hourly_price,
        whole_day_recurrence=editor.whole_day.recurrence,
        slots=[
            EditorSlotView(
                id=slot.id,
                start_time=slot.start_time,
                end_time=slot.end_time,
                is_available=slot.is_available,
                hourly_price=slot.hourly_price,
                recurrence=slot.recurrence,
            )
            for slot in editor.slots
        ],
        has_recurrence=editor.has_recurrence,
        can_delete=editor.can_delete,
    )


@router.get("/{parking_id}/calendar", response_model=MonthCalendarResponse)
def get_month_calendar(
    parking_id: str,
    year: Optional[int] = Query(None, ge=1970, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    access_token: str = Depends(get_access_token),
    store: PendingAvailabilityStore = Depends(get_pending_store),
    parking_info: ParkingInfoService = Depends(get_parking_info_service),
) -> MonthCalendarResponse:
    """Get the derived state of every day of a month."""
    today = date.today()
    year = year or today.year
    month = month or today.month
    try:
        info = parking_info.get_parking_info(parking_id, access_token)
        pending = store.get_pending(parking_id)
        days = month_view(year, month, info.availability, info.base_hourly_price, pending)
        return MonthCalendarResponse(
            parking_id=parking_id,
            year=year,
            month=month,
            base_hourly_price=info.base_hourly_price,
            has_pending=pending is not None and not pending.is_empty,
            days=days,
            modifiers=build_modifiers_from_days(days),
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/{parking_id}/editor/{day}", response_model=EditorViewResponse)
def get_editor_state(
    parking_id: str,
    day: date,
    access_token: str = Depends(get_access_token),
    store: PendingAvailabilityStore = Depends(get_pending_store),
    parking_info: ParkingInfoService = Depends(get_parking_info_service),
) -> EditorViewResponse:
    """Get what the editor shows when opened on a date."""
    try:
        editor = _editor_for(parking_id, access_token, store, parking_info)
        editor.open_day(day)
        return _editor_view(editor, day)
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/{parking_id}/pending", response_model=PendingAvailability)
def get_pending_draft(
    parking_id: str,
    store: PendingAvailabilityStore = Depends(get_pending_store),
) -> PendingAvailability:
    return store.get_pending(parking_id) or PendingAvailability()


@router.delete("/{parking_id}/pending", response_model=SuccessResponse)
def discard_pending_draft(
    parking_id: str,
    store: PendingAvailabilityStore = Depends(get_pending_store),
) -> SuccessResponse:
    store.clear_pending(parking_id)
    logger.info("Discarded availability draft for parking %s", parking_id)
    return SuccessResponse(success=True)


@router.put("/{parking_id}/pending/days/{day}", response_model=StageResponse)
def stage_day_edit(
    parking_id: str,
    day: date,
    payload: DayEditRequest = Body(...),
    store: PendingAvailabilityStore = Depends(get_pending_store),
) -> StageResponse:
    """
    Stage the edited state of a day, or of every date in ``range_dates``.

    Slots are validated first; invalid slots are reported per index and
    nothing is staged.
    """
    try:
        editor = AvailabilityEditor(store, parking_id)
        if payload.range_dates:
            editor.open_range(payload.range_dates)
        else:
            editor.open_day(day)

        editor.set_whole_day(
            is_available=payload.whole_day_available,
            hourly_price=payload.whole_day_hourly_price,
            recurrence=payload.whole_day_recurrence,
        )
        editor.set_slots(
            [
                EditorSlot(
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    is_available=slot.is_available,
                    hourly_price=slot.hourly_price,
                    recurrence=slot.recurrence,
                )
                for slot in payload.slots
            ]
        )

        errors = editor.slot_errors
        if errors:
            raise ValidationException(
                "Invalid time slots",
                code="INVALID_SLOTS",
                details={"slot_errors": {str(i): messages for i, messages in errors.items()}},
            )

        staged = editor.save()
        return StageResponse(staged_dates=staged, pending=store.get_pending(parking_id))
    except DomainException as e:
        raise e.to_http_exception()


@router.post("/{parking_id}/pending/days/{day}/delete", response_model=DeleteDayResponse)
def stage_day_delete(
    parking_id: str,
    day: date,
    payload: Optional[DeleteDayRequest] = Body(default=None),
    access_token: str = Depends(get_access_token),
    store: PendingAvailabilityStore = Depends(get_pending_store),
    parking_info: ParkingInfoService = Depends(get_parking_info_service),
) -> DeleteDayResponse:
    """
    Stage deletion of a day.

    Recurring days need a scope: without one the answer is
    ``scope_required`` and nothing is staged.
    """
    try:
        editor = _editor_for(parking_id, access_token, store, parking_info)
        editor.open_day(day)
        scope = payload.scope if payload is not None else None

        if scope is None:
            outcome = editor.request_delete()
        elif not editor.can_delete:
            outcome = DeleteOutcome.NOTHING_TO_DELETE
        elif scope is DeleteScope.ALL_FUTURE:
            editor.delete_all_future()
            outcome = DeleteOutcome.STAGED
        else:
            editor.delete_this_day()
            outcome = DeleteOutcome.STAGED

        if outcome is DeleteOutcome.NO_CONTEXT:
            raise HTTPException(status_code=400, detail="Missing parking or date")
        return DeleteDayResponse(status=outcome.value, pending=store.get_pending(parking_id))
    except DomainException as e:
        raise e.to_http_exception()


@router.post("/{parking_id}/pending/commit", response_model=CommitResponse)
def commit_pending_draft(
    parking_id: str,
    access_token: str = Depends(get_access_token),
    replay: BulkReplayService = Depends(get_bulk_replay_service),
) -> CommitResponse:
    """Replay the draft against the backend and clear it."""
    try:
        return replay.commit(parking_id, access_token)
    except DomainException as e:
        raise e.to_http_exception()
