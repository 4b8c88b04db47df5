# backend/parkito/routes/availability.py
"""
Availability proxy routes for the Parkito host dashboard.

Thin pass-through to the backend's save-availability and
delete-availability functions, on behalf of the signed-in host.

Router Endpoints:
    POST /save - Upsert availability for one or more dates
    POST /delete - Delete availability rows by id
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..api.dependencies import get_access_token, get_functions_client
from ..core.constants import WHOLE_DAY_END, WHOLE_DAY_START
from ..core.enums import AvailabilityType
from ..core.exceptions import DomainException, ExternalServiceException, ValidationException
from ..integrations.functions_client import FunctionsClient, FunctionsClientError
from ..schemas.availability_requests import (
    DeleteAvailabilityRequest,
    FunctionTime,
    SaveAvailabilityPayload,
    SaveAvailabilityRequest,
    SaveAvailabilityResponse,
    SuccessResponse,
)
from ..services.recurrence import expand_recurrence

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/availability", tags=["availability"])


def build_save_payload(request: SaveAvailabilityRequest) -> SaveAvailabilityPayload:
    """Validate a save request and turn it into the function payload."""
    if not request.parking_id or not request.availability_type:
        raise ValidationException("Missing parking_id or availabilityType")

    try:
        availability_type = AvailabilityType(request.availability_type)
    except ValueError:
        raise ValidationException(
            f"Invalid availabilityType: {request.availability_type}"
        ) from None

    dates: List[str]
    if request.dates:
        dates = list(request.dates)
    elif request.ripetizione and request.selected_date_str:
        dates = expand_recurrence(
            request.ripetizione,
            request.selected_date_str,
            request.range_start,
            request.range_end,
        )
    else:
        raise ValidationException("Missing dates or (ripetizione + selectedDateStr)")

    start_time = end_time = None
    if availability_type in (AvailabilityType.TIME_SLOT, AvailabilityType.UNAVAILABLE):
        if request.start_time is not None and request.end_time is not None:
            start_time, end_time = request.start_time, request.end_time
        else:
            start_time = FunctionTime.from_time(WHOLE_DAY_START)
            end_time = FunctionTime.from_time(WHOLE_DAY_END)

    return SaveAvailabilityPayload(
        parking_id=request.parking_id,
        dates=dates,
        availability_type=availability_type,
        hourly_price=request.hourly_price,
        start_time=start_time,
        end_time=end_time,
        recurrence_rule=request.recurrence_rule,
    )


@router.post("/save", response_model=SaveAvailabilityResponse)
def save_availability(
    payload: SaveAvailabilityRequest = Body(...),
    access_token: str = Depends(get_access_token),
    client: FunctionsClient = Depends(get_functions_client),
) -> Dict[str, Any]:
    """Upsert availability for the requested dates."""
    try:
        body = build_save_payload(payload)
        logger.info(
            "Saving %s availability for parking %s on %d date(s)",
            body.availability_type.value,
            body.parking_id,
            len(body.dates),
        )
        try:
            return client.save_availability(body, access_token=access_token)
        except FunctionsClientError as exc:
            raise ExternalServiceException(
                str(exc) or "save-availability failed",
                status_code=exc.status_code,
                details={"backend_error": exc.error_body},
            ) from exc
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        logger.error(f"Unexpected error saving availability: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save availability")


@router.post("/delete", response_model=SuccessResponse)
def delete_availability(
    payload: Optional[DeleteAvailabilityRequest] = Body(default=None),
    access_token: str = Depends(get_access_token),
    client: FunctionsClient = Depends(get_functions_client),
) -> SuccessResponse:
    """Delete availability rows; rows already gone count as deleted."""
    try:
        ids = payload.ids if payload is not None else []
        if not ids:
            raise ValidationException("Missing availability_id or availability_ids")
        try:
            client.delete_availabilities(ids, access_token=access_token)
        except FunctionsClientError as exc:
            raise ExternalServiceException(
                str(exc) or "delete-availability failed",
                status_code=exc.status_code,
                details={"backend_error": exc.error_body},
            ) from exc
        return SuccessResponse(success=True)
    except DomainException as e:
        raise e.to_http_exception()
    except Exception as e:
        logger.error(f"Unexpected error deleting availability: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete availability")
