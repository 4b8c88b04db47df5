# backend/parkito/services/bulk_replay.py
"""
Bulk Replay Service for the Parkito host dashboard.

Commits a parking's session draft to the backend in one go:
1. refetch the parking's rows so ids reflect the latest server state
2. collect the ids to delete: explicit ids, every row of a deleted date and
   every row of an updated date
3. upsert each staged update (one call per whole-day update or per slot),
   expanding its recurrence into the dates it applies to
4. delete the collected ids, once, at the end
5. clear the draft and drop the cached parking info

Ids are collected before the upserts, so rows created by step 3 are never
deleted by step 4. When any call fails the draft is kept so the host can
retry.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Dict, List, Sequence

from ..core.constants import WHOLE_DAY_END, WHOLE_DAY_START
from ..core.enums import AvailabilityType, RecurrenceFrequency
from ..core.exceptions import ExternalServiceException
from ..integrations.functions_client import FunctionsClient, FunctionsClientError
from ..schemas.availability import AvailabilityRecord
from ..schemas.availability_requests import (
    CommitResponse,
    FunctionTime,
    SaveAvailabilityPayload,
)
from ..schemas.pending import PendingAvailability, PendingDayUpdate
from .base import BaseService
from .day_state import group_by_date
from .parking_info_service import ParkingInfoService
from .pending_store import PendingAvailabilityStore
from .recurrence import expand_recurrence_dates

logger = logging.getLogger(__name__)


@dataclass
class ReplayPlan:
    delete_ids: List[int] = field(default_factory=list)
    saves: List[SaveAvailabilityPayload] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.delete_ids and not self.saves


def _rule(frequency: RecurrenceFrequency) -> str | None:
    return frequency.value if frequency.repeats else None


def _update_payloads(
    parking_id: str, day: date, update: PendingDayUpdate
) -> List[SaveAvailabilityPayload]:
    if not update.slots:
        dates = expand_recurrence_dates(update.whole_day_recurrence, day)
        # ALWAYS_AVAILABLE carries no window, same as the save route
        start_time = end_time = None
        if not update.whole_day_available:
            start_time = FunctionTime.from_time(WHOLE_DAY_START)
            end_time = FunctionTime.from_time(WHOLE_DAY_END)
        return [
            SaveAvailabilityPayload(
                parking_id=parking_id,
                dates=[d.isoformat() for d in dates],
                availability_type=(
                    AvailabilityType.ALWAYS_AVAILABLE
                    if update.whole_day_available
                    else AvailabilityType.UNAVAILABLE
                ),
                hourly_price=update.whole_day_hourly_price,
                start_time=start_time,
                end_time=end_time,
                recurrence_rule=_rule(update.whole_day_recurrence),
            )
        ]

    payloads = []
    for slot in update.slots:
        dates = expand_recurrence_dates(slot.recurrence, day)
        payloads.append(
            SaveAvailabilityPayload(
                parking_id=parking_id,
                dates=[d.isoformat() for d in dates],
                availability_type=(
                    AvailabilityType.TIME_SLOT if slot.is_available else AvailabilityType.UNAVAILABLE
                ),
                hourly_price=slot.hourly_price,
                start_time=FunctionTime.from_time(slot.start_time),
                end_time=FunctionTime.from_time(slot.end_time),
                recurrence_rule=_rule(slot.recurrence),
            )
        )
    return payloads


def build_replay_plan(
    parking_id: str,
    pending: PendingAvailability,
    fresh_records: Sequence[AvailabilityRecord],
) -> ReplayPlan:
    """Translate a draft into backend calls against the given server rows."""
    ids_by_date: Dict[date, List[int]] = {
        day: [r.id for r in rows if r.id is not None]
        for day, rows in group_by_date(fresh_records).items()
    }

    plan = ReplayPlan()

    def add_delete(record_id: int) -> None:
        if record_id not in plan.delete_ids:
            plan.delete_ids.append(record_id)

    for record_id in pending.delete_ids:
        add_delete(record_id)
    for day in pending.delete_dates:
        for record_id in ids_by_date.get(day, []):
            add_delete(record_id)

    for day, update in pending.updates.items():
        for record_id in ids_by_date.get(day, []):
            add_delete(record_id)
        plan.saves.extend(_update_payloads(parking_id, day, update))

    return plan


class BulkReplayService(BaseService):
    """Replays a parking's session draft against the backend functions."""

    def __init__(
        self,
        store: PendingAvailabilityStore,
        client: FunctionsClient,
        parking_info: ParkingInfoService,
    ):
        super().__init__()
        self.store = store
        self.client = client
        self.parking_info = parking_info

    @BaseService.measure_operation("commit_pending")
    def commit(self, parking_id: str, access_token: str) -> CommitResponse:
        pending = self.store.get_pending(parking_id)
        if pending is None or pending.is_empty:
            self.store.clear_pending(parking_id)
            return CommitResponse(saved=0, deleted=0, committed=False)

        info = self.parking_info.get_parking_info(parking_id, access_token, use_cache=False)
        plan = build_replay_plan(parking_id, pending, info.availability)

        self.log_operation(
            "commit_pending",
            parking_id=parking_id,
            saves=len(plan.saves),
            deletes=len(plan.delete_ids),
        )

        try:
            for payload in plan.saves:
                self.client.save_availability(payload, access_token=access_token)
            deleted = self.client.delete_availabilities(plan.delete_ids, access_token=access_token)
        except FunctionsClientError as exc:
            logger.error("Commit of availability draft for %s failed: %s", parking_id, exc)
            raise ExternalServiceException(
                str(exc),
                status_code=exc.status_code,
                code="AVAILABILITY_COMMIT_FAILED",
                details={"backend_error": exc.error_body},
            ) from exc
        finally:
            self.parking_info.invalidate(parking_id)

        self.store.clear_pending(parking_id)
        return CommitResponse(saved=len(plan.saves), deleted=deleted, committed=True)
