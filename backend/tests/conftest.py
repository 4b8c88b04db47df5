"""Shared fixtures for the Parkito backend tests."""

from __future__ import annotations

from datetime import date
import json
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from fastapi import FastAPI
from fastapi.testclient import TestClient
import httpx
import pytest

from parkito.api.dependencies import (
    get_draft_storage,
    get_functions_client,
    get_parking_info_service,
)
from parkito.integrations.functions_client import FunctionsClient
from parkito.schemas.availability import AvailabilityRecord
from parkito.services.draft_storage import InMemoryDraftStorage
from parkito.services.parking_info_service import ParkingInfoService
from parkito.services.pending_store import PendingAvailabilityStore

TEST_PREFIX = "parkito-availability-pending-"

RecordFactory = Callable[..., AvailabilityRecord]


def make_record(
    day: str | date,
    start: str = "00:00",
    end: str = "23:59",
    *,
    available: bool = True,
    price: Optional[float] = None,
    rule: Optional[str] = None,
    id: Optional[int] = None,
    parking_id: str = "1",
) -> AvailabilityRecord:
    """Build an availability row the way the backend returns it."""
    day_str = day.isoformat() if isinstance(day, date) else day
    return AvailabilityRecord(
        id=id,
        parking_id=parking_id,
        start_datetime=f"{day_str}T{start}:00",
        end_datetime=f"{day_str}T{end}:00",
        is_available=available,
        hourly_price=price,
        recurrence_rule=rule,
    )


@pytest.fixture
def record() -> RecordFactory:
    return make_record


@pytest.fixture
def storage() -> InMemoryDraftStorage:
    return InMemoryDraftStorage()


@pytest.fixture
def store(storage: InMemoryDraftStorage) -> PendingAvailabilityStore:
    return PendingAvailabilityStore(storage, key_prefix=TEST_PREFIX)


@pytest.fixture
def june_first() -> date:
    return date(2025, 6, 1)


class FakeBackend:
    """In-memory stand-in for the hosted backend, served through httpx.MockTransport."""

    def __init__(self, parking_id: str = "7", base_hourly_price: Optional[float] = 5.0) -> None:
        self.parking = {"id": parking_id, "name": "Garage", "base_hourly_price": base_hourly_price}
        self.rows: List[Dict[str, Any]] = []
        self.saved: List[Dict[str, Any]] = []
        self.deleted: List[Any] = []
        self.missing_ids: set = set()
        self.save_error: Optional[Tuple[int, Dict[str, Any]]] = None

    def add_row(self, record: AvailabilityRecord) -> None:
        self.rows.append(record.model_dump(mode="json"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/rest/v1/pkt_parking":
            wanted = request.url.params.get("id", "").removeprefix("eq.")
            return httpx.Response(200, json=[self.parking] if wanted == self.parking["id"] else [])
        if path == "/rest/v1/pkt_availability":
            return httpx.Response(200, json=self.rows)
        if path == "/functions/v1/save-availability":
            if self.save_error is not None:
                status, body = self.save_error
                return httpx.Response(status, json=body)
            body = json.loads(request.content)
            self.saved.append(body)
            return httpx.Response(200, json={"results": [{"date": d} for d in body["dates"]]})
        if path == "/functions/v1/delete-availability":
            availability_id = json.loads(request.content)["availability_id"]
            if availability_id in self.missing_ids:
                return httpx.Response(404, json={"error": "Availability not found"})
            self.deleted.append(availability_id)
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"error": f"Unknown path {path}"})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def functions_client(backend: FakeBackend) -> FunctionsClient:
    return FunctionsClient(
        project_url="https://backend.test",
        anon_key="anon-key",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def app(functions_client: FunctionsClient, storage: InMemoryDraftStorage) -> Iterator[FastAPI]:
    from parkito.main import app as parkito_app

    parkito_app.dependency_overrides[get_functions_client] = lambda: functions_client
    parkito_app.dependency_overrides[get_parking_info_service] = lambda: ParkingInfoService(
        functions_client, ttl_seconds=0
    )
    parkito_app.dependency_overrides[get_draft_storage] = lambda: storage
    yield parkito_app
    parkito_app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer host-token", "X-Draft-Session": "session-1"}
