from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from parkito.core.exceptions import ValidationException
from parkito.routes.availability import build_save_payload
from parkito.schemas.availability_requests import SaveAvailabilityRequest

SAVE_URL = "/api/availability/save"
DELETE_URL = "/api/availability/delete"


class TestSaveAvailability:
    """POST /api/availability/save proxies to the save-availability function."""

    def test_requires_bearer_token(self, client):
        response = client.post(SAVE_URL, json={"parking_id": "7"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "MISSING_ACCESS_TOKEN"

    def test_missing_fields(self, client, auth_headers):
        response = client.post(SAVE_URL, json={"dates": ["2025-06-01"]}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Missing parking_id or availabilityType"

    def test_invalid_availability_type(self, client, auth_headers):
        response = client.post(
            SAVE_URL,
            json={"parking_id": "7", "availabilityType": "SOMETIMES", "dates": ["2025-06-01"]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Invalid availabilityType: SOMETIMES"

    def test_invalid_availability_type_hides_enum_error(self):
        request = SaveAvailabilityRequest.model_validate(
            {"parking_id": "7", "availabilityType": "SOMETIMES", "dates": ["2025-06-01"]}
        )

        with pytest.raises(ValidationException) as exc_info:
            build_save_payload(request)

        assert exc_info.value.__cause__ is None
        assert exc_info.value.__suppress_context__ is True

    def test_missing_dates(self, client, auth_headers):
        response = client.post(
            SAVE_URL,
            json={"parking_id": "7", "availabilityType": "TIME_SLOT", "ripetizione": "mai"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == (
            "Missing dates or (ripetizione + selectedDateStr)"
        )

    def test_weekly_recurrence_is_expanded(self, client, auth_headers, backend):
        response = client.post(
            SAVE_URL,
            json={
                "parking_id": 7,
                "availabilityType": "UNAVAILABLE",
                "ripetizione": "ogni_settimana",
                "selectedDateStr": "2025-03-10",
                "recurrence_rule": "ogni_settimana",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert len(response.json()["results"]) == 52
        (body,) = backend.saved
        assert body["parking_id"] == "7"
        assert body["dates"][-1] == "2026-03-02"
        assert body["startTime"] == {"hour": 0, "minute": 0}
        assert body["endTime"] == {"hour": 23, "minute": 59}
        assert body["recurrence_rule"] == "ogni_settimana"

    def test_time_slot_with_explicit_dates(self, client, auth_headers, backend):
        response = client.post(
            SAVE_URL,
            json={
                "parking_id": "7",
                "availabilityType": "TIME_SLOT",
                "dates": ["2025-06-01", "2025-06-02"],
                "startTime": "09:00",
                "endTime": {"hour": 12, "minute": 30},
                "hourly_price": 6.5,
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = backend.saved[0]
        assert body["dates"] == ["2025-06-01", "2025-06-02"]
        assert body["startTime"] == {"hour": 9, "minute": 0}
        assert body["endTime"] == {"hour": 12, "minute": 30}
        assert body["hourly_price"] == 6.5

    def test_always_available_sends_no_times(self, client, auth_headers, backend):
        response = client.post(
            SAVE_URL,
            json={"parking_id": "7", "availabilityType": "ALWAYS_AVAILABLE", "dates": ["2025-06-01"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert "startTime" not in backend.saved[0]
        assert backend.saved[0]["hourly_price"] is None

    def test_backend_server_error_is_bad_gateway(self, client, auth_headers, backend):
        backend.save_error = (500, {"error": "database unavailable"})

        response = client.post(
            SAVE_URL,
            json={"parking_id": "7", "availabilityType": "UNAVAILABLE", "dates": ["2025-06-01"]},
            headers=auth_headers,
        )

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["message"] == "database unavailable"
        assert detail["details"]["backend_error"] == {"error": "database unavailable"}

    def test_backend_client_error_is_passed_through(self, client, auth_headers, backend):
        backend.save_error = (400, {"error": "Invalid dates"})

        response = client.post(
            SAVE_URL,
            json={"parking_id": "7", "availabilityType": "UNAVAILABLE", "dates": ["bad"]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Invalid dates"


class TestDeleteAvailability:
    def test_deletes_each_id(self, client, auth_headers, backend):
        response = client.post(DELETE_URL, json={"availability_ids": [1, 2]}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert backend.deleted == [1, 2]

    def test_row_already_gone_is_success(self, client, auth_headers, backend):
        backend.missing_ids = {5}

        response = client.post(DELETE_URL, json={"availability_id": 5}, headers=auth_headers)

        assert response.status_code == 200

    def test_missing_ids(self, client, auth_headers):
        assert client.post(DELETE_URL, headers=auth_headers).status_code == 400
        assert client.post(DELETE_URL, json={}, headers=auth_headers).status_code == 400


class TestHealth:
    def test_healthy_without_redis(self, client):
        with patch("parkito.routes.health.get_redis_client", return_value=None):
            response = client.get("/api/health")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"redis": None}

    def test_degraded_when_redis_unreachable(self, client):
        redis_client = MagicMock()
        redis_client.ping.side_effect = RedisConnectionError("down")

        with patch("parkito.routes.health.get_redis_client", return_value=redis_client):
            data = client.get("/api/health").json()

        assert data["status"] == "degraded"
        assert data["checks"] == {"redis": False}
