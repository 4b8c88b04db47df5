from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from parkito.core.exceptions import ExternalServiceException, NotFoundException
from parkito.integrations.functions_client import FunctionsClient, FunctionsClientError
from parkito.schemas.availability import ParkingFullInfo, ParkingSummary
from parkito.services.parking_info_service import ParkingInfoService


@pytest.fixture
def client():
    client = MagicMock(spec=FunctionsClient)
    client.fetch_parking_info.return_value = ParkingFullInfo(
        parking=ParkingSummary(id="7", base_hourly_price=5.0)
    )
    return client


class TestParkingInfoService:
    def test_cached_between_reads(self, client):
        service = ParkingInfoService(client, ttl_seconds=60)

        first = service.get_parking_info("7", "token")
        second = service.get_parking_info("7", "token")

        assert first is second
        client.fetch_parking_info.assert_called_once_with("7", access_token="token")

    def test_bypass_and_invalidate(self, client):
        service = ParkingInfoService(client, ttl_seconds=60)
        service.get_parking_info("7", "token")

        service.get_parking_info("7", "token", use_cache=False)
        service.invalidate("7")
        service.get_parking_info("7", "token")

        assert client.fetch_parking_info.call_count == 3

    def test_zero_ttl_disables_cache(self, client):
        service = ParkingInfoService(client, ttl_seconds=0)

        service.get_parking_info("7", "token")
        service.get_parking_info("7", "token")

        assert client.fetch_parking_info.call_count == 2

    def test_missing_parking_raises_not_found(self, client):
        client.fetch_parking_info.return_value = None

        with pytest.raises(NotFoundException) as excinfo:
            ParkingInfoService(client, ttl_seconds=0).get_parking_info("7", "token")

        assert excinfo.value.code == "PARKING_NOT_FOUND"
        assert excinfo.value.to_http_exception().status_code == 404

    def test_backend_failure_becomes_external_error(self, client):
        client.fetch_parking_info.side_effect = FunctionsClientError(
            "unauthorized", status_code=401, error_body={"error": "unauthorized"}
        )

        with pytest.raises(ExternalServiceException) as excinfo:
            ParkingInfoService(client, ttl_seconds=0).get_parking_info("7", "token")

        assert excinfo.value.to_http_exception().status_code == 401
