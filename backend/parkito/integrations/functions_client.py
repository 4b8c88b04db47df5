"""Minimal client for the hosted backend: REST tables and edge functions."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import httpx
from pydantic import SecretStr, ValidationError

from ..core.constants import (
    AVAILABILITY_TABLE,
    DELETE_AVAILABILITY_FUNCTION,
    PARKING_TABLE,
    SAVE_AVAILABILITY_FUNCTION,
)
from ..schemas.availability import AvailabilityRecord, ParkingFullInfo, ParkingSummary
from ..schemas.availability_requests import SaveAvailabilityPayload

logger = logging.getLogger(__name__)


class FunctionsClientError(RuntimeError):
    """Raised when the backend responds with an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        error_body: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_body = error_body


class FunctionsClient:
    """
    Thin client for the backend the dashboard is layered on.

    Every call runs on behalf of the signed-in host, so the access token is
    passed per call while the project URL and anon key are fixed.
    """

    def __init__(
        self,
        *,
        project_url: str,
        anon_key: str | SecretStr,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not project_url:
            raise ValueError("Backend project URL must be provided")
        self._project_url = project_url.rstrip("/")
        self._anon_key = anon_key.get_secret_value() if isinstance(anon_key, SecretStr) else anon_key
        self._timeout = timeout
        self._transport = transport

    @property
    def functions_url(self) -> str:
        return f"{self._project_url}/functions/v1"

    @property
    def rest_url(self) -> str:
        return f"{self._project_url}/rest/v1"

    # Tables

    def fetch_parking_info(self, parking_id: str, *, access_token: str) -> Optional[ParkingFullInfo]:
        """Load a parking and all its availability rows; None when the parking does not exist."""

        parkings = self.request(
            "GET",
            f"{self.rest_url}/{PARKING_TABLE}",
            access_token=access_token,
            params={"id": f"eq.{parking_id}", "select": "*"},
        )
        if not isinstance(parkings, list) or not parkings:
            return None

        rows = self.request(
            "GET",
            f"{self.rest_url}/{AVAILABILITY_TABLE}",
            access_token=access_token,
            params={
                "parking_id": f"eq.{parking_id}",
                "select": "*",
                "order": "start_datetime.asc",
            },
        )

        availability: List[AvailabilityRecord] = []
        for row in rows if isinstance(rows, list) else []:
            try:
                availability.append(AvailabilityRecord.model_validate(row))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed availability row %s for parking %s: %s",
                    row.get("id") if isinstance(row, dict) else None,
                    parking_id,
                    exc,
                )

        return ParkingFullInfo(
            parking=ParkingSummary.model_validate(parkings[0]),
            availability=availability,
        )

    # Edge functions

    def save_availability(
        self, payload: SaveAvailabilityPayload, *, access_token: str
    ) -> Dict[str, Any]:
        """Upsert availability for the payload's dates."""

        data = self.request(
            "POST",
            f"{self.functions_url}/{SAVE_AVAILABILITY_FUNCTION}",
            access_token=access_token,
            json_body=payload.to_body(),
        )
        return data if isinstance(data, dict) else {"results": []}

    def delete_availability(self, availability_id: Union[int, str], *, access_token: str) -> bool:
        """Delete one availability row. A row that is already gone counts as deleted."""

        try:
            self.request(
                "POST",
                f"{self.functions_url}/{DELETE_AVAILABILITY_FUNCTION}",
                access_token=access_token,
                json_body={"availability_id": availability_id},
            )
        except FunctionsClientError as exc:
            if exc.status_code == 404:
                logger.info("Availability %s already deleted", availability_id)
                return True
            raise
        return True

    def delete_availabilities(
        self, availability_ids: Iterable[Union[int, str]], *, access_token: str
    ) -> int:
        count = 0
        for availability_id in availability_ids:
            self.delete_availability(availability_id, access_token=access_token)
            count += 1
        return count

    def request(
        self,
        method: str,
        url: str,
        *,
        access_token: str,
        json_body: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Any:
        """Perform a raw backend request and return the parsed JSON payload (None when empty)."""

        if not access_token:
            raise ValueError("access_token must be provided")

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        if self._anon_key:
            headers["apikey"] = self._anon_key

        with httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers=headers,
        ) as client:
            try:
                response = client.request(method, url, json=json_body, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                error_payload: Any | None
                try:
                    error_payload = exc.response.json()
                except json.JSONDecodeError:
                    error_payload = exc.response.text or None

                message = f"Backend responded with status {status}"
                if isinstance(error_payload, dict) and error_payload.get("error"):
                    message = str(error_payload["error"])

                log = logger.info if status == 404 else logger.error
                log(
                    "Backend error %s for %s %s: %s",
                    status,
                    method,
                    url,
                    exc.response.text[:500],
                )
                raise FunctionsClientError(
                    message,
                    status_code=status,
                    error_body=error_payload,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("Backend request failure for %s %s: %s", method, url, str(exc))
                raise FunctionsClientError("Failed to reach the backend") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError:
            logger.warning("Non-JSON response from %s %s", method, url)
            return None
