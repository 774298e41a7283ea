"""HTTP client for the trips/stops CRUD service."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError as SchemaValidationError

from ...config import settings
from ...models.domain import Day, Stop
from ...schemas.trips import StopModel

logger = logging.getLogger(__name__)


class TripsServiceError(Exception):
    """The CRUD service could not be reached or rejected the call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("detail"):
            return str(data["detail"])
    return fallback


class TripsClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, fallback: str, **kwargs) -> httpx.Response:
        try:
            async with self._get_client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(f"{method} {path} failed: {exc}")
            raise TripsServiceError(f"{fallback}: {exc}") from exc
        return response

    async def get_day(self, trip_id: str, day_id: str) -> Day:
        """Fetch a day's stops with their places resolved."""
        path = f"/stops/{trip_id}/days/{day_id}/stops"
        response = await self._request("GET", path, "Failed to fetch day stops", params={"include_place": "true"})
        if not response.is_success:
            raise TripsServiceError(
                _error_message(response, "Failed to fetch day stops"), status_code=response.status_code
            )

        data = response.json()
        raw_stops = data.get("stops", []) if isinstance(data, dict) else data
        try:
            stops = [StopModel.model_validate(item).to_domain() for item in raw_stops or []]
        except (SchemaValidationError, ValueError) as exc:
            raise TripsServiceError(f"Day {day_id} returned invalid stop data: {exc}") from exc
        stops.sort(key=lambda stop: stop.seq)
        logger.info(f"Loaded {len(stops)} stops for day {day_id} (kinds: {[stop.kind for stop in stops]})")
        return Day(id=day_id, trip_id=trip_id, stops=stops)

    async def commit_stop_order(self, trip_id: str, day_id: str, stops: Sequence[Stop]) -> None:
        """Persist an accepted order; ``stops`` carry their new seq values."""
        path = f"/stops/{trip_id}/days/{day_id}/stops/reorder"
        body = {"order": [{"stop_id": stop.id, "seq": stop.seq} for stop in stops]}
        response = await self._request("PATCH", path, "Failed to save stop order", json=body)
        if not response.is_success:
            raise TripsServiceError(
                _error_message(response, "Failed to save stop order"), status_code=response.status_code
            )
        logger.info(f"Committed new order of {len(stops)} stops for day {day_id}")

    async def get_trip_complete(self, trip_id: str) -> Optional[dict]:
        """Trip with days, stops, and route info, or None when the endpoint is not available.

        The complete view is an optional enrichment: a 404 means the backend
        does not offer it and callers fall back to per-day fetches.
        """
        path = f"/trips/{trip_id}/complete"
        params = {"include_place": "true", "include_route_info": "true"}
        response = await self._request("GET", path, "Failed to fetch trip details", params=params)
        if response.status_code == 404:
            logger.info(f"Complete endpoint not available for trip {trip_id}; using fallback")
            return None
        if response.status_code == 401:
            raise TripsServiceError("Authentication required", status_code=401)
        if response.status_code == 403:
            raise TripsServiceError("Access denied to trip details", status_code=403)
        if not response.is_success:
            raise TripsServiceError(
                _error_message(response, "Failed to fetch trip details"), status_code=response.status_code
            )
        return response.json()

    async def load_days(self, trip_id: str, day_ids: Sequence[str]) -> list[Day]:
        """Days of a trip, from the complete view when available, else one fetch per day."""
        complete = await self.get_trip_complete(trip_id)
        if complete is not None:
            days: list[Day] = []
            for raw_day in complete.get("days") or []:
                if not raw_day.get("id") or (day_ids and raw_day["id"] not in day_ids):
                    continue
                try:
                    stops = [StopModel.model_validate(item).to_domain() for item in raw_day.get("stops") or []]
                except (SchemaValidationError, ValueError) as exc:
                    raise TripsServiceError(f"Trip {trip_id} returned invalid stop data: {exc}") from exc
                stops.sort(key=lambda stop: stop.seq)
                days.append(Day(id=raw_day["id"], trip_id=trip_id, seq=raw_day.get("seq"), stops=stops))
            return days
        return [await self.get_day(trip_id, day_id) for day_id in day_ids]
