import asyncio
import json

import httpx
import pytest

from trip_planner.models.domain import Place, Stop
from trip_planner.services.trips.client import TripsClient, TripsServiceError


def _raw_stop(sid: str, seq: int, kind: str = "via", lat: float = 32.0, lon: float = 34.8) -> dict:
    return {
        "id": sid,
        "place_id": f"P-{sid}",
        "seq": seq,
        "kind": kind,
        "fixed": False,
        "stop_type": "attraction",
        "place": {"id": f"P-{sid}", "name": f"Place {sid}", "address": "Somewhere 1", "lat": lat, "lon": lon},
    }


def _client(handler) -> TripsClient:
    return TripsClient(base_url="https://trips.test", token="secret", transport=httpx.MockTransport(handler))


def test_get_day_parses_and_sorts_stops():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"stops": [_raw_stop("end", 3, "end"), _raw_stop("start", 1, "start"), _raw_stop("a", 2)]},
        )

    day = asyncio.run(_client(handler).get_day("T1", "D1"))

    assert seen["path"] == "/stops/T1/days/D1/stops"
    assert seen["params"] == {"include_place": "true"}
    assert seen["auth"] == "Bearer secret"
    assert day.id == "D1"
    assert day.trip_id == "T1"
    assert [stop.id for stop in day.stops] == ["start", "a", "end"]
    assert day.stops[0].fixed is True
    assert day.stops[1].place.address == "Somewhere 1"


def test_get_day_error_uses_service_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Day not found"})

    with pytest.raises(TripsServiceError) as excinfo:
        asyncio.run(_client(handler).get_day("T1", "D9"))

    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "Day not found"


def test_get_day_rejects_invalid_stop_data():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"stops": [_raw_stop("a", 0)]})

    with pytest.raises(TripsServiceError):
        asyncio.run(_client(handler).get_day("T1", "D1"))


def test_network_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TripsServiceError) as excinfo:
        asyncio.run(_client(handler).get_day("T1", "D1"))

    assert excinfo.value.status_code is None


def test_commit_stop_order_sends_new_sequence():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"updated": 3})

    place = Place(id="P", name="P", lat=0.0, lon=0.0)
    stops = [
        Stop(id="start", place=place, seq=1, kind="start"),
        Stop(id="b", place=place, seq=2),
        Stop(id="end", place=place, seq=3, kind="end"),
    ]

    asyncio.run(_client(handler).commit_stop_order("T1", "D1", stops))

    assert seen["method"] == "PATCH"
    assert seen["path"] == "/stops/T1/days/D1/stops/reorder"
    assert seen["body"] == {
        "order": [{"stop_id": "start", "seq": 1}, {"stop_id": "b", "seq": 2}, {"stop_id": "end", "seq": 3}]
    }


def test_trip_complete_404_degrades_to_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    assert asyncio.run(_client(handler).get_trip_complete("T1")) is None


def test_trip_complete_403_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403)

    with pytest.raises(TripsServiceError, match="Access denied"):
        asyncio.run(_client(handler).get_trip_complete("T1"))


def test_load_days_falls_back_to_per_day_fetch():
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        if request.url.path.endswith("/complete"):
            return httpx.Response(404)
        day_id = request.url.path.split("/")[4]
        return httpx.Response(200, json={"stops": [_raw_stop(f"{day_id}-s", 1, "start")]})

    days = asyncio.run(_client(handler).load_days("T1", ["D1", "D2"]))

    assert [day.id for day in days] == ["D1", "D2"]
    assert requested == ["/trips/T1/complete", "/stops/T1/days/D1/stops", "/stops/T1/days/D2/stops"]


def test_load_days_uses_complete_view_when_available():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "trip": {"id": "T1"},
                "days": [
                    {"id": "D1", "seq": 1, "stops": [_raw_stop("b", 2), _raw_stop("a", 1, "start")]},
                    {"id": "D2", "seq": 2, "stops": []},
                ],
            },
        )

    days = asyncio.run(_client(handler).load_days("T1", ["D1"]))

    assert len(days) == 1
    assert days[0].seq == 1
    assert [stop.id for stop in days[0].stops] == ["a", "b"]
