import asyncio
import json

import httpx
import pytest

from trip_planner.schemas.optimization import LocationPayload, OptimizationRequest
from trip_planner.services.optimization.client import RoutingClient, check_health, resolve_token, static_token
from trip_planner.services.optimization.errors import (
    AuthenticationRequiredError,
    RoutingServiceError,
    RoutingTransportError,
)


def _request() -> OptimizationRequest:
    return OptimizationRequest(
        trip_id="T1",
        day_id="D1",
        start=LocationPayload(id="start", name="Start", lat=0.0, lng=0.0),
        stops=[LocationPayload(id="a", name="A", lat=1.0, lng=1.0)],
        end=LocationPayload(id="end", name="End", lat=2.0, lng=2.0),
        objective="time",
        vehicle_profile="car",
    )


def _success_body() -> dict:
    return {
        "version": "1.0",
        "ordered": [
            {"id": "start", "type": "START", "name": "Start", "lat": 0.0, "lng": 0.0, "seq": 1},
            {"id": "a", "type": "STOP", "name": "A", "lat": 1.0, "lng": 1.0, "seq": 2, "distance_from_prev_km": 157.2},
            {"id": "end", "type": "END", "name": "End", "lat": 2.0, "lng": 2.0, "seq": 3},
        ],
        "summary": {"stop_count": 3, "total_distance_km": 314.4, "total_duration_min": 240.0},
        "geometry": {"format": "geojson"},
        "diagnostics": {"warnings": ["ferry skipped"], "assumptions": [], "computation_notes": []},
    }


def _client(handler, **kwargs) -> RoutingClient:
    return RoutingClient(
        base_url="https://routing.test",
        optimize_path="/routing/optimize",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_optimize_posts_payload_with_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_success_body())

    response = asyncio.run(_client(handler).optimize(_request(), "secret"))

    assert seen["url"] == "https://routing.test/routing/optimize"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["start"] == {"id": "start", "name": "Start", "lat": 0.0, "lng": 0.0}
    assert "avoid" not in seen["body"]
    assert [location.id for location in response.ordered] == ["start", "a", "end"]
    assert response.summary.total_distance_km == 314.4
    assert response.diagnostics.warnings == ["ferry skipped"]


def test_error_status_raises_service_error_with_body():
    body = {"version": "1.0", "errors": [{"code": "MULTIPLE_START", "message": "two starts"}]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json=body)

    with pytest.raises(RoutingServiceError) as excinfo:
        asyncio.run(_client(handler).optimize(_request(), "secret"))

    assert excinfo.value.status_code == 422
    assert excinfo.value.body == body


def test_non_json_error_body_is_kept_as_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(RoutingServiceError) as excinfo:
        asyncio.run(_client(handler).optimize(_request(), "secret"))

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == "Bad gateway"


def test_connection_error_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RoutingTransportError) as excinfo:
        asyncio.run(_client(handler).optimize(_request(), "secret"))

    assert isinstance(excinfo.value.cause, httpx.ConnectError)


def test_server_error_is_retried_when_configured():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=_success_body())

    response = asyncio.run(_client(handler, max_retries=1).optimize(_request(), "secret"))

    assert len(calls) == 2
    assert response.summary.stop_count == 3


def test_no_retry_by_default():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RoutingTransportError):
        asyncio.run(_client(handler, max_retries=0).optimize(_request(), "secret"))

    assert len(calls) == 1


def test_malformed_success_body_is_a_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"summary": {}})

    with pytest.raises(RoutingServiceError) as excinfo:
        asyncio.run(_client(handler).optimize(_request(), "secret"))

    assert excinfo.value.status_code == 200


def test_resolve_token_accepts_sync_and_async_providers():
    async def async_provider():
        return "async-token"

    assert asyncio.run(resolve_token(static_token("sync-token"))) == "sync-token"
    assert asyncio.run(resolve_token(async_provider)) == "async-token"


@pytest.mark.parametrize("provider", [None, static_token(None), static_token("")])
def test_resolve_token_without_token_raises(provider):
    with pytest.raises(AuthenticationRequiredError):
        asyncio.run(resolve_token(provider))


def test_check_health_treats_client_errors_as_reachable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    assert asyncio.run(check_health("https://routing.test", transport=httpx.MockTransport(handler))) is True


def test_check_health_false_when_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert asyncio.run(check_health("https://routing.test", transport=httpx.MockTransport(handler))) is False
