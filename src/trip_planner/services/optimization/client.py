"""HTTP client for the remote route optimization service."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

import httpx

from ...config import settings
from ...schemas.optimization import OptimizationRequest, OptimizationResponse
from .errors import AuthenticationRequiredError, RoutingServiceError, RoutingTransportError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class OptimizationTransport(Protocol):
    async def optimize(self, request: OptimizationRequest, token: str) -> OptimizationResponse: ...


def static_token(token: Optional[str]) -> TokenProvider:
    """Token provider for a token that is already known (e.g. from a request header)."""
    return lambda: token


async def resolve_token(provider: Optional[TokenProvider]) -> str:
    if provider is None:
        raise AuthenticationRequiredError("Authentication required for route optimization")
    token = provider()
    if inspect.isawaitable(token):
        token = await token
    if not token:
        raise AuthenticationRequiredError("Authentication required for route optimization")
    return token


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class RoutingClient:
    def __init__(
        self,
        base_url: str | None = None,
        optimize_path: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.effective_routing_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Routing service base URL is not configured.")
        self.optimize_path = optimize_path or settings.optimize_path
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.routing_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            transport=self._transport,
        )

    async def optimize(self, request: OptimizationRequest, token: str) -> OptimizationResponse:
        """POST the request and parse the ordered route.

        Raises ``RoutingServiceError`` for non-2xx answers and
        ``RoutingTransportError`` when no answer was received. Transport
        failures and 5xx answers are retried up to ``max_retries`` times.
        """
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }
        payload = request.to_payload()

        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.post(self.optimize_path, json=payload, headers=headers)
                except (httpx.TimeoutException, httpx.NetworkError, OSError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Routing service unreachable after {attempt} attempt(s): {exc}")
                        raise RoutingTransportError(exc) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Routing network error, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {exc}"
                    )
                    await asyncio.sleep(wait_time)
                    continue

                if response.is_success:
                    try:
                        return OptimizationResponse.model_validate(response.json())
                    except ValueError as exc:
                        # covers both bad JSON and pydantic validation errors
                        logger.error(f"Routing service returned an unreadable body: {exc}")
                        malformed = {"message": "Malformed optimization response."}
                        raise RoutingServiceError(response.status_code, malformed) from exc

                body = _response_body(response)
                logger.info(f"Routing service responded with HTTP {response.status_code}")
                if response.status_code >= 500 and attempt < self.max_retries:
                    attempt += 1
                    await asyncio.sleep(self.backoff_seconds * attempt)
                    continue
                raise RoutingServiceError(response.status_code, body)


async def check_health(base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> bool:
    """Return True if the routing service answers at all.

    Any HTTP response counts as reachable; the optimize endpoint needs a body
    and a token, so a 4xx here is expected.
    """
    base = (base_url or settings.effective_routing_base_url).rstrip("/")
    if not base:
        return False
    try:
        async with httpx.AsyncClient(base_url=base, timeout=5.0, transport=transport) as client:
            response = await client.get("/")
            return response.status_code < 500
    except httpx.HTTPError:
        return False
