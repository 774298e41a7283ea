"""Route optimization orchestration.

One ``RouteOptimizer`` backs one day-optimization widget. Each ``optimize``
call takes a new attempt number; only the most recent attempt may update the
observable state, so an older call that finishes late is dropped.
"""

from __future__ import annotations

import logging
from typing import Optional

from ...models.domain import Day
from ...persistence.filesystem import RunArchive
from ...schemas.optimization import OptimizationOptions, OptimizationRequest
from ..outputs.formatter import outcome_to_json
from .classifier import classify
from .client import OptimizationTransport, RoutingClient, TokenProvider, resolve_token
from .errors import (
    AuthenticationRequiredError,
    ReconciliationError,
    ValidationError,
    ValidationFailure,
    failure_from_exception,
)
from .models import (
    ErrorReport,
    OptimizationOutcome,
    OptimizationResult,
    OptimizationState,
    RouteMetrics,
)
from .reconciler import reconcile
from .request_builder import build_optimization_request, sort_stops
from .savings import estimate_route_metrics, savings
from .validation import validate_day_for_optimization

logger = logging.getLogger(__name__)


class RouteOptimizer:
    def __init__(
        self,
        transport: OptimizationTransport | None = None,
        token_provider: TokenProvider | None = None,
        archive: RunArchive | None = None,
        min_stops: int | None = None,
    ) -> None:
        self.transport = transport or RoutingClient()
        self.token_provider = token_provider
        self.archive = archive
        self.min_stops = min_stops
        self._attempt = 0
        self._state = OptimizationState.IDLE
        self._result: Optional[OptimizationResult] = None
        self._error: Optional[ErrorReport] = None

    @property
    def state(self) -> OptimizationState:
        return self._state

    @property
    def result(self) -> Optional[OptimizationResult]:
        return self._result

    @property
    def error(self) -> Optional[ErrorReport]:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._state in (OptimizationState.VALIDATING, OptimizationState.REQUESTING)

    @property
    def attempt(self) -> int:
        return self._attempt

    def clear(self) -> None:
        """Back to idle. An in-flight call keeps running but its outcome is dropped."""
        self._attempt += 1
        self._state = OptimizationState.IDLE
        self._result = None
        self._error = None

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt

    def _enter(self, attempt: int, state: OptimizationState) -> None:
        if self._is_current(attempt):
            self._state = state

    def _finish(
        self,
        attempt: int,
        day: Day,
        request: OptimizationRequest | None,
        *,
        result: OptimizationResult | None = None,
        error: ErrorReport | None = None,
    ) -> OptimizationOutcome:
        state = OptimizationState.SUCCEEDED if result is not None else OptimizationState.FAILED
        outcome = OptimizationOutcome(attempt=attempt, state=state, result=result, error=error)

        if not self._is_current(attempt):
            logger.info(f"Dropping outcome of superseded optimization attempt {attempt} (current: {self._attempt})")
            outcome.stale = True
            return outcome

        self._state = state
        self._result = result
        self._error = error

        if self.archive is not None and request is not None:
            self.archive.record(day.id, request.to_payload(), outcome_to_json(outcome, sort_stops(day.stops)))
        return outcome

    def _fail(self, attempt: int, day: Day, request: OptimizationRequest | None, failure) -> OptimizationOutcome:
        report = classify(failure)
        logger.warning(
            f"Optimization attempt {attempt} failed: validation={report.validation_errors} "
            f"routing={report.routing_errors} system={report.system_errors}"
        )
        return self._finish(attempt, day, request, error=report)

    async def optimize(
        self,
        day: Day,
        options: OptimizationOptions | None = None,
        baseline: RouteMetrics | None = None,
    ) -> OptimizationOutcome:
        """Run one optimization attempt for ``day``.

        ``baseline`` is the current order's routed distance/duration; when it
        is omitted a straight-line estimate is used for the savings figures.
        """
        if self.is_loading:
            logger.info(f"Superseding in-flight optimization attempt {self._attempt}")
        self._attempt += 1
        attempt = self._attempt
        self._state = OptimizationState.VALIDATING
        self._result = None
        self._error = None
        options = options or OptimizationOptions()
        logger.info(f"Starting optimization attempt {attempt} for day {day.id} ({len(day.stops)} stops)")

        problems = validate_day_for_optimization(day, self.min_stops)
        if problems:
            return self._fail(attempt, day, None, ValidationFailure(problems))
        try:
            request = build_optimization_request(day, options)
        except ValidationError as exc:
            return self._fail(attempt, day, None, failure_from_exception(exc))

        try:
            token = await resolve_token(self.token_provider)
        except AuthenticationRequiredError as exc:
            return self._fail(attempt, day, request, exc)

        self._enter(attempt, OptimizationState.REQUESTING)
        logger.debug(f"Sending optimization request for day {day.id}: {request.to_payload()}")
        try:
            response = await self.transport.optimize(request, token)
        except Exception as exc:
            failure = failure_from_exception(exc)
            if failure is exc:
                logger.exception(f"Unexpected error during optimization attempt {attempt}: {exc}")
            return self._fail(attempt, day, request, failure)

        try:
            order = reconcile(response, day.stops)
        except ReconciliationError as exc:
            logger.error(f"Optimization response for day {day.id} does not match its stops: {exc}")
            return self._fail(attempt, day, request, exc)
        for warning in order.warnings:
            logger.warning(warning)

        summary = response.summary
        baseline = baseline or estimate_route_metrics(sort_stops(day.stops))
        result = OptimizationResult(
            response=response,
            order=order,
            baseline=baseline,
            savings=savings(
                baseline.distance_km,
                baseline.duration_min,
                summary.total_distance_km,
                summary.total_duration_min,
            ),
        )
        logger.info(
            f"Optimization attempt {attempt} succeeded: {summary.stop_count} stops, "
            f"{summary.total_distance_km:.1f} km, {summary.total_duration_min:.0f} min"
        )
        return self._finish(attempt, day, request, result=result)
