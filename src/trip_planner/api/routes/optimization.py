"""Route optimization endpoints."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from fastapi import APIRouter, Header, HTTPException, Query, status

from ...config import settings
from ...models.domain import Day, Stop
from ...persistence.filesystem import RunArchive
from ...schemas.optimization import OptimizationOptions
from ...schemas.trips import (
    AcceptOrderRequest,
    BaselineModel,
    DayModel,
    DayOptimizationRequest,
    OptimizationOutcomeResponse,
    OptimizationPreviewRequest,
)
from ...services.optimization.client import static_token
from ...services.optimization.models import RouteMetrics
from ...services.optimization.orchestrator import RouteOptimizer
from ...services.optimization.request_builder import sort_stops
from ...services.outputs.formatter import outcome_to_json, stop_to_json
from ...services.trips.client import TripsClient, TripsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["optimization"])


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def _make_optimizer(token: Optional[str]) -> RouteOptimizer:
    archive = RunArchive() if settings.archive_runs else None
    return RouteOptimizer(token_provider=static_token(token), archive=archive)


def _make_trips_client(token: Optional[str]) -> TripsClient:
    return TripsClient(token=token)


def _baseline(model: BaselineModel | None) -> RouteMetrics | None:
    if model is None:
        return None
    return RouteMetrics(distance_km=model.distance_km, duration_min=model.duration_min)


def _upstream_error(exc: TripsServiceError) -> HTTPException:
    if exc.status_code in (401, 403, 404):
        return HTTPException(status_code=exc.status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


async def _run(
    day: Day,
    options: OptimizationOptions,
    baseline: BaselineModel | None,
    token: Optional[str],
) -> OptimizationOutcomeResponse:
    optimizer = _make_optimizer(token)
    outcome = await optimizer.optimize(day, options, baseline=_baseline(baseline))
    return OptimizationOutcomeResponse(**outcome_to_json(outcome, sort_stops(day.stops)))


@router.post("/optimization/preview", response_model=OptimizationOutcomeResponse, status_code=status.HTTP_200_OK)
async def preview(
    payload: OptimizationPreviewRequest,
    authorization: Optional[str] = Header(default=None),
) -> OptimizationOutcomeResponse:
    """Optimize a day supplied in the body; nothing is saved."""
    try:
        day = payload.day.to_domain()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return await _run(day, payload.options, payload.baseline, _bearer_token(authorization))


@router.get("/trips/{trip_id}/days", response_model=List[DayModel], status_code=status.HTTP_200_OK)
async def list_days(
    trip_id: str,
    day_ids: List[str] = Query(default=[]),
    authorization: Optional[str] = Header(default=None),
) -> List[DayModel]:
    client = _make_trips_client(_bearer_token(authorization))
    try:
        days = await client.load_days(trip_id, day_ids)
    except TripsServiceError as exc:
        raise _upstream_error(exc) from exc
    return [
        DayModel(
            id=day.id,
            trip_id=day.trip_id,
            seq=day.seq,
            stops=[stop_to_json(stop) for stop in day.stops],
        )
        for day in days
    ]


@router.post(
    "/trips/{trip_id}/days/{day_id}/optimize",
    response_model=OptimizationOutcomeResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize_day(
    trip_id: str,
    day_id: str,
    payload: DayOptimizationRequest | None = None,
    authorization: Optional[str] = Header(default=None),
) -> OptimizationOutcomeResponse:
    """Load the day's stops from the trips service and optimize them."""
    payload = payload or DayOptimizationRequest()
    token = _bearer_token(authorization)
    client = _make_trips_client(token)
    try:
        day = await client.get_day(trip_id, day_id)
    except TripsServiceError as exc:
        raise _upstream_error(exc) from exc
    return await _run(day, payload.options, payload.baseline, token)


def _check_order_matches_day(payload: AcceptOrderRequest, by_id: Dict[str, Stop], day_id: str) -> None:
    ids = [item.stop_id for item in payload.order]
    unknown = [stop_id for stop_id in ids if stop_id not in by_id]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown stop ids for day {day_id}: {', '.join(unknown)}",
        )
    requested = set(ids)
    if len(requested) != len(ids):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Each stop may appear only once.")
    missing = [stop_id for stop_id in by_id if stop_id not in requested]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Order is missing stops of day {day_id}: {', '.join(missing)}",
        )


@router.post("/trips/{trip_id}/days/{day_id}/optimize/accept", status_code=status.HTTP_200_OK)
async def accept_order(
    trip_id: str,
    day_id: str,
    payload: AcceptOrderRequest,
    authorization: Optional[str] = Header(default=None),
) -> dict:
    """Commit an accepted order. The ids must match the day's current stops."""
    seqs = [item.seq for item in payload.order]
    if len(set(seqs)) != len(seqs):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sequence numbers must be unique.")

    client = _make_trips_client(_bearer_token(authorization))
    try:
        day = await client.get_day(trip_id, day_id)
        by_id = {stop.id: stop for stop in day.stops}
        _check_order_matches_day(payload, by_id, day_id)
        ordered_items = sorted(payload.order, key=lambda item: item.seq)
        reordered = [replace(by_id[item.stop_id], seq=item.seq) for item in ordered_items]
        if reordered[0].kind != "start" or reordered[-1].kind != "end":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The start stop must come first and the end stop last.",
            )
        await client.commit_stop_order(trip_id, day_id, reordered)
    except TripsServiceError as exc:
        raise _upstream_error(exc) from exc
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception(f"Error committing stop order for day {day_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save stop order: {str(exc)}"
        ) from exc

    return {
        "success": True,
        "message": f"Saved new order of {len(reordered)} stops for day {day_id}",
        "stops": [stop_to_json(stop) for stop in reordered],
    }
