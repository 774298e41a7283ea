"""Compare the current order against an optimized one."""

from __future__ import annotations

from typing import Sequence

from ...config import settings
from ...models.domain import Stop
from ..geospatial import path_length_km
from .models import RouteMetrics, Savings


def savings(
    original_distance_km: float,
    original_duration_min: float,
    optimized_distance_km: float,
    optimized_duration_min: float,
) -> Savings:
    """Savings never go negative; percentages are zero when the original is zero."""
    distance_saved = max(0.0, original_distance_km - optimized_distance_km)
    time_saved = max(0.0, original_duration_min - optimized_duration_min)
    return Savings(
        distance_saved=distance_saved,
        time_saved=time_saved,
        distance_saved_percent=(distance_saved / original_distance_km) * 100 if original_distance_km > 0 else 0.0,
        time_saved_percent=(time_saved / original_duration_min) * 100 if original_duration_min > 0 else 0.0,
    )


def estimate_route_metrics(stops: Sequence[Stop], average_speed_kmh: float | None = None) -> RouteMetrics:
    """Straight-line estimate of the given visiting order.

    Used as the "before" figure when the caller has no routed baseline for the
    day. Stops without coordinates are skipped.
    """
    speed = average_speed_kmh or settings.baseline_average_speed_kmh
    points = [(stop.place.lat, stop.place.lon) for stop in stops if stop.place.has_coordinates]

    distance_km = path_length_km(points)
    return RouteMetrics(distance_km=distance_km, duration_min=(distance_km / speed) * 60.0)
