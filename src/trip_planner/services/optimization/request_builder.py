"""Build the routing service payload from a day's stops."""

from __future__ import annotations

from typing import List, Sequence

from ...models.domain import Day, Stop
from ...schemas.optimization import LocationPayload, OptimizationOptions, OptimizationRequest
from .errors import ValidationError


def sort_stops(stops: Sequence[Stop]) -> List[Stop]:
    """Order stops by seq; equal seq values keep their collection order."""
    return sorted(stops, key=lambda stop: stop.seq)


def to_location(stop: Stop) -> LocationPayload:
    """Wire location for a stop. The domain ``lon`` is sent as ``lng``.

    Fixed stops also carry ``fixed_seq`` and their current ``seq``.
    """
    place = stop.place
    if place.lat is None or place.lon is None:
        raise ValidationError(f"Stop '{stop.id}' ({place.name}) is missing coordinates.")
    location = LocationPayload(id=stop.id, name=place.name, lat=place.lat, lng=place.lon)
    if stop.fixed:
        location.fixed_seq = True
        location.seq = stop.seq
    return location


def build_optimization_request(day: Day, options: OptimizationOptions | None = None) -> OptimizationRequest:
    options = options or OptimizationOptions()
    ordered = sort_stops(day.stops)

    starts = [stop for stop in ordered if stop.kind == "start"]
    ends = [stop for stop in ordered if stop.kind == "end"]
    if len(starts) != 1 or len(ends) != 1:
        raise ValidationError("missing start/end")
    vias = [stop for stop in ordered if stop.kind == "via"]

    prompt = options.prompt.strip() if options.prompt else ""
    return OptimizationRequest(
        trip_id=day.trip_id,
        day_id=day.id,
        start=to_location(starts[0]),
        stops=[to_location(stop) for stop in vias],
        end=to_location(ends[0]),
        objective=options.objective,
        vehicle_profile=options.vehicle_profile,
        units="metric",
        avoid=list(options.avoid) if options.avoid else None,
        prompt=prompt or None,
    )
