"""Pre-flight checks run before a day is sent for optimization."""

from __future__ import annotations

from typing import List

from ...config import settings
from ...models.domain import Day


def validate_day_for_optimization(day: Day, min_stops: int | None = None) -> List[str]:
    """Return every problem found; an empty list means the day can be optimized."""
    minimum = min_stops if min_stops is not None else settings.min_stops_for_optimization
    errors: List[str] = []

    if len(day.stops) < minimum:
        errors.append(f"At least {minimum} stops are required for route optimization.")

    start_count = sum(1 for stop in day.stops if stop.kind == "start")
    if start_count == 0:
        errors.append("A start location is required.")
    elif start_count > 1:
        errors.append("Only one start location is allowed.")

    end_count = sum(1 for stop in day.stops if stop.kind == "end")
    if end_count == 0:
        errors.append("An end location is required.")
    elif end_count > 1:
        errors.append("Only one end location is allowed.")

    if start_count == 1 and end_count == 1:
        ordered = sorted(day.stops, key=lambda stop: stop.seq)
        if ordered[0].kind != "start":
            errors.append("The start location must have the lowest sequence number.")
        if ordered[-1].kind != "end":
            errors.append("The end location must have the highest sequence number.")

    for index, stop in enumerate(day.stops, start=1):
        place = stop.place
        label = f"Stop {index} ({place.name})"
        if place.lat is None or place.lon is None:
            errors.append(f"{label} is missing coordinates.")
            continue
        if abs(place.lat) > 90:
            errors.append(f"{label} has invalid latitude.")
        if abs(place.lon) > 180:
            errors.append(f"{label} has invalid longitude.")

    return errors
