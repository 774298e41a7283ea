"""Map the service's visiting order back onto the caller's stops."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Sequence, Set

from ...models.domain import Stop
from ...schemas.optimization import OptimizationResponse
from .errors import ReconciliationError
from .models import ReconciledOrder


def reconcile(response: OptimizationResponse, original_stops: Sequence[Stop]) -> ReconciledOrder:
    """Return new Stop values in response order with seq 1..N.

    The input stops are left untouched. An id the caller never sent, or an id
    returned twice, raises ``ReconciliationError``. Dropped stops and fixed
    stops that changed position are reported as warnings.
    """
    by_id: Dict[str, Stop] = {stop.id: stop for stop in original_stops}

    reordered: List[Stop] = []
    seen: Set[str] = set()
    for position, location in enumerate(response.ordered, start=1):
        original = by_id.get(location.id)
        if original is None:
            raise ReconciliationError(f"unknown stop id returned by service: {location.id!r}")
        if location.id in seen:
            raise ReconciliationError(f"duplicate stop id returned by service: {location.id!r}")
        seen.add(location.id)
        reordered.append(replace(original, seq=position))

    warnings: List[str] = []
    original_count = len(original_stops)
    returned_count = len(response.ordered)
    if original_count != returned_count:
        missing = [stop.id for stop in original_stops if stop.id not in seen]
        warnings.append(
            f"Optimized route has {returned_count} stops but the day has {original_count}; "
            f"missing: {', '.join(missing)}."
        )
    else:
        original_positions = {
            stop.id: position
            for position, stop in enumerate(sorted(original_stops, key=lambda stop: stop.seq), start=1)
        }
        for stop in reordered:
            before = original_positions[stop.id]
            if stop.fixed and stop.seq != before:
                warnings.append(f"Fixed stop {stop.id!r} moved from position {before} to {stop.seq}.")

    return ReconciledOrder(
        stops=reordered,
        original_count=original_count,
        returned_count=returned_count,
        warnings=warnings,
    )
