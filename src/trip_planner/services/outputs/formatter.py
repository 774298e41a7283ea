"""Serializers for optimization outcomes."""

from __future__ import annotations

from dataclasses import asdict
from typing import List, Sequence

from ...models.domain import Stop
from ..optimization.models import OptimizationOutcome, OptimizationResult, ReconciledOrder


def format_distance(km: float) -> str:
    return f"{round(km)} km"


def format_duration(minutes: float) -> str:
    hours = int(minutes // 60)
    remainder = round(minutes % 60)
    if remainder == 60:
        hours, remainder = hours + 1, 0
    return f"{hours}h {remainder}min" if hours > 0 else f"{remainder}min"


def stop_to_json(stop: Stop) -> dict:
    return {
        "id": stop.id,
        "seq": stop.seq,
        "kind": stop.kind,
        "fixed": stop.fixed,
        "place": asdict(stop.place),
    }


def build_comparison(original: Sequence[Stop], optimized: Sequence[Stop]) -> List[dict]:
    """Position of every optimized stop before and after, 1-based."""
    original_positions = {stop.id: index for index, stop in enumerate(original, start=1)}
    rows: List[dict] = []
    for new_position, stop in enumerate(optimized, start=1):
        old_position = original_positions.get(stop.id)
        if old_position is None or old_position == new_position:
            movement = "unchanged"
        else:
            movement = "down" if old_position < new_position else "up"
        rows.append(
            {
                "stop_id": stop.id,
                "name": stop.place.name,
                "kind": stop.kind,
                "original_position": old_position,
                "new_position": new_position,
                "movement": movement,
            }
        )
    return rows


def order_to_json(order: ReconciledOrder) -> dict:
    return {
        "stops": [stop_to_json(stop) for stop in order.stops],
        "original_count": order.original_count,
        "returned_count": order.returned_count,
        "size_mismatch": order.size_mismatch,
        "warnings": list(order.warnings),
    }


def result_to_json(result: OptimizationResult, original: Sequence[Stop] | None = None) -> dict:
    summary = result.response.summary
    payload = {
        "order": order_to_json(result.order),
        "summary": summary.model_dump(),
        "formatted": {
            "distance": format_distance(summary.total_distance_km),
            "duration": format_duration(summary.total_duration_min),
        },
        "baseline": asdict(result.baseline),
        "savings": asdict(result.savings),
        "legs": [
            {
                "stop_id": location.id,
                "distance_from_prev_km": location.distance_from_prev_km,
                "duration_from_prev_min": location.duration_from_prev_min,
            }
            for location in result.response.ordered
        ],
        "geometry": result.response.geometry,
        "diagnostics": result.response.diagnostics.model_dump(),
        "warnings": result.warnings,
    }
    if original is not None:
        payload["comparison"] = build_comparison(original, result.stops)
    return payload


def outcome_to_json(outcome: OptimizationOutcome, original: Sequence[Stop] | None = None) -> dict:
    return {
        "attempt": outcome.attempt,
        "state": outcome.state.value,
        "stale": outcome.stale,
        "result": result_to_json(outcome.result, original) if outcome.result is not None else None,
        "error": outcome.error.to_dict() if outcome.error is not None else None,
    }
