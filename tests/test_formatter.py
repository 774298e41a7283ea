import pytest

from trip_planner.models.domain import Place, Stop
from trip_planner.services.optimization.models import (
    ErrorReport,
    OptimizationOutcome,
    OptimizationState,
)
from trip_planner.services.outputs.formatter import (
    build_comparison,
    format_distance,
    format_duration,
    outcome_to_json,
)


def _stop(sid: str, seq: int) -> Stop:
    return Stop(id=sid, place=Place(id=sid, name=f"Place {sid}", lat=0.0, lon=0.0), seq=seq)


@pytest.mark.parametrize("km, expected", [(0, "0 km"), (12.4, "12 km"), (99.6, "100 km")])
def test_format_distance(km, expected):
    assert format_distance(km) == expected


@pytest.mark.parametrize(
    "minutes, expected",
    [(0, "0min"), (45, "45min"), (65, "1h 5min"), (120, "2h 0min"), (119.7, "2h 0min")],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_build_comparison_marks_movement():
    original = [_stop("a", 1), _stop("b", 2), _stop("c", 3)]
    optimized = [_stop("a", 1), _stop("c", 2), _stop("b", 3)]

    rows = build_comparison(original, optimized)

    assert [(row["stop_id"], row["original_position"], row["new_position"], row["movement"]) for row in rows] == [
        ("a", 1, 1, "unchanged"),
        ("c", 3, 2, "up"),
        ("b", 2, 3, "down"),
    ]


def test_outcome_to_json_for_failure():
    report = ErrorReport(routing_errors=["Some locations cannot be reached by road."], suggestions=["Check"])
    outcome = OptimizationOutcome(attempt=2, state=OptimizationState.FAILED, error=report)

    payload = outcome_to_json(outcome)

    assert payload["state"] == "failed"
    assert payload["result"] is None
    assert payload["error"]["retryable"] is True
    assert payload["error"]["has_errors"] is True
