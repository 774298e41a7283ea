import random

import pytest

from trip_planner.models.domain import Place, Stop
from trip_planner.schemas.optimization import OptimizationResponse
from trip_planner.services.optimization.errors import ReconciliationError
from trip_planner.services.optimization.reconciler import reconcile


def _stop(sid: str, seq: int, kind: str = "via") -> Stop:
    return Stop(id=sid, place=Place(id=f"P-{sid}", name=f"Place {sid}", lat=1.0, lon=2.0), seq=seq, kind=kind)


def _response(ids: list[str]) -> OptimizationResponse:
    return OptimizationResponse.model_validate(
        {
            "ordered": [{"id": sid, "seq": index} for index, sid in enumerate(ids, start=1)],
            "summary": {"stop_count": len(ids), "total_distance_km": 10.0, "total_duration_min": 20.0},
        }
    )


def _stops() -> list[Stop]:
    return [_stop("start", 1, "start"), _stop("a", 2), _stop("b", 3), _stop("c", 4), _stop("end", 5, "end")]


def test_reconcile_permutation_assigns_seq_in_response_order():
    original = _stops()
    ids = ["start", "c", "a", "b", "end"]

    order = reconcile(_response(ids), original)

    assert [stop.id for stop in order.stops] == ids
    assert [stop.seq for stop in order.stops] == [1, 2, 3, 4, 5]
    assert order.size_mismatch is False
    assert order.warnings == []


def test_reconcile_random_permutations_keep_every_id_once():
    original = _stops()
    rng = random.Random(7)
    for _ in range(20):
        ids = [stop.id for stop in original]
        rng.shuffle(ids)

        order = reconcile(_response(ids), original)

        assert sorted(stop.id for stop in order.stops) == sorted(ids)
        assert [stop.seq for stop in order.stops] == list(range(1, len(ids) + 1))


def test_reconcile_keeps_stop_data_and_does_not_mutate_input():
    original = _stops()

    order = reconcile(_response(["start", "b", "a", "c", "end"]), original)

    assert [stop.seq for stop in original] == [1, 2, 3, 4, 5]
    moved = order.stops[1]
    assert moved.id == "b"
    assert moved.place is original[2].place
    assert moved is not original[2]


def test_reconcile_rejects_unknown_id():
    with pytest.raises(ReconciliationError, match="unknown stop id"):
        reconcile(_response(["start", "a", "ghost", "end"]), _stops())


def test_reconcile_size_mismatch_is_a_warning():
    order = reconcile(_response(["start", "a", "end"]), _stops())

    assert [stop.id for stop in order.stops] == ["start", "a", "end"]
    assert order.size_mismatch is True
    assert order.original_count == 5
    assert order.returned_count == 3
    assert len(order.warnings) == 1


def test_reconcile_rejects_duplicate_id():
    with pytest.raises(ReconciliationError, match="duplicate stop id"):
        reconcile(_response(["start", "a", "a", "c", "end"]), _stops())


def test_reconcile_size_mismatch_names_missing_stops():
    order = reconcile(_response(["start", "c", "end"]), _stops())

    assert "a, b" in order.warnings[0]


def test_reconcile_warns_when_fixed_stop_moves():
    original = [_stop("start", 1, "start"), _stop("a", 2), _stop("b", 3), _stop("end", 4, "end")]
    original[1] = Stop(id="a", place=original[1].place, seq=2, fixed=True)

    order = reconcile(_response(["start", "b", "a", "end"]), original)

    assert [stop.id for stop in order.stops] == ["start", "b", "a", "end"]
    assert order.warnings == ["Fixed stop 'a' moved from position 2 to 3."]


def test_reconcile_fixed_stop_in_place_has_no_warning():
    original = [_stop("start", 1, "start"), _stop("a", 2), _stop("b", 3), _stop("c", 4), _stop("end", 5, "end")]
    original[1] = Stop(id="a", place=original[1].place, seq=2, fixed=True)

    order = reconcile(_response(["start", "a", "c", "b", "end"]), original)

    assert order.warnings == []
