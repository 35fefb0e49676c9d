from __future__ import annotations

from sketch_topology.geometry.primitives import Segment
from sketch_topology.pipeline import cleanup_from_polylines
from sketch_topology.validate.ai_policy import reconcile_ai_topology


BAYS = [
    [[0, 0], [50, 0], [50, 80], [0, 80], [0, 0]],
    [[50, 0], [100, 0], [100, 80], [50, 80], [50, 0]],
]


def test_empty_ai_result_falls_back_to_deterministic():
    deterministic = cleanup_from_polylines(BAYS)
    decision = reconcile_ai_topology(deterministic, [])
    assert decision.source == "deterministic"
    assert decision.reason == "ai_empty"
    assert decision.partial is False
    assert decision.lines == deterministic.lines
    assert decision.rooms == deterministic.rooms


def test_ai_losing_walls_is_marked_partial():
    deterministic = cleanup_from_polylines(BAYS)
    ai_walls = [Segment((0, 0), (100, 0)), Segment((100, 0), (100, 80))]
    ai_room = ((0.0, 0.0), (100.0, 0.0), (100.0, 80.0), (0.0, 80.0))
    decision = reconcile_ai_topology(deterministic, ai_walls, [ai_room])
    assert decision.source == "deterministic"
    assert decision.partial is True
    assert decision.reason == "geometry_fidelity_protection"
    assert decision.lines == deterministic.lines
    assert decision.rooms == (ai_room,)
    assert decision.ai_wall_count == 2
    assert decision.deterministic_wall_count == 5


def test_partial_without_ai_rooms_keeps_deterministic_rooms():
    deterministic = cleanup_from_polylines(BAYS)
    decision = reconcile_ai_topology(deterministic, [Segment((0, 0), (100, 0))])
    assert decision.partial is True
    assert decision.rooms == deterministic.rooms


def test_ai_with_at_least_as_many_walls_is_accepted():
    deterministic = cleanup_from_polylines(BAYS)
    ai_walls = list(deterministic.lines) + [Segment((0, 40), (50, 40))]
    decision = reconcile_ai_topology(deterministic, ai_walls)
    assert decision.source == "ai"
    assert decision.partial is False
    assert decision.reason is None
    assert decision.lines == tuple(ai_walls)
    assert decision.to_dict()["aiWallCount"] == 6
