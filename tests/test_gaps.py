from __future__ import annotations

import math

from sketch_topology.geometry.primitives import Segment, line_angle_difference
from sketch_topology.reconstruct.gaps import bridge_gaps


def test_broken_stroke_is_bridged_by_longer_segment():
    a = Segment((0, 0), (50, 0))
    b = Segment((53, 0), (100, 0))
    result = bridge_gaps([a, b])
    assert result[0] == Segment((0, 0), (53, 0))
    assert result[1] is b


def test_bridge_ignores_segment_direction():
    a = Segment((0, 0), (50, 0))
    b = Segment((100, 0), (53, 0))
    result = bridge_gaps([a, b])
    assert result[0].end == (53, 0)
    assert result[1] is b


def test_equal_lengths_extend_lower_index():
    a = Segment((0, 0), (40, 0))
    b = Segment((43, 0), (83, 0))
    result = bridge_gaps([a, b])
    assert result[0].end == (43, 0)
    assert result[1] is b


def test_perpendicular_endpoints_are_not_bridged():
    segments = [Segment((0, 0), (50, 0)), Segment((52, 2), (52, 50))]
    assert bridge_gaps(segments) == segments


def test_offset_parallel_endpoints_are_not_bridged():
    segments = [Segment((0, 0), (50, 0)), Segment((53, 2), (100, 2))]
    assert bridge_gaps(segments) == segments


def test_gap_larger_than_max_gap_is_left_open():
    segments = [Segment((0, 0), (50, 0)), Segment((56, 0), (100, 0))]
    assert bridge_gaps(segments) == segments
    assert bridge_gaps(segments, max_gap=7)[0].end == (56, 0)


def test_touching_endpoints_are_not_candidates():
    segments = [Segment((0, 0), (50, 0)), Segment((50, 0), (100, 0))]
    assert bridge_gaps(segments) == segments


def test_bridging_never_joins_segments_beyond_angle_tolerance():
    a = Segment((0, 0), (50, 0))
    b = Segment((52, 0), (100, 48 * math.tan(0.02)))
    assert line_angle_difference(a, b) > 0.01
    assert bridge_gaps([a, b]) == [a, b]


def test_each_endpoint_takes_part_in_one_bridge():
    a = Segment((0, 0), (50, 0))
    b = Segment((52, 0), (100, 0))
    c = Segment((54, 0), (60, 0))
    result = bridge_gaps([a, b, c])
    assert result[0].end == (52, 0)
    assert result[1] is b
    assert result[2] is c


def test_bridge_gaps_does_not_mutate_input():
    segments = [Segment((0, 0), (50, 0)), Segment((53, 0), (100, 0))]
    before = list(segments)
    bridge_gaps(segments)
    assert segments == before
