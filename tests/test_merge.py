from __future__ import annotations

import pytest

from sketch_topology.geometry.primitives import Segment
from sketch_topology.merge.colinear import merge_colinear_segments
from sketch_topology.merge.merger import merge_segments
from sketch_topology.merge.parallel import merge_parallel


def test_duplicate_strokes_merge_to_median_line():
    result = merge_parallel([Segment((0, 0), (100, 0)), Segment((0, 4), (100, 4))])
    assert len(result) == 1
    assert result[0].start == pytest.approx((0.0, 2.0))
    assert result[0].end == pytest.approx((100.0, 2.0))


def test_parallel_merge_follows_longest_member_and_median_offset():
    segments = [
        Segment((0, 0), (100, 0)),
        Segment((10, 1), (90, 1)),
        Segment((0, 5), (120, 5)),
    ]
    result = merge_parallel(segments)
    assert len(result) == 1
    assert result[0].start == pytest.approx((0.0, 1.0))
    assert result[0].end == pytest.approx((120.0, 1.0))


def test_parallel_merge_requires_overlap():
    segments = [Segment((0, 0), (10, 0)), Segment((20, 3), (30, 3))]
    result = merge_parallel(segments)
    assert result == segments
    assert result[0] is segments[0]


def test_parallel_merge_respects_distance():
    segments = [Segment((0, 0), (100, 0)), Segment((0, 50), (100, 50))]
    assert merge_parallel(segments) == segments
    assert len(merge_parallel(segments, distance=60)) == 1


def test_parallel_merge_is_idempotent():
    segments = [
        Segment((0, 0), (100, 0)),
        Segment((5, 3), (95, 3)),
        Segment((0, 0), (0, 80)),
        Segment((2, 10), (2, 70)),
    ]
    once = merge_parallel(segments)
    assert len(once) == 2
    assert merge_parallel(once) == once


def test_colinear_pieces_join_across_small_gap():
    result = merge_colinear_segments([Segment((0, 0), (40, 0)), Segment((45, 0), (80, 0))])
    assert result == [Segment((0.0, 0.0), (80.0, 0.0))]


def test_colinear_pieces_far_apart_stay_separate():
    segments = [Segment((0, 0), (40, 0)), Segment((60, 0), (80, 0))]
    result = merge_colinear_segments(segments)
    assert result == segments
    assert result[0] is segments[0] and result[1] is segments[1]


def test_colinear_merge_is_transitive_within_a_pass():
    segments = [
        Segment((0, 0), (10, 0)),
        Segment((15, 0), (25, 0)),
        Segment((30, 0), (40, 0)),
    ]
    assert merge_colinear_segments(segments) == [Segment((0.0, 0.0), (40.0, 0.0))]


def test_colinear_merge_ignores_piece_direction():
    result = merge_colinear_segments([Segment((0, 0), (40, 0)), Segment((80, 0), (45, 0))])
    assert result == [Segment((0.0, 0.0), (80.0, 0.0))]


def test_colinear_merge_needs_shared_line():
    segments = [Segment((0, 0), (40, 0)), Segment((45, 2), (80, 2))]
    assert merge_colinear_segments(segments) == segments


def test_colinear_merge_keeps_input_order():
    a = Segment((0, 0), (0, 50))
    b = Segment((100, 0), (100, 50))
    result = merge_colinear_segments(
        [a, Segment((0, 200), (40, 200)), b, Segment((45, 200), (90, 200))]
    )
    assert result == [a, Segment((0.0, 200.0), (90.0, 200.0)), b]


def test_merge_segments_collapses_double_traced_square():
    strokes = [
        Segment((0, 0), (100, 0)),
        Segment((100, 0), (100, 100)),
        Segment((100, 100), (0, 100)),
        Segment((0, 100), (0, 0)),
        Segment((0, 2), (100, 2)),
        Segment((98, 0), (98, 100)),
        Segment((100, 98), (0, 98)),
        Segment((2, 100), (2, 0)),
    ]
    result = merge_segments(strokes)
    assert len(result) == 4
    assert merge_segments(result) == result
