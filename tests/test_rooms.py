from __future__ import annotations

import pytest

from sketch_topology.geometry.primitives import Segment, polygon_area, signed_polygon_area
from sketch_topology.reconstruct.rooms import detect_rooms, extract_loops, remove_small_polygons


def _box(x0: float, y0: float, x1: float, y1: float) -> list[Segment]:
    return [
        Segment((x0, y0), (x1, y0)),
        Segment((x1, y0), (x1, y1)),
        Segment((x1, y1), (x0, y1)),
        Segment((x0, y1), (x0, y0)),
    ]


def test_square_yields_one_room_without_outer_face():
    loops = extract_loops(_box(0, 0, 100, 100))
    assert loops == [((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0))]


def test_rooms_are_counter_clockwise_and_start_at_lowest_vertex():
    segments = list(reversed(_box(10, 20, 60, 90)))
    (room,) = extract_loops(segments)
    assert signed_polygon_area(room) > 0
    assert room[0] == (10.0, 20.0)


def test_open_chain_has_no_room():
    segments = _box(0, 0, 100, 100)[:3]
    assert extract_loops(segments) == []


def test_dangling_wall_is_pruned():
    segments = _box(0, 0, 100, 100) + [Segment((100, 100), (150, 150))]
    loops = extract_loops(segments)
    assert len(loops) == 1
    assert polygon_area(loops[0]) == pytest.approx(10000.0)


def test_nearby_endpoints_close_the_loop():
    segments = [
        Segment((0, 0), (100, 0)),
        Segment((102, 1), (102, 100)),
        Segment((101, 102), (0, 101)),
        Segment((1, 99), (1, 2)),
    ]
    loops = extract_loops(segments, max_gap=5)
    assert len(loops) == 1
    assert polygon_area(loops[0]) == pytest.approx(10000.0, rel=0.05)
    assert extract_loops(segments, max_gap=0.5) == []


def test_shared_wall_reports_both_rooms():
    # Junction rule: at a node the walk takes the next edge counter-clockwise from
    # the reversed arrival edge, so each bay is reported and never their union.
    segments = _box(0, 0, 200, 100) + [Segment((100, 0), (100, 100))]
    loops = sorted(extract_loops(segments))
    assert loops == [
        ((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)),
        ((100.0, 0.0), (200.0, 0.0), (200.0, 100.0), (100.0, 100.0)),
    ]


def test_without_junction_split_only_the_outline_closes():
    segments = _box(0, 0, 200, 100) + [Segment((100, 0), (100, 100))]
    loops = extract_loops(segments, split_junctions=False)
    assert len(loops) == 1
    assert polygon_area(loops[0]) == pytest.approx(20000.0)


def test_crossing_walls_split_into_four_rooms():
    segments = _box(0, 0, 100, 100) + [
        Segment((50, 0), (50, 100)),
        Segment((0, 50), (100, 50)),
    ]
    loops = extract_loops(segments)
    assert len(loops) == 4
    assert all(polygon_area(loop) == pytest.approx(2500.0) for loop in loops)
    assert sorted(loop[0] for loop in loops) == [(0.0, 0.0), (0.0, 50.0), (50.0, 0.0), (50.0, 50.0)]


def test_disconnected_rooms_are_all_found():
    segments = _box(0, 0, 50, 50) + _box(100, 0, 150, 80)
    areas = sorted(polygon_area(loop) for loop in extract_loops(segments))
    assert areas == [pytest.approx(2500.0), pytest.approx(4000.0)]


def test_detect_rooms_filters_by_area():
    segments = _box(0, 0, 9, 9) + _box(100, 100, 200, 200)
    assert len(extract_loops(segments)) == 2
    rooms = detect_rooms(segments, min_area=100)
    assert len(rooms) == 1
    assert polygon_area(rooms[0]) == pytest.approx(10000.0)


def test_remove_small_polygons():
    polygons = [
        ((0, 0), (1, 0), (1, 1)),
        ((0, 0), (10, 0), (10, 10), (0, 10)),
        ((0, 0), (100, 100)),
    ]
    assert remove_small_polygons(polygons, min_area=50) == [((0, 0), (10, 0), (10, 10), (0, 10))]


def test_extraction_is_deterministic():
    segments = _box(0, 0, 200, 100) + [Segment((100, 0), (100, 100)), Segment((0, 50), (100, 50))]
    assert extract_loops(segments) == extract_loops(list(segments))


def test_corners_sit_on_wall_intersections():
    # overshooting and short ends meet at the crossing of the wall lines, not their mean
    segments = [
        Segment((-2, 0), (100, 0)),
        Segment((101, -1), (101, 80)),
        Segment((103, 80), (0, 80)),
        Segment((0, 82), (0, 1)),
    ]
    assert extract_loops(segments) == [((0.0, 0.0), (101.0, 0.0), (101.0, 80.0), (0.0, 80.0))]


def test_colinear_pieces_still_close_the_room():
    # two colinear pieces meeting end to end have no crossing to snap to
    segments = [
        Segment((0, 0), (50, 0)),
        Segment((52, 0), (100, 0)),
        Segment((100, 0), (100, 100)),
        Segment((100, 100), (0, 100)),
        Segment((0, 100), (0, 0)),
    ]
    (room,) = extract_loops(segments)
    assert room == ((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0))
