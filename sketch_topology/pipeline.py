"""
Sketch cleanup pipeline.

Runs the fixed stage order snap -> merge -> gap bridge -> loop extraction ->
small-polygon filter over a fresh segment list per call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from numbers import Real
from typing import Any, Iterable, List, Sequence, Tuple

from loguru import logger

from sketch_topology.exceptions import InputShapeError
from sketch_topology.geometry.primitives import Polygon2, Segment, is_degenerate
from sketch_topology.merge.merger import merge_segments
from sketch_topology.metrics.pipeline_metrics import CleanupMetrics
from sketch_topology.reconstruct.gaps import bridge_gaps
from sketch_topology.reconstruct.rooms import extract_loops, remove_small_polygons
from sketch_topology.settings import CleanupOptions
from sketch_topology.vector.snap import bucket_angles, snap_lines


@dataclass(frozen=True)
class CleanupResult:
    lines: Tuple[Segment, ...]
    rooms: Tuple[Polygon2, ...]
    polygons: Tuple[Polygon2, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "rooms": [_polygon_to_list(room) for room in self.rooms],
            "polygons": [_polygon_to_list(poly) for poly in self.polygons],
        }


def _polygon_to_list(polygon: Polygon2) -> List[List[float]]:
    return [[float(x), float(y)] for x, y in polygon]


def cleanup_geometry(
    lines: Sequence[Segment],
    options: CleanupOptions | None = None,
    *,
    metrics: CleanupMetrics | None = None,
) -> CleanupResult:
    """
    Clean hand-traced wall lines into orthogonal walls and closed rooms.

    Args:
        lines: Raw segments. The sequence is not modified.
        options: Stage options; defaults to ``CleanupOptions()``.
        metrics: Optional collector filled with per-stage counts and timings.

    Returns:
        CleanupResult with the cleaned lines and the rooms (``polygons`` equals ``rooms``).
    """
    opts = options or CleanupOptions()
    started = time.perf_counter()
    raw = list(lines)

    t0 = time.perf_counter()
    snapped = snap_lines(raw, opts.snap_tolerance_deg, opts.use_45_deg)
    t_snap = time.perf_counter() - t0

    t0 = time.perf_counter()
    merged = merge_segments(
        snapped,
        distance=opts.merge_distance,
        parallel_angle_tolerance=opts.parallel_angle_tolerance,
        colinear_angle_tolerance=opts.colinear_angle_tolerance,
        offset_tolerance=opts.colinear_offset_tolerance,
    )
    t_merge = time.perf_counter() - t0

    t0 = time.perf_counter()
    bridged = bridge_gaps(merged, max_gap=opts.max_gap, angle_tolerance=opts.colinear_angle_tolerance)
    t_bridge = time.perf_counter() - t0

    t0 = time.perf_counter()
    loops = extract_loops(bridged, max_gap=opts.room_detection_gap, split_junctions=opts.split_junctions)
    rooms = remove_small_polygons(loops, min_area=opts.min_room_area)
    polygons = remove_small_polygons(rooms, min_area=opts.min_area)
    t_rooms = time.perf_counter() - t0

    result = CleanupResult(
        lines=tuple(bridged),
        rooms=tuple(polygons),
        polygons=tuple(polygons),
    )

    if metrics is not None:
        metrics.input_segments = len(raw)
        metrics.degenerate_dropped = sum(1 for s in raw if is_degenerate(s))
        metrics.snapped_segments = sum(1 for a, b in zip((s for s in raw if not is_degenerate(s)), snapped) if a is not b)
        metrics.snap_buckets = bucket_angles(raw, opts.snap_tolerance_deg, opts.use_45_deg)
        metrics.segments_after_merge = len(merged)
        metrics.merged_away = len(snapped) - len(merged)
        metrics.segments_extended = sum(1 for a, b in zip(merged, bridged) if a is not b)
        metrics.loops_found = len(loops)
        metrics.rooms_below_min_room_area = len(loops) - len(rooms)
        metrics.rooms_below_min_area = len(rooms) - len(polygons)
        metrics.final_lines = len(result.lines)
        metrics.final_rooms = len(result.rooms)
        metrics.time_snap = t_snap
        metrics.time_merge = t_merge
        metrics.time_bridge = t_bridge
        metrics.time_rooms = t_rooms
        metrics.time_total = time.perf_counter() - started
        if raw and not result.lines:
            metrics.add_warning("All input segments were degenerate", category="input")
        if result.lines and not loops:
            metrics.add_warning("No closed loop found in the cleaned lines", category="rooms")

    logger.info(
        "Cleanup finished: {inp} segments -> {lines} lines, {rooms} room(s)",
        inp=len(raw),
        lines=len(result.lines),
        rooms=len(result.rooms),
    )
    return result


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def polylines_to_segments(polylines: Iterable[Any]) -> List[Segment]:
    """
    Decompose polylines into consecutive-point segments.

    A closed polyline repeats its first point at the end; nothing is closed
    implicitly. Polylines with fewer than two points contribute nothing and any
    coordinate after ``x, y`` is ignored.

    Raises:
        InputShapeError: If a polyline is not a list of points or a point lacks a
            numeric ``x`` or ``y``.
    """
    segments: List[Segment] = []
    for p_idx, polyline in enumerate(polylines):
        if not isinstance(polyline, (list, tuple)):
            raise InputShapeError(
                f"Polyline {p_idx} is not a sequence of points",
                details={"polyline_index": str(p_idx)},
            )
        points: List[Tuple[float, float]] = []
        for pt_idx, point in enumerate(polyline):
            if (
                not isinstance(point, (list, tuple))
                or len(point) < 2
                or not _is_number(point[0])
                or not _is_number(point[1])
            ):
                raise InputShapeError(
                    f"Polyline {p_idx} point {pt_idx} must have numeric x and y coordinates",
                    details={"polyline_index": str(p_idx), "point_index": str(pt_idx)},
                )
            points.append((float(point[0]), float(point[1])))
        for start, end in zip(points, points[1:]):
            segments.append(Segment(start=start, end=end))
    return segments


def cleanup_from_polylines(
    polylines: Iterable[Any],
    options: CleanupOptions | None = None,
    *,
    metrics: CleanupMetrics | None = None,
) -> CleanupResult:
    polylines = list(polylines)
    segments = polylines_to_segments(polylines)
    if metrics is not None:
        metrics.input_polylines = len(polylines)
    return cleanup_geometry(segments, options, metrics=metrics)


__all__ = [
    "CleanupResult",
    "cleanup_geometry",
    "cleanup_from_polylines",
    "polylines_to_segments",
]
