"""Close small breaks between wall strokes that continue each other."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from loguru import logger

from sketch_topology.geometry.contract import COLINEAR_ANGLE_TOLERANCE, MAX_GAP
from sketch_topology.geometry.primitives import Point2, Segment, distance, line_angle_difference


@dataclass(frozen=True)
class _Endpoint:
    segment_index: int
    end: int  # 0 = start, 1 = end
    point: Point2
    outward: Tuple[float, float]


@dataclass(frozen=True)
class _Bridge:
    gap: float
    angle_diff: float
    a: _Endpoint
    b: _Endpoint

    def sort_key(self) -> Tuple[float, float, int, int, int, int]:
        return (
            self.gap,
            self.angle_diff,
            self.a.segment_index,
            self.a.end,
            self.b.segment_index,
            self.b.end,
        )


def _endpoints(segments: Sequence[Segment]) -> List[_Endpoint]:
    endpoints: List[_Endpoint] = []
    for idx, segment in enumerate(segments):
        ux, uy = segment.unit()
        endpoints.append(_Endpoint(idx, 0, segment.start, (-ux, -uy)))
        endpoints.append(_Endpoint(idx, 1, segment.end, (ux, uy)))
    return endpoints


def _cell(point: Point2, size: float) -> Tuple[int, int]:
    return int(math.floor(point[0] / size)), int(math.floor(point[1] / size))


def _build_grid(endpoints: Sequence[_Endpoint], size: float) -> Dict[Tuple[int, int], List[int]]:
    grid: Dict[Tuple[int, int], List[int]] = defaultdict(list)
    for idx, endpoint in enumerate(endpoints):
        grid[_cell(endpoint.point, size)].append(idx)
    return grid


def _gap_alignment(a: _Endpoint, b: _Endpoint, gap: float) -> float | None:
    """Angle between the gap vector and the outward direction of ``a``, if the ends face each other."""
    gx = (b.point[0] - a.point[0]) / gap
    gy = (b.point[1] - a.point[1]) / gap
    if gx * a.outward[0] + gy * a.outward[1] <= 0.0:
        return None
    if -(gx * b.outward[0] + gy * b.outward[1]) <= 0.0:
        return None
    cos_angle = max(-1.0, min(1.0, gx * a.outward[0] + gy * a.outward[1]))
    return math.acos(cos_angle)


def _candidates(
    segments: Sequence[Segment],
    endpoints: Sequence[_Endpoint],
    max_gap: float,
    angle_tolerance: float,
) -> List[_Bridge]:
    grid = _build_grid(endpoints, max_gap)
    bridges: List[_Bridge] = []
    for i, a in enumerate(endpoints):
        cx, cy = _cell(a.point, max_gap)
        for ox in (-1, 0, 1):
            for oy in (-1, 0, 1):
                for j in grid.get((cx + ox, cy + oy), ()):
                    if j <= i:
                        continue
                    b = endpoints[j]
                    if a.segment_index == b.segment_index:
                        continue
                    gap = distance(a.point, b.point)
                    if gap <= 0.0 or gap > max_gap:
                        continue
                    angle_diff = line_angle_difference(segments[a.segment_index], segments[b.segment_index])
                    if angle_diff > angle_tolerance:
                        continue
                    alignment = _gap_alignment(a, b, gap)
                    if alignment is None or alignment > angle_tolerance:
                        continue
                    bridges.append(_Bridge(gap, angle_diff, a, b))
    bridges.sort(key=_Bridge.sort_key)
    return bridges


def bridge_gaps(
    segments: Sequence[Segment],
    max_gap: float = MAX_GAP,
    angle_tolerance: float = COLINEAR_ANGLE_TOLERANCE,
) -> List[Segment]:
    """
    Extend wall endpoints across small breaks left by interrupted strokes.

    Two endpoints of different segments within ``max_gap`` are bridged only when the
    segments run in the same direction (within ``angle_tolerance`` radians), the ends
    face each other and the gap itself continues that direction. Closest pairs win,
    then the best aligned; every endpoint is used by at most one bridge. The longer
    segment (lower index on ties) is extended onto the other endpoint exactly.
    """
    result = list(segments)
    if max_gap <= 0.0 or len(result) < 2:
        return result

    endpoints = _endpoints(result)
    used = set()
    coords: Dict[int, List[Point2]] = {}
    bridged = 0

    for bridge in _candidates(result, endpoints, max_gap, angle_tolerance):
        key_a = (bridge.a.segment_index, bridge.a.end)
        key_b = (bridge.b.segment_index, bridge.b.end)
        if key_a in used or key_b in used:
            continue
        used.add(key_a)
        used.add(key_b)

        seg_a = result[bridge.a.segment_index]
        seg_b = result[bridge.b.segment_index]
        if seg_a.length >= seg_b.length:
            mover, target = bridge.a, bridge.b
        else:
            mover, target = bridge.b, bridge.a

        points = coords.setdefault(
            mover.segment_index,
            [segments[mover.segment_index].start, segments[mover.segment_index].end],
        )
        points[mover.end] = target.point
        bridged += 1

    for idx, (start, end) in coords.items():
        result[idx] = Segment(start=start, end=end)

    logger.debug("Gap bridge: {count} bridge(s) over {segments} segments", count=bridged, segments=len(result))
    return result
