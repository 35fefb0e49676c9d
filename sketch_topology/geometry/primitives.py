from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from shapely.geometry import LineString

from sketch_topology.geometry.contract import EPSILON, MIN_SEGMENT_LENGTH


Point2 = Tuple[float, float]
Polygon2 = Tuple[Point2, ...]


@dataclass(frozen=True)
class Segment:
    """Straight wall stroke between two points."""
    start: Point2
    end: Point2

    @property
    def dx(self) -> float:
        return self.end[0] - self.start[0]

    @property
    def dy(self) -> float:
        return self.end[1] - self.start[1]

    @property
    def length(self) -> float:
        return math.hypot(self.dx, self.dy)

    @property
    def angle(self) -> float:
        """Orientation in degrees, normalised to [0, 360)."""
        return segment_angle(self)

    @property
    def midpoint(self) -> Point2:
        return midpoint(self.start, self.end)

    def unit(self) -> Tuple[float, float]:
        length = self.length
        if length <= 0.0:
            return 0.0, 0.0
        return self.dx / length, self.dy / length

    def to_linestring(self) -> LineString:
        return LineString([self.start, self.end])

    def to_dict(self) -> dict[str, list[float]]:
        return {
            "start": [float(self.start[0]), float(self.start[1])],
            "end": [float(self.end[0]), float(self.end[1])],
        }


def distance(a: Point2, b: Point2) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: Point2, b: Point2) -> Point2:
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def segment_length(segment: Segment) -> float:
    return segment.length


def segment_angle(segment: Segment) -> float:
    ang = math.degrees(math.atan2(segment.dy, segment.dx))
    if ang < 0.0:
        ang += 360.0
    if ang >= 360.0:
        ang -= 360.0
    return ang


def is_finite_segment(segment: Segment) -> bool:
    coords = (segment.start[0], segment.start[1], segment.end[0], segment.end[1])
    return all(math.isfinite(c) for c in coords)


def is_degenerate(segment: Segment) -> bool:
    return not is_finite_segment(segment) or segment.length <= MIN_SEGMENT_LENGTH


def line_angle_difference(a: Segment, b: Segment) -> float:
    """Undirected angle between two supporting lines in radians, in [0, pi/2]."""
    ang_a = math.atan2(a.dy, a.dx)
    ang_b = math.atan2(b.dy, b.dx)
    diff = abs(ang_a - ang_b) % math.pi
    return min(diff, math.pi - diff)


def project_parameter(point: Point2, segment: Segment) -> float:
    """Scalar parameter t of the orthogonal projection of point onto the segment line."""
    dx, dy = segment.dx, segment.dy
    length_sq = dx * dx + dy * dy
    if length_sq <= 0.0:
        return 0.0
    return ((point[0] - segment.start[0]) * dx + (point[1] - segment.start[1]) * dy) / length_sq


def perpendicular_distance(point: Point2, segment: Segment) -> float:
    """Distance from point to the infinite supporting line of the segment."""
    length = segment.length
    if length <= 0.0:
        return distance(point, segment.start)
    cross = segment.dx * (point[1] - segment.start[1]) - segment.dy * (point[0] - segment.start[0])
    return abs(cross) / length


def signed_polygon_area(points: Sequence[Point2]) -> float:
    """Shoelace area; positive for counter-clockwise rings in a y-up frame."""
    count = len(points)
    if count < 3:
        return 0.0
    total = 0.0
    for i in range(count):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % count]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def polygon_area(points: Sequence[Point2]) -> float:
    return abs(signed_polygon_area(points))


def segment_intersection_params(a: Segment, b: Segment, eps: float = EPSILON) -> Optional[Tuple[float, float]]:
    """Return (t, u) such that a(t) == b(u), or None for parallel or disjoint segments."""
    rx, ry = a.dx, a.dy
    sx, sy = b.dx, b.dy
    denom = rx * sy - ry * sx
    if abs(denom) < eps:
        return None
    qx = b.start[0] - a.start[0]
    qy = b.start[1] - a.start[1]
    t = (qx * sy - qy * sx) / denom
    u = (qx * ry - qy * rx) / denom
    if -eps <= t <= 1.0 + eps and -eps <= u <= 1.0 + eps:
        return t, u
    return None


def segment_intersection(a: Segment, b: Segment, eps: float = EPSILON) -> Optional[Point2]:
    params = segment_intersection_params(a, b, eps)
    if params is None:
        return None
    t, _ = params
    return (a.start[0] + t * a.dx, a.start[1] + t * a.dy)


def line_intersection(a: Segment, b: Segment, eps: float = EPSILON) -> Optional[Point2]:
    """Intersection of the infinite supporting lines; None when parallel."""
    rx, ry = a.dx, a.dy
    sx, sy = b.dx, b.dy
    denom = rx * sy - ry * sx
    if abs(denom) < eps:
        return None
    qx = b.start[0] - a.start[0]
    qy = b.start[1] - a.start[1]
    t = (qx * sy - qy * sx) / denom
    return (a.start[0] + t * rx, a.start[1] + t * ry)


__all__ = [
    "Point2",
    "Polygon2",
    "Segment",
    "distance",
    "midpoint",
    "segment_length",
    "segment_angle",
    "is_finite_segment",
    "is_degenerate",
    "line_angle_difference",
    "project_parameter",
    "perpendicular_distance",
    "signed_polygon_area",
    "polygon_area",
    "segment_intersection_params",
    "segment_intersection",
    "line_intersection",
]
