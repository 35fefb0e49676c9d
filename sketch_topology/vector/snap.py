from __future__ import annotations

import math
from typing import Dict, List, Sequence, Tuple

from loguru import logger

from sketch_topology.geometry.contract import (
    DIAGONAL_TARGETS_DEG,
    ORTHOGONAL_TARGETS_DEG,
    SNAP_TOLERANCE_DEG,
)
from sketch_topology.geometry.primitives import Segment, is_degenerate, segment_angle


_HALF_SQRT2 = math.sqrt(0.5)

# Exact unit vectors so snapped axis segments carry no rounding residue.
_TARGET_UNITS: Dict[float, Tuple[float, float]] = {
    0.0: (1.0, 0.0),
    45.0: (_HALF_SQRT2, _HALF_SQRT2),
    90.0: (0.0, 1.0),
    135.0: (-_HALF_SQRT2, _HALF_SQRT2),
    180.0: (-1.0, 0.0),
    225.0: (-_HALF_SQRT2, -_HALF_SQRT2),
    270.0: (0.0, -1.0),
    315.0: (_HALF_SQRT2, -_HALF_SQRT2),
}


def active_targets(use_45_deg: bool) -> Tuple[float, ...]:
    if use_45_deg:
        return tuple(sorted(ORTHOGONAL_TARGETS_DEG + DIAGONAL_TARGETS_DEG))
    return ORTHOGONAL_TARGETS_DEG


def _angular_distance(a: float, b: float) -> float:
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def snap_angle(
    angle_deg: float,
    tolerance_deg: float = SNAP_TOLERANCE_DEG,
    use_45_deg: bool = False,
) -> float | None:
    """
    Return the snap target for an angle, or None when no target is within tolerance.
    Targets are scanned in ascending order so an exact tie keeps the lower degree.
    """
    best: Tuple[float, float] | None = None  # (delta, target)
    for target in active_targets(use_45_deg):
        delta = _angular_distance(angle_deg, target)
        if best is None or delta < best[0]:
            best = (delta, target)
    if best is None or best[0] > tolerance_deg:
        return None
    return best[1]


def snap_segment(
    segment: Segment,
    tolerance_deg: float = SNAP_TOLERANCE_DEG,
    use_45_deg: bool = False,
) -> Segment:
    """
    If the segment orientation is within tolerance of a target direction,
    rotate it onto the target while preserving centre and length.
    """
    ang = segment_angle(segment)
    target = snap_angle(ang, tolerance_deg, use_45_deg)
    if target is None or ang == target:
        return segment

    ux, uy = _TARGET_UNITS[target]
    cx, cy = segment.midpoint
    half = segment.length / 2.0
    return Segment(
        start=(cx - ux * half, cy - uy * half),
        end=(cx + ux * half, cy + uy * half),
    )


def snap_lines(
    segments: Sequence[Segment],
    tolerance_deg: float = SNAP_TOLERANCE_DEG,
    use_45_deg: bool = False,
) -> List[Segment]:
    """Snap nearly axis-aligned (and optionally diagonal) segments; drop degenerate ones."""
    snapped: List[Segment] = []
    dropped = 0
    rotated = 0
    for segment in segments:
        if is_degenerate(segment):
            dropped += 1
            continue
        result = snap_segment(segment, tolerance_deg, use_45_deg)
        if result is not segment:
            rotated += 1
        snapped.append(result)

    logger.debug(
        "Angle snap: {kept} kept, {rotated} rotated, {dropped} degenerate dropped",
        kept=len(snapped),
        rotated=rotated,
        dropped=dropped,
    )
    return snapped


def bucket_angles(
    segments: Sequence[Segment],
    tolerance_deg: float = SNAP_TOLERANCE_DEG,
    use_45_deg: bool = False,
) -> Dict[str, int]:
    """Count segments per snap target; segments outside every bucket land in 'free'."""
    buckets: Dict[str, int] = {f"{int(t)}": 0 for t in active_targets(use_45_deg)}
    buckets["free"] = 0
    for segment in segments:
        if is_degenerate(segment):
            continue
        target = snap_angle(segment_angle(segment), tolerance_deg, use_45_deg)
        key = "free" if target is None else f"{int(target)}"
        buckets[key] += 1
    return buckets
