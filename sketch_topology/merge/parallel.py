"""Merge near-parallel, overlapping duplicate strokes into a single wall line."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np
from loguru import logger

from sketch_topology.geometry.contract import (
    EPSILON,
    MERGE_DISTANCE,
    PARALLEL_ANGLE_TOLERANCE,
)
from sketch_topology.geometry.primitives import (
    Segment,
    line_angle_difference,
    perpendicular_distance,
)


def _extent_along(segment: Segment, origin: Tuple[float, float], ux: float, uy: float) -> Tuple[float, float]:
    t1 = (segment.start[0] - origin[0]) * ux + (segment.start[1] - origin[1]) * uy
    t2 = (segment.end[0] - origin[0]) * ux + (segment.end[1] - origin[1]) * uy
    return (t1, t2) if t1 <= t2 else (t2, t1)


def _overlap_length(a: Segment, b: Segment) -> float:
    ux, uy = a.unit()
    lo_a, hi_a = _extent_along(a, a.start, ux, uy)
    lo_b, hi_b = _extent_along(b, a.start, ux, uy)
    return min(hi_a, hi_b) - max(lo_a, lo_b)


def _are_duplicates(
    seed: Segment,
    member: Segment,
    candidate: Segment,
    distance: float,
    angle_tolerance: float,
) -> bool:
    if line_angle_difference(seed, candidate) > angle_tolerance:
        return False
    if perpendicular_distance(candidate.midpoint, member) > distance:
        return False
    if perpendicular_distance(member.midpoint, candidate) > distance:
        return False
    return _overlap_length(member, candidate) > EPSILON


def _merge_group(group: Sequence[Segment]) -> Segment:
    """
    Collapse a duplicate group onto the longest member's direction, shifted to the
    median perpendicular offset and spanning the combined projected extent.
    """
    reference = group[0]
    for segment in group[1:]:
        if segment.length > reference.length:
            reference = segment

    ux, uy = reference.unit()
    nx, ny = -uy, ux
    ox, oy = reference.start

    offsets = []
    projections = []
    for segment in group:
        mx, my = segment.midpoint
        offsets.append((mx - ox) * nx + (my - oy) * ny)
        projections.extend(_extent_along(segment, reference.start, ux, uy))

    offset = float(np.median(np.asarray(offsets, dtype=float)))
    t_min = min(projections)
    t_max = max(projections)
    base_x = ox + nx * offset
    base_y = oy + ny * offset
    return Segment(
        start=(base_x + ux * t_min, base_y + uy * t_min),
        end=(base_x + ux * t_max, base_y + uy * t_max),
    )


def _merge_pass(
    segments: Sequence[Segment],
    distance: float,
    angle_tolerance: float,
) -> List[Segment]:
    count = len(segments)
    assigned = [False] * count
    merged: List[Segment] = []

    for i in range(count):
        if assigned[i]:
            continue
        assigned[i] = True
        seed = segments[i]
        group = [i]
        cursor = 0
        while cursor < len(group):
            member = segments[group[cursor]]
            cursor += 1
            for j in range(i + 1, count):
                if assigned[j]:
                    continue
                if _are_duplicates(seed, member, segments[j], distance, angle_tolerance):
                    assigned[j] = True
                    group.append(j)

        if len(group) == 1:
            merged.append(seed)
        else:
            group.sort()
            merged.append(_merge_group([segments[k] for k in group]))

    return merged


def merge_parallel(
    segments: Sequence[Segment],
    distance: float = MERGE_DISTANCE,
    angle_tolerance: float = PARALLEL_ANGLE_TOLERANCE,
) -> List[Segment]:
    """
    Merge near-parallel segments that overlap along their direction and lie within
    ``distance`` of each other's supporting line (duplicate-stroke removal).

    Parameters
    ----------
    segments:
        Snapped wall segments. Not modified.
    distance:
        Maximum perpendicular separation between duplicate strokes.
    angle_tolerance:
        Maximum undirected angle between duplicates, in radians.

    The pass is repeated until no group forms, so the result is stable under a
    second application.
    """
    current = list(segments)
    if len(current) < 2:
        return current

    while True:
        merged = _merge_pass(current, distance, angle_tolerance)
        if len(merged) == len(current):
            break
        logger.debug("Parallel merge pass: {before} -> {after}", before=len(current), after=len(merged))
        current = merged
    return current
