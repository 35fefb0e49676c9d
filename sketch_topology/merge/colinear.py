from __future__ import annotations

from typing import List, Sequence, Tuple

from loguru import logger

from sketch_topology.geometry.contract import (
    COLINEAR_ANGLE_TOLERANCE,
    COLINEAR_OFFSET_TOLERANCE,
    MERGE_DISTANCE,
)
from sketch_topology.geometry.primitives import (
    Segment,
    line_angle_difference,
    perpendicular_distance,
)


def _shares_line(
    seed: Segment,
    member: Segment,
    candidate: Segment,
    angle_tolerance: float,
    offset_tolerance: float,
) -> bool:
    if line_angle_difference(seed, candidate) > angle_tolerance:
        return False
    return (
        perpendicular_distance(candidate.start, member) <= offset_tolerance
        and perpendicular_distance(candidate.end, member) <= offset_tolerance
    )


def _group_by_line(
    segments: Sequence[Segment],
    angle_tolerance: float,
    offset_tolerance: float,
) -> List[List[int]]:
    count = len(segments)
    assigned = [False] * count
    groups: List[List[int]] = []
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
                if _shares_line(seed, member, segments[j], angle_tolerance, offset_tolerance):
                    assigned[j] = True
                    group.append(j)
        groups.append(group)
    return groups


def _merge_group(
    segments: Sequence[Segment],
    group: Sequence[int],
    distance: float,
) -> List[Tuple[int, Segment]]:
    """Walk one shared-line group in projection order; returns (first index, segment) runs."""
    seed = segments[group[0]]
    if len(group) == 1:
        return [(group[0], seed)]

    ux, uy = seed.unit()
    ox, oy = seed.start
    intervals = []
    for idx in group:
        segment = segments[idx]
        t1 = (segment.start[0] - ox) * ux + (segment.start[1] - oy) * uy
        t2 = (segment.end[0] - ox) * ux + (segment.end[1] - oy) * uy
        lo, hi = (t1, t2) if t1 <= t2 else (t2, t1)
        intervals.append((lo, hi, idx))
    intervals.sort()

    runs: List[Tuple[int, Segment]] = []
    run_lo, run_hi, first = intervals[0]
    members = [first]
    for lo, hi, idx in intervals[1:]:
        if lo - run_hi <= distance:
            run_hi = max(run_hi, hi)
            members.append(idx)
            continue
        runs.append(_emit_run(segments, members, seed, run_lo, run_hi))
        run_lo, run_hi = lo, hi
        members = [idx]
    runs.append(_emit_run(segments, members, seed, run_lo, run_hi))
    return runs


def _emit_run(
    segments: Sequence[Segment],
    members: Sequence[int],
    seed: Segment,
    lo: float,
    hi: float,
) -> Tuple[int, Segment]:
    first = min(members)
    if len(members) == 1:
        return first, segments[first]
    ux, uy = seed.unit()
    ox, oy = seed.start
    merged = Segment(
        start=(ox + ux * lo, oy + uy * lo),
        end=(ox + ux * hi, oy + uy * hi),
    )
    return first, merged


def merge_colinear_segments(
    segments: Sequence[Segment],
    distance: float = MERGE_DISTANCE,
    angle_tolerance: float = COLINEAR_ANGLE_TOLERANCE,
    offset_tolerance: float = COLINEAR_OFFSET_TOLERANCE,
) -> List[Segment]:
    """
    Merge pieces of the same supporting line into maximal segments.

    Pieces whose gap along the line is at most ``distance`` are joined; the merge
    is transitive within the walk. Untouched pieces are returned as-is and the
    output is ordered by the earliest input index of each run.
    """
    if len(segments) < 2:
        return list(segments)

    runs: List[Tuple[int, Segment]] = []
    for group in _group_by_line(segments, angle_tolerance, offset_tolerance):
        runs.extend(_merge_group(segments, group, distance))
    runs.sort(key=lambda item: item[0])

    merged = [segment for _, segment in runs]
    logger.debug("Colinear merge: {before} -> {after}", before=len(segments), after=len(merged))
    return merged
