from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from sketch_topology.geometry.contract import (
    COLINEAR_ANGLE_TOLERANCE,
    COLINEAR_OFFSET_TOLERANCE,
    MERGE_DISTANCE,
    PARALLEL_ANGLE_TOLERANCE,
)
from sketch_topology.geometry.primitives import Segment
from sketch_topology.merge.colinear import merge_colinear_segments
from sketch_topology.merge.parallel import merge_parallel


def merge_segments(
    segments: Sequence[Segment],
    distance: float = MERGE_DISTANCE,
    parallel_angle_tolerance: float = PARALLEL_ANGLE_TOLERANCE,
    colinear_angle_tolerance: float = COLINEAR_ANGLE_TOLERANCE,
    offset_tolerance: float = COLINEAR_OFFSET_TOLERANCE,
) -> List[Segment]:
    """Run parallel then colinear merging until the segment count stops shrinking."""
    current = list(segments)
    rounds = 0
    while True:
        rounds += 1
        merged = merge_parallel(current, distance=distance, angle_tolerance=parallel_angle_tolerance)
        merged = merge_colinear_segments(
            merged,
            distance=distance,
            angle_tolerance=colinear_angle_tolerance,
            offset_tolerance=offset_tolerance,
        )
        if len(merged) == len(current):
            break
        current = merged

    logger.debug(
        "Segment merge: {before} -> {after} in {rounds} round(s)",
        before=len(segments),
        after=len(current),
        rounds=rounds,
    )
    return current
