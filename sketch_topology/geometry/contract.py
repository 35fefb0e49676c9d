from __future__ import annotations

"""
Geometry Cleanup Contract

Single source of truth for tolerances and defaults used by the cleanup stages.
Coordinates are in the unit of the upstream raster (pixels unless scaled).
"""

# Numerics
EPSILON = 1e-9  # parametric / cross-product epsilon
MIN_SEGMENT_LENGTH = 1e-6  # shorter segments are treated as degenerate

# Snapping
SNAP_TOLERANCE_DEG = 5.0
ORTHOGONAL_TARGETS_DEG = (0.0, 90.0, 180.0, 270.0)
DIAGONAL_TARGETS_DEG = (45.0, 135.0, 225.0, 315.0)

# Merging
MERGE_DISTANCE = 10.0
PARALLEL_ANGLE_TOLERANCE = 0.05  # rad (~2.9 deg)
COLINEAR_ANGLE_TOLERANCE = 0.01  # rad (~0.57 deg)
COLINEAR_OFFSET_TOLERANCE = 0.5

# Gaps
MAX_GAP = 5.0

# Rooms / polygons
MIN_POLYGON_AREA = 50.0
MIN_ROOM_AREA = 100.0
ROOM_DETECTION_GAP = 5.0
MAX_WALK_STEPS_MARGIN = 5  # extra steps allowed beyond the half-edge count