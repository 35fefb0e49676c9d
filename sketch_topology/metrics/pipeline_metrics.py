"""
Cleanup Metrics Collection

Collects counts and timings while the cleanup pipeline runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CleanupMetrics:
    """
    Metrics collected during one cleanup invocation.

    Tracks how many segments each stage removed or changed and how long it took.
    """

    # Input statistics
    input_polylines: int = 0
    input_segments: int = 0
    degenerate_dropped: int = 0

    # Snap statistics
    snapped_segments: int = 0
    snap_buckets: dict[str, int] = field(default_factory=dict)

    # Merge and bridge statistics
    segments_after_merge: int = 0
    merged_away: int = 0
    segments_extended: int = 0

    # Room statistics
    loops_found: int = 0
    rooms_below_min_room_area: int = 0
    rooms_below_min_area: int = 0

    # Output statistics
    final_lines: int = 0
    final_rooms: int = 0

    # Performance metrics (in seconds)
    time_snap: float = 0.0
    time_merge: float = 0.0
    time_bridge: float = 0.0
    time_rooms: float = 0.0
    time_total: float = 0.0

    warnings: list[str] = field(default_factory=list)
    warnings_by_category: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary for serialization."""
        return {
            "input": {
                "polylines": self.input_polylines,
                "segments": self.input_segments,
                "degenerate_dropped": self.degenerate_dropped,
            },
            "snap": {
                "snapped": self.snapped_segments,
                "buckets": dict(self.snap_buckets),
            },
            "merge": {
                "segments": self.segments_after_merge,
                "merged_away": self.merged_away,
            },
            "bridge": {
                "segments_extended": self.segments_extended,
            },
            "rooms": {
                "loops_found": self.loops_found,
                "below_min_room_area": self.rooms_below_min_room_area,
                "below_min_area": self.rooms_below_min_area,
            },
            "output": {
                "lines": self.final_lines,
                "rooms": self.final_rooms,
            },
            "performance": {
                "snap": self.time_snap,
                "merge": self.time_merge,
                "bridge": self.time_bridge,
                "rooms": self.time_rooms,
                "total": self.time_total,
            },
            "warnings": {
                "total": len(self.warnings),
                "by_category": dict(self.warnings_by_category),
                "list": list(self.warnings),
            },
        }

    def add_warning(self, message: str, category: str = "general") -> None:
        """Add a warning message and update category count."""
        self.warnings.append(message)
        self.warnings_by_category[category] = self.warnings_by_category.get(category, 0) + 1
