from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence, Tuple

from loguru import logger

from sketch_topology.geometry.primitives import Polygon2, Segment
from sketch_topology.pipeline import CleanupResult


@dataclass(frozen=True)
class TopologyDecision:
    """Outcome of comparing an AI-cleaned topology with the deterministic one."""

    lines: Tuple[Segment, ...]
    rooms: Tuple[Polygon2, ...]
    source: Literal["ai", "deterministic"]
    partial: bool
    reason: str | None
    ai_wall_count: int
    deterministic_wall_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "rooms": [[[float(x), float(y)] for x, y in room] for room in self.rooms],
            "source": self.source,
            "partial": self.partial,
            "reason": self.reason,
            "aiWallCount": self.ai_wall_count,
            "deterministicWallCount": self.deterministic_wall_count,
        }


def reconcile_ai_topology(
    deterministic: CleanupResult,
    ai_walls: Sequence[Segment],
    ai_rooms: Sequence[Polygon2] | None = None,
) -> TopologyDecision:
    """
    Keep the deterministic cleanup as the fidelity floor for an optional AI cleaner.

    An AI result with fewer walls than the deterministic one never replaces the
    deterministic walls; it is marked partial instead.
    """
    ai_count = len(ai_walls)
    det_count = len(deterministic.lines)
    rooms = tuple(tuple(room) for room in ai_rooms) if ai_rooms else ()

    if ai_count == 0:
        logger.info("AI topology returned no walls; using deterministic result")
        return TopologyDecision(
            lines=deterministic.lines,
            rooms=deterministic.rooms,
            source="deterministic",
            partial=False,
            reason="ai_empty",
            ai_wall_count=ai_count,
            deterministic_wall_count=det_count,
        )

    if ai_count < det_count:
        logger.warning(
            "AI topology lost walls ({ai} < {det}); keeping deterministic walls",
            ai=ai_count,
            det=det_count,
        )
        return TopologyDecision(
            lines=deterministic.lines,
            rooms=rooms or deterministic.rooms,
            source="deterministic",
            partial=True,
            reason="geometry_fidelity_protection",
            ai_wall_count=ai_count,
            deterministic_wall_count=det_count,
        )

    return TopologyDecision(
        lines=tuple(ai_walls),
        rooms=rooms,
        source="ai",
        partial=False,
        reason=None,
        ai_wall_count=ai_count,
        deterministic_wall_count=det_count,
    )


__all__ = ["TopologyDecision", "reconcile_ai_topology"]
