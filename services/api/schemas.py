from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from sketch_topology.schema import CleanupPayload, SegmentModel, VectorizerOutput
from sketch_topology.settings import CleanupOptions


class CleanupRequest(VectorizerOutput):
    options: CleanupOptions | None = None


class CleanupResponse(CleanupPayload):
    metrics: dict[str, Any] = Field(default_factory=dict)


class ReconcileRequest(VectorizerOutput):
    model_config = ConfigDict(populate_by_name=True)

    options: CleanupOptions | None = None
    ai_walls: List[SegmentModel] = Field(default_factory=list, alias="aiWalls")
    ai_rooms: List[List[List[float]]] | None = Field(default=None, alias="aiRooms")


class ReconcileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lines: List[SegmentModel] = Field(default_factory=list)
    rooms: List[List[List[float]]] = Field(default_factory=list)
    source: str
    partial: bool = False
    reason: str | None = None
    ai_wall_count: int = Field(0, alias="aiWallCount")
    deterministic_wall_count: int = Field(0, alias="deterministicWallCount")


__all__ = [
    "CleanupRequest",
    "CleanupResponse",
    "ReconcileRequest",
    "ReconcileResponse",
]
