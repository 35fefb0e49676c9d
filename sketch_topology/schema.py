"""Wire schema for vectoriser input and cleanup output."""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from sketch_topology.geometry.primitives import Segment


class VectorizerOutput(BaseModel):
    """Payload emitted by the raster vectoriser. Only ``polylines`` is consumed."""
    polylines: List[Any] = Field(default_factory=list, description="Point sequences [[x, y], ...]")
    width: float | None = Field(default=None, ge=0.0)
    height: float | None = Field(default=None, ge=0.0)


class SegmentModel(BaseModel):
    """Wall line with start and end coordinates."""
    start: List[float] = Field(..., min_length=2, max_length=2)
    end: List[float] = Field(..., min_length=2, max_length=2)

    def to_segment(self) -> Segment:
        return Segment(start=(self.start[0], self.start[1]), end=(self.end[0], self.end[1]))

    @classmethod
    def from_segment(cls, segment: Segment) -> "SegmentModel":
        return cls(**segment.to_dict())


class CleanupPayload(BaseModel):
    lines: List[SegmentModel] = Field(default_factory=list)
    rooms: List[List[List[float]]] = Field(default_factory=list)
    polygons: List[List[List[float]]] = Field(default_factory=list)

    @field_validator("rooms", "polygons")
    @classmethod
    def _closed_rings_need_three_points(cls, value: List[List[List[float]]]) -> List[List[List[float]]]:
        for ring in value:
            if len(ring) < 3:
                raise ValueError("A room polygon needs at least three vertices")
        return value


__all__ = ["VectorizerOutput", "SegmentModel", "CleanupPayload"]
