from __future__ import annotations

from fastapi import APIRouter
from loguru import logger
from starlette.concurrency import run_in_threadpool

from sketch_topology.exceptions import InputLimitError, ValidationError
from sketch_topology.geometry.primitives import Segment
from sketch_topology.metrics.pipeline_metrics import CleanupMetrics
from sketch_topology.pipeline import CleanupResult, cleanup_geometry, polylines_to_segments
from sketch_topology.schema import SegmentModel
from sketch_topology.settings import CleanupOptions, get_settings
from sketch_topology.validate.ai_policy import reconcile_ai_topology
from services.api.schemas import (
    CleanupRequest,
    CleanupResponse,
    ReconcileRequest,
    ReconcileResponse,
)


router = APIRouter(prefix="/v1")


def _checked_segments(polylines: list) -> list[Segment]:
    if not polylines:
        raise ValidationError("Request contains no polylines", details={"polylines": "0"})
    segments = polylines_to_segments(polylines)
    limit = get_settings().service.max_segments
    if len(segments) > limit:
        raise InputLimitError(
            f"Too many segments: {len(segments)} (max: {limit})",
            details={"segments": str(len(segments)), "max_segments": str(limit)},
        )
    return segments


def _run_cleanup(
    segments: list[Segment],
    options: CleanupOptions | None,
    polyline_count: int,
) -> tuple[CleanupResult, CleanupMetrics]:
    metrics = CleanupMetrics(input_polylines=polyline_count)
    result = cleanup_geometry(segments, options or get_settings().cleanup, metrics=metrics)
    return result, metrics


@router.post("/topology/cleanup", response_model=CleanupResponse, tags=["topology"])
async def cleanup_topology(payload: CleanupRequest) -> CleanupResponse:
    segments = _checked_segments(payload.polylines)
    logger.debug("Cleanup request: {polylines} polylines, {segments} segments", polylines=len(payload.polylines), segments=len(segments))
    result, metrics = await run_in_threadpool(_run_cleanup, segments, payload.options, len(payload.polylines))
    return CleanupResponse(**result.to_dict(), metrics=metrics.to_dict())


@router.post("/topology/reconcile", response_model=ReconcileResponse, tags=["topology"])
async def reconcile_topology(payload: ReconcileRequest) -> ReconcileResponse:
    segments = _checked_segments(payload.polylines)
    result, _ = await run_in_threadpool(_run_cleanup, segments, payload.options, len(payload.polylines))
    ai_walls = [wall.to_segment() for wall in payload.ai_walls]
    ai_rooms = [tuple((float(p[0]), float(p[1])) for p in room) for room in payload.ai_rooms or []]
    decision = reconcile_ai_topology(result, ai_walls, ai_rooms or None)
    data = decision.to_dict()
    data["lines"] = [SegmentModel.from_segment(line) for line in decision.lines]
    return ReconcileResponse.model_validate(data)
