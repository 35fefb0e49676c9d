"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from sketch_topology.exceptions import (
    ConfigurationError,
    InputLimitError,
    SketchTopologyError,
    ValidationError,
)


async def sketch_topology_exception_handler(request: Request, exc: SketchTopologyError) -> JSONResponse:
    """Handle sketch-topology exceptions."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    # Map exception types to HTTP status codes
    if isinstance(exc, InputLimitError):
        status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        "Sketch topology exception: {type} - {message}",
        type=type(exc).__name__,
        message=str(exc),
        details=exc.details,
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )
