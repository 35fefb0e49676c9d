import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from sketch_topology.exceptions import SketchTopologyError
from sketch_topology.logging_config import setup_logging
from sketch_topology.settings import get_settings
from services.api.exception_handlers import sketch_topology_exception_handler
from services.api.routes import router as v1_router


def create_app() -> FastAPI:
    settings = get_settings()

    # Environment overrides the configured logging
    json_logging = os.getenv("JSON_LOGGING", str(settings.logging.json_format)).lower() in {"true", "1", "yes"}
    log_level = os.getenv("LOG_LEVEL", settings.logging.level)
    log_file = os.getenv("LOG_FILE")
    setup_logging(
        level=log_level,
        json_format=json_logging,
        log_file=Path(log_file) if log_file else settings.logging.file,
    )

    app = FastAPI(
        title=settings.service.title,
        version="0.1.0",
        description="Cleanup of hand-traced sketch line-work into walls and rooms",
    )

    ui_origin = os.getenv("UI_ORIGIN", "http://localhost:3000")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted({ui_origin, "http://localhost:3000", "http://127.0.0.1:3000"}),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    # Register exception handlers
    app.add_exception_handler(SketchTopologyError, sketch_topology_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.opt(exception=exc).error("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={
                "error": type(exc).__name__,
                "message": str(exc),
            },
        )

    app.include_router(v1_router)

    logger.info(
        "API initialised with max_segments={max_segments}",
        max_segments=settings.service.max_segments,
    )
    return app


app = create_app()


__all__ = ["app", "create_app"]
