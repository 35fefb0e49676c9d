"""CLI for the sketch cleanup pipeline."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from sketch_topology.exceptions import SketchTopologyError
from sketch_topology.logging_config import setup_logging
from sketch_topology.metrics.pipeline_metrics import CleanupMetrics
from sketch_topology.pipeline import cleanup_from_polylines
from sketch_topology.schema import VectorizerOutput
from sketch_topology.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clean vectorised sketch polylines into walls and rooms")
    parser.add_argument("--input", type=Path, required=True, help="Vectoriser JSON {polylines, width, height}")
    parser.add_argument("--output", type=Path, help="Result JSON path (default: stdout)")
    parser.add_argument("--config", type=Path, help="Settings YAML (default: bundled config/default.yaml)")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--metrics", action="store_true", help="Include pipeline metrics in the output")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.load(args.config)
    except SketchTopologyError as exc:
        setup_logging(level=args.log_level or "INFO")
        logger.error("{message}", message=exc.message)
        return 2

    setup_logging(
        level=args.log_level or settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.file,
    )

    try:
        payload = VectorizerOutput.model_validate_json(args.input.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.error("Cannot read input {path}: {error}", path=str(args.input), error=str(exc))
        return 2
    except PydanticValidationError as exc:
        logger.error("Input is not a vectoriser payload: {error}", error=str(exc))
        return 2

    metrics = CleanupMetrics() if args.metrics else None
    try:
        result = cleanup_from_polylines(payload.polylines, settings.cleanup, metrics=metrics)
    except SketchTopologyError as exc:
        logger.error("{message} {details}", message=exc.message, details=exc.details)
        return 1

    document = result.to_dict()
    if metrics is not None:
        document["metrics"] = metrics.to_dict()
    text = json.dumps(document, indent=2)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Saved result to {path}", path=str(args.output))
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
