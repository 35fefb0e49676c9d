from __future__ import annotations

import math
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sketch_topology.exceptions import ConfigurationError
from sketch_topology.geometry.contract import (
    COLINEAR_ANGLE_TOLERANCE,
    COLINEAR_OFFSET_TOLERANCE,
    MAX_GAP,
    MERGE_DISTANCE,
    MIN_POLYGON_AREA,
    MIN_ROOM_AREA,
    PARALLEL_ANGLE_TOLERANCE,
    ROOM_DETECTION_GAP,
    SNAP_TOLERANCE_DEG,
)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "default.yaml"
CONFIG_ENV_VAR = "SKETCH_TOPOLOGY_CONFIG"

# Load .env file from project root
_env_path = _PROJECT_ROOT / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class CleanupOptions(BaseModel):
    """
    Per-invocation options of the cleanup pipeline.

    Accepts both the snake_case field names and the camelCase wire names
    (``minArea``, ``snapToleranceDeg``, ...). Unknown keys are rejected.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    min_area: float = Field(
        default=MIN_POLYGON_AREA,
        ge=0.0,
        alias="minArea",
        description="Small-polygon filter applied to the room set",
    )
    snap_tolerance_deg: float = Field(
        default=SNAP_TOLERANCE_DEG,
        ge=0.0,
        le=45.0,
        alias="snapToleranceDeg",
        description="Maximum angular distance to a snap target in degrees",
    )
    use_45_deg: bool = Field(
        default=False,
        alias="use45Deg",
        description="Also snap onto the diagonals",
    )
    merge_distance: float = Field(
        default=MERGE_DISTANCE,
        ge=0.0,
        alias="mergeDistance",
        description="Parallel-merge separation and colinear-merge gap",
    )
    colinear_angle_tolerance: float = Field(
        default=COLINEAR_ANGLE_TOLERANCE,
        ge=0.0,
        le=math.pi / 2.0,
        alias="colinearAngleTolerance",
        description="Angle tolerance for colinear merge and gap bridging in radians",
    )
    max_gap: float = Field(
        default=MAX_GAP,
        ge=0.0,
        alias="maxGap",
        description="Largest endpoint gap the bridger closes",
    )
    min_room_area: float = Field(
        default=MIN_ROOM_AREA,
        ge=0.0,
        alias="minRoomArea",
    )
    room_detection_gap: float = Field(
        default=ROOM_DETECTION_GAP,
        ge=0.0,
        alias="roomDetectionGap",
        description="Endpoint clustering distance for loop extraction",
    )
    parallel_angle_tolerance: float = Field(
        default=PARALLEL_ANGLE_TOLERANCE,
        ge=0.0,
        le=math.pi / 2.0,
        alias="parallelAngleTolerance",
    )
    colinear_offset_tolerance: float = Field(
        default=COLINEAR_OFFSET_TOLERANCE,
        ge=0.0,
        alias="colinearOffsetTolerance",
    )
    split_junctions: bool = Field(
        default=True,
        alias="splitJunctions",
        description="Split walls at T- and X-junctions before loop extraction",
    )


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    file: Path | None = None

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class ServiceSettings(BaseModel):
    max_segments: int = Field(20000, ge=1)
    title: str = "sketch-topology"


class Settings(BaseModel):
    cleanup: CleanupOptions = Field(default_factory=CleanupOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from a YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses the
                SKETCH_TOPOLOGY_CONFIG environment variable or the bundled
                config/default.yaml.

        Raises:
            ConfigurationError: If the file does not exist or its content is invalid.
        """
        env_path = os.getenv(CONFIG_ENV_VAR)
        config_path = Path(path) if path else Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                details={"path": str(config_path)},
            )
        try:
            with config_path.open("r", encoding="utf-8") as fp:
                payload: Any = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration is not valid YAML: {exc}", details={"path": str(config_path)}) from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                details={"path": str(config_path)},
            )
        try:
            return cls(**payload)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", details={"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "CleanupOptions",
    "LoggingSettings",
    "ServiceSettings",
    "Settings",
    "get_settings",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
]
