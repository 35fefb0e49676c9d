"""Custom exception hierarchy for sketch-topology."""

from __future__ import annotations


class SketchTopologyError(Exception):
    """Base exception for all sketch-topology errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SketchTopologyError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(SketchTopologyError):
    """Base class for input validation errors."""
    pass


class InputShapeError(ValidationError):
    """Raised when a polyline or point does not have the expected shape."""
    pass


class InputLimitError(ValidationError):
    """Raised when an input exceeds the configured size cap."""
    pass


__all__ = [
    "SketchTopologyError",
    "ConfigurationError",
    "ValidationError",
    "InputShapeError",
    "InputLimitError",
]
