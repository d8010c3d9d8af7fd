"""Exception types raised by the river risk pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ValidationResult


class RiverRiskError(Exception):
    """Base class for all pipeline errors."""


class FormatError(RiverRiskError, ValueError):
    """Input could not be parsed: malformed CSV, non-FeatureCollection GeoJSON, empty data."""

    def __init__(self, message: str, *, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class LidarValidationError(RiverRiskError):
    """LiDAR points failed validation and cannot be merged."""

    def __init__(self, result: ValidationResult):
        super().__init__("; ".join(result.errors) or "LiDAR validation failed")
        self.result = result
