"""Pydantic data models for the river risk pipeline."""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class RiskCategory(str, Enum):
    HIGH_EROSION = "High Erosion"
    MEDIUM_EROSION = "Medium Erosion"
    STABLE = "Stable"
    MEDIUM_DEPOSITION = "Medium Deposition"
    HIGH_DEPOSITION = "High Deposition"


class _CamelModel(BaseModel):
    """Models whose JSON form uses camelCase keys (``riskIndex``, ``isValid`` ...)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


class LidarPoint(BaseModel):
    """A single LiDAR measurement tied to a river location.

    Unknown attributes from the source file are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow", frozen=True, allow_inf_nan=False)

    segment_id: str | int | float
    latitude: float | None
    longitude: float | None
    bank_height_m: float | None = None
    veg_density: float | None = None
    bank_slope: float | None = None
    roughness_coefficient: float | None = None


class SegmentCenter(BaseModel):
    """Representative point of a river segment."""

    latitude: float
    longitude: float


class RiskResult(_CamelModel):
    """Hydrodynamic risk figures for one river segment, stored under ``properties["calculated"]``."""

    risk_index: float
    risk_category: RiskCategory
    shear_stress: float
    velocity: float
    flow_depth: float
    hydraulic_radius: float
    bank_height: float
    veg_density: float
    vegetation_resistance: float
    adjusted_critical_shear: float


class ValidationResult(_CamelModel):
    """Outcome of LiDAR validation. Errors exclude a point; warnings do not."""

    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    total_points: int = 0
    valid_points: int = 0


class LidarStatistics(_CamelModel):
    """Summary of an ingested LiDAR point set."""

    total_points: int
    avg_bank_height: float = 0.0
    max_bank_height: float = 0.0
    min_bank_height: float = math.inf
    avg_veg_density: float = 0.0

    @field_serializer("min_bank_height", when_used="json")
    def _serialize_min(self, value: float) -> float | None:
        return _finite_or_none(value)


class AnalysisStatistics(_CamelModel):
    """Category counts and aggregates over analyzed segments.

    With no analyzed segments ``max_risk_index``/``min_risk_index`` keep their
    -inf/+inf starting values, meaning "no data".
    """

    total_segments: int = 0
    high_erosion: int = 0
    medium_erosion: int = 0
    stable: int = 0
    medium_deposition: int = 0
    high_deposition: int = 0
    avg_risk_index: float = 0.0
    max_risk_index: float = -math.inf
    min_risk_index: float = math.inf
    avg_velocity: float = 0.0
    avg_shear_stress: float = 0.0

    # JSON has no infinity; the "no data" sentinels go out as null
    @field_serializer("max_risk_index", "min_risk_index", when_used="json")
    def _serialize_extremes(self, value: float) -> float | None:
        return _finite_or_none(value)
