"""Configuration: hydrodynamic parameters, parameter ranges, risk classes and service settings."""

from __future__ import annotations

import copy

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RiskCategory

DEFAULT_DISCHARGE = 300.0  # m³/s
DISCHARGE_MIN = 10.0
DISCHARGE_MAX = 5000.0


class HydrodynamicParams(BaseModel):
    """Global constants fed to the risk model.

    Only ``water_density`` and ``gravity`` enter the equations; the remaining
    fields are carried for callers that tune or display them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    water_density: float = 1000.0  # kg/m³
    gravity: float = 9.81  # m/s²
    vegetation_effect: float = 0.5
    bank_height_factor: float = 1.1
    curvature_default_value: float = 1.0


class ParameterRange(BaseModel):
    """Plausible range and default for a per-segment property."""

    min: float
    max: float
    default: float


# Keys are the river segment property names the risk model reads.
PARAMETER_RANGES: dict[str, ParameterRange] = {
    "base_slope": ParameterRange(min=0.00001, max=0.1, default=0.0005),
    "manning_n": ParameterRange(min=0.02, max=0.10, default=0.035),
    "critical_shear": ParameterRange(min=0.5, max=10, default=2.5),
    "channel_width": ParameterRange(min=5, max=5000, default=200),
    "curvature": ParameterRange(min=1.0, max=2.5, default=1.0),
    "lidar_avg_bank_height_m": ParameterRange(min=0, max=50, default=10.0),
    "lidar_riparian_veg_density": ParameterRange(min=0, max=1.0, default=0.5),
}


class RiskClass(BaseModel):
    """Display metadata for a risk category.

    ``min_index``/``max_index`` bound the risk index; ``None`` leaves that side open.
    """

    category: RiskCategory
    color: str
    weight: int
    min_index: float | None
    max_index: float | None


RISK_CATEGORIES: tuple[RiskClass, ...] = (
    RiskClass(category=RiskCategory.HIGH_EROSION, color="#ef4444", weight=7, min_index=1.5, max_index=None),
    RiskClass(category=RiskCategory.MEDIUM_EROSION, color="#f97316", weight=6, min_index=1.1, max_index=1.5),
    RiskClass(category=RiskCategory.STABLE, color="#22c55e", weight=4, min_index=0.9, max_index=1.1),
    RiskClass(category=RiskCategory.MEDIUM_DEPOSITION, color="#3b82f6", weight=6, min_index=0.6, max_index=0.9),
    RiskClass(category=RiskCategory.HIGH_DEPOSITION, color="#6366f1", weight=7, min_index=None, max_index=0.6),
)


class Settings(BaseSettings):
    """Service settings, read from ``RIVER_RISK_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="RIVER_RISK_", env_file=".env", extra="ignore")

    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    log_level: str = Field(default="INFO", description="Log level")
    default_discharge: float = Field(
        default=DEFAULT_DISCHARGE, ge=DISCHARGE_MIN, le=DISCHARGE_MAX, description="Discharge (m³/s) when none is given"
    )


settings = Settings()


_GANGA_REACHES = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {
                "id": 1,
                "name": "Ganga: Rishikesh-Haridwar",
                "base_slope": 0.0025,
                "curvature": 1.2,
                "manning_n": 0.050,
                "critical_shear": 4.5,
                "channel_width": 150,
                "lidar_avg_bank_height_m": 8.0,
                "lidar_riparian_veg_density": 0.8,
            },
            "geometry": {"type": "LineString", "coordinates": [[78.29, 30.10], [78.16, 29.94]]},
        },
        {
            "type": "Feature",
            "properties": {
                "id": 2,
                "name": "Ganga: Kanpur-Prayagraj",
                "base_slope": 0.0001,
                "curvature": 1.8,
                "manning_n": 0.030,
                "critical_shear": 2.0,
                "channel_width": 600,
                "lidar_avg_bank_height_m": 15.0,
                "lidar_riparian_veg_density": 0.3,
            },
            "geometry": {"type": "LineString", "coordinates": [[80.33, 26.45], [80.90, 26.10], [81.84, 25.43]]},
        },
        {
            "type": "Feature",
            "properties": {
                "id": 3,
                "name": "Ganga: Varanasi Reach",
                "base_slope": 0.00008,
                "curvature": 1.5,
                "manning_n": 0.028,
                "critical_shear": 1.8,
                "channel_width": 700,
                "lidar_avg_bank_height_m": 12.0,
                "lidar_riparian_veg_density": 0.2,
            },
            "geometry": {"type": "LineString", "coordinates": [[82.95, 25.33], [83.01, 25.28], [83.05, 25.32]]},
        },
        {
            "type": "Feature",
            "properties": {
                "id": 4,
                "name": "Ganga: Downstream of Farakka",
                "base_slope": 0.00005,
                "curvature": 1.1,
                "manning_n": 0.025,
                "critical_shear": 1.5,
                "channel_width": 1200,
                "lidar_avg_bank_height_m": 5.0,
                "lidar_riparian_veg_density": 0.6,
            },
            "geometry": {"type": "LineString", "coordinates": [[87.92, 24.81], [88.10, 24.60], [88.35, 24.40]]},
        },
    ],
}


def default_river_geojson() -> dict:
    """Return a fresh copy of the built-in four-reach Ganga dataset."""
    return copy.deepcopy(_GANGA_REACHES)
