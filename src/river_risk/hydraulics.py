"""Hydrodynamic erosion and sedimentation risk for river segments.

Each segment is evaluated independently:

1. flow depth from discharge (Manning-based approximation)
2. hydraulic radius of a rectangular channel
3. mean velocity (Manning's equation)
4. bed shear stress, scaled by bend curvature
5. critical shear stress raised by riparian vegetation
6. risk index = shear stress / adjusted critical shear, amplified for tall banks
7. risk category from the index
"""

from __future__ import annotations

import copy
import math
from typing import Mapping

import structlog

from .config import PARAMETER_RANGES, HydrodynamicParams
from .models import RiskCategory, RiskResult

logger = structlog.get_logger()

FLAT_CHANNEL_DEPTH = 1.5  # m, used when no slope drives the flow


def calculate_flow_depth(discharge: float, channel_width: float, manning_n: float, base_slope: float) -> float:
    if not base_slope:
        return FLAT_CHANNEL_DEPTH
    return ((discharge * manning_n) / (channel_width * math.sqrt(base_slope))) ** 0.6


def calculate_hydraulic_radius(channel_width: float, flow_depth: float) -> float:
    area = channel_width * flow_depth
    wetted_perimeter = channel_width + 2 * flow_depth
    return area / wetted_perimeter


def calculate_velocity(hydraulic_radius: float, manning_n: float, base_slope: float) -> float:
    """Mean flow velocity (m/s) from Manning's equation."""
    return (1 / manning_n) * hydraulic_radius ** (2 / 3) * base_slope ** 0.5


def calculate_shear_stress(
    hydraulic_radius: float,
    base_slope: float,
    curvature: float,
    water_density: float = 1000.0,
    gravity: float = 9.81,
) -> float:
    """Boundary shear stress (Pa); ``curvature`` (typically 1.0-2.5) scales it up on bends."""
    return water_density * gravity * hydraulic_radius * base_slope * curvature


def calculate_vegetation_resistance(veg_density: float) -> float:
    return 1 + veg_density * 0.5


def calculate_adjusted_critical_shear(critical_shear: float, veg_density: float) -> float:
    return critical_shear * calculate_vegetation_resistance(veg_density)


def calculate_risk_index(shear_stress: float, adjusted_critical_shear: float, bank_height: float) -> float:
    """Ratio of acting to critical shear.

    Banks taller than 10 m amplify an already erosive index by 5% per extra metre.
    """
    risk_index = shear_stress / adjusted_critical_shear
    if bank_height > 10 and risk_index > 1.0:
        risk_index *= 1 + (bank_height - 10) / 20
    return risk_index


def get_risk_category(risk_index: float) -> RiskCategory:
    # Order matters: the erosion thresholds are checked before deposition.
    if risk_index > 1.5:
        return RiskCategory.HIGH_EROSION
    if risk_index > 1.1:
        return RiskCategory.MEDIUM_EROSION
    if risk_index < 0.6:
        return RiskCategory.HIGH_DEPOSITION
    if risk_index < 0.9:
        return RiskCategory.MEDIUM_DEPOSITION
    return RiskCategory.STABLE


def _resolve_params(params: HydrodynamicParams | Mapping | None) -> HydrodynamicParams:
    if params is None:
        return HydrodynamicParams()
    if isinstance(params, HydrodynamicParams):
        return params
    return HydrodynamicParams.model_validate(dict(params))


def _prop(props: Mapping, key: str) -> float:
    # Only a missing or null property takes the default; an explicit 0 is kept.
    value = props.get(key)
    return PARAMETER_RANGES[key].default if value is None else value


def calculate_segment_risk(
    feature: dict,
    discharge: float,
    params: HydrodynamicParams | Mapping | None = None,
) -> dict:
    """Return a copy of ``feature`` with ``properties["calculated"]`` set to its :class:`RiskResult`.

    Segments whose properties cannot describe a physical channel (non-positive
    width, roughness or critical shear, or a negative slope) are returned
    unchanged, without a ``calculated`` block.
    """
    if discharge < 0:
        raise ValueError(f"Discharge must be non-negative, got {discharge}")
    params = _resolve_params(params)
    props = feature.get("properties") or {}

    channel_width = _prop(props, "channel_width")
    manning_n = _prop(props, "manning_n")
    base_slope = _prop(props, "base_slope")
    critical_shear = _prop(props, "critical_shear")
    curvature = _prop(props, "curvature")
    bank_height = _prop(props, "lidar_avg_bank_height_m")
    veg_density = _prop(props, "lidar_riparian_veg_density")

    vegetation_resistance = calculate_vegetation_resistance(veg_density)
    adjusted_critical_shear = calculate_adjusted_critical_shear(critical_shear, veg_density)

    if channel_width <= 0 or manning_n <= 0 or base_slope < 0 or adjusted_critical_shear <= 0:
        logger.debug(
            "segment_skipped",
            segment=props.get("id"),
            channel_width=channel_width,
            manning_n=manning_n,
            base_slope=base_slope,
            adjusted_critical_shear=adjusted_critical_shear,
        )
        return copy.deepcopy(feature)

    flow_depth = calculate_flow_depth(discharge, channel_width, manning_n, base_slope)
    hydraulic_radius = calculate_hydraulic_radius(channel_width, flow_depth)
    velocity = calculate_velocity(hydraulic_radius, manning_n, base_slope)
    shear_stress = calculate_shear_stress(
        hydraulic_radius, base_slope, curvature, params.water_density, params.gravity
    )
    risk_index = calculate_risk_index(shear_stress, adjusted_critical_shear, bank_height)

    result = RiskResult(
        risk_index=round(risk_index, 2),
        risk_category=get_risk_category(risk_index),
        shear_stress=round(shear_stress, 2),
        velocity=round(velocity, 2),
        flow_depth=round(flow_depth, 2),
        hydraulic_radius=round(hydraulic_radius, 2),
        bank_height=round(bank_height, 2),
        veg_density=round(veg_density, 2),
        vegetation_resistance=round(vegetation_resistance, 2),
        adjusted_critical_shear=round(adjusted_critical_shear, 2),
    )

    updated = copy.deepcopy(feature)
    updated["properties"] = updated.get("properties") or {}
    updated["properties"]["calculated"] = result.model_dump(mode="json", by_alias=True)
    return updated


def calculate_risk_profile(
    discharge: float,
    river: dict,
    params: HydrodynamicParams | Mapping | None = None,
) -> dict:
    """Run :func:`calculate_segment_risk` over every feature of a FeatureCollection.

    A collection without ``features`` is logged and returned as given.
    """
    if not isinstance(river, dict) or not isinstance(river.get("features"), list):
        logger.error("invalid_river_geojson")
        return river

    features = [calculate_segment_risk(feature, discharge, params) for feature in river["features"]]
    analyzed = sum(1 for f in features if "calculated" in (f.get("properties") or {}))
    logger.info("risk_profile_calculated", discharge=discharge, segments=len(features), analyzed=analyzed)
    return {**river, "features": features}
