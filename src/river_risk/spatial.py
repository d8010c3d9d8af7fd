"""Spatial join of LiDAR points onto river segment geometry."""

from __future__ import annotations

import copy
import math
from typing import Sequence

import structlog

from .errors import FormatError
from .models import LidarPoint, SegmentCenter

logger = structlog.get_logger()

# LiDAR point attribute -> river segment property it populates
MERGE_FIELDS = {
    "bank_height_m": "lidar_avg_bank_height_m",
    "veg_density": "lidar_riparian_veg_density",
    "bank_slope": "lidar_bank_slope",
    "roughness_coefficient": "manning_n",
}
# Fields copied even when the point reports 0
ZERO_MERGE_FIELDS = frozenset({"veg_density"})


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Planar distance in decimal degrees.

    Good enough to rank candidate points; not a ground distance.
    """
    return math.hypot(lat2 - lat1, lon2 - lon1)


def get_segment_center(geometry: dict | None) -> SegmentCenter | None:
    """Middle vertex of a LineString, or of the middle line of a MultiLineString."""
    if not geometry or not geometry.get("coordinates"):
        return None

    coords = geometry["coordinates"]
    geom_type = geometry.get("type")

    if geom_type == "LineString":
        lon, lat = coords[len(coords) // 2][:2]
    elif geom_type == "MultiLineString":
        line = coords[len(coords) // 2]
        if not line:
            return None
        lon, lat = line[len(line) // 2][:2]
    else:
        return None

    return SegmentCenter(latitude=lat, longitude=lon)


def find_nearest_lidar_point(lat: float, lon: float, points: Sequence[LidarPoint]) -> LidarPoint | None:
    """Closest point by :func:`calculate_distance`; the first one wins on ties."""
    nearest = None
    min_distance = math.inf

    for point in points:
        if point.latitude is None or point.longitude is None:
            continue
        dist = calculate_distance(lat, lon, point.latitude, point.longitude)
        if dist < min_distance:
            min_distance = dist
            nearest = point

    return nearest


def merge_lidar_with_river(river: dict, points: Sequence[LidarPoint]) -> dict:
    """Attach the attributes of the nearest LiDAR point to every river segment.

    Returns a new FeatureCollection; ``river`` and its features are left untouched.
    """
    if not isinstance(river, dict) or not isinstance(river.get("features"), list):
        raise FormatError("Invalid river GeoJSON")
    if not isinstance(points, (list, tuple)) or not points:
        raise FormatError("Invalid LiDAR data array")

    merged_features = []
    merged = 0
    for feature in river["features"]:
        feature = copy.deepcopy(feature)
        center = get_segment_center(feature.get("geometry"))
        nearest = find_nearest_lidar_point(center.latitude, center.longitude, points) if center else None

        if nearest is None:
            logger.debug("segment_not_merged", segment=(feature.get("properties") or {}).get("id"))
            merged_features.append(feature)
            continue

        props = feature.get("properties") or {}
        for source, target in MERGE_FIELDS.items():
            value = getattr(nearest, source)
            # a zero vegetation density is a measurement; zero height, slope or roughness is not
            if value or (source in ZERO_MERGE_FIELDS and value is not None):
                props[target] = value
        props["lidar_merged"] = True
        props["lidar_source_id"] = nearest.segment_id
        feature["properties"] = props

        merged_features.append(feature)
        merged += 1

    logger.info("lidar_merged", segments=len(merged_features), merged=merged, points=len(points))
    return {**river, "features": merged_features}
