"""River erosion and sedimentation risk pipeline."""

from .config import HydrodynamicParams, default_river_geojson
from .errors import FormatError, LidarValidationError, RiverRiskError
from .hydraulics import (
    calculate_adjusted_critical_shear,
    calculate_flow_depth,
    calculate_hydraulic_radius,
    calculate_risk_index,
    calculate_risk_profile,
    calculate_segment_risk,
    calculate_shear_stress,
    calculate_vegetation_resistance,
    calculate_velocity,
    get_risk_category,
)
from .lidar import (
    get_lidar_statistics,
    load_lidar,
    parse_csv_text,
    process_lidar_csv,
    process_lidar_geojson,
    validate_lidar_data,
)
from .models import (
    AnalysisStatistics,
    LidarPoint,
    LidarStatistics,
    RiskCategory,
    RiskResult,
    SegmentCenter,
    ValidationResult,
)
from .rivers import detect_crs, load_river_geojson, read_river_shapefile
from .session import AnalysisSession
from .spatial import calculate_distance, find_nearest_lidar_point, get_segment_center, merge_lidar_with_river
from .statistics import get_analysis_statistics

__all__ = [
    "AnalysisSession",
    "AnalysisStatistics",
    "FormatError",
    "HydrodynamicParams",
    "LidarPoint",
    "LidarStatistics",
    "LidarValidationError",
    "RiskCategory",
    "RiskResult",
    "RiverRiskError",
    "SegmentCenter",
    "ValidationResult",
    "calculate_adjusted_critical_shear",
    "calculate_distance",
    "calculate_flow_depth",
    "calculate_hydraulic_radius",
    "calculate_risk_index",
    "calculate_risk_profile",
    "calculate_segment_risk",
    "calculate_shear_stress",
    "calculate_vegetation_resistance",
    "calculate_velocity",
    "default_river_geojson",
    "detect_crs",
    "find_nearest_lidar_point",
    "get_analysis_statistics",
    "get_lidar_statistics",
    "get_risk_category",
    "get_segment_center",
    "load_lidar",
    "load_river_geojson",
    "merge_lidar_with_river",
    "parse_csv_text",
    "process_lidar_csv",
    "process_lidar_geojson",
    "read_river_shapefile",
    "validate_lidar_data",
]
