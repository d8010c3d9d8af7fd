"""Caller-owned analysis state: the current river collection, LiDAR points and last results."""

from __future__ import annotations

from typing import Mapping

import structlog

from .config import HydrodynamicParams, default_river_geojson, settings
from .errors import FormatError, LidarValidationError
from .hydraulics import calculate_risk_profile
from .lidar import load_lidar, validate_lidar_data
from .models import AnalysisStatistics, LidarPoint, ValidationResult
from .rivers import load_river_geojson
from .spatial import merge_lidar_with_river
from .statistics import get_analysis_statistics

logger = structlog.get_logger()


class AnalysisSession:
    """One user's working state across load → merge → analyze steps.

    Core functions never hold state; a session is the only place where the
    current river collection and LiDAR points live between calls.
    """

    def __init__(self, river: dict | None = None, params: HydrodynamicParams | Mapping | None = None):
        self.params = params if isinstance(params, HydrodynamicParams) else HydrodynamicParams.model_validate(params or {})
        self.river: dict = load_river_geojson(river) if river is not None else default_river_geojson()
        self.lidar_points: list[LidarPoint] | None = None
        self.discharge: float = settings.default_discharge
        self.results: dict | None = None
        self.statistics: AnalysisStatistics | None = None

    def load_river(self, river: dict) -> None:
        """Replace the river collection; earlier results no longer apply."""
        self.river = load_river_geojson(river)
        self.results = None
        self.statistics = None
        logger.info("river_loaded", segments=len(self.river["features"]))

    def load_lidar(self, content: bytes | str, filename: str) -> list[LidarPoint]:
        try:
            self.lidar_points = load_lidar(content, filename)
        except FormatError:
            self.lidar_points = None
            raise
        return self.lidar_points

    def merge_lidar(self) -> ValidationResult:
        """Validate the loaded LiDAR points and join them onto the river segments.

        Raises :class:`LidarValidationError` when validation fails; the river
        collection is left as it was.
        """
        if not self.lidar_points:
            raise FormatError("No LiDAR data loaded")

        validation = validate_lidar_data(self.lidar_points)
        if not validation.is_valid:
            raise LidarValidationError(validation)

        self.river = merge_lidar_with_river(self.river, self.lidar_points)
        return validation

    def run_analysis(self, discharge: float | None = None) -> AnalysisStatistics | None:
        if discharge is not None:
            self.discharge = discharge
        self.results = calculate_risk_profile(self.discharge, self.river, self.params)
        self.statistics = get_analysis_statistics(self.results)
        return self.statistics

    def reset(self) -> None:
        """Return to the default dataset with no LiDAR data or results."""
        self.river = default_river_geojson()
        self.lidar_points = None
        self.results = None
        self.statistics = None
        self.discharge = settings.default_discharge
