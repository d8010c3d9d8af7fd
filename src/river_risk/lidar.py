"""LiDAR ingestion: CSV and GeoJSON readers, validation and point-set statistics.

Both readers produce :class:`LidarPoint` records with a ``segment_id``,
``latitude`` and ``longitude`` plus the optional bank attributes used by the
spatial join. Columns or properties the pipeline does not know about are kept
on the point as extra fields.
"""

from __future__ import annotations

import json
import math
import re
from pathlib import Path
from typing import Any, Sequence

import pydantic
import structlog

from .errors import FormatError
from .models import LidarPoint, LidarStatistics, ValidationResult

logger = structlog.get_logger()

REQUIRED_COLUMNS = ("segment_id", "latitude", "longitude")

# Optional point attribute -> alternative property name accepted in GeoJSON input
GEOJSON_ALIASES = {
    "bank_height_m": "lidar_avg_bank_height_m",
    "veg_density": "lidar_riparian_veg_density",
    "bank_slope": "lidar_bank_slope",
    "roughness_coefficient": "manning_n",
}

BANK_HEIGHT_RANGE = (0.0, 50.0)

# ASCII decimal notation only: no digit separators, no nan/inf spellings
_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?P<fraction>\.[0-9]*)?|(?P<fraction_only>\.[0-9]+))(?P<exponent>[eE][+-]?[0-9]+)?")


def parse_csv_text(csv_text: str) -> list[dict[str, Any]]:
    """Parse comma-separated text into row dictionaries.

    The first non-empty line is the header. Values that read fully as numbers
    become numbers, everything else stays a string. Rows lacking any of the
    required columns are dropped.
    """
    lines = [line for line in csv_text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise FormatError("CSV must contain header and at least one data row")

    header = [h.strip() for h in lines[0].split(",")]
    missing = [col for col in REQUIRED_COLUMNS if col not in header]
    if missing:
        raise FormatError(f"Missing required columns: {', '.join(missing)}", missing=missing)

    rows: list[dict[str, Any]] = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        row = {column: _coerce(value) for column, value in zip(header, values)}
        if all(row.get(col) not in (None, "") for col in REQUIRED_COLUMNS):
            rows.append(row)

    if not rows:
        raise FormatError("No valid data rows found in CSV")
    return rows


def _coerce(value: str) -> int | float | str:
    """Return ``value`` as an int or float when it is a plain decimal number, else unchanged."""
    match = _NUMBER.fullmatch(value)
    if match is None:
        return value
    if not any(match.group("fraction", "fraction_only", "exponent")):
        return int(value)
    number = float(value)
    # an overflowing exponent such as 1e999
    return number if math.isfinite(number) else value


def process_lidar_csv(csv_text: str) -> list[LidarPoint]:
    """Read LiDAR points from CSV text.

    Rows whose coordinates or bank attributes are not numeric are skipped.
    """
    try:
        rows = parse_csv_text(csv_text)
    except FormatError as exc:
        logger.error("lidar_csv_rejected", error=str(exc))
        raise FormatError(f"Invalid LiDAR CSV format: {exc}", missing=exc.missing) from exc

    points: list[LidarPoint] = []
    for idx, row in enumerate(rows, start=1):
        # an empty optional cell means "not measured"
        row = {k: v for k, v in row.items() if not (k in GEOJSON_ALIASES and v == "")}
        try:
            points.append(LidarPoint(**row))
        except pydantic.ValidationError:
            logger.debug("lidar_csv_row_skipped", row=idx)

    if not points:
        raise FormatError("Invalid LiDAR CSV format: No valid data rows found in CSV")

    logger.info("lidar_csv_loaded", points=len(points))
    return points


def process_lidar_geojson(geojson: dict) -> list[LidarPoint]:
    """Read LiDAR points from a GeoJSON FeatureCollection.

    Coordinates come from the point geometry (``[lon, lat]``) and fall back to
    ``latitude``/``longitude`` properties. Attribute aliases used by river
    exports, e.g. ``lidar_avg_bank_height_m``, are accepted for the bank fields.
    """
    features = geojson.get("features") if isinstance(geojson, dict) else None
    if not isinstance(features, list):
        raise FormatError("Invalid GeoJSON: features array required")

    points: list[LidarPoint] = []
    for idx, feature in enumerate(features):
        props = dict(feature.get("properties") or {})
        coords = (feature.get("geometry") or {}).get("coordinates") or []

        data = dict(props)
        data["segment_id"] = _first_present(props.get("segment_id"), props.get("id"))
        data["latitude"] = _first_present(coords[1] if len(coords) > 1 else None, props.get("latitude"))
        data["longitude"] = _first_present(coords[0] if len(coords) > 0 else None, props.get("longitude"))
        for field, alias in GEOJSON_ALIASES.items():
            data[field] = _first_present(props.get(field), props.get(alias))

        try:
            points.append(LidarPoint(**data))
        except pydantic.ValidationError as exc:
            raise FormatError(f"Invalid GeoJSON: feature {idx}: {exc.errors()[0]['msg']}") from exc

    logger.info("lidar_geojson_loaded", points=len(points))
    return points


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def load_lidar(content: bytes | str, filename: str) -> list[LidarPoint]:
    """Read an uploaded LiDAR file, choosing the reader from the file extension."""
    text = content.decode("utf-8-sig", errors="replace") if isinstance(content, bytes) else content
    ext = Path(filename).suffix.lower()

    if ext == ".csv":
        return process_lidar_csv(text)
    if ext in (".json", ".geojson"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Invalid GeoJSON: {exc}") from exc
        return process_lidar_geojson(data)
    raise FormatError(f"Unsupported LiDAR file type: {ext or filename}")


def validate_lidar_data(points: Sequence[LidarPoint]) -> ValidationResult:
    """Check coordinate and vegetation ranges; implausible bank heights only warn."""
    if not isinstance(points, (list, tuple)) or not points:
        return ValidationResult(is_valid=False, errors=["LiDAR array is empty or invalid"])

    result = ValidationResult(total_points=len(points))

    for idx, point in enumerate(points):
        if point.latitude is None or point.longitude is None:
            result.errors.append(f"Point {idx}: Missing latitude or longitude")
            continue
        if not -90 <= point.latitude <= 90:
            result.errors.append(f"Point {idx}: Invalid latitude {point.latitude}")
            continue
        if not -180 <= point.longitude <= 180:
            result.errors.append(f"Point {idx}: Invalid longitude {point.longitude}")
            continue

        low, high = BANK_HEIGHT_RANGE
        if point.bank_height_m is not None and not low <= point.bank_height_m <= high:
            result.warnings.append(f"Point {idx}: Bank height {point.bank_height_m}m seems unusual")

        if point.veg_density is not None and not 0 <= point.veg_density <= 1:
            result.errors.append(f"Point {idx}: Vegetation density must be 0-1")
            continue

        result.valid_points += 1

    if result.valid_points == 0:
        result.is_valid = False
        result.errors.append("No valid LiDAR points found")

    return result


def get_lidar_statistics(points: Sequence[LidarPoint]) -> LidarStatistics | None:
    """Average, max and min bank height and average vegetation density over points that carry them."""
    if not points:
        return None

    stats = LidarStatistics(total_points=len(points))
    heights = [p.bank_height_m for p in points if p.bank_height_m is not None]
    densities = [p.veg_density for p in points if p.veg_density is not None]

    if heights:
        stats.avg_bank_height = round(sum(heights) / len(heights), 2)
        stats.max_bank_height = max(stats.max_bank_height, *heights)
        stats.min_bank_height = min(heights)
    if densities:
        stats.avg_veg_density = round(sum(densities) / len(densities), 2)

    return stats
