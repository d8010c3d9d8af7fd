"""River segment loading from GeoJSON documents or polyline shapefiles."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import shapefile
import structlog
from pyproj import CRS, Transformer

from .errors import FormatError

logger = structlog.get_logger()

# DBF field names are limited to 10 characters
DBF_FIELD_ALIASES = {
    "critical_s": "critical_shear",
    "channel_wi": "channel_width",
    "lidar_avg_": "lidar_avg_bank_height_m",
    "lidar_ripa": "lidar_riparian_veg_density",
    "lidar_bank": "lidar_bank_slope",
}


def load_river_geojson(data: dict) -> dict:
    """Check that ``data`` is a GeoJSON FeatureCollection and return it."""
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise FormatError("Invalid GeoJSON format. Ensure it's a valid FeatureCollection.")
    if not isinstance(data.get("features"), list):
        raise FormatError("Invalid GeoJSON: features array required")
    return data


def detect_crs(prj_source: str | Path | None) -> tuple[int | None, str | None, bool | None]:
    """Parse CRS from a .prj WKT string or file path.

    Returns (epsg_code, crs_name, is_projected) or (None, None, None) on failure.
    """
    if prj_source is None:
        return None, None, None

    wkt = prj_source if isinstance(prj_source, str) else ""
    if isinstance(prj_source, Path):
        if not prj_source.exists():
            return None, None, None
        wkt = prj_source.read_text()

    if not wkt.strip():
        return None, None, None

    try:
        crs = CRS.from_wkt(wkt)
    except Exception:
        logger.warning("unreadable_prj")
        return None, None, None

    return crs.to_epsg(), crs.name, crs.is_projected


def read_river_shapefile(
    shp_path: str | Path | None = None,
    *,
    shp_file: BinaryIO | None = None,
    shx_file: BinaryIO | None = None,
    dbf_file: BinaryIO | None = None,
    prj_wkt: str | None = None,
) -> dict:
    """Read river reaches from a polyline shapefile into a GeoJSON FeatureCollection.

    Each record becomes one feature: a LineString for single-part shapes, a
    MultiLineString otherwise. DBF attributes become the feature properties.
    Projected coordinates are transformed to WGS84 lon/lat.

    Supports two modes:
    - File path: pass ``shp_path`` (the .prj is auto-discovered)
    - File objects: pass ``shp_file``, ``shx_file``, ``dbf_file``, and optionally ``prj_wkt``
    """
    if shp_path is not None:
        shp_path = Path(shp_path)
        sf = shapefile.Reader(str(shp_path))
        prj_path = shp_path.with_suffix(".prj")
        epsg, crs_name, is_projected = detect_crs(prj_path if prj_path.exists() else None)
    elif shp_file is not None:
        sf = shapefile.Reader(shp=shp_file, shx=shx_file, dbf=dbf_file)
        epsg, crs_name, is_projected = detect_crs(prj_wkt)
    else:
        raise ValueError("Provide either shp_path or shp_file")

    with sf:
        shape_type_name = sf.shapeTypeName
        if "POLYLINE" not in shape_type_name.upper():
            raise FormatError(f"Unsupported shape type: {shape_type_name}. River reaches must be POLYLINE shapes.")

        transformer = None
        if is_projected and epsg is not None:
            transformer = Transformer.from_crs(f"EPSG:{epsg}", "EPSG:4326", always_xy=True)

        features = [
            _to_feature(shape_record, idx, transformer)
            for idx, shape_record in enumerate(sf.iterShapeRecords(), start=1)
        ]

    logger.info("river_shapefile_loaded", shape_type=shape_type_name, crs_epsg=epsg, crs_name=crs_name, segments=len(features))
    return {"type": "FeatureCollection", "features": features}


def _to_feature(shape_record, idx: int, transformer: Transformer | None) -> dict:
    shape = shape_record.shape
    part_starts = list(shape.parts)

    lines: list[list[list[float]]] = []
    for part_idx, start in enumerate(part_starts):
        end = part_starts[part_idx + 1] if part_idx + 1 < len(part_starts) else len(shape.points)
        xs = [x for x, _ in shape.points[start:end]]
        ys = [y for _, y in shape.points[start:end]]
        if transformer is not None:
            xs, ys = transformer.transform(xs, ys)
        lines.append([[float(x), float(y)] for x, y in zip(xs, ys)])

    if len(lines) == 1:
        geometry = {"type": "LineString", "coordinates": lines[0]}
    else:
        geometry = {"type": "MultiLineString", "coordinates": lines}

    properties = {DBF_FIELD_ALIASES.get(k, k): v for k, v in shape_record.record.as_dict().items()}
    properties.setdefault("id", idx)
    return {"type": "Feature", "properties": properties, "geometry": geometry}
