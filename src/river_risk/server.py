"""FastAPI server for river erosion risk analysis."""

from __future__ import annotations

import csv
import io
import json
import struct
import tempfile
import zipfile
from pathlib import Path

import shapefile
import structlog
from fastapi import FastAPI, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .config import (
    DISCHARGE_MAX,
    DISCHARGE_MIN,
    PARAMETER_RANGES,
    RISK_CATEGORIES,
    HydrodynamicParams,
    default_river_geojson,
    settings,
)
from .errors import FormatError, LidarValidationError
from .lidar import get_lidar_statistics, load_lidar, validate_lidar_data
from .log import configure_logging
from .models import AnalysisStatistics, LidarPoint, LidarStatistics, ValidationResult
from .rivers import read_river_shapefile
from .session import AnalysisSession

configure_logging(settings.log_level)
logger = structlog.get_logger()

app = FastAPI(title="River Erosion Risk", version="0.1.0")

CSV_FIELDS = [
    "id", "name", "riskCategory", "riskIndex",
    "shearStress", "velocity", "flowDepth", "hydraulicRadius",
    "bankHeight", "vegDensity", "vegetationResistance", "adjustedCriticalShear",
    "lidar_merged", "lidar_source_id",
]


class LidarUploadResult(BaseModel):
    points: list[LidarPoint]
    validation: ValidationResult
    statistics: LidarStatistics | None


class AnalysisResult(BaseModel):
    geojson: dict
    statistics: AnalysisStatistics | None


@app.get("/defaults")
async def defaults():
    """Built-in Ganga reaches, model parameters and risk class styling."""
    return {
        "geojson": default_river_geojson(),
        "params": HydrodynamicParams().model_dump(by_alias=True),
        "parameterRanges": {name: r.model_dump() for name, r in PARAMETER_RANGES.items()},
        "riskCategories": [c.model_dump(mode="json") for c in RISK_CATEGORIES],
        "discharge": settings.default_discharge,
    }


@app.post("/lidar")
async def upload_lidar(file: UploadFile):
    """Parse and validate a LiDAR CSV or GeoJSON file."""
    content = await file.read()
    try:
        points = load_lidar(content, file.filename or "")
    except FormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return LidarUploadResult(
        points=points,
        validation=validate_lidar_data(points),
        statistics=get_lidar_statistics(points),
    ).model_dump(mode="json", by_alias=True)


@app.post("/analyze")
async def analyze(
    river: UploadFile | None = None,
    lidar: UploadFile | None = None,
    discharge: float = Query(settings.default_discharge, ge=DISCHARGE_MIN, le=DISCHARGE_MAX),
    format: str = Query("json", pattern="^(csv|json)$"),
):
    """Run the full pipeline: load river and LiDAR, merge, analyze, summarize.

    ``river`` may be a GeoJSON FeatureCollection or a .zip holding a polyline
    shapefile; without it the built-in Ganga dataset is analyzed.
    """
    try:
        session = AnalysisSession(river=await _read_river(river) if river is not None else None)
        if lidar is not None:
            session.load_lidar(await lidar.read(), lidar.filename or "")
            session.merge_lidar()
    except FormatError as exc:
        logger.warning("analysis_rejected", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))
    except LidarValidationError as exc:
        logger.warning("lidar_validation_failed", errors=exc.result.errors)
        raise HTTPException(status_code=422, detail=exc.result.model_dump(by_alias=True))

    statistics = session.run_analysis(discharge)

    if format == "csv":
        return _results_to_csv_response(session.results["features"])

    return AnalysisResult(geojson=session.results, statistics=statistics).model_dump(mode="json", by_alias=True)


async def _read_river(upload: UploadFile) -> dict:
    filename = (upload.filename or "").lower()
    content = await upload.read()

    if filename.endswith(".zip"):
        return _read_river_zip(content)

    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormatError(f"Invalid GeoJSON: {exc}") from exc


def _read_river_zip(content: bytes) -> dict:
    """Extract a zipped shapefile and read its river reaches."""
    with tempfile.TemporaryDirectory() as extract_dir:
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as zf:
                zf.extractall(extract_dir)
        except zipfile.BadZipFile as exc:
            raise FormatError("Invalid zip archive") from exc

        shp_files = list(Path(extract_dir).rglob("*.shp"))
        if not shp_files:
            raise FormatError("No .shp file found in zip archive")

        try:
            return read_river_shapefile(shp_files[0])
        except (shapefile.ShapefileException, struct.error) as exc:
            # truncated or corrupt component files
            raise FormatError(f"Invalid shapefile: {exc}") from exc


def _results_to_csv_response(features: list[dict]) -> StreamingResponse:
    """Stream one CSV row per analyzed segment."""

    def generate():
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        yield buf.getvalue()
        buf.seek(0)
        buf.truncate(0)

        for feature in features:
            props = feature.get("properties") or {}
            if "calculated" not in props:
                continue
            writer.writerow({**props, **props["calculated"]})
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)

    return StreamingResponse(
        generate(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=river_analysis.csv"},
    )
