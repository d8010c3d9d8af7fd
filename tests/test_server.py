"""Tests for the FastAPI server endpoints."""

import io
import json
import zipfile

import pytest
import shapefile
from httpx import ASGITransport, AsyncClient

from river_risk.server import app


@pytest.fixture
def client():
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


def _zipped_reaches(tmp_path, truncate_shp=None, extensions=(".shp", ".shx", ".dbf")) -> bytes:
    base = tmp_path / "reaches"
    with shapefile.Writer(str(base), shapeType=shapefile.POLYLINE) as w:
        w.field("name", "C")
        w.field("base_slope", "N", size=12, decimal=6)
        w.field("channel_wi", "N", size=10, decimal=1)
        w.line([[[82.95, 25.33], [83.01, 25.28], [83.05, 25.32]]])
        w.record("Varanasi", 0.00008, 700.0)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for ext in extensions:
            p = base.with_suffix(ext)
            data = p.read_bytes()
            if ext == ".shp" and truncate_shp is not None:
                data = data[:truncate_shp]
            zf.writestr(p.name, data)
    return buf.getvalue()


@pytest.mark.asyncio
class TestLidarUpload:
    async def test_csv(self, client, lidar_csv_text):
        files = {"file": ("survey.csv", lidar_csv_text.encode(), "text/csv")}
        resp = await client.post("/lidar", files=files)
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["points"]) == 4
        assert data["points"][0]["bank_type"] == "gravel"
        assert data["validation"]["isValid"] is True
        assert data["validation"]["validPoints"] == 4
        assert data["statistics"]["totalPoints"] == 4

    async def test_geojson(self, client):
        payload = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {"segment_id": "g1"}, "geometry": {"type": "Point", "coordinates": [80.0, 26.0]}}
            ],
        }
        files = {"file": ("points.geojson", json.dumps(payload).encode(), "application/geo+json")}
        resp = await client.post("/lidar", files=files)
        assert resp.status_code == 200
        data = resp.json()
        assert data["points"][0]["latitude"] == 26.0
        assert data["statistics"]["minBankHeight"] is None

    async def test_missing_column_returns_400(self, client):
        files = {"file": ("survey.csv", b"segment_id,latitude\ns1,10.5\n", "text/csv")}
        resp = await client.post("/lidar", files=files)
        assert resp.status_code == 400
        assert "longitude" in resp.json()["detail"]

    async def test_non_finite_rows_are_skipped(self, client):
        text = b"segment_id,latitude,longitude,roughness_coefficient\nbad,29.94,78.16,nan\nok,29.9,78.1,0.04\n"
        resp = await client.post("/lidar", files={"file": ("survey.csv", text, "text/csv")})
        assert resp.status_code == 200
        assert [p["segment_id"] for p in resp.json()["points"]] == ["ok"]

    async def test_out_of_range_is_reported_not_rejected(self, client):
        files = {"file": ("survey.csv", b"segment_id,latitude,longitude,veg_density\ns1,10.5,20.5,1.5\n", "text/csv")}
        resp = await client.post("/lidar", files=files)
        assert resp.status_code == 200
        assert resp.json()["validation"]["isValid"] is False


@pytest.mark.asyncio
class TestAnalyze:
    async def test_default_dataset(self, client):
        resp = await client.post("/analyze")
        assert resp.status_code == 200
        data = resp.json()
        assert data["statistics"]["totalSegments"] == 4
        assert all("calculated" in f["properties"] for f in data["geojson"]["features"])

    async def test_discharge_query(self, client):
        low = (await client.post("/analyze?discharge=50")).json()
        high = (await client.post("/analyze?discharge=4000")).json()
        assert high["statistics"]["avgRiskIndex"] > low["statistics"]["avgRiskIndex"]

    async def test_discharge_out_of_range(self, client):
        resp = await client.post("/analyze?discharge=1")
        assert resp.status_code == 422

    async def test_with_lidar(self, client, lidar_csv_text):
        files = {"lidar": ("survey.csv", lidar_csv_text.encode(), "text/csv")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 200
        features = resp.json()["geojson"]["features"]
        assert [f["properties"]["lidar_source_id"] for f in features] == ["L1", "L2", "L3", "L4"]

    async def test_invalid_lidar_returns_422(self, client):
        files = {"lidar": ("survey.csv", b"segment_id,latitude,longitude,veg_density\ns1,10.5,20.5,1.5\n", "text/csv")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 422
        assert resp.json()["detail"]["isValid"] is False

    async def test_custom_river_geojson(self, client, ganga):
        ganga["features"] = ganga["features"][:2]
        files = {"river": ("river.geojson", json.dumps(ganga).encode(), "application/geo+json")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 200
        assert resp.json()["statistics"]["totalSegments"] == 2

    async def test_bad_river_returns_400(self, client):
        files = {"river": ("river.geojson", b"[1, 2, 3]", "application/json")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 400

    async def test_zipped_shapefile(self, client, tmp_path):
        files = {"river": ("reaches.zip", _zipped_reaches(tmp_path), "application/zip")}
        resp = await client.post("/analyze?format=json", files=files)
        assert resp.status_code == 200
        (feature,) = resp.json()["geojson"]["features"]
        assert feature["properties"]["channel_width"] == 700.0
        assert feature["properties"]["calculated"]["riskCategory"]

    async def test_zip_without_shapefile(self, client):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("readme.txt", "nothing here")
        files = {"river": ("reaches.zip", buf.getvalue(), "application/zip")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 400

    async def test_truncated_shapefile_returns_400(self, client, tmp_path):
        files = {"river": ("reaches.zip", _zipped_reaches(tmp_path, truncate_shp=50), "application/zip")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Invalid shapefile")

    async def test_shapefile_without_dbf_returns_400(self, client, tmp_path):
        files = {"river": ("reaches.zip", _zipped_reaches(tmp_path, extensions=(".shp",)), "application/zip")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 400

    async def test_non_finite_lidar_cell_is_skipped(self, client, lidar_csv_text):
        text = lidar_csv_text.rstrip("\n") + "\nbad,29.94,78.16,inf,0.5,30,inf,silt\n"
        files = {"lidar": ("survey.csv", text.encode(), "text/csv")}
        resp = await client.post("/analyze", files=files)
        assert resp.status_code == 200
        assert "bad" not in [f["properties"]["lidar_source_id"] for f in resp.json()["geojson"]["features"]]

    async def test_csv_output(self, client):
        resp = await client.post("/analyze?format=csv")
        assert resp.status_code == 200
        assert "text/csv" in resp.headers["content-type"]
        lines = resp.text.strip().splitlines()
        assert lines[0].startswith("id,name,riskCategory,riskIndex")
        assert len(lines) == 5  # header + 4 segments
        assert "High Erosion" in lines[1]


@pytest.mark.asyncio
class TestDefaults:
    async def test_defaults(self, client):
        resp = await client.get("/defaults")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["geojson"]["features"]) == 4
        assert data["params"]["waterDensity"] == 1000
        assert data["discharge"] == 300
        assert data["parameterRanges"]["channel_width"] == {"min": 5, "max": 5000, "default": 200}
        names = [c["category"] for c in data["riskCategories"]]
        assert names == ["High Erosion", "Medium Erosion", "Stable", "Medium Deposition", "High Deposition"]
        assert data["riskCategories"][0]["max_index"] is None
