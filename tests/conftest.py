import pytest

from river_risk import LidarPoint, default_river_geojson

# Middle vertex of each built-in Ganga reach, as [lon, lat]
GANGA_CENTERS = {
    1: (78.16, 29.94),
    2: (80.90, 26.10),
    3: (83.01, 25.28),
    4: (88.10, 24.60),
}


@pytest.fixture
def ganga():
    return default_river_geojson()


@pytest.fixture
def ganga_centers():
    return GANGA_CENTERS


@pytest.fixture
def lidar_csv_text():
    return (
        "segment_id,latitude,longitude,bank_height_m,veg_density,bank_slope,roughness_coefficient,bank_type\n"
        "L1,29.94,78.16,9.5,0.7,32,0.045,gravel\n"
        "L2,26.10,80.90,14.0,0.25,18,,silt\n"
        "\n"
        "L3,25.28,83.01,11.0,0.15,21,0.03,sand\n"
        "L4,24.60,88.10,4.5,0.65,12,0.024,clay\n"
    )


@pytest.fixture
def lidar_points():
    return [
        LidarPoint(segment_id=f"P{sid}", latitude=lat, longitude=lon, bank_height_m=10.0 + sid, veg_density=0.1 * sid)
        for sid, (lon, lat) in GANGA_CENTERS.items()
    ]
