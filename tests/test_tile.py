import math

import pytest

from cplace.tile import (
    MAX_LATITUDE,
    TileId,
    calculate_sub_region,
    clamp_latitude,
    is_valid_tile_y,
    lon_lat_to_tile,
    lon_lat_to_tile_f64,
    normalize_longitude,
    tile_to_lon_lat,
    wrap_tile_x,
)


def test_lon_lat_to_tile_seoul():
    assert lon_lat_to_tile(126.9780, 37.5665, 10) == (872, 395)


@pytest.mark.parametrize("x, expected", [(4, 0), (-1, 3), (2, 2)])
def test_wrap_tile_x(x, expected):
    assert wrap_tile_x(x, 2) == expected


def test_normalize_longitude():
    assert abs(normalize_longitude(190.0) - (-170.0)) < 0.001
    assert abs(normalize_longitude(-190.0) - 170.0) < 0.001


def test_normalize_longitude_keeps_bounds():
    assert normalize_longitude(180.0) == 180.0
    assert normalize_longitude(-180.0) == -180.0
    assert normalize_longitude(540.0) == 180.0


def test_normalize_longitude_rejects_infinity():
    with pytest.raises(ValueError):
        normalize_longitude(math.inf)


def test_osm_url():
    assert TileId(872, 395, 10).to_osm_url() == "https://tile.openstreetmap.org/10/872/395.png"


def test_max_tile_coord():
    assert TileId(0, 0, 10).max_tile_coord() == 1024


def test_parent_at_zoom():
    assert TileId(872, 395, 10).parent_at_zoom(8) == TileId(218, 98, 8)
    assert TileId(872, 395, 10).parent_at_zoom(10) is None
    assert TileId(872, 395, 10).parent_at_zoom(11) is None


def test_lon_lat_to_tile_clamped():
    assert lon_lat_to_tile(180.0, -90.0, 3) == (7, 7)
    assert lon_lat_to_tile(-200.0, 85.0, 3)[0] == 0


def test_tile_to_lon_lat_origin():
    lon, lat = tile_to_lon_lat(0, 0, 0)
    assert lon == -180.0
    assert lat == pytest.approx(MAX_LATITUDE, abs=1e-6)


@pytest.mark.parametrize("x, y, z", [(872, 395, 10), (0, 0, 0), (5, 9, 4)])
def test_tile_corner_round_trip(x, y, z):
    lon, lat = tile_to_lon_lat(x, y, z)
    fx, fy = lon_lat_to_tile_f64(lon, lat, z)
    assert fx == pytest.approx(x, abs=1e-9)
    assert fy == pytest.approx(y, abs=1e-9)


def test_is_valid_tile_y():
    assert is_valid_tile_y(0, 2)
    assert is_valid_tile_y(3, 2)
    assert not is_valid_tile_y(4, 2)
    assert not is_valid_tile_y(-1, 2)


def test_clamp_latitude():
    assert clamp_latitude(90.0) == MAX_LATITUDE
    assert clamp_latitude(-90.0) == -MAX_LATITUDE
    assert clamp_latitude(37.5665) == 37.5665


def test_sub_region():
    assert calculate_sub_region(TileId(3, 1, 2), TileId(0, 0, 0)) == (0.75, 0.25, 1.0, 0.5)
    assert calculate_sub_region(TileId(3, 1, 2), TileId(3, 1, 2)) == (0.0, 0.0, 1.0, 1.0)