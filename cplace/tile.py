"""Tile coordinates and conversions for the Web Mercator (EPSG:3857) tile scheme."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

MAX_LATITUDE = 85.05112878
OSM_TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"


@dataclass(frozen=True)
class TileId:
    """Identifier of one map tile: column, row and zoom level."""

    x: int
    y: int
    z: int

    def max_tile_coord(self) -> int:
        """Number of tiles along one axis at this zoom level (2**z)."""
        return 1 << self.z

    def parent_at_zoom(self, target_z: int) -> Optional["TileId"]:
        """The tile covering this one at a lower zoom, or None if target_z is not lower."""
        if target_z >= self.z:
            return None
        diff = self.z - target_z
        return TileId(self.x >> diff, self.y >> diff, target_z)

    def to_osm_url(self) -> str:
        """URL of this tile on the OpenStreetMap tile server."""
        return OSM_TILE_URL.format(z=self.z, x=self.x, y=self.y)


def _to_unsigned(value: float) -> int:
    """Floor a float into a non-negative integer, saturating at zero."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 0 if value < 0 else (1 << 32) - 1
    return max(0, math.floor(value))


def lon_lat_to_tile_f64(lon: float, lat: float, zoom: int) -> Tuple[float, float]:
    """Fractional tile coordinates of a point at the given zoom."""
    n = float(1 << zoom)
    x = (lon + 180.0) / 360.0 * n
    lat_rad = math.radians(lat)
    y = (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n
    return x, y


def lon_lat_to_tile(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """Integer tile containing a point, clamped to the valid tile range."""
    fx, fy = lon_lat_to_tile_f64(lon, lat, zoom)
    max_tile = (1 << zoom) - 1
    return min(_to_unsigned(fx), max_tile), min(_to_unsigned(fy), max_tile)


def tile_to_lon_lat(x: int, y: int, zoom: int) -> Tuple[float, float]:
    """Longitude and latitude of a tile's top-left corner."""
    n = float(1 << zoom)
    lon = x / n * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n)))
    return lon, math.degrees(lat_rad)


def wrap_tile_x(x: int, zoom: int) -> int:
    """Wrap a tile column into [0, 2**zoom) for endless horizontal scrolling."""
    return x % (1 << zoom)


def is_valid_tile_y(y: int, zoom: int) -> bool:
    """Whether a tile row exists at this zoom (rows do not wrap)."""
    return 0 <= y < (1 << zoom)


def normalize_longitude(lon: float) -> float:
    """Bring a longitude into [-180, 180]."""
    if math.isinf(lon):
        raise ValueError("longitude must be finite")
    if lon > 180.0:
        lon -= 360.0 * math.ceil((lon - 180.0) / 360.0)
    elif lon < -180.0:
        lon += 360.0 * math.ceil((-180.0 - lon) / 360.0)
    return lon


def clamp_latitude(lat: float) -> float:
    """Clamp a latitude to the range Web Mercator can show."""
    return max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))


def calculate_sub_region(target: TileId, parent: TileId) -> Tuple[float, float, float, float]:
    """UV rectangle (u0, v0, u1, v1) of target inside a lower-zoom parent tile."""
    if parent.z >= target.z:
        return 0.0, 0.0, 1.0, 1.0
    subdivisions = 1 << (target.z - parent.z)
    local_x = target.x % subdivisions
    local_y = target.y % subdivisions
    size = 1.0 / subdivisions
    u0 = local_x * size
    v0 = local_y * size
    return u0, v0, u0 + size, v0 + size