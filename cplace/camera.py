"""Map camera: viewport, panning, zooming and visible-tile selection."""

from __future__ import annotations

import math
from typing import List, Tuple

from cplace.tile import (
    TileId,
    clamp_latitude,
    is_valid_tile_y,
    lon_lat_to_tile_f64,
    normalize_longitude,
    wrap_tile_x,
)

TILE_SIZE = 256.0
MIN_ZOOM = 0.0
MAX_ZOOM = 19.0
EARTH_CIRCUMFERENCE = 40075016.686
METERS_PER_DEGREE = 111320.0


def _clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


class MapCamera:
    """Center position, fractional zoom and viewport size of the map view."""

    def __init__(
        self,
        lon: float = 126.9780,
        lat: float = 37.5665,
        zoom: float = 10.0,
        width: int = 800,
        height: int = 600,
    ) -> None:
        self.center: Tuple[float, float] = (normalize_longitude(lon), clamp_latitude(lat))
        self.zoom = _clamp_zoom(zoom)
        self.viewport_width = width
        self.viewport_height = height

    def set_viewport(self, width: int, height: int) -> None:
        """Update the viewport size in pixels."""
        self.viewport_width = width
        self.viewport_height = height

    def tile_zoom(self) -> int:
        """Integer zoom level used to pick tiles."""
        return int(math.floor(self.zoom))

    def zoom_scale(self) -> float:
        """Scale factor of the fractional part of the zoom."""
        return 2.0 ** (self.zoom - math.floor(self.zoom))

    def meters_per_pixel(self) -> float:
        """Ground distance covered by one pixel at the center latitude."""
        lat_rad = math.radians(self.center[1])
        return EARTH_CIRCUMFERENCE * math.cos(lat_rad) / (TILE_SIZE * 2.0 ** self.zoom)

    def _cos_lat(self) -> float:
        return max(math.cos(math.radians(self.center[1])), 0.01)

    def pan(self, dx_pixels: float, dy_pixels: float) -> None:
        """Move the map by a pixel delta; longitude wraps, latitude is clamped."""
        mpp = self.meters_per_pixel()
        lon_delta = dx_pixels * mpp / (METERS_PER_DEGREE * self._cos_lat())
        lon = normalize_longitude(self.center[0] - lon_delta)
        lat_delta = dy_pixels * mpp / METERS_PER_DEGREE
        lat = clamp_latitude(self.center[1] + lat_delta)
        self.center = (lon, lat)

    def zoom_at(self, delta: float, screen_x: float, screen_y: float) -> None:
        """Zoom by delta keeping the point under the given screen position still."""
        old_zoom = self.zoom
        self.zoom = _clamp_zoom(self.zoom + delta)
        if abs(self.zoom - old_zoom) < 0.001:
            return

        offset_x = screen_x - self.viewport_width / 2.0
        offset_y = screen_y - self.viewport_height / 2.0

        scale_change = 2.0 ** (self.zoom - old_zoom)
        new_offset_x = offset_x * (1.0 - 1.0 / scale_change)
        new_offset_y = offset_y * (1.0 - 1.0 / scale_change)

        mpp = self.meters_per_pixel()
        lon_delta = new_offset_x * mpp / (METERS_PER_DEGREE * self._cos_lat())
        lat_delta = new_offset_y * mpp / METERS_PER_DEGREE
        self.center = (
            normalize_longitude(self.center[0] + lon_delta),
            clamp_latitude(self.center[1] - lat_delta),
        )

    def zoom_by(self, delta: float) -> None:
        """Zoom around the center."""
        self.zoom = _clamp_zoom(self.zoom + delta)

    def visible_tiles(self) -> List[TileId]:
        """Visible tiles plus one ring of tiles for preloading."""
        return self.visible_tiles_with_buffer(1)

    def visible_tiles_with_buffer(self, buffer: int) -> List[TileId]:
        """Visible tiles with `buffer` extra tiles around the viewport, row by row."""
        z = self.tile_zoom()
        scaled_tile_size = TILE_SIZE * self.zoom_scale()
        cx, cy = lon_lat_to_tile_f64(self.center[0], self.center[1], z)

        tiles_x = math.ceil(self.viewport_width / scaled_tile_size) + 1
        tiles_y = math.ceil(self.viewport_height / scaled_tile_size) + 1
        half_x = tiles_x // 2 + buffer
        half_y = tiles_y // 2 + buffer

        min_x = math.floor(cx) - half_x
        max_x = math.ceil(cx) + half_x
        min_y = math.floor(cy) - half_y
        max_y = math.ceil(cy) + half_y

        return [
            TileId(wrap_tile_x(tx, z), ty, z)
            for ty in range(min_y, max_y + 1)
            if is_valid_tile_y(ty, z)
            for tx in range(min_x, max_x + 1)
        ]

    def tile_to_screen(self, tile: TileId) -> Tuple[float, float]:
        """Screen position of a tile's top-left corner, taking world wrap into account."""
        z = self.tile_zoom()
        scaled_tile_size = TILE_SIZE * self.zoom_scale()
        cx, cy = lon_lat_to_tile_f64(self.center[0], self.center[1], z)

        rel_x = tile.x - cx
        rel_y = tile.y - cy

        max_tiles = float(1 << z)
        if rel_x > max_tiles / 2.0:
            rel_x -= max_tiles
        elif rel_x < -max_tiles / 2.0:
            rel_x += max_tiles

        screen_x = self.viewport_width / 2.0 + rel_x * scaled_tile_size
        screen_y = self.viewport_height / 2.0 + rel_y * scaled_tile_size
        return screen_x, screen_y

    def tile_screen_size(self) -> float:
        """On-screen edge length of one tile at the current zoom."""
        return TILE_SIZE * self.zoom_scale()

    def screen_to_world(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        """Longitude and latitude under a screen position."""
        mpp = self.meters_per_pixel()
        offset_x = screen_x - self.viewport_width / 2.0
        offset_y = screen_y - self.viewport_height / 2.0
        lon_delta = offset_x * mpp / (METERS_PER_DEGREE * self._cos_lat())
        lat_delta = offset_y * mpp / METERS_PER_DEGREE
        return (
            normalize_longitude(self.center[0] + lon_delta),
            clamp_latitude(self.center[1] - lat_delta),
        )