"""The map as a whole: camera, tile cache, loader, tile layout and pixel overlay."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from cplace.cache import CacheStats, TileCache
from cplace.camera import MapCamera, _clamp_zoom
from cplace.grid import GridVertex, PixelGrid
from cplace.loader import TileLoader
from cplace.renderer import TileDraw, TilePlacement, TileRenderer, screen_to_ndc, size_to_ndc
from cplace.tile import clamp_latitude, normalize_longitude

logger = logging.getLogger(__name__)

DEFAULT_CENTER = (126.9780, 37.5665)
DEFAULT_ZOOM = 12.0
DEFAULT_CELL_SIZE = 0.0001


class MapSystem:
    """Keeps tiles loaded for the current view and lays them out for drawing."""

    def __init__(self, viewport_width: int, viewport_height: int, loader: Optional[TileLoader] = None) -> None:
        lon, lat = DEFAULT_CENTER
        self.camera = MapCamera(lon, lat, DEFAULT_ZOOM, viewport_width, viewport_height)
        self.pixel_grid = PixelGrid(DEFAULT_CELL_SIZE)
        self._cache = TileCache()
        self._loader = loader if loader is not None else TileLoader()
        self._renderer = TileRenderer()
        self._render_tiles: List[TilePlacement] = []

    def update(self) -> None:
        """Request missing tiles, take in finished loads and lay out the frame."""
        visible = self.camera.visible_tiles()

        for tile_id in visible:
            if tile_id not in self._cache and not self._loader.is_loading(tile_id):
                self._loader.request(tile_id)

        while (result := self._loader.poll()) is not None:
            if result.ok and result.data is not None:
                try:
                    cached = self._renderer.create_cached_tile(result.data)
                except (OSError, ValueError) as exc:
                    logger.warning("Failed to decode tile %r: %s", result.tile_id, exc)
                    continue
                logger.debug("Loaded tile %r", result.tile_id)
                self._cache.insert(result.tile_id, cached)
            else:
                logger.warning("Failed to load tile %r: %s", result.tile_id, result.error)

        width, height = self.camera.viewport_width, self.camera.viewport_height
        size = size_to_ndc(self.camera.tile_screen_size(), width, height)
        self._render_tiles = [
            (tile_id, screen_to_ndc(*self.camera.tile_to_screen(tile_id), width, height), size)
            for tile_id in visible
            if tile_id in self._cache
        ]

        self.pixel_grid.update(self.camera)

    def render(self) -> Tuple[List[TileDraw], List[GridVertex]]:
        """Tile draw commands followed by the pixel overlay vertices."""
        return self._renderer.render(self._render_tiles, self._cache), self.pixel_grid.vertices()

    def resize(self, width: int, height: int) -> None:
        self.camera.set_viewport(width, height)

    def pan(self, dx: float, dy: float) -> None:
        self.camera.pan(dx, dy)

    def zoom_at(self, delta: float, screen_x: float, screen_y: float) -> None:
        self.camera.zoom_at(delta, screen_x, screen_y)

    def zoom(self, delta: float) -> None:
        self.camera.zoom_by(delta)

    def screen_to_world(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return self.camera.screen_to_world(screen_x, screen_y)

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def pending_tiles(self) -> int:
        return self._loader.pending_count()

    def zoom_level(self) -> float:
        return self.camera.zoom

    def center(self) -> Tuple[float, float]:
        return self.camera.center

    def set_center(self, lon: float, lat: float) -> None:
        self.camera.center = (normalize_longitude(lon), clamp_latitude(lat))

    def set_zoom(self, zoom: float) -> None:
        self.camera.zoom = _clamp_zoom(zoom)