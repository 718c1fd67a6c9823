"""Sparse pixel grid drawn as coloured quads on top of the map."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from cplace.camera import TILE_SIZE, MapCamera
from cplace.tile import lon_lat_to_tile_f64

Color = Tuple[float, float, float, float]


@dataclass(frozen=True)
class GridVertex:
    """Vertex of a grid quad: NDC position (x, y, z) and RGBA colour."""

    position: Tuple[float, float, float]
    color: Color


@dataclass(frozen=True)
class Pixel:
    """One painted grid cell; transparent by default."""

    color: Color = (0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class GridCoord:
    """Integer cell position in the world-space grid."""

    x: int
    y: int


def world_to_screen(lon: float, lat: float, camera: MapCamera) -> Tuple[float, float]:
    """Project a longitude/latitude to NDC for the camera's current view."""
    z = camera.tile_zoom()
    tile_size = TILE_SIZE * camera.zoom_scale()

    tx, ty = lon_lat_to_tile_f64(lon, lat, z)
    cx, cy = lon_lat_to_tile_f64(camera.center[0], camera.center[1], z)

    screen_x = camera.viewport_width / 2.0 + (tx - cx) * tile_size
    screen_y = camera.viewport_height / 2.0 + (ty - cy) * tile_size

    ndc_x = screen_x / camera.viewport_width * 2.0 - 1.0
    ndc_y = 1.0 - screen_y / camera.viewport_height * 2.0
    return ndc_x, ndc_y


class PixelGrid:
    """Pixels stored sparsely by cell, with a vertex list rebuilt when they change."""

    def __init__(self, cell_size: float = 0.0001) -> None:
        self.cell_size = cell_size
        self._pixels: Dict[GridCoord, Pixel] = {}
        self._vertices: Optional[List[GridVertex]] = None
        self._dirty = False

    def set_pixel(self, coord: GridCoord, color: Sequence[float]) -> None:
        """Paint a cell with an RGBA colour."""
        rgba = tuple(float(c) for c in color)
        if len(rgba) != 4:
            raise ValueError("color must have exactly four components (RGBA)")
        self._pixels[coord] = Pixel(rgba)  # type: ignore[arg-type]
        self._dirty = True

    def get_pixel(self, coord: GridCoord) -> Optional[Pixel]:
        return self._pixels.get(coord)

    def remove_pixel(self, coord: GridCoord) -> Optional[Pixel]:
        """Erase a cell, returning what was there."""
        self._dirty = True
        return self._pixels.pop(coord, None)

    def clear(self) -> None:
        self._pixels.clear()
        self._dirty = True

    def world_to_grid(self, lon: float, lat: float) -> GridCoord:
        """Cell containing a world position."""
        return GridCoord(math.floor(lon / self.cell_size), math.floor(lat / self.cell_size))

    def grid_to_world(self, coord: GridCoord) -> Tuple[float, float]:
        """World position of a cell's center."""
        return (coord.x + 0.5) * self.cell_size, (coord.y + 0.5) * self.cell_size

    def pixel_count(self) -> int:
        return len(self._pixels)

    def update(self, camera: MapCamera) -> None:
        """Rebuild the vertex list for the camera if pixels changed or none is built."""
        if not self._dirty and self._vertices is not None:
            return

        center_lon, center_lat = camera.center
        view_range = 180.0 / 2.0 ** camera.zoom
        half_cell = self.cell_size / 2.0
        vertices: List[GridVertex] = []

        for coord, pixel in self._pixels.items():
            lon, lat = self.grid_to_world(coord)
            if abs(lon - center_lon) > view_range * 2.0 or abs(lat - center_lat) > view_range * 2.0:
                continue

            corners = [
                world_to_screen(lon - half_cell, lat - half_cell, camera),
                world_to_screen(lon + half_cell, lat - half_cell, camera),
                world_to_screen(lon + half_cell, lat + half_cell, camera),
                world_to_screen(lon - half_cell, lat + half_cell, camera),
            ]
            for i in (0, 1, 2, 0, 2, 3):
                x, y = corners[i]
                vertices.append(GridVertex((x, y, 0.0), pixel.color))

        self._vertices = vertices or None
        self._dirty = False

    def vertices(self) -> List[GridVertex]:
        """Vertices built by the last update, two triangles per visible pixel."""
        return list(self._vertices or [])

    def mark_dirty(self) -> None:
        """Force a rebuild on the next update."""
        self._dirty = True