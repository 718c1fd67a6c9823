"""Tile drawing: decoding tile images and laying out textured quads in NDC space."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from PIL import Image

from cplace.cache import CachedTile, TileCache
from cplace.tile import TileId

TILE_INDICES: Tuple[int, ...] = (0, 1, 2, 0, 2, 3)

Quad = Tuple["TileVertex", "TileVertex", "TileVertex", "TileVertex"]
TilePlacement = Tuple[TileId, Tuple[float, float], Tuple[float, float]]


@dataclass(frozen=True)
class TileVertex:
    """Corner of a tile quad: position (x, y, z) and texture coordinates (u, v)."""

    position: Tuple[float, float, float]
    tex_coords: Tuple[float, float]


@dataclass(frozen=True)
class TileDraw:
    """One tile ready to draw: its quad corners, index order and cached image."""

    tile_id: TileId
    vertices: Quad
    tile: CachedTile
    indices: Tuple[int, ...] = TILE_INDICES


def create_tile_quad(x: float, y: float, width: float, height: float) -> Quad:
    """Four corners of a tile quad, starting at (x, y) and going clockwise on screen."""
    return (
        TileVertex((x, y, 0.0), (0.0, 0.0)),
        TileVertex((x + width, y, 0.0), (1.0, 0.0)),
        TileVertex((x + width, y + height, 0.0), (1.0, 1.0)),
        TileVertex((x, y + height, 0.0), (0.0, 1.0)),
    )


def screen_to_ndc(x: float, y: float, viewport_width: int, viewport_height: int) -> Tuple[float, float]:
    """Convert a screen position in pixels to normalized device coordinates."""
    ndc_x = (x / viewport_width) * 2.0 - 1.0
    ndc_y = 1.0 - (y / viewport_height) * 2.0
    return ndc_x, ndc_y


def size_to_ndc(size: float, viewport_width: int, viewport_height: int) -> Tuple[float, float]:
    """Convert a square size in pixels to its width and height in NDC units."""
    return (size / viewport_width) * 2.0, (size / viewport_height) * 2.0


class TileRenderer:
    """Turns raw tile images into cache entries and placed tiles into draw commands."""

    indices: Tuple[int, ...] = TILE_INDICES

    def create_cached_tile(self, image_data: bytes) -> CachedTile:
        """Decode PNG or JPEG bytes into an RGBA image wrapped as a cache entry.

        Raises PIL.UnidentifiedImageError (or OSError) when the data is not an image.
        """
        with Image.open(io.BytesIO(image_data)) as img:
            rgba = img.convert("RGBA")
        width, height = rgba.size
        return CachedTile(memory_size=width * height * 4, image=rgba)

    def render(self, tiles: Iterable[TilePlacement], cache: TileCache) -> List[TileDraw]:
        """Draw commands for the placed tiles that are in the cache, in the given order.

        The cache's usage order is left untouched.
        """
        draws = []
        for tile_id, (x, y), (width, height) in tiles:
            cached = cache.peek(tile_id)
            if cached is None:
                continue
            draws.append(TileDraw(tile_id, create_tile_quad(x, y, width, height), cached))
        return draws