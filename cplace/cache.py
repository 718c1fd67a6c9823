"""Least-recently-used cache of decoded map tiles, bounded by count and memory."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from cplace.tile import TileId

logger = logging.getLogger(__name__)

DEFAULT_MAX_TILES = 256
DEFAULT_MAX_MEMORY = 64 * 1024 * 1024


@dataclass(frozen=True)
class CachedTile:
    """A decoded tile ready to draw, with its memory footprint in bytes."""

    memory_size: int
    image: Any = None
    created_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache usage."""

    tile_count: int
    max_tiles: int
    memory_used: int
    max_memory: int

    def memory_usage_percent(self) -> float:
        if self.max_memory == 0:
            return 0.0
        return self.memory_used / self.max_memory * 100.0

    def tile_usage_percent(self) -> float:
        if self.max_tiles == 0:
            return 0.0
        return self.tile_count / self.max_tiles * 100.0


class TileCache:
    """LRU tile cache; the oldest tiles are evicted to stay within both limits."""

    def __init__(self, max_tiles: int = DEFAULT_MAX_TILES, max_memory: int = DEFAULT_MAX_MEMORY) -> None:
        self._tiles: "OrderedDict[TileId, CachedTile]" = OrderedDict()
        self.max_tiles = max_tiles
        self.max_memory = max_memory
        self._memory = 0

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._tiles

    def __len__(self) -> int:
        return len(self._tiles)

    def get(self, tile_id: TileId) -> Optional[CachedTile]:
        """Return a tile and mark it as most recently used."""
        tile = self._tiles.get(tile_id)
        if tile is not None:
            self._tiles.move_to_end(tile_id)
        return tile

    def peek(self, tile_id: TileId) -> Optional[CachedTile]:
        """Return a tile without touching the usage order."""
        return self._tiles.get(tile_id)

    def insert(self, tile_id: TileId, tile: CachedTile) -> None:
        """Store a tile, evicting least recently used tiles while over a limit."""
        while self._should_evict(tile.memory_size):
            self._evict_oldest()

        old = self._tiles.pop(tile_id, None)
        if old is not None:
            self._memory -= old.memory_size

        self._memory += tile.memory_size
        self._tiles[tile_id] = tile

    def _should_evict(self, new_tile_memory: int) -> bool:
        return bool(self._tiles) and (
            len(self._tiles) >= self.max_tiles
            or self._memory + new_tile_memory > self.max_memory
        )

    def _evict_oldest(self) -> None:
        oldest_id, tile = self._tiles.popitem(last=False)
        self._memory -= tile.memory_size
        logger.debug("Evicted tile %r", oldest_id)

    def remove(self, tile_id: TileId) -> Optional[CachedTile]:
        """Remove and return a tile, or None if it was not cached."""
        tile = self._tiles.pop(tile_id, None)
        if tile is not None:
            self._memory -= tile.memory_size
        return tile

    def clear(self) -> None:
        """Drop every tile."""
        self._tiles.clear()
        self._memory = 0

    def stats(self) -> CacheStats:
        return CacheStats(
            tile_count=len(self._tiles),
            max_tiles=self.max_tiles,
            memory_used=self._memory,
            max_memory=self.max_memory,
        )

    def tile_ids(self) -> Iterator[TileId]:
        """Iterate over cached tile ids, least recently used first."""
        return iter(list(self._tiles))