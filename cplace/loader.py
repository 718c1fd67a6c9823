"""Background tile fetching over HTTP, with a non-blocking poll for finished loads."""

from __future__ import annotations

import io
import logging
import queue
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Callable, Optional, Set, Tuple

from PIL import Image

from cplace.tile import TileId

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "CPlace/0.1"
FETCH_TIMEOUT = 30.0

Fetch = Callable[[str, str], bytes]


class TileFetchError(Exception):
    """A tile server answered with an unsuccessful HTTP status."""


@dataclass(frozen=True)
class TileLoadResult:
    """Outcome of one tile load: the image bytes, or an error message."""

    tile_id: TileId
    data: Optional[bytes] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, tile_id: TileId, data: bytes) -> "TileLoadResult":
        return cls(tile_id, data=data)

    @classmethod
    def failed(cls, tile_id: TileId, message: str) -> "TileLoadResult":
        return cls(tile_id, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None


def _http_fetch(url: str, user_agent: str) -> bytes:
    """Download a URL, raising TileFetchError on a non-success status."""
    request = urllib.request.Request(url, headers={"User-Agent": user_agent})
    try:
        with urllib.request.urlopen(request, timeout=FETCH_TIMEOUT) as response:
            return response.read()
    except urllib.error.HTTPError as exc:
        raise TileFetchError(f"HTTP {exc.code} {exc.reason}") from exc


class TileLoader:
    """Loads tiles on a worker thread; finished loads are collected with poll()."""

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, fetch: Optional[Fetch] = None) -> None:
        self.user_agent = user_agent
        self._fetch: Fetch = fetch or _http_fetch
        self._requests: "queue.SimpleQueue[Optional[Tuple[TileId, str]]]" = queue.SimpleQueue()
        self._results: "queue.SimpleQueue[TileLoadResult]" = queue.SimpleQueue()
        self._pending: Set[TileId] = set()
        self._closed = False
        self._worker = threading.Thread(target=self._work, name="tile-loader", daemon=True)
        self._worker.start()

    def __enter__(self) -> "TileLoader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _work(self) -> None:
        while True:
            item = self._requests.get()
            if item is None:
                return
            tile_id, url = item
            try:
                result = TileLoadResult.success(tile_id, self._fetch(url, self.user_agent))
            except Exception as exc:  # any failure is reported back as a result
                result = TileLoadResult.failed(tile_id, str(exc))
            self._results.put(result)

    def request(self, tile_id: TileId) -> None:
        """Queue a tile for loading unless it is already on its way."""
        if tile_id in self._pending or self._closed:
            return
        self._requests.put((tile_id, tile_id.to_osm_url()))
        self._pending.add(tile_id)

    def poll(self) -> Optional[TileLoadResult]:
        """Return the next finished load, or None if nothing has finished."""
        try:
            result = self._results.get_nowait()
        except queue.Empty:
            return None
        self._pending.discard(result.tile_id)
        return result

    def is_loading(self, tile_id: TileId) -> bool:
        return tile_id in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def clear_pending(self) -> None:
        """Forget pending requests; their results still arrive through poll()."""
        self._pending.clear()

    def close(self) -> None:
        """Stop the worker; further requests are ignored."""
        if self._closed:
            return
        self._closed = True
        self._requests.put(None)
        self._worker.join(timeout=1.0)


def decode_tile_image(data: bytes) -> Image.Image:
    """Decode PNG or JPEG bytes into an RGBA image."""
    with Image.open(io.BytesIO(data)) as img:
        return img.convert("RGBA")


def tile_memory_size(width: int, height: int) -> int:
    """Bytes taken by an RGBA8 texture of the given size."""
    return width * height * 4