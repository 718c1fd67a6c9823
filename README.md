# cplace

The core of a slippy map: Web Mercator tile arithmetic, a camera that pans
and zooms, an LRU cache for decoded tiles, a background tile loader, and a
sparse pixel grid you can paint over the map. Everything is plain Python
data; the only dependency is Pillow, used to decode tile images.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Tiles

`cplace.tile` converts between longitude/latitude and OSM-style tile
coordinates.

```python
from cplace.tile import TileId, lon_lat_to_tile, wrap_tile_x, normalize_longitude

lon_lat_to_tile(126.9780, 37.5665, 10)   # (872, 395)
wrap_tile_x(-1, 2)                       # 3
normalize_longitude(190.0)               # -170.0

tile = TileId(872, 395, 10)
tile.max_tile_coord()    # 1024
tile.to_osm_url()        # "https://tile.openstreetmap.org/10/872/395.png"
tile.parent_at_zoom(8)   # TileId(x=218, y=98, z=8)
tile.parent_at_zoom(10)  # None: the target zoom must be lower
```

The module also has `lon_lat_to_tile_f64` (fractional tile position),
`tile_to_lon_lat` (top-left corner of a tile), `is_valid_tile_y`,
`clamp_latitude` and `calculate_sub_region`, which gives the UV rectangle a
tile covers inside a lower-zoom parent. Longitudes wrap around, and
latitudes are clamped to the Mercator limit of ±85.05112878°.
`normalize_longitude` raises `ValueError` for an infinite longitude.

## Camera

`cplace.camera.MapCamera` holds the map centre `(lon, lat)`, a fractional
zoom level (clamped to 0–19) and the viewport size in pixels. With no
arguments it looks at Seoul at zoom 10 in an 800×600 viewport.

```python
from cplace.camera import MapCamera

camera = MapCamera(126.9780, 37.5665, 12.0, 800, 600)
camera.pan(100.0, -50.0)               # drag by screen pixels
camera.zoom_at(0.5, 400.0, 300.0)      # zoom, keeping the point under the cursor still
camera.zoom_by(-1.0)                   # zoom around the centre
tiles = camera.visible_tiles()         # visible tiles plus a one-tile margin
x, y = camera.tile_to_screen(tiles[0]) # top-left corner in screen pixels
lon, lat = camera.screen_to_world(10.0, 20.0)
```

`visible_tiles_with_buffer(n)` lets you choose the margin, `tile_zoom` and
`zoom_scale` split the zoom into its integer level and the scale of its
fractional part, and `meters_per_pixel` gives the ground resolution at the
centre latitude.

## Tile cache

`cplace.cache.TileCache` is an LRU cache of `CachedTile` entries, bounded by
tile count and by memory (256 tiles and 64 MiB by default). Inserting beyond
either limit evicts the least recently used tiles. `get` marks a tile as
recently used and `peek` does not.

```python
from cplace.cache import CachedTile, TileCache
from cplace.tile import TileId

cache = TileCache(256, 64 * 1024 * 1024)
cache.insert(TileId(0, 0, 0), CachedTile(memory_size=256 * 256 * 4))
TileId(0, 0, 0) in cache   # True
len(cache)                 # 1
stats = cache.stats()
stats.memory_usage_percent()
stats.tile_usage_percent()
```

`remove`, `clear` and `tile_ids` (least recently used first) complete the
interface.

## Loading tiles

`cplace.loader.TileLoader` fetches tiles from the OpenStreetMap tile server
on a worker thread. `request` queues a tile (a tile already pending is not
queued twice) and `poll` returns finished `TileLoadResult`s one at a time,
or `None` when nothing is ready. A result has `tile_id`, and either `data`
(the image bytes) or `error` (a message); `ok` tells which.

```python
from cplace.loader import TileLoader
from cplace.tile import TileId

with TileLoader() as loader:
    loader.request(TileId(0, 0, 0))
    result = loader.poll()   # None until the download finishes
```

Use it as a context manager or call `close` to stop the worker. To take
tiles from somewhere other than the network, pass
`fetch=callable(url, user_agent) -> bytes`; any exception it raises becomes
a failed result. `decode_tile_image` turns PNG or JPEG bytes into an RGBA
Pillow image, and `tile_memory_size` gives the bytes of an RGBA8 texture.

## Laying out tiles

`cplace.renderer.TileRenderer` decodes image bytes into a `CachedTile`
(`create_cached_tile`) and turns placed tiles into `TileDraw` commands
(`render`): each carries the tile's four `TileVertex` corners, the index
order of its two triangles and the cached image. Tiles missing from the
cache are skipped. `create_tile_quad`, `screen_to_ndc` and `size_to_ndc`
are available on their own.

## Pixel grid

`cplace.grid.PixelGrid` stores coloured cells on a fixed lon/lat grid.
`update(camera)` builds the overlay's `GridVertex` list (two triangles per
pixel near the view, in normalised device coordinates); it rebuilds only when
pixels have changed or `mark_dirty` was called, so call `mark_dirty` after
moving the camera.

```python
from cplace.grid import PixelGrid

grid = PixelGrid(0.0001)
cell = grid.world_to_grid(126.9780, 37.5665)
grid.set_pixel(cell, (1.0, 0.0, 0.0, 1.0))
grid.update(camera)
vertices = grid.vertices()
```

`set_pixel` raises `ValueError` unless the colour has four components.

## The whole map

`cplace.mapsystem.MapSystem` ties these pieces together. It starts centred
on Seoul at zoom 12 and, unless you pass a `loader`, creates a `TileLoader`
of its own. Call `update` once per frame to request missing tiles, take in
finished loads and lay out what is visible. `render` then returns the tile
draws and the grid vertices for that frame.

```python
from cplace.mapsystem import MapSystem

system = MapSystem(800, 600)
system.update()
tile_draws, grid_vertices = system.render()
system.pending_tiles()
system.cache_stats()
```

It also forwards `resize`, `pan`, `zoom_at`, `zoom` and `screen_to_world` to
the camera, and offers `zoom_level`, `center`, `set_center` and `set_zoom`.

## What this package does not do

It opens no window, handles no keyboard or mouse events and draws nothing
on screen or GPU: it produces the geometry and images to draw, and leaves
the drawing to you. There is no command-line program and no server.

## Running the tests

```
pytest
```