import io
import time

import pytest
from PIL import Image

from cplace.grid import GridCoord
from cplace.loader import TileLoader
from cplace.mapsystem import MapSystem
from cplace.renderer import screen_to_ndc, size_to_ndc
from cplace.tile import MAX_LATITUDE


def _png():
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), (1, 2, 3)).save(buf, format="PNG")
    return buf.getvalue()


PNG = _png()


def _run_until(system, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        system.update()
        if predicate():
            return
        time.sleep(0.005)
    raise AssertionError("condition not reached in time")


def test_defaults():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        assert system.zoom_level() == 12.0
        assert system.center() == (126.9780, 37.5665)
        assert (system.camera.viewport_width, system.camera.viewport_height) == (800, 600)


def test_update_loads_and_lays_out_visible_tiles():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(256, 256, loader)
        visible = set(system.camera.visible_tiles())
        _run_until(system, lambda: system.cache_stats().tile_count == len(visible))
        draws, grid_vertices = system.render()

    assert {d.tile_id for d in draws} == visible
    assert grid_vertices == []
    assert system.pending_tiles() == 0
    assert system.cache_stats().memory_used == len(visible) * 2 * 2 * 4

    size = system.camera.tile_screen_size()
    w, h = size_to_ndc(size, 256, 256)
    for draw in draws:
        x, y = screen_to_ndc(*system.camera.tile_to_screen(draw.tile_id), 256, 256)
        assert draw.vertices[0].position == pytest.approx((x, y, 0.0))
        assert draw.vertices[2].position == pytest.approx((x + w, y + h, 0.0))


def test_undecodable_tiles_are_not_cached():
    calls = []

    def fetch(url, ua):
        calls.append(url)
        return b"not an image"

    with TileLoader(fetch=fetch) as loader:
        system = MapSystem(256, 256, loader)
        visible = system.camera.visible_tiles()
        _run_until(system, lambda: len(calls) > len(visible))
        draws, _ = system.render()
    assert system.cache_stats().tile_count == 0
    assert draws == []


def test_failed_loads_are_retried_and_not_cached():
    calls = []

    def fetch(url, ua):
        calls.append(url)
        raise RuntimeError("offline")

    with TileLoader(fetch=fetch) as loader:
        system = MapSystem(256, 256, loader)
        visible = system.camera.visible_tiles()
        _run_until(system, lambda: len(calls) > len(visible))
    assert system.cache_stats().tile_count == 0
    assert set(calls) <= {t.to_osm_url() for t in visible}


def test_pixel_overlay_is_rendered():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(400, 300, loader)
        lon, lat = system.center()
        coord = system.pixel_grid.world_to_grid(lon, lat)
        system.pixel_grid.set_pixel(coord, (1.0, 0.0, 0.0, 1.0))
        system.update()
        _, grid_vertices = system.render()
    assert len(grid_vertices) == 6
    assert all(v.color == (1.0, 0.0, 0.0, 1.0) for v in grid_vertices)
    assert system.pixel_grid.get_pixel(GridCoord(coord.x, coord.y)).color == (1.0, 0.0, 0.0, 1.0)


def test_resize_updates_viewport():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        system.resize(1024, 768)
    assert (system.camera.viewport_width, system.camera.viewport_height) == (1024, 768)


def test_set_center_normalizes_and_clamps():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        system.set_center(190.0, 90.0)
    lon, lat = system.center()
    assert lon == pytest.approx(-170.0)
    assert lat == MAX_LATITUDE


def test_set_zoom_and_zoom_are_clamped():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        system.set_zoom(25.0)
        assert system.zoom_level() == 19.0
        system.set_zoom(-3.0)
        assert system.zoom_level() == 0.0
        system.zoom(2.5)
        assert system.zoom_level() == 2.5


def test_zoom_at_center_keeps_center():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        before = system.center()
        system.zoom_at(1.0, 400.0, 300.0)
    assert system.zoom_level() == 13.0
    assert system.center() == pytest.approx(before)


def test_screen_center_maps_to_map_center():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        assert system.screen_to_world(400.0, 300.0) == pytest.approx(system.center())


def test_pan_right_moves_center_west():
    with TileLoader(fetch=lambda url, ua: PNG) as loader:
        system = MapSystem(800, 600, loader)
        lon0, lat0 = system.center()
        system.pan(100.0, 0.0)
        lon1, lat1 = system.center()
    assert lon1 < lon0
    assert lat1 == pytest.approx(lat0)