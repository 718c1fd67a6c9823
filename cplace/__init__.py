"""Slippy-map core: tiles, camera, tile cache, loader, tile layout and pixel grid overlay."""

__version__ = "0.1.0"

__all__ = ["cache", "camera", "grid", "loader", "mapsystem", "renderer", "tile"]