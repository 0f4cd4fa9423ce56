"""Rendering collaborators for map specifications."""

from .base import MapRenderer
from .folium_renderer import FoliumRenderer

__all__ = ["FoliumRenderer", "MapRenderer"]
