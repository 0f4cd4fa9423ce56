"""Adapters for vector geometry and tabular point sources.

The file readers pull in geopandas and pandas, so they are loaded on first use.
"""

from __future__ import annotations

import importlib
from typing import Any

from .geojson import rings_from_geojson
from .rows import PointRow, format_popup

__all__ = [
    "PointRow",
    "format_popup",
    "read_point_rows",
    "read_polygon_rings",
    "rings_from_geojson",
]

_MODULE_MAP = {
    "read_point_rows": "mapcompose.sources.tabular",
    "read_polygon_rings": "mapcompose.sources.vector",
}


def __getattr__(name: str) -> Any:
    if name not in _MODULE_MAP:
        raise AttributeError(f"module 'mapcompose.sources' has no attribute '{name}'")
    module = importlib.import_module(_MODULE_MAP[name])
    return getattr(module, name)
