"""Declarative, immutable map composition for Leaflet-style web maps."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "FoliumRenderer",
    "InvalidGeometryError",
    "MapComposeError",
    "MapOptions",
    "MapSpecification",
    "Pipeline",
    "ProviderRegistry",
    "RangeError",
    "TileProvider",
    "UnknownProviderError",
    "load_pipeline",
    "new_pipeline",
    "render",
]

_MODULE_MAP = {
    "ConfigLoader": ("mapcompose.config", "ConfigLoader"),
    "ConfigurationError": ("mapcompose.core", "ConfigurationError"),
    "FoliumRenderer": ("mapcompose.rendering", "FoliumRenderer"),
    "InvalidGeometryError": ("mapcompose.core", "InvalidGeometryError"),
    "MapComposeError": ("mapcompose.core", "MapComposeError"),
    "MapOptions": ("mapcompose.core", "MapOptions"),
    "MapSpecification": ("mapcompose.core", "MapSpecification"),
    "Pipeline": ("mapcompose.pipeline", "Pipeline"),
    "ProviderRegistry": ("mapcompose.providers", "ProviderRegistry"),
    "RangeError": ("mapcompose.core", "RangeError"),
    "TileProvider": ("mapcompose.providers", "TileProvider"),
    "UnknownProviderError": ("mapcompose.core", "UnknownProviderError"),
    "load_pipeline": ("mapcompose.config", "load_pipeline"),
    "new_pipeline": ("mapcompose.pipeline", "new_pipeline"),
    "render": ("mapcompose.pipeline", "render"),
}


def __getattr__(name: str) -> Any:
    if name not in _MODULE_MAP:
        raise AttributeError(f"module 'mapcompose' has no attribute '{name}'")
    module_name, attr = _MODULE_MAP[name]
    module = importlib.import_module(module_name)
    return getattr(module, attr)
