"""Named basemap providers."""

from .registry import (
    DEFAULT_PROVIDERS,
    DEFAULT_REGISTRY,
    ProviderRegistry,
    TileProvider,
    looks_like_url,
    validate_template,
)

__all__ = [
    "DEFAULT_PROVIDERS",
    "DEFAULT_REGISTRY",
    "ProviderRegistry",
    "TileProvider",
    "looks_like_url",
    "validate_template",
]
