"""Core data models and errors for mapcompose."""

from .errors import (
    ConfigurationError,
    InvalidGeometryError,
    MapComposeError,
    RangeError,
    UnknownProviderError,
    WMSAccessError,
)
from .models import (
    MAX_ZOOM,
    CircleMarker,
    CircleStyle,
    HighlightStyle,
    LatLng,
    MapOptions,
    MapSpecification,
    PinMarker,
    PolygonLayer,
    PolygonStyle,
    ProviderBasemap,
    TileBasemap,
    ViewState,
    WidgetSize,
    WMSLayer,
    ZoomBounds,
)

__all__ = [
    "MAX_ZOOM",
    "CircleMarker",
    "CircleStyle",
    "ConfigurationError",
    "HighlightStyle",
    "InvalidGeometryError",
    "LatLng",
    "MapComposeError",
    "MapOptions",
    "MapSpecification",
    "PinMarker",
    "PolygonLayer",
    "PolygonStyle",
    "ProviderBasemap",
    "RangeError",
    "TileBasemap",
    "UnknownProviderError",
    "ViewState",
    "WidgetSize",
    "WMSAccessError",
    "WMSLayer",
    "ZoomBounds",
]
