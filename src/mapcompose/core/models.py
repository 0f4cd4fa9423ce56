"""Immutable dataclasses describing a composed map."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Tuple, Union

from .errors import ConfigurationError, RangeError

MAX_ZOOM = 24
AUTO = "auto"

Size = Union[int, str]


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, float(value)))


@dataclass(frozen=True)
class LatLng:
    """A WGS84 position, latitude first."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise RangeError(f"Latitude {self.lat} outside [-90, 90]")
        if not -180.0 <= self.lng <= 180.0:
            raise RangeError(f"Longitude {self.lng} outside [-180, 180]")

    @classmethod
    def coerce(cls, value: Any) -> "LatLng":
        """Accept a ``LatLng``, a ``(lat, lng)`` pair or a mapping with lat/lng keys."""

        if isinstance(value, LatLng):
            return value
        if isinstance(value, Mapping):
            lat = value.get("lat", value.get("latitude"))
            lng = value.get("lng", value.get("lon", value.get("longitude")))
            if lat is None or lng is None:
                raise RangeError(f"Position mapping lacks lat/lng keys: {dict(value)!r}")
            return cls(float(lat), float(lng))
        try:
            lat, lng = value
            return cls(float(lat), float(lng))
        except (TypeError, ValueError) as exc:
            raise RangeError(f"Position must be a (lat, lng) pair, got {value!r}") from exc

    def as_list(self) -> list[float]:
        return [self.lat, self.lng]


@dataclass(frozen=True)
class ZoomBounds:
    """Minimum and maximum zoom levels a map widget may reach."""

    min_zoom: int
    max_zoom: int

    def __post_init__(self) -> None:
        for label, value in (("min_zoom", self.min_zoom), ("max_zoom", self.max_zoom)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{label} must be an integer, got {value!r}")
            if not 0 <= value <= MAX_ZOOM:
                raise ConfigurationError(f"{label} {value} outside [0, {MAX_ZOOM}]")
        if self.min_zoom > self.max_zoom:
            raise ConfigurationError(
                f"min_zoom {self.min_zoom} is greater than max_zoom {self.max_zoom}"
            )

    def contains(self, zoom: int) -> bool:
        return self.min_zoom <= zoom <= self.max_zoom


@dataclass(frozen=True)
class ViewState:
    """Initial map centre and zoom level."""

    center: LatLng
    zoom: int

    def __post_init__(self) -> None:
        if isinstance(self.zoom, bool) or not isinstance(self.zoom, int):
            raise RangeError(f"Zoom must be an integer, got {self.zoom!r}")
        if not 0 <= self.zoom <= MAX_ZOOM:
            raise RangeError(f"Zoom {self.zoom} outside [0, {MAX_ZOOM}]")


def _check_size(label: str, value: Size) -> None:
    if value == AUTO:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{label} must be a positive integer or 'auto', got {value!r}")


@dataclass(frozen=True)
class WidgetSize:
    """Rendered widget dimensions in pixels, or ``"auto"`` to fill the container."""

    width: Size = AUTO
    height: Size = AUTO

    def __post_init__(self) -> None:
        _check_size("width", self.width)
        _check_size("height", self.height)


@dataclass(frozen=True)
class MapOptions:
    """Options recognised by :func:`mapcompose.pipeline.new_pipeline`."""

    width: Size = AUTO
    height: Size = AUTO
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None

    ALIASES: ClassVar[Dict[str, str]] = {"minZoom": "min_zoom", "maxZoom": "max_zoom"}

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "MapOptions":
        data: Dict[str, Any] = {}
        for key, value in payload.items():
            name = cls.ALIASES.get(key, key)
            if name not in {"width", "height", "min_zoom", "max_zoom"}:
                raise ConfigurationError(f"Unrecognised map option: {key!r}")
            data[name] = value
        return cls(**data)

    def size(self) -> WidgetSize:
        return WidgetSize(self.width, self.height)

    def zoom_bounds(self) -> Optional[ZoomBounds]:
        """Return the configured bounds, defaulting a missing end to the tile range."""

        if self.min_zoom is None and self.max_zoom is None:
            return None
        min_zoom = 0 if self.min_zoom is None else self.min_zoom
        max_zoom = MAX_ZOOM if self.max_zoom is None else self.max_zoom
        return ZoomBounds(min_zoom, max_zoom)


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TileBasemap:
    """A raster basemap given as a raw XYZ URL template."""

    kind: ClassVar[str] = "basemap"

    url_template: str
    attribution: str = ""
    name: Optional[str] = None
    subdomains: str = "abc"
    min_zoom: int = 0
    max_zoom: int = 18


@dataclass(frozen=True)
class ProviderBasemap:
    """A basemap resolved from a named tile provider."""

    kind: ClassVar[str] = "basemap"

    provider: str
    url_template: str
    attribution: str
    subdomains: str = "abc"
    min_zoom: int = 0
    max_zoom: int = 18
    label: Optional[str] = None

    @property
    def name(self) -> str:
        return self.label or self.provider


Basemap = Union[TileBasemap, ProviderBasemap]


@dataclass(frozen=True)
class CircleStyle:
    """Stroke and fill options of a circle marker, Leaflet defaults."""

    radius: float = 10.0
    color: str = "#03F"
    weight: float = 5.0
    stroke: bool = True
    fill: bool = True
    fill_color: Optional[str] = None
    opacity: float = 0.5
    fill_opacity: float = 0.2

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise RangeError(f"Circle radius must be non-negative, got {self.radius}")
        if self.weight < 0:
            raise RangeError(f"Stroke weight must be non-negative, got {self.weight}")
        object.__setattr__(self, "opacity", _clamp(self.opacity, 0.0, 1.0))
        object.__setattr__(self, "fill_opacity", _clamp(self.fill_opacity, 0.0, 1.0))


@dataclass(frozen=True)
class PinMarker:
    kind: ClassVar[str] = "marker"

    position: LatLng
    popup: Optional[str] = None


@dataclass(frozen=True)
class CircleMarker:
    kind: ClassVar[str] = "circle_marker"

    position: LatLng
    popup: Optional[str] = None
    style: CircleStyle = field(default_factory=CircleStyle)


Marker = Union[PinMarker, CircleMarker]


@dataclass(frozen=True)
class PolygonStyle:
    """Polygon stroke and fill. Opacities clamp to [0, 1], smoothing to [0, 5]."""

    color: str = "#03F"
    weight: float = 5.0
    fill_color: Optional[str] = None
    fill_opacity: float = 0.2
    opacity: float = 0.5
    smooth_factor: float = 1.0

    SMOOTH_RANGE: ClassVar[Tuple[float, float]] = (0.0, 5.0)

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise RangeError(f"Stroke weight must be non-negative, got {self.weight}")
        object.__setattr__(self, "fill_opacity", _clamp(self.fill_opacity, 0.0, 1.0))
        object.__setattr__(self, "opacity", _clamp(self.opacity, 0.0, 1.0))
        object.__setattr__(self, "smooth_factor", _clamp(self.smooth_factor, *self.SMOOTH_RANGE))


@dataclass(frozen=True)
class HighlightStyle:
    """Style applied to a polygon while it is hovered."""

    color: str = "white"
    weight: float = 2.0
    fill_color: Optional[str] = None
    fill_opacity: float = 0.7
    bring_to_front: bool = True

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise RangeError(f"Stroke weight must be non-negative, got {self.weight}")
        object.__setattr__(self, "fill_opacity", _clamp(self.fill_opacity, 0.0, 1.0))


Ring = Tuple[LatLng, ...]


@dataclass(frozen=True)
class PolygonLayer:
    kind: ClassVar[str] = "polygons"

    rings: Tuple[Ring, ...]
    style: PolygonStyle = field(default_factory=PolygonStyle)
    highlight: Optional[HighlightStyle] = None
    popup: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class WMSLayer:
    kind: ClassVar[str] = "wms"

    endpoint: str
    layers: Tuple[str, ...]
    image_format: str = "image/png"
    transparent: bool = True
    version: str = "1.1.1"
    styles: str = ""
    attribution: str = ""
    name: Optional[str] = None


Layer = Union[TileBasemap, ProviderBasemap, PinMarker, CircleMarker, PolygonLayer, WMSLayer]


def is_basemap(layer: Any) -> bool:
    return isinstance(layer, (TileBasemap, ProviderBasemap))


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MapSpecification:
    """The immutable result of folding a pipeline's operation log.

    ``layers`` is the render order: later entries draw on top. Every basemap
    ever added is kept, but only the last one is active.
    """

    view: Optional[ViewState] = None
    zoom_bounds: Optional[ZoomBounds] = None
    size: WidgetSize = field(default_factory=WidgetSize)
    layers: Tuple[Layer, ...] = ()

    @property
    def active_basemap_index(self) -> Optional[int]:
        for index in range(len(self.layers) - 1, -1, -1):
            if is_basemap(self.layers[index]):
                return index
        return None

    @property
    def active_basemap(self) -> Optional[Basemap]:
        index = self.active_basemap_index
        return None if index is None else self.layers[index]

    @property
    def overlays(self) -> Tuple[Layer, ...]:
        return tuple(layer for layer in self.layers if not is_basemap(layer))

    def overlay_bounds(self) -> Optional[Tuple[LatLng, LatLng]]:
        """Return the south-west and north-east corners of all vector overlays."""

        points = list(_overlay_points(self.overlays))
        if not points:
            return None
        lats = [point.lat for point in points]
        lngs = [point.lng for point in points]
        return LatLng(min(lats), min(lngs)), LatLng(max(lats), max(lngs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": asdict(self.view) if self.view else None,
            "zoom_bounds": asdict(self.zoom_bounds) if self.zoom_bounds else None,
            "size": asdict(self.size),
            "active_basemap": self.active_basemap_index,
            "layers": [_layer_dict(layer) for layer in self.layers],
        }


def _layer_dict(layer: Layer) -> Dict[str, Any]:
    payload = {"type": layer.kind, **asdict(layer)}
    if is_basemap(layer):
        payload["name"] = layer.name
    return payload


def _overlay_points(layers: Iterable[Layer]) -> Iterable[LatLng]:
    for layer in layers:
        if isinstance(layer, (PinMarker, CircleMarker)):
            yield layer.position
        elif isinstance(layer, PolygonLayer):
            for ring in layer.rings:
                yield from ring
