"""Persistent builder that folds layer operations into a map specification."""

from __future__ import annotations

import numbers
from dataclasses import asdict, dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from mapcompose.core.errors import ConfigurationError, InvalidGeometryError, RangeError
from mapcompose.core.models import (
    CircleMarker,
    CircleStyle,
    HighlightStyle,
    LatLng,
    Layer,
    MapOptions,
    MapSpecification,
    PinMarker,
    PolygonLayer,
    PolygonStyle,
    ProviderBasemap,
    Ring,
    TileBasemap,
    ViewState,
    WidgetSize,
    WMSLayer,
    ZoomBounds,
)
from mapcompose.logging import get_logger
from mapcompose.providers.registry import (
    DEFAULT_REGISTRY,
    ProviderRegistry,
    TileProvider,
    looks_like_url,
    validate_template,
)
from mapcompose.sources.geojson import rings_from_geojson
from mapcompose.sources.rows import PointRow, format_popup

from .operations import AddLayer, Operation, SetSize, SetView, SetZoomBounds

if TYPE_CHECKING:  # pragma: no cover
    from mapcompose.rendering.base import MapRenderer

LOGGER = get_logger(__name__)

MIN_RING_VERTICES = 4


@dataclass(frozen=True)
class Pipeline:
    """An immutable log of map operations.

    Every operation returns a new pipeline; the receiver is left untouched, so
    a partially configured pipeline can be shared and extended in several
    directions. Scalar settings (view, zoom bounds, size) follow last writer
    wins, layers are append-only and keep their call order.
    """

    operations: Tuple[Operation, ...] = ()
    registry: ProviderRegistry = field(default=DEFAULT_REGISTRY, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.operations)

    def _append(self, operation: Operation) -> "Pipeline":
        LOGGER.debug("pipeline operation", extra={"operation": type(operation).__name__, "index": len(self)})
        return replace(self, operations=self.operations + (operation,))

    # ------------------------------------------------------------------
    # Current state
    # ------------------------------------------------------------------
    @property
    def zoom_bounds(self) -> Optional[ZoomBounds]:
        for operation in reversed(self.operations):
            if isinstance(operation, SetZoomBounds):
                return operation.bounds
        return None

    @property
    def view(self) -> Optional[ViewState]:
        for operation in reversed(self.operations):
            if isinstance(operation, SetView):
                return operation.view
        return None

    # ------------------------------------------------------------------
    # Global options
    # ------------------------------------------------------------------
    def set_view(self, center: Any, zoom: int) -> "Pipeline":
        view = ViewState(LatLng.coerce(center), zoom)
        bounds = self.zoom_bounds
        if bounds is not None and not bounds.contains(view.zoom):
            raise RangeError(
                f"Zoom {view.zoom} outside configured bounds [{bounds.min_zoom}, {bounds.max_zoom}]"
            )
        return self._append(SetView(view))

    def set_zoom_bounds(self, min_zoom: int, max_zoom: int) -> "Pipeline":
        bounds = ZoomBounds(min_zoom, max_zoom)
        view = self.view
        if view is not None and not bounds.contains(view.zoom):
            raise RangeError(
                f"Current view zoom {view.zoom} falls outside new bounds [{min_zoom}, {max_zoom}]"
            )
        return self._append(SetZoomBounds(bounds))

    def set_size(self, width: Union[int, str] = "auto", height: Union[int, str] = "auto") -> "Pipeline":
        return self._append(SetSize(WidgetSize(width, height)))

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    def add_layer(self, layer: Layer) -> "Pipeline":
        """Append an already constructed layer."""

        return self._append(AddLayer(layer))

    def add_basemap(
        self,
        source: Union[str, TileProvider],
        *,
        attribution: Optional[str] = None,
        name: Optional[str] = None,
    ) -> "Pipeline":
        """Add a basemap from a URL template or a registered provider name.

        Only the most recently added basemap is active when rendering; earlier
        ones stay in the layer history.
        """

        if isinstance(source, TileProvider):
            provider = source
        elif looks_like_url(source):
            validate_template(source)
            layer = TileBasemap(
                url_template=source,
                attribution=attribution or "",
                name=name,
                subdomains="abc" if "{s}" in source else "",
            )
            return self.add_layer(layer)
        else:
            provider = self.registry.resolve(source)
        layer = ProviderBasemap(
            provider=provider.name,
            url_template=provider.url_template,
            attribution=attribution if attribution is not None else provider.attribution,
            subdomains=provider.subdomains,
            min_zoom=provider.min_zoom,
            max_zoom=provider.max_zoom,
            label=name,
        )
        return self.add_layer(layer)

    def add_marker(self, position: Any, *, popup: Optional[str] = None) -> "Pipeline":
        return self.add_layer(PinMarker(LatLng.coerce(position), popup))

    def add_circle_marker(
        self,
        position: Any,
        *,
        popup: Optional[str] = None,
        style: Optional[CircleStyle] = None,
        **style_kwargs: Any,
    ) -> "Pipeline":
        circle_style = _merge_style(CircleStyle, style, style_kwargs)
        return self.add_layer(CircleMarker(LatLng.coerce(position), popup, circle_style))

    def add_point_rows(
        self,
        rows: Iterable[Union[PointRow, Mapping[str, Any]]],
        *,
        latitude: str = "latitude",
        longitude: str = "longitude",
        popup: Optional[str] = None,
        circle: bool = True,
        style: Optional[CircleStyle] = None,
    ) -> "Pipeline":
        """Append one marker per tabular row, filling ``popup`` from its fields."""

        operations = list(self.operations)
        circle_style = style or CircleStyle()
        for row in rows:
            if isinstance(row, PointRow):
                position, fields = LatLng(row.lat, row.lng), row.fields
            else:
                try:
                    position = LatLng.coerce((row[latitude], row[longitude]))
                except KeyError as exc:
                    raise ConfigurationError(f"Row lacks coordinate field {exc.args[0]!r}") from exc
                fields = row
            text = format_popup(popup, fields)
            layer = CircleMarker(position, text, circle_style) if circle else PinMarker(position, text)
            operations.append(AddLayer(layer))
        LOGGER.debug("added point rows", extra={"rows": len(operations) - len(self.operations)})
        return replace(self, operations=tuple(operations))

    def add_polygon_layer(
        self,
        geometry: Any,
        *,
        style: Optional[PolygonStyle] = None,
        highlight: Optional[HighlightStyle] = None,
        popup: Optional[str] = None,
        name: Optional[str] = None,
        **style_kwargs: Any,
    ) -> "Pipeline":
        """Append polygons given as rings of ``(lat, lng)`` or GeoJSON-like geometry."""

        rings = normalize_rings(geometry)
        polygon_style = _merge_style(PolygonStyle, style, style_kwargs)
        return self.add_layer(PolygonLayer(rings, polygon_style, highlight, popup, name))

    def add_wms_layer(
        self,
        endpoint: str,
        layers: Union[str, Iterable[str]],
        *,
        image_format: str = "image/png",
        transparent: bool = True,
        version: str = "1.1.1",
        styles: str = "",
        attribution: str = "",
        name: Optional[str] = None,
    ) -> "Pipeline":
        _validate_endpoint(endpoint)
        layer_names = _layer_names(layers)
        return self.add_layer(
            WMSLayer(
                endpoint=endpoint,
                layers=layer_names,
                image_format=image_format,
                transparent=transparent,
                version=version,
                styles=styles,
                attribution=attribution,
                name=name,
            )
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def build(self) -> MapSpecification:
        """Fold the operation log into a specification; safe to call repeatedly."""

        view: Optional[ViewState] = None
        bounds: Optional[ZoomBounds] = None
        size = WidgetSize()
        layers: list[Layer] = []
        for operation in self.operations:
            if isinstance(operation, SetView):
                view = operation.view
            elif isinstance(operation, SetZoomBounds):
                bounds = operation.bounds
            elif isinstance(operation, SetSize):
                size = operation.size
            elif isinstance(operation, AddLayer):
                layers.append(operation.layer)
            else:  # pragma: no cover - closed union
                raise TypeError(f"Unknown pipeline operation: {operation!r}")
        spec = MapSpecification(view=view, zoom_bounds=bounds, size=size, layers=tuple(layers))
        LOGGER.info(
            "built map specification",
            extra={"operations": len(self.operations), "layers": len(spec.layers)},
        )
        return spec

    def render(self, renderer: Optional["MapRenderer"] = None) -> Any:
        return render(self.build(), renderer)


def new_pipeline(
    options: Union[MapOptions, Mapping[str, Any], None] = None,
    *,
    registry: Optional[ProviderRegistry] = None,
    **kwargs: Any,
) -> Pipeline:
    """Create an empty pipeline seeded with widget size and zoom bounds."""

    if options is None:
        map_options = MapOptions.from_mapping(kwargs)
    elif isinstance(options, MapOptions):
        map_options = MapOptions.from_mapping({**asdict(options), **kwargs}) if kwargs else options
    elif isinstance(options, Mapping):
        map_options = MapOptions.from_mapping({**options, **kwargs})
    else:
        raise ConfigurationError(f"Unsupported options type: {type(options).__name__}")

    pipeline = Pipeline(registry=registry if registry is not None else DEFAULT_REGISTRY)
    pipeline = pipeline._append(SetSize(map_options.size()))
    bounds = map_options.zoom_bounds()
    if bounds is not None:
        pipeline = pipeline._append(SetZoomBounds(bounds))
    return pipeline


def render(spec: MapSpecification, renderer: Optional["MapRenderer"] = None) -> Any:
    """Hand ``spec`` to a rendering collaborator, folium by default."""

    if renderer is None:
        from mapcompose.rendering.folium_renderer import FoliumRenderer

        renderer = FoliumRenderer()
    return renderer.render(spec)


def normalize_rings(geometry: Any) -> Tuple[Ring, ...]:
    """Validate polygon geometry and return it as closed ``LatLng`` rings.

    A single ring may be passed on its own instead of wrapped in a sequence.
    """

    if isinstance(geometry, Mapping) or hasattr(geometry, "__geo_interface__"):
        geometry = rings_from_geojson(geometry)
    if isinstance(geometry, (str, bytes)) or not isinstance(geometry, Sequence):
        raise InvalidGeometryError(f"Polygon geometry must be a sequence of rings, got {type(geometry).__name__}")
    if not geometry:
        raise InvalidGeometryError("Polygon geometry must contain at least one ring")
    if all(_is_position(item) for item in geometry):
        geometry = [geometry]

    rings = []
    for index, ring in enumerate(geometry):
        if isinstance(ring, (str, bytes)) or not isinstance(ring, Sequence):
            raise InvalidGeometryError(f"Ring {index} is not a sequence of vertices")
        if not all(_is_position(vertex) for vertex in ring):
            raise InvalidGeometryError(f"Ring {index} contains a vertex that is not a (lat, lng) pair")
        vertices = tuple(LatLng.coerce(vertex) for vertex in ring)
        if len(vertices) < MIN_RING_VERTICES:
            raise InvalidGeometryError(
                f"Ring {index} has {len(vertices)} vertices; at least {MIN_RING_VERTICES} are required"
            )
        if vertices[0] != vertices[-1]:
            raise InvalidGeometryError(f"Ring {index} is not closed: first vertex differs from last")
        if len(set(vertices[:-1])) < MIN_RING_VERTICES - 1:
            raise InvalidGeometryError(f"Ring {index} has fewer than 3 distinct vertices")
        rings.append(vertices)
    return tuple(rings)


def _is_position(value: Any) -> bool:
    if isinstance(value, LatLng):
        return True
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 2:
        return False
    return all(isinstance(item, numbers.Real) and not isinstance(item, bool) for item in value)


def _merge_style(style_cls: type, style: Any, overrides: Mapping[str, Any]) -> Any:
    base = style if style is not None else style_cls()
    if not overrides:
        return base
    try:
        return replace(base, **overrides)
    except TypeError as exc:
        raise ConfigurationError(f"Unknown {style_cls.__name__} option: {exc}") from exc


def _validate_endpoint(endpoint: str) -> None:
    parts = urlsplit(endpoint) if isinstance(endpoint, str) else None
    if parts is None or parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ConfigurationError(f"WMS endpoint is not a valid http(s) URL: {endpoint!r}")


def _layer_names(layers: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    raw = layers.split(",") if isinstance(layers, str) else list(layers)
    names: list[str] = []
    for name in raw:
        cleaned = str(name).strip()
        if cleaned and cleaned not in names:
            names.append(cleaned)
    if not names:
        raise ConfigurationError("WMS layer requires at least one layer name")
    return tuple(names)
