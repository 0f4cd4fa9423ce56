"""Load declarative map composition documents in YAML or JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from mapcompose import sources
from mapcompose.core.errors import ConfigurationError
from mapcompose.core.models import CircleStyle, HighlightStyle, PolygonStyle
from mapcompose.logging import get_logger
from mapcompose.pipeline import Pipeline, new_pipeline
from mapcompose.providers import ProviderRegistry

LOGGER = get_logger(__name__)

PolygonReader = Callable[..., List[Any]]
PointReader = Callable[..., List[Any]]


class ConfigLoader:
    """Turn a composition document into a :class:`Pipeline`.

    Layer entries are applied in document order, so the document order is the
    render order. ``source`` paths resolve relative to the document.
    """

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        *,
        registry: Optional[ProviderRegistry] = None,
        polygon_reader: Optional[PolygonReader] = None,
        point_reader: Optional[PointReader] = None,
    ) -> None:
        self._base_dir = base_dir or Path.cwd()
        self._registry = registry
        self._polygon_reader = polygon_reader
        self._point_reader = point_reader

    def load(self, path: Path | str) -> Pipeline:
        """Parse a composition document and return the populated pipeline."""

        config_path = self._resolve_path(Path(path))
        payload = self._load_payload(config_path)
        pipeline = self.build(payload, base_dir=config_path.parent)
        LOGGER.info("loaded composition", extra={"path": str(config_path), "operations": len(pipeline)})
        return pipeline

    def build(self, payload: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> Pipeline:
        if not isinstance(payload, Mapping):
            raise ConfigurationError("composition document must be a mapping")
        base = base_dir or self._base_dir

        options = _section(payload, "options")
        pipeline = new_pipeline(options, registry=self._registry)

        view = payload.get("view")
        if view is not None:
            view = _as_mapping(view, "view")
            if "center" not in view or "zoom" not in view:
                raise ConfigurationError("view requires center and zoom")
            pipeline = pipeline.set_view(view["center"], view["zoom"])

        layers = payload.get("layers") or []
        if not isinstance(layers, list):
            raise ConfigurationError("layers must be a list")
        for index, entry in enumerate(layers):
            entry = _as_mapping(entry, f"layers[{index}]")
            layer_type = entry.get("type")
            handler = self._handlers().get(layer_type)
            if handler is None:
                raise ConfigurationError(f"layers[{index}]: unsupported layer type {layer_type!r}")
            pipeline = handler(pipeline, dict(entry), base)
        return pipeline

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self._base_dir / path).resolve()

    def _load_payload(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                return yaml.safe_load(handle) or {}
        if suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle) or {}
        raise ValueError(f"Unsupported configuration format: {suffix}")

    # ------------------------------------------------------------------
    # Layer handlers
    # ------------------------------------------------------------------
    def _handlers(self) -> Dict[str, Callable[[Pipeline, Dict[str, Any], Path], Pipeline]]:
        return {
            "basemap": self._basemap,
            "marker": self._marker,
            "circle_marker": self._circle_marker,
            "polygons": self._polygons,
            "points": self._points,
            "wms": self._wms,
        }

    def _basemap(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        source = _required(entry, "source", "basemap")
        return pipeline.add_basemap(str(source), attribution=entry.get("attribution"), name=entry.get("name"))

    def _marker(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        return pipeline.add_marker(_required(entry, "position", "marker"), popup=entry.get("popup"))

    def _circle_marker(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        style = _style(CircleStyle, entry.get("style"))
        return pipeline.add_circle_marker(
            _required(entry, "position", "circle_marker"),
            popup=entry.get("popup"),
            style=style,
        )

    def _polygons(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        if "geometry" in entry:
            geometry = entry["geometry"]
        else:
            source = _resolve_source(base, _required(entry, "source", "polygons"))
            reader = self._polygon_reader or sources.read_polygon_rings
            geometry = reader(source, layer=entry.get("layer"))
        highlight = entry.get("highlight")
        return pipeline.add_polygon_layer(
            geometry,
            style=_style(PolygonStyle, entry.get("style")),
            highlight=_style(HighlightStyle, highlight) if highlight else None,
            popup=entry.get("popup"),
            name=entry.get("name"),
        )

    def _points(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        source = _resolve_source(base, _required(entry, "source", "points"))
        latitude = entry.get("latitude", "latitude")
        longitude = entry.get("longitude", "longitude")
        reader = self._point_reader or sources.read_point_rows
        read_kwargs = _as_mapping(entry.get("read_options") or {}, "points.read_options")
        rows = reader(source, latitude=latitude, longitude=longitude, **read_kwargs)
        return pipeline.add_point_rows(
            rows,
            latitude=latitude,
            longitude=longitude,
            popup=entry.get("popup"),
            circle=bool(entry.get("circle", True)),
            style=_style(CircleStyle, entry.get("style")),
        )

    def _wms(self, pipeline: Pipeline, entry: Dict[str, Any], base: Path) -> Pipeline:
        return pipeline.add_wms_layer(
            str(_required(entry, "endpoint", "wms")),
            _required(entry, "layers", "wms"),
            image_format=entry.get("format", "image/png"),
            transparent=bool(entry.get("transparent", True)),
            version=str(entry.get("version", "1.1.1")),
            styles=entry.get("styles", ""),
            attribution=entry.get("attribution", ""),
            name=entry.get("name"),
        )


def _section(payload: Mapping[str, Any], key: str) -> Dict[str, Any]:
    return dict(_as_mapping(payload.get(key) or {}, key))


def _as_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{label} section must be a mapping")
    return value


def _required(entry: Mapping[str, Any], key: str, layer_type: str) -> Any:
    if key not in entry or entry[key] is None:
        raise ConfigurationError(f"{layer_type} layer requires {key!r}")
    return entry[key]


def _resolve_source(base: Path, value: Any) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else base / path


def _style(style_cls: type, payload: Any) -> Any:
    if payload is None:
        return None
    data = _as_mapping(payload, style_cls.__name__)
    try:
        return style_cls(**data)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid {style_cls.__name__} options: {exc}") from exc


def load_pipeline(path: Path | str, *, base_dir: Optional[Path] = None) -> Pipeline:
    """Convenience wrapper around :class:`ConfigLoader`."""

    loader = ConfigLoader(base_dir=base_dir)
    return loader.load(path)
