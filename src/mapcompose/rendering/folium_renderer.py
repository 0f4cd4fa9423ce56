"""Materialise map specifications as folium (Leaflet) widgets."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import folium

from mapcompose.core.models import (
    AUTO,
    CircleMarker,
    HighlightStyle,
    MapSpecification,
    PinMarker,
    PolygonLayer,
    ProviderBasemap,
    TileBasemap,
    WMSLayer,
)
from mapcompose.logging import get_logger

from .base import MapRenderer

LOGGER = get_logger(__name__)


class FoliumRenderer(MapRenderer):
    """Render a :class:`MapSpecification` into a :class:`folium.Map`."""

    def __init__(self, *, layer_control: bool = False, fit_overlays: bool = True) -> None:
        self._layer_control = layer_control
        self._fit_overlays = fit_overlays

    def render(self, spec: MapSpecification) -> folium.Map:
        fmap = folium.Map(**self._map_kwargs(spec))

        basemap = spec.active_basemap
        if basemap is not None:
            self._tile_layer(basemap).add_to(fmap)

        for layer in spec.overlays:
            if isinstance(layer, PinMarker):
                folium.Marker(layer.position.as_list(), popup=_popup(layer.popup)).add_to(fmap)
            elif isinstance(layer, CircleMarker):
                self._circle_marker(layer).add_to(fmap)
            elif isinstance(layer, PolygonLayer):
                self._polygons(layer).add_to(fmap)
            elif isinstance(layer, WMSLayer):
                self._wms(layer).add_to(fmap)
            else:  # pragma: no cover - closed union
                raise TypeError(f"Unsupported layer: {layer!r}")

        if spec.view is None and self._fit_overlays:
            bounds = spec.overlay_bounds()
            if bounds is not None:
                fmap.fit_bounds([bounds[0].as_list(), bounds[1].as_list()])

        if self._layer_control:
            folium.LayerControl().add_to(fmap)

        LOGGER.info(
            "rendered folium map",
            extra={
                "overlays": len(spec.overlays),
                "basemap": basemap.name if basemap is not None else None,
            },
        )
        return fmap

    def save(self, spec: MapSpecification, path: Union[Path, str]) -> Path:
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        self.render(spec).save(str(output))
        LOGGER.info("wrote map html", extra={"path": str(output)})
        return output

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _map_kwargs(self, spec: MapSpecification) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "tiles": None,
            "width": _css_size(spec.size.width),
            "height": _css_size(spec.size.height),
        }
        if spec.view is not None:
            kwargs["location"] = spec.view.center.as_list()
            kwargs["zoom_start"] = spec.view.zoom
        if spec.zoom_bounds is not None:
            kwargs["min_zoom"] = spec.zoom_bounds.min_zoom
            kwargs["max_zoom"] = spec.zoom_bounds.max_zoom
        return kwargs

    def _tile_layer(self, basemap: Union[TileBasemap, ProviderBasemap]) -> folium.TileLayer:
        kwargs: Dict[str, Any] = {
            "tiles": basemap.url_template,
            "attr": basemap.attribution or basemap.name or "Custom tiles",
            "name": basemap.name or "basemap",
            "min_zoom": basemap.min_zoom,
            "max_zoom": basemap.max_zoom,
        }
        if basemap.subdomains:
            kwargs["subdomains"] = basemap.subdomains
        return folium.TileLayer(**kwargs)

    def _circle_marker(self, layer: CircleMarker) -> folium.CircleMarker:
        style = layer.style
        return folium.CircleMarker(
            location=layer.position.as_list(),
            radius=style.radius,
            popup=_popup(layer.popup),
            color=style.color,
            weight=style.weight,
            stroke=style.stroke,
            fill=style.fill,
            fill_color=style.fill_color or style.color,
            opacity=style.opacity,
            fill_opacity=style.fill_opacity,
        )

    def _polygons(self, layer: PolygonLayer) -> folium.GeoJson:
        style = layer.style
        path_style = {
            "color": style.color,
            "weight": style.weight,
            "opacity": style.opacity,
            "fillColor": style.fill_color or style.color,
            "fillOpacity": style.fill_opacity,
        }
        geojson = folium.GeoJson(
            polygon_feature_collection(layer),
            name=layer.name,
            style_function=_constant(path_style),
            highlight_function=_constant(_highlight(layer.highlight, path_style)) if layer.highlight else None,
            smooth_factor=style.smooth_factor,
        )
        popup = _popup(layer.popup)
        if popup is not None:
            popup.add_to(geojson)
        return geojson

    def _wms(self, layer: WMSLayer) -> folium.WmsTileLayer:
        return folium.WmsTileLayer(
            url=layer.endpoint,
            layers=",".join(layer.layers),
            styles=layer.styles,
            fmt=layer.image_format,
            transparent=layer.transparent,
            version=layer.version,
            attr=layer.attribution,
            name=layer.name or ",".join(layer.layers),
        )


def polygon_feature_collection(layer: PolygonLayer) -> Dict[str, Any]:
    """Return a GeoJSON FeatureCollection with one polygon per ring."""

    features = []
    for index, ring in enumerate(layer.rings):
        features.append(
            {
                "type": "Feature",
                "properties": {"ring": index},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[vertex.lng, vertex.lat] for vertex in ring]],
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


def _css_size(value: Union[int, str]) -> Union[int, str]:
    return "100%" if value == AUTO else value


def _popup(text: Optional[str]) -> Optional[folium.Popup]:
    return folium.Popup(text) if text else None


def _constant(style: Dict[str, Any]) -> Callable[[Any], Dict[str, Any]]:
    def style_function(feature: Any) -> Dict[str, Any]:
        return dict(style)

    return style_function


def _highlight(highlight: HighlightStyle, base: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "color": highlight.color,
        "weight": highlight.weight,
        "fillColor": highlight.fill_color or base["fillColor"],
        "fillOpacity": highlight.fill_opacity,
    }
