import pytest

from mapcompose.core.errors import ConfigurationError, InvalidGeometryError, RangeError, UnknownProviderError
from mapcompose.core.models import (
    CircleMarker,
    CircleStyle,
    LatLng,
    MapOptions,
    PinMarker,
    PolygonLayer,
    ProviderBasemap,
    TileBasemap,
    WidgetSize,
    WMSLayer,
    ZoomBounds,
)
from mapcompose.pipeline import Pipeline, SetZoomBounds, new_pipeline, render
from mapcompose.providers import DEFAULT_REGISTRY, ProviderRegistry, TileProvider
from mapcompose.sources import PointRow

SQUARE = [(0, 0), (0, 1), (1, 1), (0, 0)]
OSM_TEMPLATE = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"


def _compose() -> Pipeline:
    return (
        new_pipeline(width=800, height=600, min_zoom=2, max_zoom=18)
        .add_basemap("CartoDB.DarkMatter")
        .set_view((49.28, -123.08), 12)
        .add_polygon_layer([SQUARE], smooth_factor=0.5)
        .add_circle_marker((49.28, -123.1), popup="Gastown", radius=6)
        .add_wms_layer("https://ows.example.org/wms", ["landcover"])
    )


def test_new_pipeline_rejects_inverted_zoom_bounds() -> None:
    with pytest.raises(ConfigurationError):
        new_pipeline({"minZoom": 10, "maxZoom": 4})


def test_new_pipeline_rejects_unknown_option_and_bad_size() -> None:
    with pytest.raises(ConfigurationError):
        new_pipeline(zoom=3)
    with pytest.raises(ConfigurationError):
        new_pipeline(width=0)
    with pytest.raises(ConfigurationError):
        new_pipeline(height="tall")


def test_new_pipeline_accepts_map_options_with_overrides() -> None:
    spec = new_pipeline(MapOptions(width=640, min_zoom=1, max_zoom=10), height=480).build()

    assert spec.size == WidgetSize(640, 480)
    assert spec.zoom_bounds == ZoomBounds(1, 10)


def test_empty_pipeline_builds_defaults() -> None:
    spec = new_pipeline().build()

    assert spec.view is None
    assert spec.zoom_bounds is None
    assert spec.size == WidgetSize("auto", "auto")
    assert spec.layers == ()
    assert spec.active_basemap is None


def test_build_is_deterministic_for_equal_operation_logs() -> None:
    assert _compose().build() == _compose().build()
    assert _compose() == _compose()


def test_build_is_idempotent() -> None:
    pipeline = _compose()

    first = pipeline.build()
    second = pipeline.build()

    assert first == second


def test_operations_do_not_mutate_receiver() -> None:
    base = new_pipeline().add_basemap("OpenTopoMap")
    with_marker = base.add_marker((10, 10))

    assert len(base.build().layers) == 1
    assert len(with_marker.build().layers) == 2
    assert len(with_marker) == len(base) + 1


def test_set_view_rejects_latitude_out_of_range() -> None:
    with pytest.raises(RangeError):
        new_pipeline().set_view((200, 0), 5)


def test_set_view_rejects_zoom_beyond_configured_max() -> None:
    with pytest.raises(RangeError):
        new_pipeline(min_zoom=0, max_zoom=18).set_view((49.28, -123.08), 25)
    with pytest.raises(RangeError):
        new_pipeline(min_zoom=5, max_zoom=18).set_view((49.28, -123.08), 3)


def test_set_view_accepts_mapping_center() -> None:
    spec = new_pipeline().set_view({"lat": 35.68, "lng": 139.76}, 9).build()

    assert spec.view.center == LatLng(35.68, 139.76)
    assert spec.view.zoom == 9


def test_last_view_and_zoom_bounds_win() -> None:
    spec = (
        new_pipeline(min_zoom=0, max_zoom=18)
        .set_view((1, 1), 4)
        .set_zoom_bounds(3, 12)
        .set_view((2, 2), 6)
        .set_zoom_bounds(4, 10)
        .build()
    )

    assert spec.zoom_bounds == ZoomBounds(4, 10)
    assert spec.view.center == LatLng(2, 2)


def test_set_zoom_bounds_conflicting_with_view_fails() -> None:
    pipeline = new_pipeline().set_view((0, 0), 15)

    with pytest.raises(RangeError):
        pipeline.set_zoom_bounds(0, 10)
    with pytest.raises(ConfigurationError):
        pipeline.set_zoom_bounds(16, 14)


def test_zoom_bounds_operation_is_recorded_once_per_call() -> None:
    pipeline = new_pipeline(min_zoom=1, max_zoom=5).set_zoom_bounds(2, 6)

    recorded = [op for op in pipeline.operations if isinstance(op, SetZoomBounds)]
    assert [op.bounds for op in recorded] == [ZoomBounds(1, 5), ZoomBounds(2, 6)]


def test_named_provider_resolves_to_registered_template() -> None:
    spec = new_pipeline().add_basemap("CartoDB.Voyager").build()

    basemap = spec.active_basemap
    assert isinstance(basemap, ProviderBasemap)
    assert basemap.url_template == DEFAULT_REGISTRY.resolve("CartoDB.Voyager").url_template
    assert "carto" in basemap.attribution.lower()


def test_unknown_provider_fails() -> None:
    with pytest.raises(UnknownProviderError) as excinfo:
        new_pipeline().add_basemap("NotARealProvider")
    assert excinfo.value.provider == "NotARealProvider"


def test_url_template_requires_placeholders() -> None:
    spec = new_pipeline().add_basemap(OSM_TEMPLATE, attribution="OSM").build()
    basemap = spec.active_basemap
    assert isinstance(basemap, TileBasemap)
    assert basemap.subdomains == "abc"

    with pytest.raises(ConfigurationError):
        new_pipeline().add_basemap("https://tiles.example.org/{z}/{x}.png")


def test_last_basemap_is_active_and_history_retained() -> None:
    spec = (
        new_pipeline()
        .add_basemap("CartoDB.Positron")
        .add_marker((0, 0))
        .add_basemap("Esri.WorldImagery")
        .build()
    )

    assert [layer.kind for layer in spec.layers] == ["basemap", "marker", "basemap"]
    assert spec.active_basemap.provider == "Esri.WorldImagery"
    assert spec.active_basemap_index == 2
    assert [layer.kind for layer in spec.overlays] == ["marker"]


def test_provider_basemap_keeps_display_name() -> None:
    labelled = new_pipeline().add_basemap("CartoDB.Positron", name="Light").build()
    plain = new_pipeline().add_basemap("CartoDB.Positron").build()

    assert labelled.active_basemap.name == "Light"
    assert labelled.active_basemap.provider == "CartoDB.Positron"
    assert plain.active_basemap.name == "CartoDB.Positron"


def test_custom_registry_extends_providers() -> None:
    registry = DEFAULT_REGISTRY.copy()
    registry.register(TileProvider("Local.Tiles", "http://localhost:8080/{z}/{x}/{y}.png", "local", subdomains=""))

    spec = new_pipeline(registry=registry).add_basemap("Local.Tiles").build()

    assert spec.active_basemap.provider == "Local.Tiles"
    assert "Local.Tiles" not in DEFAULT_REGISTRY
    with pytest.raises(UnknownProviderError):
        new_pipeline(registry=ProviderRegistry()).add_basemap("CartoDB.Voyager")


def test_layer_order_follows_call_order() -> None:
    spec = (
        new_pipeline()
        .add_basemap("CartoDB.Voyager")
        .add_polygon_layer([SQUARE])
        .add_circle_marker((0.5, 0.5))
        .build()
    )

    assert [type(layer) for layer in spec.layers] == [ProviderBasemap, PolygonLayer, CircleMarker]


def test_markers_validate_positions_and_style() -> None:
    with pytest.raises(RangeError):
        new_pipeline().add_marker((0, 181))
    with pytest.raises(RangeError):
        new_pipeline().add_circle_marker((0, 0), radius=-1)
    with pytest.raises(RangeError):
        new_pipeline().add_circle_marker((0, 0), style=CircleStyle(weight=-2))
    with pytest.raises(ConfigurationError):
        new_pipeline().add_circle_marker((0, 0), shape="square")


def test_circle_marker_style_overrides_merge_with_base_style() -> None:
    base = CircleStyle(color="red", radius=4)

    spec = new_pipeline().add_circle_marker((1, 2), style=base, fill=False, opacity=3).build()

    style = spec.layers[0].style
    assert style.color == "red"
    assert style.radius == 4
    assert style.fill is False
    assert style.opacity == 1.0


def test_polygon_ring_validation() -> None:
    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer([[(0, 0), (0, 1), (1, 1)]])
    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer([])
    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer([[(0, 0), (0, 1), (0, 1), (0, 0)]])
    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer([[(0, 0), (0, 1), (1, 1), (1, 0)]])
    with pytest.raises(RangeError):
        new_pipeline().add_polygon_layer([[(0, 0), (0, 1), (95, 1), (0, 0)]])


def test_closed_ring_is_accepted_bare_or_wrapped() -> None:
    wrapped = new_pipeline().add_polygon_layer([SQUARE]).build()
    bare = new_pipeline().add_polygon_layer(SQUARE).build()

    assert wrapped == bare
    ring = wrapped.layers[0].rings[0]
    assert ring[0] == ring[-1] == LatLng(0, 0)
    assert len(ring) == 4


def test_polygon_accepts_geojson_geometry() -> None:
    geometry = {
        "type": "Polygon",
        "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]],
    }

    spec = new_pipeline().add_polygon_layer(geometry).build()

    assert spec.layers[0].rings[0][1] == LatLng(0, 1)


def test_polygon_rejects_malformed_geojson_positions() -> None:
    short = {"type": "Polygon", "coordinates": [[[0], [1, 0], [1, 1], [0]]]}
    textual = {"type": "Polygon", "coordinates": [[["a", "b"], [1, 0], [1, 1], ["a", "b"]]]}

    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer(short)
    with pytest.raises(InvalidGeometryError):
        new_pipeline().add_polygon_layer(textual)


def test_smoothing_and_opacity_are_clamped() -> None:
    spec = (
        new_pipeline()
        .add_polygon_layer([SQUARE], smooth_factor=9, fill_opacity=-1)
        .add_polygon_layer([SQUARE], smooth_factor=-3)
        .build()
    )

    assert spec.layers[0].style.smooth_factor == 5.0
    assert spec.layers[0].style.fill_opacity == 0.0
    assert spec.layers[1].style.smooth_factor == 0.0


def test_wms_layer_validation() -> None:
    spec = new_pipeline().add_wms_layer(
        "https://ows.example.org/wms",
        "roads, rivers,roads",
        image_format="image/jpeg",
        transparent=False,
    ).build()

    layer = spec.layers[0]
    assert isinstance(layer, WMSLayer)
    assert layer.layers == ("roads", "rivers")
    assert layer.image_format == "image/jpeg"
    assert layer.transparent is False

    with pytest.raises(ConfigurationError):
        new_pipeline().add_wms_layer("not a url", ["roads"])
    with pytest.raises(ConfigurationError):
        new_pipeline().add_wms_layer("ftp://ows.example.org/wms", ["roads"])
    with pytest.raises(ConfigurationError):
        new_pipeline().add_wms_layer("https://ows.example.org/wms", [])


def test_add_point_rows_fills_popups_from_fields() -> None:
    rows = [
        PointRow(49.28, -123.12, {"name": "Stanley Park", "visits": 12}),
        {"latitude": 49.26, "longitude": -123.10, "name": "Olympic Village", "visits": 3},
    ]

    spec = new_pipeline().add_point_rows(rows, popup="{name} ({visits})").build()

    assert [layer.popup for layer in spec.layers] == ["Stanley Park (12)", "Olympic Village (3)"]
    assert all(isinstance(layer, CircleMarker) for layer in spec.layers)


def test_add_point_rows_as_pins_and_missing_field() -> None:
    spec = new_pipeline().add_point_rows([PointRow(1, 2, {})], circle=False).build()
    assert spec.layers == (PinMarker(LatLng(1, 2), None),)

    with pytest.raises(ConfigurationError):
        new_pipeline().add_point_rows([{"lat": 1, "lng": 2}])
    with pytest.raises(ConfigurationError):
        new_pipeline().add_point_rows([PointRow(1, 2, {})], popup="{missing}")


def test_render_delegates_to_renderer() -> None:
    class StubRenderer:
        def __init__(self) -> None:
            self.specs = []

        def render(self, spec):  # type: ignore[no-untyped-def]
            self.specs.append(spec)
            return "widget"

    stub = StubRenderer()
    pipeline = _compose()

    assert pipeline.render(stub) == "widget"
    assert render(pipeline.build(), stub) == "widget"
    assert stub.specs[0] == stub.specs[1] == pipeline.build()


def test_specification_serialises_to_json_ready_dict() -> None:
    payload = _compose().build().to_dict()

    assert payload["view"] == {"center": {"lat": 49.28, "lng": -123.08}, "zoom": 12}
    assert payload["zoom_bounds"] == {"min_zoom": 2, "max_zoom": 18}
    assert payload["active_basemap"] == 0
    assert [layer["type"] for layer in payload["layers"]] == ["basemap", "polygons", "circle_marker", "wms"]
    assert payload["layers"][3]["layers"] == ("landcover",)


def test_serialised_basemaps_share_name_key() -> None:
    spec = (
        new_pipeline()
        .add_basemap(OSM_TEMPLATE, attribution="OSM", name="Streets")
        .add_basemap("Esri.WorldImagery", name="Imagery")
        .add_basemap("OpenTopoMap")
        .build()
    )

    names = [layer["name"] for layer in spec.to_dict()["layers"]]

    assert names == ["Streets", "Imagery", "OpenTopoMap"]
