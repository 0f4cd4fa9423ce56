"""Convert GeoJSON-like polygon geometry into latitude-first rings."""

from __future__ import annotations

import numbers
from typing import Any, Iterator, List, Mapping, Sequence, Tuple

from mapcompose.core.errors import InvalidGeometryError

RingCoords = List[Tuple[float, float]]


def rings_from_geojson(obj: Any) -> List[RingCoords]:
    """Return every polygon ring in ``obj`` as ``(lat, lng)`` tuples.

    ``obj`` may be a GeoJSON mapping (geometry, Feature, FeatureCollection or
    GeometryCollection) or anything exposing ``__geo_interface__``, such as
    shapely geometries and GeoDataFrames. GeoJSON stores positions as
    ``[lng, lat]``; the order is swapped here.
    """

    rings = list(_iter_rings(_as_mapping(obj)))
    if not rings:
        raise InvalidGeometryError("Geometry contains no polygon rings")
    return rings


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    if hasattr(obj, "__geo_interface__"):
        obj = obj.__geo_interface__
    if not isinstance(obj, Mapping) or "type" not in obj:
        raise InvalidGeometryError(f"Expected a GeoJSON object, got {type(obj).__name__}")
    return obj


def _iter_rings(obj: Mapping[str, Any]) -> Iterator[RingCoords]:
    kind = obj["type"]
    if kind == "FeatureCollection":
        for feature in obj.get("features") or []:
            yield from _iter_rings(_as_mapping(feature))
    elif kind == "Feature":
        geometry = obj.get("geometry")
        if geometry:
            yield from _iter_rings(_as_mapping(geometry))
    elif kind == "GeometryCollection":
        for geometry in obj.get("geometries") or []:
            yield from _iter_rings(_as_mapping(geometry))
    elif kind == "Polygon":
        yield from _polygon_rings(obj.get("coordinates") or [])
    elif kind == "MultiPolygon":
        for polygon in obj.get("coordinates") or []:
            yield from _polygon_rings(polygon)
    else:
        raise InvalidGeometryError(f"Unsupported geometry type for polygons: {kind}")


def _polygon_rings(polygon: Sequence[Sequence[Sequence[float]]]) -> Iterator[RingCoords]:
    for index, ring in enumerate(polygon):
        if isinstance(ring, (str, bytes)) or not isinstance(ring, Sequence):
            raise InvalidGeometryError(f"Ring {index} is not a sequence of positions")
        yield [_swap_position(index, offset, position) for offset, position in enumerate(ring)]


def _swap_position(ring: int, offset: int, position: Any) -> Tuple[float, float]:
    if isinstance(position, (str, bytes)) or not isinstance(position, Sequence) or len(position) < 2:
        raise InvalidGeometryError(f"Ring {ring} position {offset} is not a [lng, lat] pair: {position!r}")
    # Drop any Z/M ordinate.
    lng, lat = position[0], position[1]
    if not all(isinstance(item, numbers.Real) and not isinstance(item, bool) for item in (lng, lat)):
        raise InvalidGeometryError(f"Ring {ring} position {offset} is not numeric: {position!r}")
    return float(lat), float(lng)
