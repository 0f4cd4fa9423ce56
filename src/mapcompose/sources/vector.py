"""Vector file reader built on geopandas."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

import geopandas as gpd

from mapcompose.logging import get_logger

from .geojson import RingCoords, rings_from_geojson

LOGGER = get_logger(__name__)

WGS84 = "EPSG:4326"


def read_polygon_rings(
    path: Union[Path, str],
    *,
    layer: Optional[str] = None,
) -> List[RingCoords]:
    """Read polygons from a shapefile, GeoJSON or GeoPackage as WGS84 rings."""

    kwargs = {"layer": layer} if layer else {}
    frame = gpd.read_file(str(path), **kwargs)
    if frame.crs is not None and frame.crs != WGS84:
        LOGGER.debug("reprojecting vector source", extra={"path": str(path), "crs": str(frame.crs)})
        frame = frame.to_crs(WGS84)
    rings = rings_from_geojson(frame)
    LOGGER.info("read polygon rings", extra={"path": str(path), "features": len(frame), "rings": len(rings)})
    return rings
