"""Delimited point data reader built on pandas."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Union

import pandas as pd

from mapcompose.core.errors import ConfigurationError
from mapcompose.logging import get_logger

from .rows import PointRow

LOGGER = get_logger(__name__)


def read_point_rows(
    path: Union[Path, str],
    *,
    latitude: str = "latitude",
    longitude: str = "longitude",
    **read_csv_kwargs: Any,
) -> List[PointRow]:
    """Return one :class:`PointRow` per CSV record with usable coordinates."""

    frame = pd.read_csv(path, **read_csv_kwargs)
    missing = [column for column in (latitude, longitude) if column not in frame.columns]
    if missing:
        raise ConfigurationError(f"{path}: missing coordinate column(s) {', '.join(missing)}")

    rows: List[PointRow] = []
    skipped = 0
    for record in frame.to_dict(orient="records"):
        lat = pd.to_numeric(record.get(latitude), errors="coerce")
        lng = pd.to_numeric(record.get(longitude), errors="coerce")
        if pd.isna(lat) or pd.isna(lng):
            skipped += 1
            continue
        fields = {key: ("" if pd.isna(value) else value) for key, value in record.items()}
        rows.append(PointRow(float(lat), float(lng), fields))

    if skipped:
        LOGGER.warning("skipped rows without coordinates", extra={"path": str(path), "skipped": skipped})
    LOGGER.info("read point rows", extra={"path": str(path), "rows": len(rows)})
    return rows
