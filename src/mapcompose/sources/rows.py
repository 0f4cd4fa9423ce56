"""Point records read from tabular sources and their popup text."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from mapcompose.core.errors import ConfigurationError


@dataclass(frozen=True)
class PointRow:
    """One tabular record: a position plus the row's label fields."""

    lat: float
    lng: float
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False)


def format_popup(template: Optional[str], fields: Mapping[str, Any]) -> Optional[str]:
    """Fill ``template`` from a row's fields, e.g. ``"{name}: {count} visits"``.

    Field values are inserted verbatim; a ``None`` template yields no popup.
    """

    if template is None:
        return None
    try:
        return string.Formatter().vformat(template, (), fields)
    except KeyError as exc:
        raise ConfigurationError(
            f"Popup template {template!r} references unknown field {exc.args[0]!r}"
        ) from exc
    except (IndexError, ValueError) as exc:
        raise ConfigurationError(f"Invalid popup template {template!r}: {exc}") from exc
