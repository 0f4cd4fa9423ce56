"""Records stored in a pipeline's operation log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from mapcompose.core.models import Layer, ViewState, WidgetSize, ZoomBounds


@dataclass(frozen=True)
class SetSize:
    size: WidgetSize


@dataclass(frozen=True)
class SetZoomBounds:
    bounds: ZoomBounds


@dataclass(frozen=True)
class SetView:
    view: ViewState


@dataclass(frozen=True)
class AddLayer:
    layer: Layer


Operation = Union[SetSize, SetZoomBounds, SetView, AddLayer]
