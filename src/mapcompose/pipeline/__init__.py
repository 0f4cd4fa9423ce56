"""Map composition pipeline."""

from .builder import Pipeline, new_pipeline, normalize_rings, render
from .operations import AddLayer, Operation, SetSize, SetView, SetZoomBounds

__all__ = [
    "AddLayer",
    "Operation",
    "Pipeline",
    "SetSize",
    "SetView",
    "SetZoomBounds",
    "new_pipeline",
    "normalize_rings",
    "render",
]
