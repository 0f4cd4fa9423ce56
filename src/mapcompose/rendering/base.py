"""Protocol definitions for map rendering collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from mapcompose.core.models import MapSpecification


class MapRenderer(Protocol):
    """Interface for turning a map specification into a displayable widget."""

    def render(self, spec: MapSpecification) -> Any:
        """Return the renderer's native widget for ``spec``."""

    def save(self, spec: MapSpecification, path: Path) -> Path:
        """Write ``spec`` as a standalone document and return its path."""
