"""Exception hierarchy raised by map composition operations."""

from __future__ import annotations

from typing import Iterable


class MapComposeError(Exception):
    """Base class for all mapcompose failures."""


class ConfigurationError(MapComposeError, ValueError):
    """Raised when map options or a composition document are invalid."""


class RangeError(MapComposeError, ValueError):
    """Raised when a coordinate, zoom level or style value is out of range."""


class UnknownProviderError(MapComposeError, LookupError):
    """Raised when a basemap provider name is not registered."""

    def __init__(self, provider: str, suggestions: Iterable[str] = ()) -> None:
        self.provider = provider
        self.suggestions = tuple(suggestions)
        message = f"Unknown basemap provider: {provider!r}"
        if self.suggestions:
            message += f" (did you mean {', '.join(self.suggestions)}?)"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class InvalidGeometryError(MapComposeError, ValueError):
    """Raised when polygon geometry is not a sequence of closed rings."""


class WMSAccessError(MapComposeError, RuntimeError):
    """Raised when a WMS capabilities document cannot be fetched or parsed."""
