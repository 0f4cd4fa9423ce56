"""Static registry of named XYZ tile providers."""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from mapcompose.core.errors import ConfigurationError, UnknownProviderError
from mapcompose.core.models import MAX_ZOOM
from mapcompose.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_TOKENS = ("{z}", "{x}", "{y}")
_URL_PATTERN = re.compile(r"^(https?:)?//", re.IGNORECASE)

OSM_ATTRIBUTION = "&copy; <a href=\"https://www.openstreetmap.org/copyright\">OpenStreetMap</a> contributors"
CARTO_ATTRIBUTION = OSM_ATTRIBUTION + " &copy; <a href=\"https://carto.com/attributions\">CARTO</a>"
ESRI_ATTRIBUTION = "Tiles &copy; Esri"


def looks_like_url(source: str) -> bool:
    return bool(_URL_PATTERN.match(source)) or "{z}" in source


def validate_template(url_template: str) -> None:
    """Raise ``ConfigurationError`` unless the template carries the XYZ tokens."""

    missing = [token for token in REQUIRED_TOKENS if token not in url_template]
    if missing:
        raise ConfigurationError(
            f"Tile URL template {url_template!r} is missing placeholder(s): {', '.join(missing)}"
        )


@dataclass(frozen=True)
class TileProvider:
    """Tile URL template, attribution and zoom range of a named provider."""

    name: str
    url_template: str
    attribution: str
    min_zoom: int = 0
    max_zoom: int = 18
    subdomains: str = "abc"

    def __post_init__(self) -> None:
        validate_template(self.url_template)
        if not 0 <= self.min_zoom <= self.max_zoom <= MAX_ZOOM:
            raise ConfigurationError(
                f"Provider {self.name!r} has an invalid zoom range {self.min_zoom}-{self.max_zoom}"
            )


def _carto(variant: str, label: str) -> TileProvider:
    return TileProvider(
        name=f"CartoDB.{label}",
        url_template=f"https://{{s}}.basemaps.cartocdn.com/{variant}/{{z}}/{{x}}/{{y}}{{r}}.png",
        attribution=CARTO_ATTRIBUTION,
        max_zoom=20,
        subdomains="abcd",
    )


DEFAULT_PROVIDERS = (
    TileProvider(
        name="OpenStreetMap.Mapnik",
        url_template="https://tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution=OSM_ATTRIBUTION,
        max_zoom=19,
        subdomains="",
    ),
    TileProvider(
        name="OpenTopoMap",
        url_template="https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
        attribution=OSM_ATTRIBUTION + ", SRTM | Map style: &copy; OpenTopoMap (CC-BY-SA)",
        max_zoom=17,
    ),
    TileProvider(
        name="Esri.WorldImagery",
        url_template="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attribution=ESRI_ATTRIBUTION + " &mdash; Source: Esri, Maxar, Earthstar Geographics",
        max_zoom=19,
        subdomains="",
    ),
    TileProvider(
        name="Esri.WorldStreetMap",
        url_template="https://server.arcgisonline.com/ArcGIS/rest/services/World_Street_Map/MapServer/tile/{z}/{y}/{x}",
        attribution=ESRI_ATTRIBUTION + " &mdash; Source: Esri, HERE, Garmin, OpenStreetMap contributors",
        max_zoom=19,
        subdomains="",
    ),
    _carto("light_all", "Positron"),
    _carto("light_nolabels", "PositronNoLabels"),
    _carto("dark_all", "DarkMatter"),
    _carto("dark_nolabels", "DarkMatterNoLabels"),
    _carto("rastertiles/voyager", "Voyager"),
    _carto("rastertiles/voyager_nolabels", "VoyagerNoLabels"),
)


class ProviderRegistry:
    """Map provider names to tile templates; extensible by the host application."""

    def __init__(self, providers: Iterable[TileProvider] = ()) -> None:
        self._providers: Dict[str, TileProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: TileProvider, *, replace: bool = False) -> None:
        if provider.name in self._providers and not replace:
            raise ConfigurationError(f"Provider {provider.name!r} is already registered")
        self._providers[provider.name] = provider
        LOGGER.debug("registered tile provider", extra={"provider": provider.name})

    def resolve(self, name: str) -> TileProvider:
        try:
            return self._providers[name]
        except KeyError:
            suggestions = difflib.get_close_matches(name, list(self._providers), n=3)
            raise UnknownProviderError(name, suggestions) from None

    def get(self, name: str) -> Optional[TileProvider]:
        return self._providers.get(name)

    def copy(self) -> "ProviderRegistry":
        return ProviderRegistry(self._providers.values())

    def names(self) -> list[str]:
        return sorted(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[TileProvider]:
        return iter(self._providers[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._providers)


DEFAULT_REGISTRY = ProviderRegistry(DEFAULT_PROVIDERS)
