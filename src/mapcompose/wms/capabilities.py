"""Query WMS endpoints for the layers they publish."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Tuple

import requests

from mapcompose.core.errors import WMSAccessError
from mapcompose.logging import get_logger

LOGGER = get_logger(__name__)

WMS_NAMESPACE = "http://www.opengis.net/wms"


def fetch_capabilities(endpoint: str, *, version: str = "1.3.0", timeout: int = 30) -> str:
    """Fetch the ``GetCapabilities`` document of a WMS endpoint."""

    params = {"service": "WMS", "request": "GetCapabilities", "version": version}
    LOGGER.debug("fetching wms capabilities", extra={"endpoint": endpoint, "version": version})
    try:
        response = requests.get(endpoint, params=params, timeout=timeout)
    except requests.RequestException as exc:  # pragma: no cover - network failure path
        raise WMSAccessError(f"WMS capabilities request error: {exc}") from exc
    if response.status_code != 200:
        raise WMSAccessError(
            f"WMS capabilities request failed: {response.status_code} {response.text.strip()}"
        )
    return response.text


def list_layers(capabilities_xml: str) -> List[Tuple[str, str]]:
    """Extract named ``(name, title)`` layers from a 1.1.1 or 1.3.0 document."""

    try:
        root = ET.fromstring(capabilities_xml)
    except ET.ParseError as exc:
        raise WMSAccessError(f"Failed to parse WMS capabilities: {exc}") from exc

    # 1.3.0 documents are namespaced, 1.1.1 documents are not.
    prefix = f"{{{WMS_NAMESPACE}}}" if root.tag.startswith(f"{{{WMS_NAMESPACE}}}") else ""
    capability = root.find(f"{prefix}Capability")
    if capability is None:
        return []

    layers: List[Tuple[str, str]] = []
    for layer in capability.iter(f"{prefix}Layer"):
        name_elem = layer.find(f"{prefix}Name")
        if name_elem is None or not name_elem.text:
            continue
        title_elem = layer.find(f"{prefix}Title")
        name = name_elem.text.strip()
        title = title_elem.text.strip() if title_elem is not None and title_elem.text else name
        layers.append((name, title))
    return layers


def get_available_layers(endpoint: str, *, timeout: int = 30) -> List[Tuple[str, str]]:
    """Return the layers an endpoint advertises."""

    layers = list_layers(fetch_capabilities(endpoint, timeout=timeout))
    LOGGER.info("listed wms layers", extra={"endpoint": endpoint, "layers": len(layers)})
    return layers
