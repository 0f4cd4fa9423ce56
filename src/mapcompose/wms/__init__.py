"""WMS discovery helpers."""

from .capabilities import fetch_capabilities, get_available_layers, list_layers

__all__ = ["fetch_capabilities", "get_available_layers", "list_layers"]
