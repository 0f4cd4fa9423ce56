"""Composition document loading for mapcompose."""

from .loader import ConfigLoader, load_pipeline

__all__ = ["ConfigLoader", "load_pipeline"]
