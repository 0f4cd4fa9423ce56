"""Command-line interface for mapcompose."""
