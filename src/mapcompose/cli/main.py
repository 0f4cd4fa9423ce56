"""CLI entry point for mapcompose."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable

from mapcompose.config import load_pipeline
from mapcompose.core.errors import MapComposeError
from mapcompose.logging import configure_logging, get_logger
from mapcompose.providers import DEFAULT_REGISTRY
from mapcompose.rendering import FoliumRenderer
from mapcompose.wms import get_available_layers

LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="mapcompose command-line interface")
    parser.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    subcommands = parser.add_subparsers(dest="command", required=True)

    build = subcommands.add_parser("build", help="Validate a composition and emit its map specification")
    build.add_argument("config", type=Path, help="Composition document (YAML or JSON)")
    build.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the specification JSON here instead of stdout",
    )

    render = subcommands.add_parser("render", help="Render a composition to standalone HTML")
    render.add_argument("config", type=Path, help="Composition document (YAML or JSON)")
    render.add_argument("--out", type=Path, required=True, help="Destination HTML file")
    render.add_argument(
        "--layer-control",
        action="store_true",
        help="Add a Leaflet layer switcher to the map",
    )

    subcommands.add_parser("providers", help="List registered basemap providers")

    wms_layers = subcommands.add_parser("wms-layers", help="List layers advertised by a WMS endpoint")
    wms_layers.add_argument("endpoint", help="WMS service URL")
    wms_layers.add_argument("--timeout", type=int, default=30, help="Request timeout in seconds")

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging(level=args.log_level, json_logs=args.log_json, log_file=args.log_file)

    if args.command == "build":
        return _handle_build(args)
    if args.command == "render":
        return _handle_render(args)
    if args.command == "providers":
        return _handle_providers(args)
    if args.command == "wms-layers":
        return _handle_wms_layers(args)
    parser.error("Unknown command")
    return 1


def _resolve_config_path(path: Path) -> Path:
    resolved = path.resolve()
    if not resolved.exists():
        raise SystemExit(f"Composition file not found: {resolved}")
    return resolved


def _handle_build(args: argparse.Namespace) -> int:
    try:
        spec = load_pipeline(_resolve_config_path(args.config)).build()
    except MapComposeError as exc:
        LOGGER.error("composition invalid: %s", exc)
        return 1

    payload = json.dumps(spec.to_dict(), indent=2)
    if args.out is None:
        print(payload)
        return 0
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(payload + "\n", encoding="utf-8")
    LOGGER.info("wrote map specification", extra={"path": str(args.out)})
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    try:
        spec = load_pipeline(_resolve_config_path(args.config)).build()
    except MapComposeError as exc:
        LOGGER.error("composition invalid: %s", exc)
        return 1

    renderer = FoliumRenderer(layer_control=args.layer_control)
    output = renderer.save(spec, args.out)
    print(output)
    return 0


def _handle_providers(args: argparse.Namespace) -> int:
    for provider in DEFAULT_REGISTRY:
        print(f"{provider.name}\t{provider.min_zoom}-{provider.max_zoom}\t{provider.url_template}")
    return 0


def _handle_wms_layers(args: argparse.Namespace) -> int:
    try:
        layers = get_available_layers(args.endpoint, timeout=args.timeout)
    except MapComposeError as exc:
        LOGGER.error("Unable to list WMS layers: %s", exc)
        return 1

    if not layers:
        LOGGER.warning("No named layers found for the specified WMS endpoint")
        return 0

    for name, title in layers:
        print(f"{name}\t{title}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
