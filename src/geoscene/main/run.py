"""
CONTRACT: inline
ROLE: Command-line entrypoint: read a GeoScene or GeoCast file and print it
as JSON.

INPUTS:
  - path to a .geoscene / .geocast file
OUTPUTS:
  - JSON document on stdout
  - Topic: log.events  Type: LogEvent (stderr)

CONFIG KEYS:
  - logging.level: minimum printed level
  - scene.validate_match_groups: warn about dangling match names
  - geocast.require_depth_range / resolver.require_depth_range
  - output.indent: JSON indent

FAILURE MODES:
  - FormatError / FetchError -> exit code 1 -> log format_error / fetch_error

LOG EVENTS:
  - module=main.run, event=started, payload keys=kind, path
  - module=main.run, event=format_error, payload keys=path, error
  - module=main.run, event=fetch_error, payload keys=path, error
  - module=main.run, event=finished, payload keys=pending_slots, issues

TESTS:
  - tests/test_config_and_cli.py
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List, Optional, TextIO

from geoscene.core.config import get_path, load_config, parse_options
from geoscene.core.logging import LogEmitter, logger_from_config
from geoscene.errors import FetchError, FormatError
from geoscene.resolve.loader import read_geocast_file, read_geoscene_file


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read GeoScene / GeoCast files and print them as JSON")
    parser.add_argument("path", help="GeoScene or GeoCast file")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--kind",
        choices=("auto", "scene", "cast"),
        default="auto",
        help="Document kind (auto: from file extension)",
    )
    return parser


def _detect_kind(path: str, kind: str) -> str:
    if kind != "auto":
        return kind
    return "cast" if path.lower().endswith(".geocast") else "scene"


async def _read(path: str, kind: str, config: Dict[str, Any], issues: List[Any], logger: LogEmitter) -> Dict[str, Any]:
    if kind == "cast":
        camera = await read_geocast_file(
            path, parse_options=parse_options(config, "geocast"), issues=issues, logger=logger
        )
        return camera.to_dict()
    scene = await read_geoscene_file(
        path,
        parse_options=parse_options(config, "resolver"),
        validate_matches=bool(get_path(config, "scene.validate_match_groups", True)),
        issues=issues,
        logger=logger,
    )
    pending = sum(entry.pending_count() for entry in scene.cast_collection + scene.depth_cast_collection)
    logger.emit("info", "main.run", "finished", {"pending_slots": pending, "issues": len(issues)})
    return scene.to_dict()


def main(argv: Optional[List[str]] = None, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    logger = logger_from_config(config, stream=stderr)
    out = stdout if stdout is not None else sys.stdout
    kind = _detect_kind(args.path, args.kind)
    issues: List[Any] = []

    logger.emit("info", "main.run", "started", {"kind": kind, "path": args.path})
    try:
        document = asyncio.run(_read(args.path, kind, config, issues, logger))
    except FormatError as exc:
        logger.emit("error", "main.run", "format_error", {"path": args.path, "error": str(exc)})
        return 1
    except FetchError as exc:
        logger.emit("error", "main.run", "fetch_error", {"path": args.path, "error": str(exc)})
        return 1

    indent = get_path(config, "output.indent", 2)
    out.write(json.dumps(document, indent=indent) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
