"""
CONTRACT: inline
ROLE: Read a GeoScene or GeoCast file by path: fetch, parse, and resolve
every referenced GeoCast file.

INPUTS:
  - document path
  - fetch_text(path) coroutine (default: local filesystem)
OUTPUTS:
  - SceneDescription with every fetchable slot resolved
  - CameraDescription

FAILURE MODES:
  - scene fetch failure -> raise FetchError
  - scene structure invalid -> raise FormatError
  - per-cast failures -> issues, slots stay PENDING

TESTS:
  - tests/test_resolver.py

CONTRACT DETAILS:
# Base path

- Files referenced by a scene are relative to the scene file's directory.
- "scenes/demo.geoscene" -> "scenes"; "demo.geoscene" -> "".
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from geoscene.formats.geocast import parse_geocast
from geoscene.formats.geoscene import parse_geoscene
from geoscene.formats.model import CameraDescription, SceneDescription
from geoscene.resolve.resolver import AsyncResolver, FetchText
from geoscene.resolve.transport import read_local_text


_LAST_COMPONENT = re.compile(r"(?:/|\\+)[^/\\\n]*$")


def base_path_of(path: str) -> str:
    """Directory part of `path`, accepting both `/` and `\\` separators."""
    if not _LAST_COMPONENT.search(path):
        return ""
    return _LAST_COMPONENT.sub("", path, count=1)


async def read_geoscene_file(
    path: str,
    fetch_text: FetchText = read_local_text,
    *,
    parse_options: Optional[Dict[str, Any]] = None,
    validate_matches: bool = True,
    issues: Optional[List[Any]] = None,
    logger: Optional[Any] = None,
) -> SceneDescription:
    """Fetch and parse a scene, then wait for all of its GeoCast files."""
    text = await fetch_text(path)
    resolver = AsyncResolver(fetch_text, parse_options=parse_options, issues=issues, logger=logger)
    binding = resolver.attach()
    try:
        scene = parse_geoscene(
            text,
            base_path_of(path),
            on_cast_reference=binding,
            issues=resolver.issues,
            logger=logger,
            validate_matches=validate_matches,
        )
    except Exception:
        binding.abandon()
        await resolver.wait()
        raise
    binding.bind(scene)
    await resolver.wait()
    return scene


async def read_geocast_file(
    path: str,
    fetch_text: FetchText = read_local_text,
    *,
    parse_options: Optional[Dict[str, Any]] = None,
    issues: Optional[List[Any]] = None,
    logger: Optional[Any] = None,
) -> CameraDescription:
    text = await fetch_text(path)
    return parse_geocast(text, issues=issues, logger=logger, **(parse_options or {}))
