"""
CONTRACT: inline
ROLE: Parse one GeoScene document into a SceneDescription skeleton.

INPUTS:
  - GeoScene document text
  - base path of the document (directory prefix for referenced files)
OUTPUTS:
  - SceneDescription with every camera slot PENDING
  - one on_cast_reference(coord, path) call per camera slot

CONFIG KEYS:
  - scene.validate_match_groups: warn about dangling match names (bool)

FAILURE MODES:
  - bad signature / malformed required line -> raise FormatError
  - line not valid at the scene level -> UnrecognizedLineWarning, skipped
  - match name with no cast entry -> MatchReferenceWarning

LOG EVENTS:
  - module=formats.geoscene, event=unrecognized_line, payload keys=line_number, line
  - module=formats.geoscene, event=match_reference_missing, payload keys=group, name, collection

TESTS:
  - tests/test_geoscene_parser.py

CONTRACT DETAILS:
# GeoScene document

    GeoScene V2.0
    Sequence 0 9
    DataFormat PNG
    GeoCast Field0 1400 900 images/field0_%04d.png casts/field0_%04d.geocast
    GeoCastZ WorldFloor 1400 900 floor.png floor.geocast
    MatchGroup 0
    MatchCam Field0
    MatchSurface WorldFloor

- The body is a flat sequence of block starters.
- A MatchGroup block holds MatchCam lines followed by MatchSurface lines.
  The first line that does not fit ends the block and is left for the
  scene loop.
- Image and cast patterns are joined to the base path and expanded over the
  Sequence range known at that point of the document.
"""

from __future__ import annotations

import re
from typing import Any, Callable, List, Optional, Tuple

from geoscene.errors import FormatError, MatchReferenceWarning, UnrecognizedLineWarning, record_issue
from geoscene.formats.lines import Line, LineCursor
from geoscene.formats.model import PENDING, CastEntry, CollectionKind, MatchGroup, SceneDescription, SlotCoordinate
from geoscene.formats.sequence import expand


_MODULE = "formats.geoscene"
_SIGNATURE = re.compile(r"^GeoScene\s+V(\d+\.\d+)\b")

_CAST_TAGS = {"GeoCast": CollectionKind.CAST, "GeoCastZ": CollectionKind.DEPTH_CAST}

CastReferenceHandler = Callable[[SlotCoordinate, str], None]


def parse_geoscene(
    text: str,
    base_path: str = "",
    *,
    on_cast_reference: Optional[CastReferenceHandler] = None,
    issues: Optional[List[Any]] = None,
    logger: Optional[Any] = None,
    validate_matches: bool = True,
) -> SceneDescription:
    """Parse a GeoScene document.

    The returned scene has every camera slot PENDING. `on_cast_reference`
    is called once per slot, after its entry has been added to the scene,
    so a resolver can start fetching while the rest of the document is
    still being read.
    """
    cursor = LineCursor(text)
    scene = SceneDescription(format_version=_parse_signature(cursor.consume()))
    while True:
        line = cursor.peek()
        if line is None:
            break
        cursor.consume()
        if line.tag == "Sequence":
            scene.frame_range = _read_sequence(line)
        elif line.tag == "DataFormat":
            if len(line.tokens) < 2:
                raise FormatError("missing DataFormat tag", line.number, line.text)
            scene.data_format = line.tokens[1]
        elif line.tag in _CAST_TAGS:
            kind = _CAST_TAGS[line.tag]
            entry = _read_cast_entry(line, base_path, scene.frame_range)
            entries = scene.collection(kind)
            entries.append(entry)
            if on_cast_reference is not None:
                entry_index = len(entries) - 1
                for slot_index, path in enumerate(entry.cast_paths):
                    on_cast_reference(SlotCoordinate(kind, entry_index, slot_index), path)
        elif line.tag == "MatchGroup":
            scene.match_groups.append(_read_match_group(line, cursor))
        else:
            record_issue(
                issues,
                UnrecognizedLineWarning(line.number, line.text, "geoscene"),
                logger,
                _MODULE,
                "unrecognized_line",
                {"line_number": line.number, "line": line.text},
            )
    if validate_matches:
        validate_match_groups(scene, issues=issues, logger=logger)
    return scene


def validate_match_groups(
    scene: SceneDescription,
    issues: Optional[List[Any]] = None,
    logger: Optional[Any] = None,
) -> List[MatchReferenceWarning]:
    """Report match names that have no cast entry in their collection."""
    cast_names = {entry.name for entry in scene.cast_collection}
    surface_names = {entry.name for entry in scene.depth_cast_collection}
    found: List[MatchReferenceWarning] = []
    for group in scene.match_groups:
        checks = [(name, "cast", cast_names) for name in group.camera_names]
        checks += [(name, "depth_cast", surface_names) for name in group.surface_names]
        for name, collection, known in checks:
            if name in known:
                continue
            warning = MatchReferenceWarning(group.index, name, collection)
            found.append(warning)
            record_issue(
                issues,
                warning,
                logger,
                _MODULE,
                "match_reference_missing",
                {"group": group.index, "name": name, "collection": collection},
            )
    return found


def join_base_path(base_path: str, relative: str) -> str:
    if not base_path:
        return relative
    return base_path.rstrip("/\\") + "/" + relative


def _parse_signature(line: Optional[Line]) -> str:
    if line is None:
        raise FormatError("empty GeoScene document")
    match = _SIGNATURE.match(line.text)
    if match is None:
        raise FormatError("not a GeoScene document", line.number, line.text)
    return match.group(1)


def _read_sequence(line: Line) -> Tuple[int, int]:
    if len(line.tokens) < 3:
        raise FormatError("malformed Sequence", line.number, line.text)
    start = _int(line, 1)
    end = _int(line, 2)
    if start > end:
        raise FormatError("Sequence start is after its end", line.number, line.text)
    return start, end


def _read_cast_entry(line: Line, base_path: str, frame_range: Optional[Tuple[int, int]]) -> CastEntry:
    if len(line.tokens) < 6:
        raise FormatError(f"malformed {line.tag} entry", line.number, line.text)
    _, name, width, height, image_pattern, cast_pattern = line.tokens[:6]
    try:
        size = (float(width), float(height))
    except ValueError:
        raise FormatError(f"invalid {line.tag} size", line.number, line.text) from None
    cast_paths = expand(join_base_path(base_path, cast_pattern), frame_range)
    return CastEntry(
        name=name,
        size=size,
        image_paths=expand(join_base_path(base_path, image_pattern), frame_range),
        cast_paths=cast_paths,
        camera_slots=[PENDING] * len(cast_paths),
    )


def _read_match_group(header: Line, cursor: LineCursor) -> MatchGroup:
    if len(header.tokens) < 2:
        raise FormatError("missing MatchGroup index", header.number, header.text)
    group = MatchGroup(index=_int(header, 1))
    for tag, names in (("MatchCam", group.camera_names), ("MatchSurface", group.surface_names)):
        while True:
            line = cursor.peek()
            if line is None or line.tag != tag:
                break
            cursor.consume()
            if len(line.tokens) < 2:
                raise FormatError(f"missing {tag} name", line.number, line.text)
            names.append(line.tokens[1])
    return group


def _int(line: Line, index: int) -> int:
    token = line.tokens[index]
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        raise FormatError(f"invalid integer at token {index}", line.number, line.text) from None
    if not value.is_integer():
        raise FormatError(f"invalid integer at token {index}", line.number, line.text)
    return int(value)
