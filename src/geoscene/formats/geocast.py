"""
CONTRACT: inline
ROLE: Parse one GeoCast camera document into a CameraDescription.

INPUTS:
  - GeoCast document text
OUTPUTS:
  - CameraDescription

CONFIG KEYS:
  - geocast.require_depth_range: ZDataRange is mandatory (bool)

FAILURE MODES:
  - bad signature / missing or misspelled required tag -> raise FormatError
  - unknown DataProject kind -> FormatError issue, record returned without
    projection
  - unknown line -> UnrecognizedLineWarning issue, line skipped

LOG EVENTS:
  - module=formats.geocast, event=unrecognized_line, payload keys=line_number, line
  - module=formats.geocast, event=projection_unknown, payload keys=line_number, kind

TESTS:
  - tests/test_geocast_parser.py

CONTRACT DETAILS:
# GeoCast document

    GeoCast V2.0
    DynamicCamera
    Pos 1.0 2.0 3.0
    ViewSlice FODAngle 145.0 Size 100.0
    ModelviewMatrix
    1 0 0 0
    0 1 0 0
    0 0 1 0
    0 0 0 1
    DataProject Ortho WindowSize 12.0 43.2 ProjRange 0.1 200.0
    ImageWarp aspect 1 k1 0 k2 0 k3 0 p1 0 p2 0 centerX 0.5 centerY 0.5 focal 1
    WorldSpaceDepth
    ZDataRange 0.0 100.0

- Three file revisions are in circulation. They differ only in whether the
  camera kind line precedes or follows `Pos`, in `Window`/`WindowSize`
  spelling, and in the order and presence of the trailing
  ImageWarp/WorldSpaceDepth/ZDataRange lines. The version token is kept as
  metadata and does not select a grammar.
- DataProject Perspective takes Fovy in degrees; the projection builder
  receives radians.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Container, List, Optional, Tuple

from geoscene.errors import FormatError, UnrecognizedLineWarning, record_issue
from geoscene.formats.lines import Line, LineCursor
from geoscene.formats.model import (
    CameraDescription,
    CameraKind,
    LensDistortion,
    OrthoProjection,
    PerspectiveProjection,
    Projection,
    ViewSlice,
)
from geoscene.geometry import projection as proj


_MODULE = "formats.geocast"
_SIGNATURE = re.compile(r"^GeoCast\s+V(\d+\.\d+)\b")

_CAMERA_KINDS = frozenset(kind.value for kind in CameraKind)
_TAIL_TAGS = frozenset({"ImageWarp", "WorldSpaceDepth", "ZDataRange"})
_KNOWN_TAGS = _CAMERA_KINDS | _TAIL_TAGS | {"Pos", "ViewSlice", "ModelviewMatrix", "DataProject"}

_WARP_LABELS = ("aspect", "k1", "k2", "k3", "p1", "p2", "centerX", "centerY", "focal")

OrthoBuilder = Callable[[float, float, float, float, float, float], Any]
PerspectiveBuilder = Callable[[float, float, float, float], Any]


def parse_geocast(
    text: str,
    *,
    build_ortho: OrthoBuilder = proj.build_ortho,
    build_perspective: PerspectiveBuilder = proj.build_perspective,
    require_depth_range: bool = False,
    issues: Optional[List[Any]] = None,
    logger: Optional[Any] = None,
) -> CameraDescription:
    """Parse a GeoCast document.

    Raises FormatError on structural problems. Non-fatal findings are
    appended to `issues` (and emitted through `logger` when given).
    """
    reader = _GeoCastReader(text, build_ortho, build_perspective, issues, logger)
    camera = reader.read()
    if require_depth_range and camera.projection is not None and camera.depth_range is None:
        raise FormatError("missing ZDataRange")
    return camera


def parse_signature(line: Optional[Line]) -> str:
    if line is None:
        raise FormatError("empty GeoCast document")
    match = _SIGNATURE.match(line.text)
    if match is None:
        raise FormatError("not a GeoCast document", line.number, line.text)
    return match.group(1)


class _GeoCastReader:
    def __init__(
        self,
        text: str,
        build_ortho: OrthoBuilder,
        build_perspective: PerspectiveBuilder,
        issues: Optional[List[Any]],
        logger: Optional[Any],
    ) -> None:
        self._cursor = LineCursor(text)
        self._build_ortho = build_ortho
        self._build_perspective = build_perspective
        self._issues = issues
        self._logger = logger

    def read(self) -> CameraDescription:
        version = parse_signature(self._cursor.consume())
        kind, position = self._read_kind_and_position()
        view_slice = self._read_view_slice(self._expect({"ViewSlice"}, "ViewSlice"))
        modelview = self._read_modelview(self._expect({"ModelviewMatrix"}, "ModelviewMatrix"))
        camera = CameraDescription(
            format_version=version,
            camera_kind=kind,
            position=position,
            view_slice=view_slice,
            modelview_matrix=modelview,
        )
        camera.projection = self._read_projection(self._expect({"DataProject"}, "DataProject"))
        if camera.projection is None:
            return camera
        self._read_tail(camera)
        return camera

    # -- line helpers -------------------------------------------------

    def _expect(self, tags: Container[str], what: str) -> Line:
        while True:
            line = self._cursor.peek()
            if line is None:
                raise FormatError(f"missing {what}")
            if line.tag in tags:
                return self._cursor.consume()  # type: ignore[return-value]
            if line.tag in _KNOWN_TAGS:
                raise FormatError(f"missing {what}", line.number, line.text)
            self._skip_unrecognized(line)

    def _skip_unrecognized(self, line: Line, context: str = "geocast") -> None:
        self._cursor.consume()
        record_issue(
            self._issues,
            UnrecognizedLineWarning(line.number, line.text, context),
            self._logger,
            _MODULE,
            "unrecognized_line",
            {"line_number": line.number, "line": line.text},
        )

    # -- sections -----------------------------------------------------

    def _read_kind_and_position(self) -> Tuple[CameraKind, Tuple[float, float, float]]:
        first = self._expect(_CAMERA_KINDS | {"Pos"}, "camera kind")
        if first.tag == "Pos":
            position = _floats(first, 1, 3)
            kind_line = self._expect(_CAMERA_KINDS, "camera kind")
            return CameraKind(kind_line.tag), position  # type: ignore[return-value]
        pos_line = self._expect({"Pos"}, "Pos")
        return CameraKind(first.tag), _floats(pos_line, 1, 3)  # type: ignore[return-value]

    def _read_view_slice(self, line: Line) -> ViewSlice:
        if _token(line, 1) != "FODAngle" or _token(line, 3) != "Size":
            raise FormatError("unrecognized view-slice tag", line.number, line.text)
        return ViewSlice(fod_angle_deg=_float(line, 2), size=_float(line, 4))

    def _read_modelview(self, header: Line) -> Tuple[float, ...]:
        values: List[float] = []
        for _ in range(4):
            row = self._cursor.consume()
            if row is None:
                raise FormatError("truncated ModelviewMatrix", header.number, header.text)
            if len(row.tokens) < 4:
                raise FormatError("malformed ModelviewMatrix row", row.number, row.text)
            values.extend(_floats(row, 0, 4))
        return tuple(values)

    def _read_projection(self, line: Line) -> Optional[Projection]:
        kind = _token(line, 1)
        if kind == "Ortho":
            if _token(line, 2) not in ("Window", "WindowSize"):
                raise FormatError("unrecognized window tag", line.number, line.text)
            if _token(line, 5) != "ProjRange":
                raise FormatError("unrecognized proj-range tag", line.number, line.text)
            w, h = _floats(line, 3, 2)
            near, far = _floats(line, 6, 2)
            matrix = self._build_ortho(-w, w, -h, h, near, far)
            return OrthoProjection(window_size=(w, h), proj_range=(near, far), matrix=proj.flatten_row_major(matrix))
        if kind == "Perspective":
            if _token(line, 2) != "Fovy":
                raise FormatError("unrecognized fovy tag", line.number, line.text)
            if _token(line, 4) != "Aspect":
                raise FormatError("unrecognized aspect tag", line.number, line.text)
            if _token(line, 6) != "ClipRange":
                raise FormatError("unrecognized clip-range tag", line.number, line.text)
            fovy = _float(line, 3)
            aspect = _float(line, 5)
            near, far = _floats(line, 7, 2)
            matrix = self._build_perspective(proj.deg_to_rad(fovy), aspect, near, far)
            return PerspectiveProjection(
                fovy_deg=fovy,
                aspect=aspect,
                clip_range=(near, far),
                matrix=proj.flatten_row_major(matrix),
            )
        record_issue(
            self._issues,
            FormatError("unrecognized DataProject camera type", line.number, line.text),
            self._logger,
            _MODULE,
            "projection_unknown",
            {"line_number": line.number, "kind": kind},
        )
        return None

    def _read_tail(self, camera: CameraDescription) -> None:
        seen = set()
        while True:
            line = self._cursor.peek()
            if line is None:
                return
            if line.tag not in _TAIL_TAGS or line.tag in seen:
                self._skip_unrecognized(line)
                continue
            self._cursor.consume()
            seen.add(line.tag)
            if line.tag == "ImageWarp":
                camera.lens_distortion = _read_lens_distortion(line)
            elif line.tag == "WorldSpaceDepth":
                camera.world_space_depth = True
            else:
                camera.depth_range = _floats(line, 1, 2)  # type: ignore[assignment]


def _read_lens_distortion(line: Line) -> LensDistortion:
    values = []
    for idx, label in enumerate(_WARP_LABELS):
        position = 1 + 2 * idx
        if _token(line, position) != label:
            raise FormatError("unrecognized image-warp tag", line.number, line.text)
        values.append(_float(line, position + 1))
    return LensDistortion(*values)


def _token(line: Line, index: int) -> str:
    if index < len(line.tokens):
        return line.tokens[index]
    return ""


def _float(line: Line, index: int) -> float:
    try:
        return float(line.tokens[index])
    except IndexError:
        raise FormatError(f"missing value at token {index}", line.number, line.text) from None
    except ValueError:
        raise FormatError(f"invalid number at token {index}", line.number, line.text) from None


def _floats(line: Line, start: int, count: int) -> Tuple[float, ...]:
    return tuple(_float(line, start + offset) for offset in range(count))
