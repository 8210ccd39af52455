"""
CONTRACT: inline
ROLE: Records produced by the GeoScene and GeoCast parsers.

OUTPUTS:
  - SceneDescription, CastEntry, MatchGroup, CameraDescription

CONTRACT DETAILS:
# Records

- Records compare by value; parsing the same text twice yields equal
  records.
- A CastEntry's `camera_slots` holds `PENDING` until the resolver writes
  the parsed camera for that slot. Each slot is written at most once.
- Matrices are 16-float tuples in row-major order.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


class _Pending:
    """Marker for a camera slot whose GeoCast file has not been parsed yet."""

    _instance: Optional["_Pending"] = None

    def __new__(cls) -> "_Pending":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "PENDING"


PENDING = _Pending()


class CameraKind(str, enum.Enum):
    STATIC = "StaticCamera"
    DYNAMIC = "DynamicCamera"


class CollectionKind(str, enum.Enum):
    CAST = "cast"
    DEPTH_CAST = "depth_cast"


@dataclass(frozen=True)
class SlotCoordinate:
    collection_kind: CollectionKind
    entry_index: int
    slot_index: int


@dataclass(frozen=True)
class ViewSlice:
    fod_angle_deg: float
    size: float


@dataclass(frozen=True)
class OrthoProjection:
    window_size: Tuple[float, float]
    proj_range: Tuple[float, float]
    matrix: Tuple[float, ...]

    kind = "Ortho"


@dataclass(frozen=True)
class PerspectiveProjection:
    fovy_deg: float
    aspect: float
    clip_range: Tuple[float, float]
    matrix: Tuple[float, ...]

    kind = "Perspective"


Projection = Union[OrthoProjection, PerspectiveProjection]


@dataclass(frozen=True)
class LensDistortion:
    aspect: float
    k1: float
    k2: float
    k3: float
    p1: float
    p2: float
    center_x: float
    center_y: float
    focal: float


@dataclass
class CameraDescription:
    format_version: str
    camera_kind: CameraKind
    position: Tuple[float, float, float]
    view_slice: ViewSlice
    modelview_matrix: Tuple[float, ...]
    projection: Optional[Projection] = None
    depth_range: Optional[Tuple[float, float]] = None
    world_space_depth: bool = False
    lens_distortion: Optional[LensDistortion] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["camera_kind"] = self.camera_kind.value
        if self.projection is not None:
            out["projection"]["kind"] = self.projection.kind
        return out


CameraSlot = Union[CameraDescription, _Pending]


@dataclass
class CastEntry:
    name: str
    size: Tuple[float, float]
    image_paths: List[str] = field(default_factory=list)
    cast_paths: List[str] = field(default_factory=list)
    camera_slots: List[CameraSlot] = field(default_factory=list)

    def is_resolved(self) -> bool:
        return all(slot is not PENDING for slot in self.camera_slots)

    def pending_count(self) -> int:
        return sum(1 for slot in self.camera_slots if slot is PENDING)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": list(self.size),
            "image_paths": list(self.image_paths),
            "cast_paths": list(self.cast_paths),
            "camera_slots": [None if slot is PENDING else slot.to_dict() for slot in self.camera_slots],
        }


@dataclass
class MatchGroup:
    index: int
    camera_names: List[str] = field(default_factory=list)
    surface_names: List[str] = field(default_factory=list)


@dataclass
class SceneDescription:
    format_version: str
    frame_range: Optional[Tuple[int, int]] = None
    data_format: Optional[str] = None
    cast_collection: List[CastEntry] = field(default_factory=list)
    depth_cast_collection: List[CastEntry] = field(default_factory=list)
    match_groups: List[MatchGroup] = field(default_factory=list)

    def collection(self, kind: CollectionKind) -> List[CastEntry]:
        if kind is CollectionKind.DEPTH_CAST:
            return self.depth_cast_collection
        return self.cast_collection

    def find_cast(self, name: str) -> Optional[CastEntry]:
        return _last_named(self.cast_collection, name)

    def find_depth_cast(self, name: str) -> Optional[CastEntry]:
        return _last_named(self.depth_cast_collection, name)

    def slot_coordinates(self) -> List[Tuple[SlotCoordinate, str]]:
        """Every (coordinate, cast path) pair of the scene, in declaration order."""
        out: List[Tuple[SlotCoordinate, str]] = []
        for kind in (CollectionKind.CAST, CollectionKind.DEPTH_CAST):
            for entry_index, entry in enumerate(self.collection(kind)):
                for slot_index, path in enumerate(entry.cast_paths):
                    out.append((SlotCoordinate(kind, entry_index, slot_index), path))
        return out

    def is_resolved(self) -> bool:
        return all(entry.is_resolved() for entry in self.cast_collection + self.depth_cast_collection)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_version": self.format_version,
            "frame_range": list(self.frame_range) if self.frame_range is not None else None,
            "data_format": self.data_format,
            "cast_collection": [entry.to_dict() for entry in self.cast_collection],
            "depth_cast_collection": [entry.to_dict() for entry in self.depth_cast_collection],
            "match_groups": [asdict(group) for group in self.match_groups],
        }


def _last_named(entries: List[CastEntry], name: str) -> Optional[CastEntry]:
    found = None
    for entry in entries:
        if entry.name == name:
            found = entry
    return found
