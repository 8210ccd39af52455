"""
CONTRACT: inline
ROLE: Error and issue types shared by parsers, resolver and loader.

FAILURE MODES:
  - FormatError: structural document failure, aborts that document
  - FetchError: transport failure, the affected slot stays pending

CONTRACT DETAILS:
# Error taxonomy

- Structural errors (bad signature, bad tag at a required position) abort
  the current document and yield no record.
- Content-level oddities never abort; they are collected as issue records
  into a caller-supplied list.
- Partial scenes (some slots still pending) are valid states.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional


class GeoSceneError(Exception):
    """Base class for reader errors."""


class FormatError(GeoSceneError):
    """A document is structurally invalid."""

    def __init__(self, reason: str, line_number: Optional[int] = None, line: Optional[str] = None) -> None:
        self.reason = reason
        self.line_number = line_number
        self.line = line
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.line_number is None:
            return self.reason
        return f"{self.reason} (line {self.line_number}: {self.line!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormatError):
            return NotImplemented
        return (self.reason, self.line_number, self.line) == (other.reason, other.line_number, other.line)

    def __hash__(self) -> int:
        return hash((self.reason, self.line_number, self.line))


class FetchError(GeoSceneError):
    """The transport could not deliver a document."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to fetch {path}: {reason}" if reason else f"failed to fetch {path}")


@dataclass(frozen=True)
class UnrecognizedLineWarning:
    line_number: int
    line: str
    context: str


@dataclass(frozen=True)
class MatchReferenceWarning:
    group_index: int
    name: str
    collection: str


@dataclass(frozen=True)
class ResolveFailure:
    coord: Any
    path: str
    error: Exception


def record_issue(
    issues: Optional[List[Any]],
    issue: Any,
    logger: Optional[Any] = None,
    module: str = "",
    event: str = "",
    payload: Optional[dict] = None,
) -> None:
    """Append an issue to the caller's list and mirror it to the logger."""
    if issues is not None:
        issues.append(issue)
    if logger is not None and event:
        logger.emit("warning", module, event, payload or {})
