"""
CONTRACT: inline
ROLE: Expand printf-style path patterns into one path per frame.

INPUTS:
  - path pattern with optional `%d` / `%0Nd` placeholders
  - inclusive frame range
OUTPUTS:
  - ordered list of concrete paths

FAILURE MODES:
  - placeholder present but frame range missing/inverted -> empty list

CONTRACT DETAILS:
# Sequence expansion

- A pattern without placeholders is returned as a single-element list,
  whatever the frame range.
- `%d` is replaced by the unpadded frame number. Widthed placeholders are
  left alone in that case.
- Every `%0Nd` occurrence is padded to its own width N, but all occurrences
  receive the same frame number (e.g. "dir%02d/frame%03d.png"). Existing
  datasets are named after this convention.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence


_WIDTHED = re.compile(r"%(\d+)d")
_UNWIDTHED = re.compile(r"%d")

FrameRange = Sequence[int]


def has_placeholder(pattern: str) -> bool:
    return bool(_WIDTHED.search(pattern) or _UNWIDTHED.search(pattern))


def expand(pattern: str, frame_range: Optional[FrameRange]) -> List[str]:
    """Expand `pattern` over the inclusive `frame_range`."""
    if not has_placeholder(pattern):
        return [pattern]
    frames = _frames(frame_range)
    if not frames:
        return []
    if _UNWIDTHED.search(pattern):
        return [_UNWIDTHED.sub(str(frame), pattern) for frame in frames]
    return [_WIDTHED.sub(lambda m, f=frame: _pad(f, int(m.group(1))), pattern) for frame in frames]


def _frames(frame_range: Optional[FrameRange]) -> List[int]:
    if frame_range is None:
        return []
    try:
        start, end = int(frame_range[0]), int(frame_range[1])
    except (TypeError, ValueError, IndexError):
        return []
    if start > end:
        return []
    return list(range(start, end + 1))


def _pad(frame: int, width: int) -> str:
    return f"{frame:0{width}d}"
