"""
CONTRACT: inline
ROLE: Default fetch_text transport for documents on the local filesystem.

INPUTS:
  - path
OUTPUTS:
  - UTF-8 document text

PERF / TIMING:
  - the blocking read runs in a worker thread, so concurrent slot fetches
    overlap

FAILURE MODES:
  - missing/unreadable/undecodable file -> raise FetchError
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from geoscene.errors import FetchError


async def read_local_text(path: str) -> str:
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchError(path, str(exc)) from exc
