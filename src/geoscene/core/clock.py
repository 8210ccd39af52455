"""
CONTRACT: inline
ROLE: Monotonic timestamps for log records.

PERF / TIMING:
  - monotonic now_ns() for all modules
"""

from __future__ import annotations

import time


def now_ns() -> int:
    return time.monotonic_ns()
