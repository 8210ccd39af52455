"""
CONTRACT: inline
ROLE: Structured log events, printed as JSON lines and kept in memory.

INPUTS:
  - emit(level, module, event, payload) from parsers, resolver and CLI
OUTPUTS:
  - JSON lines on stderr (at or above min_level)
  - LogEmitter.records

CONFIG KEYS:
  - logging.level: minimum printed level
  - logging.keep_records: retain emitted records in memory (bool)

FAILURE MODES:
  - n/a

CONTRACT DETAILS:
# Logging contract

- Structured record with module, event and details.
- Parsers only log through a logger handed to them; they never print.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Dict, List, Optional, TextIO

from geoscene.core.clock import now_ns


LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


class LogEmitter:
    """Emit structured log events to a stream and keep them for inspection."""

    def __init__(
        self,
        min_level: str = "info",
        stream: Optional[TextIO] = None,
        keep_records: bool = True,
    ) -> None:
        self._min_level = LEVELS.get(min_level, 20)
        self._stream = stream
        self._keep_records = keep_records
        self.records: List[Dict[str, Any]] = []

    def emit(self, level: str, module: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        record = {
            "t_ns": now_ns(),
            "level": level,
            "message": event,
            "context": {
                "module": module,
                "event": event,
                "details": payload or {},
            },
        }
        if self._keep_records:
            self.records.append(record)
        if LEVELS.get(level, 0) >= self._min_level:
            stream = self._stream if self._stream is not None else sys.stderr
            print(json.dumps(record, sort_keys=True, default=str), file=stream)

    def events(self, module: Optional[str] = None) -> List[str]:
        """Event names emitted so far, optionally filtered by module."""
        return [
            r["context"]["event"]
            for r in self.records
            if module is None or r["context"]["module"] == module
        ]


def logger_from_config(config: Dict[str, Any], stream: Optional[TextIO] = None) -> LogEmitter:
    logging_cfg = config.get("logging", {})
    if not isinstance(logging_cfg, dict):
        logging_cfg = {}
    return LogEmitter(
        min_level=str(logging_cfg.get("level", "info")),
        stream=stream,
        keep_records=bool(logging_cfg.get("keep_records", True)),
    )
