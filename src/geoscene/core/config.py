"""
CONTRACT: inline
ROLE: Load YAML config, validate, and expose typed accessors.

INPUTS:
  - Topic: n/a  Type: n/a
OUTPUTS:
  - Topic: n/a  Type: n/a

CONFIG KEYS:
  - config_path: path to YAML file
  - runtime.enable_validation: enable validation (bool)

FAILURE MODES:
  - missing/invalid key -> raise error -> log validation_failed

LOG EVENTS:
  - module=core.config, event=validation_failed, payload keys=path, errors

TESTS:
  - tests/test_config_and_cli.py

CONTRACT DETAILS:
# Config contract

- Config files select logging level, parse strictness and output format.
- A missing config path means defaults only.
- Validation rejects keys with the wrong type.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import yaml


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML config and apply defaults."""
    data: Dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
    merged = _merge_dicts(_default_config(), data)
    if bool(get_path(merged, "runtime.enable_validation", False)):
        errors = validate_config(merged)
        if errors:
            joined = "\n".join(f"- {e}" for e in errors)
            raise ValueError(f"Config validation failed for {path}:\n{joined}")
    return merged


def get_path(config: Dict[str, Any], dotted_path: str, default: Any = None) -> Any:
    """Get a nested config value by dotted path."""
    node: Any = config
    for key in dotted_path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def parse_options(config: Dict[str, Any], section: str) -> Dict[str, Any]:
    """Keyword arguments for parse_geocast taken from `section` (geocast or resolver)."""
    return {"require_depth_range": bool(get_path(config, f"{section}.require_depth_range", False))}


def _default_config() -> Dict[str, Any]:
    return {
        "runtime": {
            "enable_validation": False,
        },
        "logging": {
            "level": "info",
            "keep_records": True,
        },
        "scene": {
            "validate_match_groups": True,
        },
        "geocast": {
            "require_depth_range": False,
        },
        "resolver": {
            # Casts referenced from a scene carry their depth range.
            "require_depth_range": True,
        },
        "output": {
            "indent": 2,
        },
    }


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Return a list of validation errors for the merged config."""
    errors: List[str] = []

    level = get_path(config, "logging.level")
    if str(level).lower() not in {"debug", "info", "warning", "error"}:
        errors.append(f"logging.level must be one of debug/info/warning/error, got {level!r}")

    for key in (
        "runtime.enable_validation",
        "logging.keep_records",
        "scene.validate_match_groups",
        "geocast.require_depth_range",
        "resolver.require_depth_range",
    ):
        value = get_path(config, key)
        if not isinstance(value, bool):
            errors.append(f"{key} must be a bool, got {value!r}")

    indent = get_path(config, "output.indent")
    if indent is not None and (isinstance(indent, bool) or not isinstance(indent, int) or indent < 0):
        errors.append("output.indent must be an int >= 0 or null")

    return errors
