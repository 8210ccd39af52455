"""
CONTRACT: inline
ROLE: Top-level GeoScene reader package.

INPUTS:
  - GeoScene / GeoCast text documents
OUTPUTS:
  - SceneDescription, CameraDescription records

CONFIG KEYS:
  - n/a

FAILURE MODES:
  - structural document errors -> FormatError
  - transport errors -> FetchError

LOG EVENTS:
  - n/a

TESTS:
  - tests/
"""

from .errors import FetchError, FormatError
from .formats.geocast import parse_geocast
from .formats.geoscene import parse_geoscene
from .formats.sequence import expand
from .resolve.loader import read_geocast_file, read_geoscene_file
from .resolve.resolver import AsyncResolver
from .version import __version__

__all__ = [
    "__version__",
    "AsyncResolver",
    "FetchError",
    "FormatError",
    "expand",
    "parse_geocast",
    "parse_geoscene",
    "read_geocast_file",
    "read_geoscene_file",
]
