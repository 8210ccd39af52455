"""
CONTRACT: inline
ROLE: Line scanning primitives shared by the GeoScene and GeoCast grammars.

INPUTS:
  - raw document text, `\\n` or `\\r\\n` terminated
OUTPUTS:
  - significant lines with 1-based numbers and whitespace-split tokens

FAILURE MODES:
  - n/a (scanning never raises)

CONTRACT DETAILS:
# Line scanning

- Blank lines and lines whose first non-blank character is `#` are skipped.
- Block parsers detect their end by peeking the next significant line and
  leaving it unconsumed when it belongs to the enclosing grammar.
"""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Sequence


def is_blank_or_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def advance_past_blank(lines: Sequence[str], index: int) -> int:
    """Return the index of the next significant line at or after `index`."""
    if index < 0:
        return index
    while index < len(lines) and is_blank_or_comment(lines[index]):
        index += 1
    return index


def split_lines(text: str) -> List[str]:
    return text.replace("\r\n", "\n").split("\n")


class Line(NamedTuple):
    number: int
    text: str
    tokens: List[str]

    @property
    def tag(self) -> str:
        return self.tokens[0] if self.tokens else ""


class LineCursor:
    """Lookahead cursor over the significant lines of a document."""

    def __init__(self, text: str) -> None:
        self._lines = split_lines(text)
        self._index = 0

    def peek(self) -> Optional[Line]:
        """Return the next significant line without consuming it."""
        self._index = advance_past_blank(self._lines, self._index)
        if self._index >= len(self._lines):
            return None
        raw = self._lines[self._index]
        return Line(self._index + 1, raw.strip(), raw.split())

    def consume(self) -> Optional[Line]:
        line = self.peek()
        if line is not None:
            self._index += 1
        return line

    def at_end(self) -> bool:
        return self.peek() is None
