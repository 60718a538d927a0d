"""Fixed-width field extraction.

Offsets are zero-based and half-open, matching Python slicing. Numeric fields
accept ASCII digits only: no sign, no padding spaces, no thousands separators.
Text fields are trimmed of surrounding whitespace and otherwise left intact
(no case folding, internal characters preserved).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import FormatError

_ASCII_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Name and position of one column in a fixed-width record."""

    name: str
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def read_int(self, line: str) -> int:
        return read_int(line, self.start, self.length, self.name)

    def read_text(self, line: str) -> str:
        return read_text(line, self.start, self.length, self.name)


def _slice(line: str, start: int, length: int, field: str) -> str:
    raw = line[start : start + length]
    if len(raw) != length:
        raise FormatError(
            f"Field '{field}' is truncated: expected {length} characters at offset {start}, "
            f"got '{raw}'",
            field=field,
            raw=raw,
        )
    return raw


def read_int(line: str, start: int, length: int, field: str) -> int:
    """Parse ``line[start:start+length]`` as a non-negative base-10 integer."""

    raw = _slice(line, start, length, field)
    if not _ASCII_DIGITS.fullmatch(raw):
        raise FormatError(
            f"Field '{field}' contains invalid integer value: '{raw}'",
            field=field,
            raw=raw,
        )
    return int(raw)


def read_text(line: str, start: int, length: int, field: str = "text") -> str:
    """Return ``line[start:start+length]`` with surrounding whitespace removed."""

    return _slice(line, start, length, field).strip()


__all__ = ["FieldSpec", "read_int", "read_text"]
