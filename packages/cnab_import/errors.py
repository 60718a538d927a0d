"""Error taxonomy for CNAB decoding and import.

Line- and group-scoped errors (``FormatError``, ``LengthError``,
``ValidationError``) are caught by the importer and turned into entries of
``ImportResult.errors``. ``ArgumentError`` and ``ImportCancelledError`` always
reach the caller.
"""

from __future__ import annotations


class CnabError(Exception):
    """Base class for every error raised by ``cnab_import``."""


class ArgumentError(CnabError, ValueError):
    """A required input is missing or unusable (no stream, no line text)."""


class FormatError(CnabError, ValueError):
    """A field's characters cannot be interpreted as its declared type."""

    def __init__(self, message: str, *, field: str | None = None, raw: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.raw = raw


class LengthError(CnabError, ValueError):
    """A record does not have the fixed width the format requires."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"CNAB line must be exactly {expected} characters, got {actual}")
        self.expected = expected
        self.actual = actual


class ValidationError(CnabError, ValueError):
    """A well-formed value breaks a domain rule."""


class LineDecodeError(CnabError):
    """Decoding failed on a specific physical line of the input."""

    def __init__(self, line_number: int, cause: CnabError) -> None:
        super().__init__(f"Error parsing line {line_number}: {cause}")
        self.line_number = line_number
        self.cause = cause


class CriticalImportError(CnabError):
    """The decode phase failed before any line-level processing could start."""


class ImportCancelledError(CnabError):
    """The caller's cancellation token fired during an import."""


class ConfigurationError(CnabError):
    """An environment setting could not be parsed."""


__all__ = [
    "ArgumentError",
    "CnabError",
    "ConfigurationError",
    "CriticalImportError",
    "FormatError",
    "ImportCancelledError",
    "LengthError",
    "LineDecodeError",
    "ValidationError",
]
