"""Environment-driven settings for CNAB entrypoints.

The importer itself takes plain arguments; only entrypoints (CLI, hosts)
read these. Values come from the process environment, which the CLI first
populates from a local ``.env`` without overriding variables already set.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigurationError

DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (".txt", ".cnab", "")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class ImportSettings:
    database_url: str | None = None
    ignore_errors: bool = False
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS


def parse_bool(raw: str | None, *, default: bool, name: str = "value") -> bool:
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be one of 1/true/yes or 0/false/no, got {raw!r}")


def _parse_positive_int(raw: str | None, *, default: int, name: str) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _parse_extensions(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_ALLOWED_EXTENSIONS
    exts: list[str] = []
    for part in raw.split(","):
        ext = part.strip().lower()
        if ext and not ext.startswith("."):
            ext = "." + ext
        if ext not in exts:
            exts.append(ext)
    return tuple(exts)


def load_settings(environ: Mapping[str, str] | None = None) -> ImportSettings:
    """Build :class:`ImportSettings` from ``environ`` (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ
    return ImportSettings(
        database_url=env.get("DATABASE_URL") or None,
        ignore_errors=parse_bool(
            env.get("CNAB_IGNORE_ERRORS"), default=False, name="CNAB_IGNORE_ERRORS"
        ),
        max_file_bytes=_parse_positive_int(
            env.get("CNAB_MAX_FILE_BYTES"),
            default=DEFAULT_MAX_FILE_BYTES,
            name="CNAB_MAX_FILE_BYTES",
        ),
        allowed_extensions=_parse_extensions(env.get("CNAB_ALLOWED_EXTENSIONS")),
    )


__all__ = [
    "DEFAULT_ALLOWED_EXTENSIONS",
    "DEFAULT_MAX_FILE_BYTES",
    "ImportSettings",
    "load_settings",
    "parse_bool",
]
