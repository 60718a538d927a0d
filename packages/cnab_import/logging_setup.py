"""Logging for the ``cnab_import`` package.

Every module logs through a child of the ``"cnab_import"`` logger obtained via
:func:`get_logger`. Until an entrypoint calls :func:`configure_logging`, the
package logger only carries a ``NullHandler``, so importing the library from
another application stays silent.

Environment
-----------
``CNAB_IMPORT_LOG_LEVEL``
    Level name (``DEBUG``, ``warning``) or number; default ``INFO``.
``CNAB_IMPORT_LOG_FORMAT``
    ``logging.Formatter`` format string; default :data:`DEFAULT_FORMAT`.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PKG_LOGGER_NAME = "cnab_import"
LEVEL_ENV_VAR = "CNAB_IMPORT_LOG_LEVEL"
FORMAT_ENV_VAR = "CNAB_IMPORT_LOG_FORMAT"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn an explicit level, or the environment, into a numeric level.

    Unknown names fall back to ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` reads ``CNAB_IMPORT_LOG_LEVEL``.
    fmt:
        Format string. ``None`` reads ``CNAB_IMPORT_LOG_FORMAT``, then
        :data:`DEFAULT_FORMAT`.
    stream:
        Destination; ``sys.stderr`` at call time when omitted.
    """

    global _handler
    if _handler is not None:
        return

    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or os.getenv(FORMAT_ENV_VAR) or DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    # Records stop here; the host's root handlers would print them twice.
    pkg_logger.propagate = False
    _handler = handler


def reset_logging() -> None:
    """Undo :func:`configure_logging` (tests, embedded hosts)."""

    global _handler
    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    _handler = None


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package root silent if unconfigured."""

    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "configure_logging",
    "get_logger",
    "reset_logging",
    "resolve_level",
]
