"""Checks applied to a file before it is handed to the importer."""

from __future__ import annotations

from pathlib import Path

from .errors import ArgumentError
from .settings import ImportSettings


def validate_upload(path: Path, settings: ImportSettings) -> Path:
    """Return ``path`` when it is acceptable for import, else raise ``ArgumentError``.

    Rejects missing or empty files, extensions outside
    ``settings.allowed_extensions`` (``""`` allows extension-less names), and
    files larger than ``settings.max_file_bytes``.
    """

    if not path.is_file():
        raise ArgumentError(f"File not found: {path}")

    ext = path.suffix.lower()
    if ext not in settings.allowed_extensions:
        allowed = ", ".join(e or "<none>" for e in settings.allowed_extensions)
        raise ArgumentError(f"Invalid file type '{ext or '<none>'}'; allowed: {allowed}")

    size = path.stat().st_size
    if size == 0:
        raise ArgumentError("File is empty")
    if size > settings.max_file_bytes:
        mib = settings.max_file_bytes / (1024 * 1024)
        raise ArgumentError(f"File size exceeds maximum allowed ({mib:g}MB)")
    return path


__all__ = ["validate_upload"]
