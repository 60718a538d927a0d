"""Cooperative cancellation for long-running imports."""

from __future__ import annotations

import threading

from .errors import ImportCancelledError


class CancellationToken:
    """A thread-safe flag checked at the importer's blocking points.

    Another thread (a request handler, a signal handler) calls :meth:`cancel`;
    the importer calls :meth:`raise_if_cancelled` once per decoded line and
    once per store resolution.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ImportCancelledError("Import cancelled by caller")


__all__ = ["CancellationToken"]
