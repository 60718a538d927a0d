"""Pytest configuration for test isolation.

Settings, the database client and logging are all process-global: settings
read ``os.environ``, ``db.client`` caches one engine per process, and the CLI
attaches a handler to the ``cnab_import`` logger. The autouse fixture below
strips the relevant environment variables and undoes the other two after
every test so tests cannot leak state into each other.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from cnab_import.logging_setup import reset_logging
from db.client import dispose_engine

from tests.helpers.db import bootstrap_sqlite_db

_ENV_VARS = (
    "DATABASE_URL",
    "CNAB_IMPORT_LOG_LEVEL",
    "CNAB_IMPORT_LOG_FORMAT",
    "CNAB_IGNORE_ERRORS",
    "CNAB_MAX_FILE_BYTES",
    "CNAB_ALLOWED_EXTENSIONS",
)


@pytest.fixture(autouse=True)
def _isolate_process_state(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of CLI runs.
    monkeypatch.chdir(tmp_path)

    yield

    dispose_engine()
    reset_logging()


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    """A fresh file-backed SQLite database with the full schema."""

    return bootstrap_sqlite_db(tmp_path / "db" / "cnab.sqlite3")
