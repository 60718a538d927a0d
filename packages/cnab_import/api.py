"""Public API for the ``cnab_import`` package.

This module is the stable import surface for hosts (CLI, HTTP handlers,
scripts). Implementations live in ``importer``, ``queries`` and ``uploads``;
the DB-backed helpers here only add session wiring from ``db.client``.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any

from .cancellation import CancellationToken
from .importer import CnabImporter, import_cnab_file
from .models import ImportResult, StoreSummary
from .persistence import ImportRepository, SqlAlchemyImportRepository
from .queries import list_store_balances
from .settings import ImportSettings, load_settings
from .uploads import validate_upload


def import_stream(
    stream: IO[Any],
    *,
    database_url: str | None = None,
    ignore_errors: bool = False,
    cancellation: CancellationToken | None = None,
    file_name: str | None = None,
) -> ImportResult:
    """Import ``stream`` into the database at ``database_url``.

    Parameters
    ----------
    stream:
        Readable text or binary stream with CNAB records. Not closed here.
    database_url:
        Overrides ``DATABASE_URL``.
    ignore_errors:
        Commit the successful lines even when other lines failed.
    cancellation:
        Optional token; when it fires the run is rolled back and
        ``ImportCancelledError`` propagates.
    file_name:
        Used for logging only.

    Returns
    -------
    ImportResult
        ``is_success`` is True only when the run committed.
    """

    # Local import keeps the package importable without a configured database.
    from db.client import get_session

    session = get_session(database_url=database_url)
    try:
        repository = SqlAlchemyImportRepository(session)
        return import_cnab_file(
            stream,
            repository=repository,
            ignore_errors=ignore_errors,
            cancellation=cancellation,
            file_name=file_name,
        )
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def import_path(
    path: Path,
    *,
    settings: ImportSettings | None = None,
    ignore_errors: bool | None = None,
    cancellation: CancellationToken | None = None,
) -> ImportResult:
    """Validate ``path`` against ``settings`` and import it.

    ``ignore_errors`` defaults to ``settings.ignore_errors``.
    """

    settings = settings or load_settings()
    validate_upload(path, settings)
    with path.open("rb") as fh:
        return import_stream(
            fh,
            database_url=settings.database_url,
            ignore_errors=settings.ignore_errors if ignore_errors is None else ignore_errors,
            cancellation=cancellation,
            file_name=path.name,
        )


def store_balances(*, database_url: str | None = None) -> list[StoreSummary]:
    """Every store, ordered by name, with its transactions and balance."""

    from db.client import session_scope

    with session_scope(database_url=database_url) as session:
        return list_store_balances(session)


def init_db(*, database_url: str | None = None) -> None:
    """Create the tables directly from ORM metadata (no Alembic)."""

    from db import Base
    from db.client import get_engine

    from . import entities  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "CancellationToken",
    "CnabImporter",
    "ImportRepository",
    "ImportResult",
    "StoreSummary",
    "import_cnab_file",
    "import_path",
    "import_stream",
    "init_db",
    "store_balances",
    "validate_upload",
]
