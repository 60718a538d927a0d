# ruff: noqa: I001
"""CLI for the ``cnab_import`` package.

A Typer console interface over :mod:`cnab_import.api`. Environment variables
(notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs; already-set variables win.
Results are printed to stdout as JSON, errors to stderr as ``Error: ...``.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import TypeAdapter

from .errors import CnabError
from .logging_setup import configure_logging
from .models import StoreSummary


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


# Shared by every command that touches the database.
DATABASE_URL_OPTION = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import CNAB fixed-width transaction files and list store balances. "
        "Loads DATABASE_URL from a local .env before running."
    ),
)


@app.command("import")
def import_cmd(
    file: Annotated[
        Path,
        typer.Argument(help="Path to a CNAB file (.txt, .cnab or no extension).", dir_okay=False),
    ],
    *,
    ignore_errors: bool | None = typer.Option(
        None,
        "--ignore-errors/--no-ignore-errors",
        help="Commit valid lines even when others fail (default: CNAB_IGNORE_ERRORS).",
    ),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Import FILE and print the import result as JSON."""

    # Deferred imports keep `--help` fast and DB-free
    from .api import import_path
    from .settings import load_settings

    try:
        settings = load_settings()
        if database_url:
            settings = dataclasses.replace(settings, database_url=database_url)
        result = import_path(file, settings=settings, ignore_errors=ignore_errors)
    except CnabError as e:
        raise _fail(str(e)) from e
    except Exception as e:
        raise _fail(f"import failed: {e}") from e

    typer.echo(result.model_dump_json(indent=2))
    if not result.is_success:
        raise typer.Exit(1)


@app.command("stores")
def stores_cmd(
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Print every store with its transactions and balance as JSON."""

    from .api import store_balances

    try:
        summaries = store_balances(database_url=database_url)
    except Exception as e:
        raise _fail(f"failed to load stores: {e}") from e

    adapter = TypeAdapter(list[StoreSummary])
    typer.echo(adapter.dump_json(summaries, indent=2).decode("utf-8"))


@app.command("init-db")
def init_db_cmd(
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Create the tables from the ORM metadata (use Alembic in production)."""

    from .api import init_db

    try:
        init_db(database_url=database_url)
    except Exception as e:
        raise _fail(f"init-db failed: {e}") from e
    typer.echo("Tables created.")


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps variables that are already set
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m cnab_import.cli`
    app()
