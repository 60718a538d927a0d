"""Persistence boundary used by the importer.

The importer only ever stages writes and then issues a single ``commit()``
or ``rollback()``; all transactional discipline lives behind
:class:`ImportRepository`. :class:`SqlAlchemyImportRepository` implements it
on top of a SQLAlchemy ``Session`` from ``db.client``.

Scope:
- Look up stores by exact name.
- Stage store creation (flushed inside a savepoint so the store gets its
  identity while remaining part of the run's unit of work).
- Stage owner-name updates and transaction inserts.
- Commit or roll back everything staged for the run.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from .entities import FinancialTransaction, Store
from .logging_setup import get_logger

_logger = get_logger("cnab_import.persistence")


class ImportRepository(Protocol):
    """The writes an import run needs, staged until :meth:`commit`."""

    def find_store_by_name(self, name: str) -> Store | None: ...

    def create_store(self, store: Store) -> None:
        """Stage ``store`` and assign its identity."""
        ...

    def update_store_owner(self, store: Store, owner_name: str) -> None: ...

    def append_transaction(self, transaction: FinancialTransaction) -> None: ...

    def commit(self) -> int:
        """Make staged writes durable; return how many were staged. Safe when empty."""
        ...

    def rollback(self) -> None:
        """Discard every staged write."""
        ...


class SqlAlchemyImportRepository:
    """:class:`ImportRepository` backed by one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._staged = 0

    @property
    def pending_changes(self) -> int:
        return self._staged

    def find_store_by_name(self, name: str) -> Store | None:
        stmt = select(Store).where(Store.name == name)
        return self._session.execute(stmt).scalar_one_or_none()

    def create_store(self, store: Store) -> None:
        # A savepoint keeps a failed insert (e.g. a unique violation) from
        # poisoning the outer transaction that holds the rest of the run.
        with self._session.begin_nested():
            self._session.add(store)
        self._staged += 1
        _logger.debug("staged store %r with id=%s", store.name, store.id)

    def update_store_owner(self, store: Store, owner_name: str) -> None:
        store.owner_name = owner_name
        self._staged += 1

    def append_transaction(self, transaction: FinancialTransaction) -> None:
        self._session.add(transaction)
        self._staged += 1

    def commit(self) -> int:
        count = self._staged
        self._session.commit()
        self._staged = 0
        return count

    def rollback(self) -> None:
        self._session.rollback()
        self._staged = 0


__all__ = ["ImportRepository", "SqlAlchemyImportRepository"]
