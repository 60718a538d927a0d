"""Read-side queries over imported stores."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .entities import FinancialTransaction, Store
from .models import StoreSummary, TransactionSummary


def _summarize_transaction(tx: FinancialTransaction) -> TransactionSummary:
    return TransactionSummary(
        id=tx.id,
        description=tx.description,
        nature=tx.nature.value,
        occurred_at=tx.occurred_at,
        signed_amount=tx.signed_amount(),
        cpf=tx.cpf.formatted(),
        card_number=tx.card.masked(),
        created_at=tx.created_at,
    )


def summarize_store(store: Store) -> StoreSummary:
    """Build a :class:`StoreSummary` with transactions newest first."""

    ordered = sorted(store.transactions, key=lambda t: (t.date, t.time, t.id), reverse=True)
    return StoreSummary(
        id=store.id,
        name=store.name,
        owner_name=store.owner_name,
        transactions=[_summarize_transaction(t) for t in ordered],
        total_balance=store.total_balance(),
    )


def list_store_balances(session: Session) -> list[StoreSummary]:
    """Every store ordered by name, each with its transactions and balance."""

    stmt = select(Store).options(selectinload(Store.transactions)).order_by(Store.name)
    stores = session.execute(stmt).scalars().all()
    return [summarize_store(s) for s in stores]


__all__ = ["list_store_balances", "summarize_store"]
