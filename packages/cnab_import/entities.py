"""ORM entities for stores and their imported transactions.

Value objects are mapped through ``TypeDecorator`` columns, so rows loaded
from the database come back as ``CPF``/``CardNumber``/``Money`` instances and
never as bare strings or integers. Values read back are trusted: CPFs are
rebuilt with the unchecked constructor, the same way the importer builds them.

Nature and description are pure functions of ``type`` and are not stored.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Time,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from db import Base

from .transaction_types import TransactionNature, TransactionType
from .value_objects import CPF, CardNumber, Money

# BIGINT ids on server databases; SQLite only autoincrements INTEGER PRIMARY KEY.
_ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


# ---------------------------
# Value-object column types
# ---------------------------


class CpfType(TypeDecorator[CPF]):
    impl = CHAR(11)
    cache_ok = True

    def process_bind_param(self, value: CPF | str | None, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if isinstance(value, CPF):
            return value.value
        return CPF.create_unchecked(value).value

    def process_result_value(self, value: str | None, dialect: Dialect) -> CPF | None:
        return None if value is None else CPF.create_unchecked(value)


class CardNumberType(TypeDecorator[CardNumber]):
    impl = CHAR(12)
    cache_ok = True

    def process_bind_param(
        self, value: CardNumber | str | None, dialect: Dialect
    ) -> str | None:
        if value is None:
            return None
        if isinstance(value, CardNumber):
            return value.value
        return CardNumber.create(value).value

    def process_result_value(self, value: str | None, dialect: Dialect) -> CardNumber | None:
        return None if value is None else CardNumber.create(value)


class MoneyType(TypeDecorator[Money]):
    """Stored as integer minor units."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Money | int | None, dialect: Dialect) -> int | None:
        if value is None:
            return None
        if isinstance(value, Money):
            return value.minor_units
        return Money.from_minor_units(value).minor_units

    def process_result_value(self, value: int | None, dialect: Dialect) -> Money | None:
        return None if value is None else Money.from_minor_units(int(value))


class TransactionTypeColumn(TypeDecorator[TransactionType]):
    impl = SmallInteger
    cache_ok = True

    def process_bind_param(
        self, value: TransactionType | int | None, dialect: Dialect
    ) -> int | None:
        if value is None:
            return None
        return int(TransactionType.from_code(int(value)))

    def process_result_value(self, value: int | None, dialect: Dialect) -> TransactionType | None:
        return None if value is None else TransactionType.from_code(int(value))


# ---------------------------
# Core: stores
# ---------------------------


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True, autoincrement=True)
    # Widths follow the CNAB columns (19 and 14 characters).
    name: Mapped[str] = mapped_column(String(19), nullable=False, unique=True)
    owner_name: Mapped[str] = mapped_column(String(14), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Back-reference only; ownership is always the FK on the transaction.
    transactions: Mapped[list[FinancialTransaction]] = relationship(
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def total_balance(self) -> Decimal:
        """Signed sum of every transaction amount (income minus expense)."""

        return sum((t.signed_amount() for t in self.transactions), Decimal("0.00"))

    def __repr__(self) -> str:
        return f"Store(id={self.id!r}, name={self.name!r}, owner_name={self.owner_name!r})"


# ---------------------------
# Core: financial_transactions
# ---------------------------


class FinancialTransaction(Base):
    __tablename__ = "financial_transactions"

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True, autoincrement=True)
    type: Mapped[TransactionType] = mapped_column(
        TransactionTypeColumn(), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    amount: Mapped[Money] = mapped_column(MoneyType(), nullable=False)
    cpf: Mapped[CPF] = mapped_column(CpfType(), nullable=False)
    card: Mapped[CardNumber] = mapped_column(CardNumberType(), nullable=False)
    store_id: Mapped[int] = mapped_column(
        _ID_TYPE, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    store: Mapped[Store] = relationship(back_populates="transactions")

    __table_args__ = (
        Index("ix_financial_transactions_store_id_date", "store_id", "date"),
    )

    @property
    def nature(self) -> TransactionNature:
        return self.type.nature

    @property
    def description(self) -> str:
        return self.type.label

    @property
    def occurred_at(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.time)

    def signed_amount(self) -> Decimal:
        """``+amount`` for income, ``-amount`` for expense, in major units."""

        return self.nature.sign * self.amount.to_major_units()

    def __repr__(self) -> str:
        return (
            f"FinancialTransaction(id={self.id!r}, type={self.type.name}, "
            f"amount={self.amount}, store_id={self.store_id!r})"
        )


__all__ = [
    "CardNumberType",
    "CpfType",
    "FinancialTransaction",
    "MoneyType",
    "Store",
    "TransactionTypeColumn",
]
