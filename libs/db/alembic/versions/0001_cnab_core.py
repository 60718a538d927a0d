# ruff: noqa: I001
"""Stores and imported CNAB transactions.

Revision ID: 0001_cnab_core
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_cnab_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # stores: one row per distinct CNAB store name
    op.create_table(
        "stores",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(19), nullable=False),
        sa.Column("owner_name", sa.String(14), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_stores"),
        sa.UniqueConstraint("name", name="uq_stores_name"),
    )

    # financial_transactions: amount in minor units, type code 1..9
    op.create_table(
        "financial_transactions",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("type", sa.SmallInteger(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("cpf", sa.CHAR(11), nullable=False),
        sa.Column("card", sa.CHAR(12), nullable=False),
        sa.Column("store_id", _ID, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_financial_transactions"),
        sa.ForeignKeyConstraint(
            ["store_id"],
            ["stores.id"],
            name="fk_financial_transactions_store_id_stores",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_financial_transactions_type", "financial_transactions", ["type"])
    op.create_index("ix_financial_transactions_date", "financial_transactions", ["date"])
    op.create_index("ix_financial_transactions_store_id", "financial_transactions", ["store_id"])
    op.create_index(
        "ix_financial_transactions_store_id_date",
        "financial_transactions",
        ["store_id", "date"],
    )


def downgrade() -> None:
    op.drop_index("ix_financial_transactions_store_id_date", table_name="financial_transactions")
    op.drop_index("ix_financial_transactions_store_id", table_name="financial_transactions")
    op.drop_index("ix_financial_transactions_date", table_name="financial_transactions")
    op.drop_index("ix_financial_transactions_type", table_name="financial_transactions")
    op.drop_table("financial_transactions")
    op.drop_table("stores")
