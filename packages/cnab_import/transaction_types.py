"""Transaction type codes used in the CNAB ``Type`` column."""

from __future__ import annotations

from enum import Enum, IntEnum

from .errors import ValidationError


class TransactionNature(Enum):
    INCOME = "Income"
    EXPENSE = "Expense"

    @property
    def sign(self) -> int:
        return 1 if self is TransactionNature.INCOME else -1


class TransactionType(IntEnum):
    DEBIT = 1
    BOLETO = 2
    FINANCING = 3
    CREDIT = 4
    LOAN_RECEIPT = 5
    SALES = 6
    TED_RECEIPT = 7
    DOC_RECEIPT = 8
    RENT = 9

    @classmethod
    def from_code(cls, code: int) -> TransactionType:
        """Return the member for ``code``; any undefined code is an error, never a default."""

        # Booleans are ints; disallow them explicitly.
        if isinstance(code, bool) or not isinstance(code, int) or code not in _LABELS:
            raise ValidationError(f"Invalid transaction type: {code}")
        return cls(code)

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def nature(self) -> TransactionNature:
        return _NATURES[self]


_LABELS: dict[int, str] = {
    TransactionType.DEBIT: "Debit",
    TransactionType.BOLETO: "Boleto",
    TransactionType.FINANCING: "Financing",
    TransactionType.CREDIT: "Credit",
    TransactionType.LOAN_RECEIPT: "Loan Receipt",
    TransactionType.SALES: "Sales",
    TransactionType.TED_RECEIPT: "TED Receipt",
    TransactionType.DOC_RECEIPT: "DOC Receipt",
    TransactionType.RENT: "Rent",
}

_EXPENSE_TYPES = frozenset(
    {TransactionType.BOLETO, TransactionType.FINANCING, TransactionType.RENT}
)

_NATURES: dict[int, TransactionNature] = {
    t: (TransactionNature.EXPENSE if t in _EXPENSE_TYPES else TransactionNature.INCOME)
    for t in TransactionType
}


__all__ = ["TransactionNature", "TransactionType"]
