"""Data models exchanged between the decoder, the importer and callers.

``DecodedLine`` is the raw, positionally decoded record: primitives only, no
domain validation. The pydantic models are the result/DTO shapes handed to
the transport layer (CLI, HTTP) and serialized as JSON there.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Decoder output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DecodedLine:
    """One decoded CNAB record.

    Attributes
    ----------
    line_number:
        1-based physical line number in the source (blank lines count).
    type_code:
        Transaction type column; not yet checked against the 9 known codes.
    date:
        Raw ``yyyyMMdd`` string, parsed later by the importer.
    amount_cents:
        Amount in minor units.
    cpf:
        Raw CPF column (11 characters), validated later.
    card:
        Raw card column (12 characters; digits or ``*``).
    time:
        Raw ``HHmmss`` string.
    store_owner / store_name:
        Trimmed text columns. ``store_name`` is the grouping key.
    """

    line_number: int
    type_code: int
    date: str
    amount_cents: int
    cpf: str
    card: str
    time: str
    store_owner: str
    store_name: str


# ---------------------------------------------------------------------------
# Import result
# ---------------------------------------------------------------------------


class ImportResult(BaseModel):
    """Outcome of one import run.

    ``is_success`` is True exactly when the run committed its staged writes.
    ``stores`` lists distinct store names in first-seen input order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_lines: int = 0
    succeeded_lines: int = 0
    failed_lines: int = 0
    errors: list[str] = Field(default_factory=list)
    is_success: bool = False
    stores: list[str] = Field(default_factory=list)
    stores_created: int = 0
    stores_updated: int = 0

    @model_validator(mode="after")
    def _counts_are_consistent(self) -> ImportResult:
        if min(self.total_lines, self.succeeded_lines, self.failed_lines) < 0:
            raise ValueError("line counts must be non-negative")
        if self.succeeded_lines + self.failed_lines > self.total_lines:
            raise ValueError("succeeded_lines + failed_lines cannot exceed total_lines")
        return self


# ---------------------------------------------------------------------------
# Store balance listing
# ---------------------------------------------------------------------------


class TransactionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    description: str
    nature: str
    occurred_at: datetime
    signed_amount: Decimal
    cpf: str
    card_number: str
    created_at: datetime


class StoreSummary(BaseModel):
    """A store with its transactions (newest first) and signed balance."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    owner_name: str
    transactions: list[TransactionSummary] = Field(default_factory=list)
    total_balance: Decimal = Decimal("0.00")


__all__ = [
    "DecodedLine",
    "ImportResult",
    "StoreSummary",
    "TransactionSummary",
]
