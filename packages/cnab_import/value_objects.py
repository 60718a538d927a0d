"""Validated value types carried by imported transactions.

``CPF``, ``CardNumber`` and ``Money`` are frozen dataclasses whose
``__post_init__`` enforces the structural invariant (length, character class,
sign). The classmethod constructors add normalization and, for ``CPF.create``,
the check-digit verification. An instance in memory is therefore always
well-formed, and it is known-valid whenever it came from a strict constructor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .errors import ArgumentError, FormatError, ValidationError

_NON_DIGITS = re.compile(r"[^0-9]")
_CARD_PUNCTUATION = re.compile(r"[\s.\-]")

CPF_LENGTH = 11
CARD_LENGTH = 12
CARD_MASK_GLYPH = "*"
MINOR_UNIT_SCALE = 100


def _require_text(raw: str | None, what: str) -> str:
    if raw is None or not str(raw).strip():
        raise ArgumentError(f"{what} cannot be null or empty")
    return str(raw)


def _check_digit(digits: str) -> int:
    """Modulo-11 check digit over ``digits`` with weights counting down to 2."""

    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def cpf_check_digits_match(digits: str) -> bool:
    """Return True when both trailing check digits of an 11-digit CPF are correct."""

    if len(digits) != CPF_LENGTH or not digits.isascii() or not digits.isdigit():
        return False
    if _check_digit(digits[:9]) != int(digits[9]):
        return False
    return _check_digit(digits[:10]) == int(digits[10])


@dataclass(frozen=True, slots=True)
class CPF:
    """Brazilian individual taxpayer id, stored as 11 ASCII digits."""

    value: str

    def __post_init__(self) -> None:
        if (
            not isinstance(self.value, str)
            or len(self.value) != CPF_LENGTH
            or _NON_DIGITS.search(self.value)
        ):
            raise ValidationError("CPF must have exactly 11 digits")

    @classmethod
    def create(cls, raw: str | None) -> CPF:
        """Normalize ``raw`` and verify it as a real CPF.

        Formatting characters are dropped first, so ``"111.444.777-35"`` and
        ``"11144477735"`` produce the same value. Sequences of one repeated
        digit pass the arithmetic but are rejected as obviously fake.
        """

        digits = _NON_DIGITS.sub("", _require_text(raw, "CPF"))
        if len(digits) != CPF_LENGTH:
            raise ValidationError("CPF must have exactly 11 digits")
        if len(set(digits)) == 1:
            raise ValidationError("CPF cannot have all same digits")
        if not cpf_check_digits_match(digits):
            raise ValidationError("Invalid CPF")
        return cls(digits)

    @classmethod
    def create_unchecked(cls, raw: str | None) -> CPF:
        """Normalize and length-check only; for trusted sources."""

        digits = _NON_DIGITS.sub("", _require_text(raw, "CPF"))
        if len(digits) != CPF_LENGTH:
            raise ValidationError("CPF must have exactly 11 digits")
        return cls(digits)

    def formatted(self) -> str:
        """Render as ``###.###.###-##``."""

        v = self.value
        return f"{v[:3]}.{v[3:6]}.{v[6:9]}-{v[9:]}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CardNumber:
    """Twelve card characters, each a digit or the ``*`` mask glyph."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _is_card_text(self.value):
            raise ValidationError(
                f"Card number must have exactly {CARD_LENGTH} characters "
                f"(digits or '{CARD_MASK_GLYPH}')"
            )

    @classmethod
    def create(cls, raw: str | None) -> CardNumber:
        cleaned = _CARD_PUNCTUATION.sub("", _require_text(raw, "Card number"))
        return cls(cleaned)

    def masked(self) -> str:
        """Only the last four characters stay visible, e.g. ``****-****-3153``."""

        return f"****-****-{self.value[8:]}"

    def grouped(self) -> str:
        """All twelve characters in 4-4-4 blocks, e.g. ``4753-****-3153``."""

        v = self.value
        return f"{v[:4]}-{v[4:8]}-{v[8:]}"

    def __str__(self) -> str:
        return self.value


def _is_card_text(value: str) -> bool:
    return len(value) == CARD_LENGTH and all(
        ch == CARD_MASK_GLYPH or ("0" <= ch <= "9") for ch in value
    )


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """Non-negative amount in integer minor units (cents)."""

    minor_units: int

    def __post_init__(self) -> None:
        # Booleans are ints; disallow them explicitly.
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise ValidationError("Money value must be an integer number of minor units")
        if self.minor_units < 0:
            raise ValidationError("Money value cannot be negative")

    @classmethod
    def from_minor_units(cls, value: int) -> Money:
        return cls(value)

    @classmethod
    def from_major_units(cls, value: Decimal | int | float | str) -> Money:
        """Convert a decimal amount, truncating anything below one cent.

        ``Money.from_major_units("123.456").minor_units == 12345``.
        """

        if isinstance(value, bool):
            raise FormatError("Money value must be numeric", field="amount", raw=str(value))
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise FormatError(
                f"Money value is not a number: {value!r}", field="amount", raw=str(value)
            ) from exc
        if not amount.is_finite():
            raise FormatError(
                f"Money value is not finite: {value!r}", field="amount", raw=str(value)
            )
        if amount < 0:
            raise ValidationError("Money value cannot be negative")
        # int() truncates toward zero, which is floor for non-negative amounts.
        return cls(int(amount * MINOR_UNIT_SCALE))

    def to_major_units(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-2)

    def __str__(self) -> str:
        return f"{self.to_major_units():.2f}"


__all__ = [
    "CARD_LENGTH",
    "CARD_MASK_GLYPH",
    "CPF",
    "CPF_LENGTH",
    "CardNumber",
    "MINOR_UNIT_SCALE",
    "Money",
    "cpf_check_digits_match",
]
