"""Adapter for the fixed-width CNAB transaction file.

Record layout (81 characters, zero-based half-open offsets)
-----------------------------------------------------------
======  ===========  =====  ======
Field   Name         Start  Length
======  ===========  =====  ======
Type    type code    0      1
Date    yyyyMMdd     1      8
Amount  cents        9      10
CPF     tax id       19     11
Card    card number  30     12
Time    HHmmss       42     6
Owner   store owner  48     14
Store   store name   62     19
======  ===========  =====  ======

There are no header, trailer or footer records. Blank lines anywhere in the
file are skipped but still count toward physical line numbers.

Contract
--------
- :func:`decode_line` maps one record to a :class:`DecodedLine`; it raises
  ``LengthError`` before touching any field when the width is wrong, and
  ``FormatError`` naming the first field that cannot be decoded.
- :func:`decode_file` validates the stream eagerly and returns a lazy,
  single-pass iterator. A failure on line N surfaces as ``LineDecodeError``
  carrying N, chained to the underlying field error.
- :func:`encode_line` is the inverse of :func:`decode_line`, used to build
  fixtures.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from typing import IO, Any

from ...errors import ArgumentError, CnabError, FormatError, LengthError, LineDecodeError
from ...models import DecodedLine
from ..fields import FieldSpec

CNAB_LINE_LENGTH = 81

TYPE = FieldSpec("Type", 0, 1)
DATE = FieldSpec("Date", 1, 8)
AMOUNT = FieldSpec("Amount", 9, 10)
CPF = FieldSpec("CPF", 19, 11)
CARD = FieldSpec("Card", 30, 12)
TIME = FieldSpec("Time", 42, 6)
STORE_OWNER = FieldSpec("StoreOwner", 48, 14)
STORE_NAME = FieldSpec("StoreName", 62, 19)

# Decoding order; also the left-to-right order of the record.
FIELDS: tuple[FieldSpec, ...] = (TYPE, DATE, AMOUNT, CPF, CARD, TIME, STORE_OWNER, STORE_NAME)


def decode_line(line: str, line_number: int = 0) -> DecodedLine:
    """Decode one 81-character record.

    ``line_number`` is informational; :func:`decode_file` passes the 1-based
    physical line number.
    """

    if line is None:
        raise ArgumentError("line cannot be None")
    if len(line) != CNAB_LINE_LENGTH:
        raise LengthError(CNAB_LINE_LENGTH, len(line))

    type_code = TYPE.read_int(line)
    date = DATE.read_text(line)
    amount_cents = AMOUNT.read_int(line)
    cpf = CPF.read_text(line)
    card = CARD.read_text(line)
    time = TIME.read_text(line)
    store_owner = STORE_OWNER.read_text(line)
    store_name = STORE_NAME.read_text(line)

    return DecodedLine(
        line_number=line_number,
        type_code=type_code,
        date=date,
        amount_cents=amount_cents,
        cpf=cpf,
        card=card,
        time=time,
        store_owner=store_owner,
        store_name=store_name,
    )


def _fit(spec: FieldSpec, value: str) -> str:
    if len(value) > spec.length:
        raise FormatError(
            f"Field '{spec.name}' value '{value}' exceeds {spec.length} characters",
            field=spec.name,
            raw=value,
        )
    return value.ljust(spec.length)


def encode_line(line: DecodedLine) -> str:
    """Render ``line`` back into an 81-character record (``line_number`` is dropped)."""

    if line.type_code < 0 or line.amount_cents < 0:
        raise FormatError("Numeric CNAB fields cannot be negative")
    parts = [
        _fit(TYPE, str(line.type_code)),
        _fit(DATE, line.date),
        _fit(AMOUNT, str(line.amount_cents).zfill(AMOUNT.length)),
        _fit(CPF, line.cpf),
        _fit(CARD, line.card),
        _fit(TIME, line.time),
        _fit(STORE_OWNER, line.store_owner),
        _fit(STORE_NAME, line.store_name),
    ]
    return "".join(parts)


def _is_readable(stream: Any) -> bool:
    if getattr(stream, "closed", False):
        return False
    readable = getattr(stream, "readable", None)
    if readable is None:
        return False
    try:
        return bool(readable())
    except ValueError:
        # I/O operation on closed file
        return False


def decode_file(stream: IO[Any], *, encoding: str = "utf-8-sig") -> Iterator[DecodedLine]:
    """Return a lazy iterator of decoded records from ``stream``.

    Text streams are read as-is. Binary streams are decoded with ``encoding``.
    A leading UTF-8 BOM is dropped either way. The caller keeps ownership of
    ``stream``; it is not closed here.

    Raises ``ArgumentError`` immediately when ``stream`` is missing or not
    open for reading.
    """

    if stream is None:
        raise ArgumentError("stream cannot be None")
    if not _is_readable(stream):
        raise ArgumentError("Stream is not readable")
    return _iter_decoded(stream, encoding)


def _is_text_stream(stream: IO[Any]) -> bool:
    # Upload containers such as SpooledTemporaryFile are not TextIOBase.
    if isinstance(stream, io.TextIOBase):
        return True
    return isinstance(stream.read(0), str)


def _iter_decoded(stream: IO[Any], encoding: str) -> Iterator[DecodedLine]:
    wrapped = not _is_text_stream(stream)
    text: IO[str] = io.TextIOWrapper(stream, encoding=encoding) if wrapped else stream
    try:
        for line_number, raw in enumerate(text, start=1):
            if line_number == 1:
                raw = raw.removeprefix("\ufeff")
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            try:
                decoded = decode_line(line, line_number)
            except CnabError as exc:
                raise LineDecodeError(line_number, exc) from exc
            yield decoded
    finally:
        if wrapped:
            # Leave the caller's binary stream open.
            text.detach()  # type: ignore[attr-defined]


__all__ = [
    "CNAB_LINE_LENGTH",
    "FIELDS",
    "decode_file",
    "decode_line",
    "encode_line",
]
