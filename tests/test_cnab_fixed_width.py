from __future__ import annotations

import dataclasses
import io
import tempfile

import pytest

from cnab_import.errors import ArgumentError, FormatError, LengthError, LineDecodeError
from cnab_import.ingest.adapters.cnab_fixed_width import (
    CNAB_LINE_LENGTH,
    FIELDS,
    decode_file,
    decode_line,
    encode_line,
)
from cnab_import.ingest.fields import FieldSpec, read_int, read_text

from tests.helpers.cnab import SAMPLE_LINE, cnab_line, cnab_text, sample_file_lines


# ---- Field codec -------------------------------------------------------------


def test_read_int_accepts_ascii_digits_with_leading_zeros() -> None:
    assert read_int("xx0000014200yy", 2, 10, "Amount") == 14200


@pytest.mark.parametrize("raw", [" 0000142", "-000142", "00001,42", "٠١٢٣"])
def test_read_int_rejects_non_ascii_digits(raw: str) -> None:
    with pytest.raises(FormatError) as ei:
        read_int(raw, 0, len(raw), "Amount")
    assert "Field 'Amount' contains invalid integer value" in str(ei.value)
    assert ei.value.field == "Amount"
    assert ei.value.raw == raw


def test_read_text_trims_but_preserves_inner_text() -> None:
    assert read_text("  LOJA DO Ó - MATRIZ ", 0, 21) == "LOJA DO Ó - MATRIZ"


def test_field_reads_past_end_are_format_errors() -> None:
    with pytest.raises(FormatError, match="truncated"):
        read_text("abc", 1, 5, "Store")


def test_field_specs_tile_the_record() -> None:
    pos = 0
    for spec in FIELDS:
        assert spec.start == pos
        pos = spec.end
    assert pos == CNAB_LINE_LENGTH
    assert FieldSpec("x", 3, 4).end == 7


# ---- Line decoder -------------------------------------------------------------


def test_decode_sample_line() -> None:
    d = decode_line(SAMPLE_LINE, 1)
    assert d.line_number == 1
    assert d.type_code == 3
    assert d.date == "20190301"
    assert d.amount_cents == 14200
    assert d.cpf == "09620676017"
    assert d.card == "4753****3153"
    assert d.time == "153453"
    assert d.store_owner == "JOÃO MACEDO"
    assert d.store_name == "BAR DO JOÃO"


def test_builder_reproduces_sample_line() -> None:
    assert cnab_line() == SAMPLE_LINE


@pytest.mark.parametrize("type_code", range(1, 10))
def test_encode_decode_round_trip_for_every_type(type_code: int) -> None:
    line = cnab_line(type_code=type_code, amount_cents=987654321)
    decoded = decode_line(line, 7)
    assert decoded.type_code == type_code
    assert decoded.amount_cents == 987654321
    assert encode_line(decoded) == line


@pytest.mark.parametrize("width", [0, 80, 82])
def test_decode_line_checks_width_before_fields(width: int) -> None:
    with pytest.raises(LengthError) as ei:
        decode_line("X" * width)
    assert ei.value.expected == 81
    assert ei.value.actual == width
    assert "must be exactly 81 characters" in str(ei.value)


def test_decode_line_rejects_none() -> None:
    with pytest.raises(ArgumentError):
        decode_line(None)  # type: ignore[arg-type]


def test_decode_line_names_first_bad_field() -> None:
    line = "X" + SAMPLE_LINE[1:]
    with pytest.raises(FormatError) as ei:
        decode_line(line)
    assert ei.value.field == "Type"

    line = SAMPLE_LINE[:9] + "00000142AB" + SAMPLE_LINE[19:]
    with pytest.raises(FormatError) as ei:
        decode_line(line)
    assert ei.value.field == "Amount"


def test_decode_line_keeps_unknown_type_codes_for_later_validation() -> None:
    assert decode_line(cnab_line(type_code=0)).type_code == 0


def test_encode_line_rejects_overflowing_fields() -> None:
    d = decode_line(SAMPLE_LINE)
    too_long = dataclasses.replace(d, store_name="X" * 20)
    with pytest.raises(FormatError, match="exceeds 19 characters"):
        encode_line(too_long)


# ---- File decoder -------------------------------------------------------------


def test_decode_file_text_stream_with_blank_lines_and_crlf() -> None:
    a, b, c = sample_file_lines()
    text = cnab_text(a, "", b, "   ", c, newline="\r\n")
    lines = list(decode_file(io.StringIO(text, newline="")))
    assert [d.line_number for d in lines] == [1, 3, 5]
    assert [d.store_name for d in lines] == ["BAR DO JOÃO", "LOJA DO Ó - MATRIZ", "BAR DO JOÃO"]


def test_decode_file_binary_stream_with_bom() -> None:
    raw = b"\xef\xbb\xbf" + cnab_text(*sample_file_lines()).encode("utf-8")
    stream = io.BytesIO(raw)
    lines = list(decode_file(stream))
    assert len(lines) == 3
    assert lines[0].type_code == 3
    # The caller's stream stays open.
    assert not stream.closed


def test_decode_file_text_stream_with_bom() -> None:
    text = "\ufeff" + cnab_text(*sample_file_lines())
    lines = list(decode_file(io.StringIO(text)))
    assert len(lines) == 3
    assert lines[0].type_code == 3


def test_decode_file_spooled_text_upload() -> None:
    with tempfile.SpooledTemporaryFile(mode="w+", encoding="utf-8") as fh:
        fh.write(cnab_text(*sample_file_lines()))
        fh.seek(0)
        lines = list(decode_file(fh))
    assert [d.line_number for d in lines] == [1, 2, 3]


def test_decode_file_without_trailing_newline() -> None:
    text = "\n".join(sample_file_lines())
    assert len(list(decode_file(io.StringIO(text)))) == 3


def test_decode_file_reports_failing_line_number() -> None:
    a, b, _ = sample_file_lines()
    text = cnab_text(a, "", b[:-1])
    it = decode_file(io.StringIO(text))
    assert next(it).line_number == 1
    with pytest.raises(LineDecodeError) as ei:
        next(it)
    assert ei.value.line_number == 3
    assert "Error parsing line 3" in str(ei.value)
    assert isinstance(ei.value.__cause__, LengthError)


def test_decode_file_empty_stream_yields_nothing() -> None:
    assert list(decode_file(io.StringIO(""))) == []
    assert list(decode_file(io.StringIO("\n \n"))) == []


def test_decode_file_validates_stream_eagerly() -> None:
    with pytest.raises(ArgumentError, match="stream cannot be None"):
        decode_file(None)  # type: ignore[arg-type]

    closed = io.StringIO("x")
    closed.close()
    with pytest.raises(ArgumentError, match="not readable"):
        decode_file(closed)
