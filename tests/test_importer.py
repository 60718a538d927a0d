from __future__ import annotations

import datetime as dt
import io
import tempfile
from decimal import Decimal

import pytest

from cnab_import.cancellation import CancellationToken
from cnab_import.entities import Store
from cnab_import.errors import ArgumentError, FormatError, ImportCancelledError
from cnab_import.importer import (
    EMPTY_FILE_ERROR,
    CnabImporter,
    build_transaction,
    group_by_store,
    import_cnab_file,
    parse_date_time,
)
from cnab_import.ingest.adapters.cnab_fixed_width import decode_line
from cnab_import.transaction_types import TransactionType
from cnab_import.value_objects import Money

from tests.helpers.cnab import cnab_line, cnab_text, sample_file_lines
from tests.helpers.memory_repo import InMemoryImportRepository

FIXED_NOW = dt.datetime(2026, 1, 2, 3, 4, 5, tzinfo=dt.UTC)


def _run(text: str, repo: InMemoryImportRepository, **kw):
    importer = CnabImporter(repo, clock=lambda: FIXED_NOW)
    return importer.import_file(io.StringIO(text), **kw)


# ---- Happy path --------------------------------------------------------------


def test_import_valid_file_commits_everything() -> None:
    repo = InMemoryImportRepository()
    result = _run(cnab_text(*sample_file_lines()), repo)

    assert result.is_success
    assert result.total_lines == 3
    assert result.succeeded_lines == 3
    assert result.failed_lines == 0
    assert result.errors == []
    assert result.stores == ["BAR DO JOÃO", "LOJA DO Ó - MATRIZ"]
    assert result.stores_created == 2
    assert result.stores_updated == 0

    assert repo.commit_calls == 1
    assert repo.rollback_calls == 0
    assert set(repo.stores) == {"BAR DO JOÃO", "LOJA DO Ó - MATRIZ"}
    assert repo.stores["LOJA DO Ó - MATRIZ"].owner_name == "MARIA JOSEFINA"

    bar = repo.stores["BAR DO JOÃO"]
    assert [t.type for t in bar.transactions] == [TransactionType.FINANCING, TransactionType.DEBIT]
    # Financing (expense) 142.00, Debit (income) 152.00
    assert bar.total_balance() == Decimal("10.00")

    first = repo.transactions[0]
    assert first.date == dt.date(2019, 3, 1)
    assert first.time == dt.time(15, 34, 53)
    assert first.amount == Money(14200)
    assert first.cpf.value == "09620676017"
    assert first.card.masked() == "****-****-3153"
    assert first.created_at == FIXED_NOW
    assert first.store is bar


def test_import_result_is_json_serializable() -> None:
    repo = InMemoryImportRepository()
    result = import_cnab_file(io.StringIO(cnab_text(cnab_line())), repository=repo)
    payload = result.model_dump(mode="json")
    assert payload["is_success"] is True
    assert payload["stores"] == ["BAR DO JOÃO"]


def test_group_by_store_keeps_first_seen_order() -> None:
    lines = [decode_line(line, i) for i, line in enumerate(sample_file_lines(), start=1)]
    groups = group_by_store(lines)
    assert list(groups) == ["BAR DO JOÃO", "LOJA DO Ó - MATRIZ"]
    assert [d.line_number for d in groups["BAR DO JOÃO"]] == [1, 3]


# ---- Existing stores ----------------------------------------------------------


def test_existing_store_is_reused_and_owner_updated() -> None:
    existing = Store(name="BAR DO JOÃO", owner_name="OLD OWNER")
    repo = InMemoryImportRepository([existing])
    result = _run(cnab_text(cnab_line()), repo)

    assert result.is_success
    assert result.stores_created == 0
    assert result.stores_updated == 1
    assert repo.stores["BAR DO JOÃO"] is existing
    assert existing.owner_name == "JOÃO MACEDO"


def test_group_owner_comes_from_first_line() -> None:
    repo = InMemoryImportRepository()
    text = cnab_text(cnab_line(owner="FIRST"), cnab_line(owner="SECOND"))
    _run(text, repo)
    assert repo.stores["BAR DO JOÃO"].owner_name == "FIRST"


def test_rolled_back_run_restores_owner_name() -> None:
    existing = Store(name="BAR DO JOÃO", owner_name="OLD OWNER")
    repo = InMemoryImportRepository([existing])
    text = cnab_text(cnab_line(), cnab_line(type_code=0))
    result = _run(text, repo)
    assert not result.is_success
    assert existing.owner_name == "OLD OWNER"


# ---- Line failures and the commit policy ----------------------------------------


def _mixed_file() -> str:
    return cnab_text(
        cnab_line(),
        cnab_line(type_code=0),  # unknown type
        cnab_line(date="20191301"),  # month 13
        cnab_line(card="ABCD****3153"),
    )


def test_line_failures_roll_back_without_ignore_errors() -> None:
    repo = InMemoryImportRepository()
    result = _run(_mixed_file(), repo)

    assert not result.is_success
    assert result.total_lines == 4
    assert result.succeeded_lines == 1
    assert result.failed_lines == 3
    assert result.errors[0] == (
        "Line 2: Failed to create transaction - Invalid transaction type: 0"
    )
    assert result.errors[1].startswith("Line 3: Failed to create transaction - Invalid date")
    assert result.errors[2].startswith("Line 4: Failed to create transaction - Card number")
    assert repo.commit_calls == 0
    assert repo.rollback_calls == 1
    assert repo.stores == {}
    assert repo.transactions == []


def test_ignore_errors_commits_valid_lines() -> None:
    repo = InMemoryImportRepository()
    result = _run(_mixed_file(), repo, ignore_errors=True)

    assert result.is_success
    assert result.succeeded_lines == 1
    assert result.failed_lines == 3
    assert len(result.errors) == 3
    assert repo.commit_calls == 1
    assert len(repo.transactions) == 1


def test_ignore_errors_still_keeps_store_whose_lines_all_failed() -> None:
    repo = InMemoryImportRepository()
    text = cnab_text(cnab_line(), cnab_line(type_code=0, store="STORE2"))
    result = _run(text, repo, ignore_errors=True)

    assert result.is_success
    assert set(repo.stores) == {"BAR DO JOÃO", "STORE2"}
    assert repo.stores["STORE2"].transactions == []


def test_all_lines_failing_never_commits_even_with_ignore_errors() -> None:
    repo = InMemoryImportRepository()
    text = cnab_text(cnab_line(type_code=0), cnab_line(time="256000"))
    result = _run(text, repo, ignore_errors=True)

    assert not result.is_success
    assert result.succeeded_lines == 0
    assert result.failed_lines == 2
    assert repo.commit_calls == 0
    assert repo.stores == {}


def test_single_unknown_type_line_fails_without_commit() -> None:
    repo = InMemoryImportRepository()
    result = _run(cnab_text(cnab_line(type_code=0)), repo)

    assert not result.is_success
    assert result.total_lines == 1
    assert result.failed_lines == 1
    assert result.errors == ["Line 1: Failed to create transaction - Invalid transaction type: 0"]
    assert repo.commit_calls == 0


def test_failed_line_is_not_left_on_the_store() -> None:
    repo = InMemoryImportRepository()
    _run(cnab_text(cnab_line(), cnab_line(type_code=0)), repo, ignore_errors=True)
    assert len(repo.stores["BAR DO JOÃO"].transactions) == 1


def test_cpf_check_digits_are_not_enforced_on_import() -> None:
    repo = InMemoryImportRepository()
    result = _run(cnab_text(cnab_line(cpf="12345678900")), repo)
    assert result.is_success


def test_insert_failure_is_line_scoped() -> None:
    repo = InMemoryImportRepository()
    repo.fail_append_for_store.add("STORE2")
    text = cnab_text(cnab_line(), cnab_line(store="STORE2"))
    result = _run(text, repo, ignore_errors=True)

    assert result.succeeded_lines == 1
    assert result.errors == ["Line 2: Failed to create transaction - insert rejected"]
    assert repo.stores["STORE2"].transactions == []


# ---- Group failures ---------------------------------------------------------


def test_store_failure_fails_whole_group_and_siblings_continue() -> None:
    repo = InMemoryImportRepository()
    repo.failing_stores.add("BROKEN")
    text = cnab_text(
        cnab_line(store="BROKEN"),
        cnab_line(),
        cnab_line(store="BROKEN"),
    )
    result = _run(text, repo, ignore_errors=True)

    assert result.is_success
    assert result.succeeded_lines == 1
    assert result.failed_lines == 2
    assert result.errors == ["Store 'BROKEN': lookup failed for BROKEN"]
    assert "BROKEN" not in repo.stores


# ---- Fatal decode failures -----------------------------------------------------


def test_malformed_line_aborts_whole_import() -> None:
    repo = InMemoryImportRepository()
    text = cnab_text(cnab_line(), cnab_line()[:-3])
    result = _run(text, repo, ignore_errors=True)

    assert not result.is_success
    assert result.total_lines == 0
    assert result.succeeded_lines == 0
    assert result.failed_lines == 0
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Critical error during import: Error parsing line 2")
    assert repo.commit_calls == 0
    assert repo.stores == {}


def test_undecodable_bytes_are_a_critical_error() -> None:
    repo = InMemoryImportRepository()
    importer = CnabImporter(repo)
    result = importer.import_file(io.BytesIO(b"\xff\xfe" + b"x" * 79 + b"\n"))
    assert not result.is_success
    assert result.errors[0].startswith("Critical error during import:")


@pytest.mark.parametrize("mode", ["w+", "w+b"])
def test_spooled_upload_imports(mode: str) -> None:
    repo = InMemoryImportRepository()
    text = cnab_text(*sample_file_lines())
    with tempfile.SpooledTemporaryFile(mode=mode) as fh:
        fh.write(text.encode("utf-8") if "b" in mode else text)
        fh.seek(0)
        result = CnabImporter(repo).import_file(fh)
    assert result.is_success
    assert result.succeeded_lines == 3


def test_unexpected_stream_failure_is_a_critical_error() -> None:
    class BrokenStream(io.StringIO):
        def __iter__(self):
            raise AttributeError("no lines here")

    repo = InMemoryImportRepository()
    result = CnabImporter(repo).import_file(BrokenStream("x"))
    assert not result.is_success
    assert result.total_lines == 0
    assert result.errors == ["Critical error during import: no lines here"]
    assert repo.commit_calls == 0


@pytest.mark.parametrize("text", ["", "\n\n", "   \n"])
def test_empty_file(text: str) -> None:
    repo = InMemoryImportRepository()
    result = _run(text, repo)
    assert not result.is_success
    assert result.total_lines == 0
    assert result.errors == [EMPTY_FILE_ERROR]
    assert repo.commit_calls == 0


def test_missing_stream_raises() -> None:
    with pytest.raises(ArgumentError):
        CnabImporter(InMemoryImportRepository()).import_file(None)  # type: ignore[arg-type]


# ---- Commit failure ---------------------------------------------------------------


def test_commit_failure_is_reported_and_rolled_back() -> None:
    repo = InMemoryImportRepository()
    repo.commit_error = RuntimeError("disk full")
    result = _run(cnab_text(cnab_line()), repo)

    assert not result.is_success
    assert result.succeeded_lines == 1
    assert result.errors == ["Critical error during import: commit failed - disk full"]
    assert repo.rollback_calls == 1


# ---- Cancellation -------------------------------------------------------------------


def test_cancelled_before_start_raises_and_stages_nothing() -> None:
    repo = InMemoryImportRepository()
    token = CancellationToken()
    token.cancel()
    with pytest.raises(ImportCancelledError):
        _run(cnab_text(cnab_line()), repo, cancellation=token)
    assert repo.commit_calls == 0
    assert repo.stores == {}


def test_cancel_during_store_processing_rolls_back() -> None:
    token = CancellationToken()

    class _CancellingRepo(InMemoryImportRepository):
        def create_store(self, store: Store) -> None:
            super().create_store(store)
            token.cancel()

    repo = _CancellingRepo()
    text = cnab_text(cnab_line(), cnab_line(store="STORE2"))
    with pytest.raises(ImportCancelledError):
        _run(text, repo, cancellation=token)
    assert repo.rollback_calls == 1
    assert repo.commit_calls == 0
    assert repo.stores == {}


# ---- Record → entity --------------------------------------------------------------


def test_parse_date_time_is_strict() -> None:
    assert parse_date_time("20190301", "153453") == (dt.date(2019, 3, 1), dt.time(15, 34, 53))
    for date, time in [("2019031 ", "153453"), ("20190230", "153453"), ("20190301", "240000")]:
        with pytest.raises(FormatError):
            parse_date_time(date, time)


def test_build_transaction_maps_every_field() -> None:
    store = Store(name="BAR DO JOÃO", owner_name="JOÃO MACEDO")
    tx = build_transaction(decode_line(cnab_line(type_code=9)), store, created_at=FIXED_NOW)
    assert tx.type is TransactionType.RENT
    assert tx.description == "Rent"
    assert tx.signed_amount() == Decimal("-142.00")
    assert tx.occurred_at == dt.datetime(2019, 3, 1, 15, 34, 53)
    assert tx.store is store
