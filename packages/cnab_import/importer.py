"""CNAB import orchestration.

Single pass over one file:

1. Decode every record (fatal on failure: one critical error, nothing staged).
2. Group records by store name, keeping first-seen order.
3. Per group, resolve the store by exact name, staging a new store or an
   owner-name change when needed. A failure here fails the whole group.
4. Per record, build a :class:`FinancialTransaction` and stage it. A failure
   here fails only that record; siblings continue.
5. Commit once, or roll back everything (stores included).

Commit policy
-------------
The run commits when at least one record succeeded **and** either no record
failed or the caller passed ``ignore_errors=True``. Every other outcome is
rolled back. ``ImportResult.is_success`` reports whether the commit happened.
With ``ignore_errors=True`` a store whose records all failed is still
committed alongside the other stores' transactions, because it was staged
before its records were processed.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import IO, Any

from .cancellation import CancellationToken
from .entities import FinancialTransaction, Store
from .errors import (
    CnabError,
    CriticalImportError,
    FormatError,
    ImportCancelledError,
)
from .ingest.adapters.cnab_fixed_width import decode_file
from .logging_setup import get_logger
from .models import DecodedLine, ImportResult
from .persistence import ImportRepository
from .transaction_types import TransactionType
from .value_objects import CPF, CardNumber, Money

_logger = get_logger("cnab_import.importer")

EMPTY_FILE_ERROR = "File is empty or contains no valid data"
CRITICAL_ERROR = "Critical error during import: {reason}"
LINE_ERROR = "Line {line}: Failed to create transaction - {reason}"
STORE_ERROR = "Store '{store}': {reason}"

_DATE_RE = re.compile(r"[0-9]{8}")
_TIME_RE = re.compile(r"[0-9]{6}")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


# ---- Record → entity ---------------------------------------------------------


def parse_date_time(date_raw: str, time_raw: str) -> tuple[dt.date, dt.time]:
    """Strictly parse ``yyyyMMdd`` and ``HHmmss``.

    ``strptime`` alone accepts single-digit months and hours, so the exact
    digit count is checked first.
    """

    if not _DATE_RE.fullmatch(date_raw or ""):
        raise FormatError(
            f"Invalid date '{date_raw}': expected yyyyMMdd", field="Date", raw=date_raw
        )
    if not _TIME_RE.fullmatch(time_raw or ""):
        raise FormatError(f"Invalid time '{time_raw}': expected HHmmss", field="Time", raw=time_raw)
    try:
        date = dt.datetime.strptime(date_raw, "%Y%m%d").date()
    except ValueError as exc:
        raise FormatError(
            f"Invalid date '{date_raw}': {exc}", field="Date", raw=date_raw
        ) from exc
    try:
        time = dt.datetime.strptime(time_raw, "%H%M%S").time()
    except ValueError as exc:
        raise FormatError(
            f"Invalid time '{time_raw}': {exc}", field="Time", raw=time_raw
        ) from exc
    return date, time


def build_transaction(
    line: DecodedLine,
    store: Store,
    *,
    created_at: dt.datetime | None = None,
) -> FinancialTransaction:
    """Validate ``line`` and build its transaction for ``store``.

    Every check runs before the entity exists, so a failing record never ends
    up attached to ``store.transactions``. The CPF column is trusted and only
    normalized and length-checked.
    """

    transaction_type = TransactionType.from_code(line.type_code)
    date, time = parse_date_time(line.date, line.time)
    amount = Money.from_minor_units(line.amount_cents)
    cpf = CPF.create_unchecked(line.cpf)
    card = CardNumber.create(line.card)

    return FinancialTransaction(
        type=transaction_type,
        date=date,
        time=time,
        amount=amount,
        cpf=cpf,
        card=card,
        store=store,
        created_at=created_at or _utcnow(),
    )


def group_by_store(lines: Iterable[DecodedLine]) -> dict[str, list[DecodedLine]]:
    """Partition records by exact store name.

    Dicts iterate in insertion order, so groups come out in first-seen order
    and each group keeps input order.
    """

    groups: dict[str, list[DecodedLine]] = {}
    for line in lines:
        groups.setdefault(line.store_name, []).append(line)
    return groups


# ---- Orchestrator --------------------------------------------------------------


@dataclass
class _RunState:
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    stores_created: int = 0
    stores_updated: int = 0


class CnabImporter:
    """Runs imports against one :class:`ImportRepository`.

    Not safe for overlapping runs that share a repository.
    """

    def __init__(
        self,
        repository: ImportRepository,
        *,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._clock = clock

    def import_file(
        self,
        stream: IO[Any],
        *,
        ignore_errors: bool = False,
        cancellation: CancellationToken | None = None,
        file_name: str | None = None,
    ) -> ImportResult:
        """Import one CNAB stream and report what happened.

        Raises ``ArgumentError`` for a missing or unreadable stream and
        ``ImportCancelledError`` when ``cancellation`` fires (after rolling
        back). Every other failure is reported inside the returned result.
        """

        token = cancellation or CancellationToken()
        label = file_name or "<stream>"
        _logger.info("import started: file=%s ignore_errors=%s", label, ignore_errors)

        records = decode_file(stream)
        try:
            lines = self._decode_all(records, token)
        except CriticalImportError as exc:
            _logger.error("import aborted: file=%s %s", label, exc)
            return ImportResult(errors=[str(exc)])

        if not lines:
            _logger.warning("import skipped: file=%s has no records", label)
            return ImportResult(errors=[EMPTY_FILE_ERROR])

        groups = group_by_store(lines)
        _logger.info("decoded %d record(s) for %d store(s)", len(lines), len(groups))

        state = _RunState()
        try:
            for store_name, group in groups.items():
                token.raise_if_cancelled()
                self._import_group(store_name, group, state)
        except ImportCancelledError:
            self._repository.rollback()
            _logger.warning("import cancelled: file=%s; staged writes rolled back", label)
            raise

        committed = self._finish(state, ignore_errors=ignore_errors)
        return ImportResult(
            total_lines=len(lines),
            succeeded_lines=state.succeeded,
            failed_lines=state.failed,
            errors=state.errors,
            is_success=committed,
            stores=list(groups),
            stores_created=state.stores_created,
            stores_updated=state.stores_updated,
        )

    # ---- phases ------------------------------------------------------------

    def _decode_all(
        self, records: Iterator[DecodedLine], token: CancellationToken
    ) -> list[DecodedLine]:
        lines: list[DecodedLine] = []
        token.raise_if_cancelled()
        try:
            for line in records:
                token.raise_if_cancelled()
                lines.append(line)
        except ImportCancelledError:
            raise
        except Exception as exc:
            # Any failure while reading records ends the run.
            raise CriticalImportError(CRITICAL_ERROR.format(reason=exc)) from exc
        return lines

    def _resolve_store(self, name: str, owner_name: str, state: _RunState) -> Store:
        store = self._repository.find_store_by_name(name)
        if store is None:
            store = Store(name=name, owner_name=owner_name)
            self._repository.create_store(store)
            state.stores_created += 1
            _logger.info("store created: %r (owner %r)", name, owner_name)
        elif store.owner_name != owner_name:
            _logger.info(
                "store owner updated: %r %r -> %r", name, store.owner_name, owner_name
            )
            self._repository.update_store_owner(store, owner_name)
            state.stores_updated += 1
        return store

    def _import_group(self, store_name: str, group: list[DecodedLine], state: _RunState) -> None:
        try:
            store = self._resolve_store(store_name, group[0].store_owner, state)
        except ImportCancelledError:
            raise
        except Exception as exc:
            # Persistence failures are scoped to the group; lines are not retried.
            state.errors.append(STORE_ERROR.format(store=store_name, reason=exc))
            state.failed += len(group)
            _logger.warning("store %r failed; %d line(s) skipped: %s", store_name, len(group), exc)
            return

        for line in group:
            try:
                transaction = build_transaction(line, store, created_at=self._clock())
            except CnabError as exc:
                self._record_line_failure(line, exc, state)
                continue
            try:
                self._repository.append_transaction(transaction)
            except Exception as exc:
                # Detach so the store's collection cascade cannot save it later.
                if transaction in store.transactions:
                    store.transactions.remove(transaction)
                self._record_line_failure(line, exc, state)
                continue
            state.succeeded += 1

    def _record_line_failure(self, line: DecodedLine, exc: Exception, state: _RunState) -> None:
        state.errors.append(LINE_ERROR.format(line=line.line_number, reason=exc))
        state.failed += 1
        _logger.warning("line %d (%s) rejected: %s", line.line_number, line.store_name, exc)

    def _finish(self, state: _RunState, *, ignore_errors: bool) -> bool:
        should_commit = state.succeeded > 0 and (state.failed == 0 or ignore_errors)
        if not should_commit:
            self._repository.rollback()
            _logger.info(
                "import rolled back: succeeded=%d failed=%d ignore_errors=%s",
                state.succeeded,
                state.failed,
                ignore_errors,
            )
            return False
        try:
            changes = self._repository.commit()
        except Exception as exc:
            self._repository.rollback()
            state.errors.append(CRITICAL_ERROR.format(reason=f"commit failed - {exc}"))
            _logger.error("commit failed; staged writes rolled back: %s", exc)
            return False
        _logger.info(
            "import committed: %d change(s), succeeded=%d failed=%d",
            changes,
            state.succeeded,
            state.failed,
        )
        return True


def import_cnab_file(
    stream: IO[Any],
    *,
    repository: ImportRepository,
    ignore_errors: bool = False,
    cancellation: CancellationToken | None = None,
    file_name: str | None = None,
) -> ImportResult:
    """Convenience wrapper around :meth:`CnabImporter.import_file`."""

    return CnabImporter(repository).import_file(
        stream,
        ignore_errors=ignore_errors,
        cancellation=cancellation,
        file_name=file_name,
    )


__all__ = [
    "CRITICAL_ERROR",
    "CnabImporter",
    "EMPTY_FILE_ERROR",
    "LINE_ERROR",
    "STORE_ERROR",
    "build_transaction",
    "group_by_store",
    "import_cnab_file",
    "parse_date_time",
]
