from __future__ import annotations

from contextlib import suppress
from enum import Enum
from typing import Any

import psycopg

from ..core.errors import (
    CommitError,
    QueryExecutionError,
    TransactionStartError,
    describe_db_error,
)
from ..core.logging import get_logger
from ..models.deletion import DeletionOutcome, DeletionRequest, TransactionState
from ..utils.identifiers import quote_identifier


class Step(str, Enum):
    BEGIN_TRANSACTION = "begin_transaction"
    EXECUTE_BATCH = "execute_batch"
    CHECK_CONTINUATION = "check_continuation"
    COMMIT = "commit"
    FINISHED = "finished"


def build_delete_statement(request: DeletionRequest) -> tuple[str, tuple[Any, ...]]:
    """Build the DELETE statement and its bound parameters.

    Identifiers are validated and quoted into the text; the threshold (and the
    batch size, when batching) are always bound parameters. PostgreSQL has no
    ``DELETE ... LIMIT``, so a batch limits a sub-select of row addresses
    instead, oldest rows first. A ctid is only unique within one partition, so
    rows are matched on (tableoid, ctid) and the predicate is repeated outside.
    """
    table = quote_identifier(request.table_name, "table name")
    column = quote_identifier(request.column, "column name")

    if not request.batched:
        return f"DELETE FROM {table} WHERE {column} < %s::date", (request.threshold,)

    statement = (
        f"DELETE FROM {table} WHERE {column} < %s::date AND (tableoid, ctid) IN ("
        f"SELECT tableoid, ctid FROM {table} WHERE {column} < %s::date "
        f"ORDER BY {column} LIMIT %s)"
    )
    return statement, (request.threshold, request.threshold, request.batch_size)


class BatchDeleter:
    """Runs one request inside a single all-or-nothing transaction.

    The connection must be in autocommit mode so that BEGIN, COMMIT and
    ROLLBACK are the only transaction boundaries. The deleter never closes
    the connection; that is the caller's job on every exit path.
    """

    def __init__(self, connection: psycopg.Connection) -> None:
        self._conn = connection
        self._logger = get_logger(__name__)
        self.transaction_state = TransactionState.NOT_STARTED

    def run(self, request: DeletionRequest) -> DeletionOutcome:
        statement, params = build_delete_statement(request)

        total_rows = 0
        iterations = 0
        last_affected = 0

        step = Step.BEGIN_TRANSACTION
        while step is not Step.FINISHED:
            if step is Step.BEGIN_TRANSACTION:
                self._begin()
                step = Step.EXECUTE_BATCH

            elif step is Step.EXECUTE_BATCH:
                try:
                    last_affected = self._execute(statement, params)
                except QueryExecutionError:
                    self._rollback()
                    raise
                iterations += 1
                total_rows += last_affected
                self._logger.info(
                    "Rows deleted in this batch.",
                    context=f"Batch deleted rows: {last_affected}",
                )
                step = Step.CHECK_CONTINUATION

            elif step is Step.CHECK_CONTINUATION:
                if should_continue(request, last_affected):
                    step = Step.EXECUTE_BATCH
                else:
                    step = Step.COMMIT

            elif step is Step.COMMIT:
                self._logger.info(
                    "Deletion completed.", context=f"Total rows deleted: {total_rows}"
                )
                self._commit()
                step = Step.FINISHED

        return DeletionOutcome(total_rows_deleted=total_rows, iterations=iterations)

    def _begin(self) -> None:
        try:
            self._conn.execute("BEGIN")
        except psycopg.Error as exc:
            raise TransactionStartError(describe_db_error(exc)) from exc
        self.transaction_state = TransactionState.ACTIVE
        self._logger.info("Transaction started.")

    def _execute(self, statement: str, params: tuple[Any, ...]) -> int:
        try:
            cur = self._conn.execute(statement, params)
        except psycopg.Error as exc:
            raise QueryExecutionError(describe_db_error(exc)) from exc
        return max(cur.rowcount, 0)

    def _rollback(self) -> None:
        # Best effort: the server discards the transaction on disconnect anyway
        with suppress(psycopg.Error):
            self._conn.execute("ROLLBACK")
        self.transaction_state = TransactionState.ROLLED_BACK

    def _commit(self) -> None:
        # No retry and no rollback on failure; teardown abandons the transaction
        try:
            self._conn.execute("COMMIT")
        except psycopg.Error as exc:
            raise CommitError(describe_db_error(exc)) from exc
        self.transaction_state = TransactionState.COMMITTED
        self._logger.info("Transaction committed successfully.")


def should_continue(request: DeletionRequest, last_affected: int) -> bool:
    """Unbatched runs stop after one statement; batched runs stop on zero rows."""
    if not request.batched:
        return False
    return last_affected > 0
