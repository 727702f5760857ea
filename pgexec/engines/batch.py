"""
Batch actions: run one SQL template once per entry of ``request.items``.

``executeBatch``
- tx: BEGIN, run items in order, ROLLBACK on the first failure (whatever
  ``ignore`` says), else COMMIT and write all rows (or the count summary).
- no tx, no ignore: run every item, collect rows and errors; any error means
  the error array is written and the rows are not.
- no tx, ignore: each item's rows are written as soon as the item succeeds;
  errors are written together at the end and do not fail the process.

``streamBatch``
  Same ordering and transaction rules, but rows are written one per line and
  each failing item's record is written when it fails. Rows streamed before a
  rollback are not retracted.
"""

import logging
from typing import Any

from pgexec.core.db import Connection, QueryError
from pgexec.engines.protocol import Request, strip_reserved
from pgexec.engines.reporter import ErrorRecord, Outcome, Reporter, policy
from pgexec.engines.sql import CompiledTemplate, compile_template

_log = logging.getLogger(__name__)


class BatchExecutor:
    """Runs ``request.sql`` for each of ``request.items``, strictly in order."""

    def __init__(self, reporter: Reporter) -> None:
        self._reporter = reporter

    # ------------------------------------------------------------------
    # executeBatch
    # ------------------------------------------------------------------

    def execute_batch(self, conn: Connection, request: Request) -> Outcome:
        if request.items is None:
            return self._missing_items(request, "executeBatch")
        tpl = compile_template(request.sql)
        if request.tx:
            return self._execute_in_transaction(conn, request, tpl, request.items)
        return self._execute_independent(conn, request, tpl, request.items)

    def _execute_in_transaction(
        self,
        conn: Connection,
        request: Request,
        tpl: CompiledTemplate,
        items: list[dict[str, Any]],
    ) -> Outcome:
        try:
            conn.begin()
        except QueryError as e:
            return self._transaction_failed(request, e, as_list=True)

        rows: list[dict[str, Any]] = []
        for index, item in enumerate(items):
            try:
                rows.extend(conn.query(tpl.sql, tpl.bind(item)))
            except QueryError as e:
                _log.info("Batch item %d failed, rolling back: %s", index, e)
                self._rollback(conn)
                self._reporter.errors([self._item_error(request, item, e)])
                return policy(request.ignore)

        try:
            conn.commit()
        except QueryError as e:
            self._rollback(conn)
            return self._transaction_failed(request, e, as_list=True)

        self._write_result(rows, len(items))
        return Outcome.SUCCESS

    def _execute_independent(
        self,
        conn: Connection,
        request: Request,
        tpl: CompiledTemplate,
        items: list[dict[str, Any]],
    ) -> Outcome:
        rows: list[dict[str, Any]] = []
        errors: list[ErrorRecord] = []
        produced = False

        for index, item in enumerate(items):
            try:
                item_rows = conn.query(tpl.sql, tpl.bind(item))
            except QueryError as e:
                _log.info("Batch item %d failed: %s", index, e)
                errors.append(self._item_error(request, item, e))
                continue
            if not item_rows:
                continue
            produced = True
            if request.ignore:
                self._reporter.rows(item_rows)
            else:
                rows.extend(item_rows)

        if errors:
            self._reporter.errors(errors)
            return policy(request.ignore)

        if request.ignore:
            if not produced:
                self._reporter.summary(len(items))
        else:
            self._write_result(rows, len(items))
        return Outcome.SUCCESS

    # ------------------------------------------------------------------
    # streamBatch
    # ------------------------------------------------------------------

    def stream_batch(self, conn: Connection, request: Request) -> Outcome:
        if request.items is None:
            return self._missing_items(request, "streamBatch")
        tpl = compile_template(request.sql)
        items = request.items

        if not request.tx:
            failed = False
            for item in items:
                if not self._stream_item(conn, request, tpl, item):
                    failed = True
            return policy(request.ignore) if failed else Outcome.SUCCESS

        try:
            conn.begin()
        except QueryError as e:
            return self._transaction_failed(request, e, as_list=False)

        for item in items:
            if not self._stream_item(conn, request, tpl, item):
                self._rollback(conn)
                return policy(request.ignore)

        try:
            conn.commit()
        except QueryError as e:
            self._rollback(conn)
            return self._transaction_failed(request, e, as_list=False)
        return Outcome.SUCCESS

    def _stream_item(
        self,
        conn: Connection,
        request: Request,
        tpl: CompiledTemplate,
        item: dict[str, Any],
    ) -> bool:
        """Write the item's rows one per line; on failure write its record. True if ok."""
        try:
            for row in conn.stream(tpl.sql, tpl.bind(item)):
                self._reporter.row(row)
        except QueryError as e:
            _log.info("Stream batch item failed: %s", e)
            self._reporter.error(self._item_error(request, item, e))
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_result(self, rows: list[dict[str, Any]], count: int) -> None:
        if rows:
            self._reporter.rows(rows)
        else:
            self._reporter.summary(count)

    @staticmethod
    def _item_error(request: Request, item: dict[str, Any], e: QueryError) -> ErrorRecord:
        return ErrorRecord.build(strip_reserved(item), request.sql, str(e))

    def _transaction_failed(self, request: Request, e: QueryError, *, as_list: bool) -> Outcome:
        """BEGIN / COMMIT itself failed: not scoped to any item."""
        _log.warning("Transaction control failed: %s", e)
        record = ErrorRecord.build(None, request.sql, str(e))
        if as_list:
            self._reporter.errors([record])
        else:
            self._reporter.error(record)
        return policy(request.ignore)

    def _missing_items(self, request: Request, action: str) -> Outcome:
        self._reporter.error(
            ErrorRecord.build(
                request.to_item(),
                request.sql,
                f"Request must have an items property for action {action}",
            )
        )
        return Outcome.FATAL

    @staticmethod
    def _rollback(conn: Connection) -> None:
        try:
            conn.rollback()
        except QueryError:
            # The triggering error is what gets reported.
            _log.debug("Rollback failed", exc_info=True)
