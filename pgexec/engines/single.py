"""
Single-statement actions: ``execute`` (rows as one JSON array) and ``stream``
(one JSON row per line, in result order).
"""

import logging

from pgexec.core.db import Connection, QueryError
from pgexec.engines.protocol import Request, strip_reserved
from pgexec.engines.reporter import ErrorRecord, Outcome, Reporter, policy
from pgexec.engines.sql import translate

_log = logging.getLogger(__name__)


class SingleExecutor:
    """Runs a request's SQL once with ``request.params``."""

    def __init__(self, reporter: Reporter) -> None:
        self._reporter = reporter

    def execute(self, conn: Connection, request: Request) -> Outcome:
        bound = translate(request.sql, request.params)
        _log.debug("execute: %s %r", bound.sql, bound.values)
        try:
            rows = conn.query(bound.sql, bound.values)
        except QueryError as e:
            return self._fail(request, e)
        self._reporter.rows(rows)
        return Outcome.SUCCESS

    def stream(self, conn: Connection, request: Request) -> Outcome:
        bound = translate(request.sql, request.params)
        _log.debug("stream: %s %r", bound.sql, bound.values)
        try:
            for row in conn.stream(bound.sql, bound.values):
                self._reporter.row(row)
        except QueryError as e:
            # Rows written before the failure stay written.
            return self._fail(request, e)
        return Outcome.SUCCESS

    def _fail(self, request: Request, e: QueryError) -> Outcome:
        _log.info("Statement failed: %s", e)
        self._reporter.error(
            ErrorRecord.build(strip_reserved(request.params), request.sql, str(e))
        )
        return policy(request.ignore)
