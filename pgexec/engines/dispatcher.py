"""
Top-level control: stdin text -> requests -> executors -> exit code.

Each request gets its own connection, released on every path. The first FATAL
outcome stops the run (remaining NDJSON requests are not executed).
"""

import logging
from collections.abc import Callable

from pgexec.core.db import Connection, DatabaseConnectionError
from pgexec.engines.batch import BatchExecutor
from pgexec.engines.protocol import ActionEnum, Request, RequestParseError, parse_input
from pgexec.engines.reporter import ErrorRecord, Outcome, Reporter
from pgexec.engines.single import SingleExecutor

_log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_EMPTY_INPUT = 4


class RequestDispatcher:
    """
    run(text or UTF-8 bytes) -> exit code

    - empty input: EXIT_EMPTY_INPUT, nothing written
    - unparseable input (including invalid UTF-8): one error record, EXIT_FAILURE
    - otherwise EXIT_FAILURE on the first FATAL outcome, else EXIT_OK
    """

    def __init__(
        self,
        connect: Callable[[], Connection],
        reporter: Reporter | None = None,
    ) -> None:
        self._connect = connect
        self._reporter = reporter if reporter is not None else Reporter()
        single = SingleExecutor(self._reporter)
        batch = BatchExecutor(self._reporter)
        self._handlers: dict[ActionEnum, Callable[[Connection, Request], Outcome]] = {
            ActionEnum.EXECUTE: single.execute,
            ActionEnum.STREAM: single.stream,
            ActionEnum.EXECUTE_BATCH: batch.execute_batch,
            ActionEnum.STREAM_BATCH: batch.stream_batch,
        }

    def run(self, data: str | bytes) -> int:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                _log.debug("Input is not UTF-8: %s", e)
                self._input_error(f"input is not valid UTF-8: {e}")
                return EXIT_FAILURE

        trimmed = data.strip()
        if not trimmed:
            _log.debug("No input")
            return EXIT_EMPTY_INPUT

        try:
            parsed = parse_input(trimmed)
        except RequestParseError as e:
            _log.debug("Input rejected: %s", e)
            self._input_error(str(e))
            return EXIT_FAILURE

        _log.debug("Parsed %d request(s) in %s mode", len(parsed.requests), parsed.mode)
        for index, request in enumerate(parsed.requests):
            outcome = self.dispatch(request)
            _log.debug("Request %d (%s): %s", index, request.action, outcome.value)
            if outcome is Outcome.FATAL:
                return EXIT_FAILURE
        return EXIT_OK

    def dispatch(self, request: Request) -> Outcome:
        """Open a connection, run *request* by action, always release the connection."""
        try:
            conn = self._connect()
        except DatabaseConnectionError as e:
            _log.warning("Database connection failed: %s", e)
            self._report(request, str(e))
            return Outcome.FATAL

        try:
            try:
                action = ActionEnum(request.action)
            except ValueError:
                self._report(request, f"Unknown action: {request.action}")
                return Outcome.FATAL
            return self._handlers[action](conn, request)
        except Exception as e:
            _log.exception("Request failed: action=%s", request.action)
            self._report(request, str(e))
            return Outcome.FATAL
        finally:
            conn.release()

    def _report(self, request: Request, message: str) -> None:
        self._reporter.error(ErrorRecord.build(request.to_item(), request.sql, message))

    def _input_error(self, message: str) -> None:
        self._reporter.error(
            ErrorRecord.build(None, "unknown", f"Error parsing JSON input: {message}")
        )
