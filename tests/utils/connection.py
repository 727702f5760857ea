"""In-memory stand-in for pgexec.core.db.Connection (no database needed)."""

from collections.abc import Callable, Iterator
from typing import Any

from pgexec.core.db import QueryError

RowsFn = Callable[[str, list[Any]], list[dict[str, Any]]]
FailFn = Callable[[str, list[Any]], str | None]


class FakeConnection:
    """
    Records every call. ``rows`` builds the result of a statement from its
    (sql, values); ``fail`` returns an error message to make it fail.

    Statements run outside BEGIN are applied immediately; inside a
    transaction they are applied on COMMIT and dropped on ROLLBACK, so
    ``applied`` shows what the database would keep.
    """

    def __init__(
        self,
        rows: RowsFn | None = None,
        fail: FailFn | None = None,
        fail_commands: set[str] | frozenset[str] = frozenset(),
    ) -> None:
        self._rows = rows or (lambda sql, values: [])
        self._fail = fail or (lambda sql, values: None)
        self._fail_commands = fail_commands
        self._pending: list[list[Any]] | None = None
        self.calls: list[tuple[Any, ...]] = []
        self.applied: list[list[Any]] = []
        self.released = False

    def query(self, sql: str, values: list[Any] | None = None) -> list[dict[str, Any]]:
        values = list(values or [])
        self.calls.append(("query", sql, values))
        return self._run(sql, values)

    def stream(self, sql: str, values: list[Any] | None = None) -> Iterator[dict[str, Any]]:
        values = list(values or [])
        self.calls.append(("stream", sql, values))
        yield from self._run(sql, values)

    def begin(self) -> None:
        self._command("begin")
        self._pending = []

    def commit(self) -> None:
        self._command("commit")
        self.applied.extend(self._pending or [])
        self._pending = None

    def rollback(self) -> None:
        self._pending = None
        self._command("rollback")

    def release(self) -> None:
        self.calls.append(("release",))
        self.released = True

    @property
    def commands(self) -> list[str]:
        return [c[0] for c in self.calls]

    def _command(self, name: str) -> None:
        self.calls.append((name,))
        if name in self._fail_commands:
            raise QueryError(f"{name} failed")

    def _run(self, sql: str, values: list[Any]) -> list[dict[str, Any]]:
        message = self._fail(sql, values)
        if message:
            raise QueryError(message)
        if self._pending is not None:
            self._pending.append(values)
        else:
            self.applied.append(values)
        return self._rows(sql, values)
