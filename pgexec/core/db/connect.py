"""
PostgreSQL connection helpers.

Uses psycopg 3 with ``RawCursor`` so SQL keeps PostgreSQL native ``$1..$n``
placeholders. Connections run in autocommit mode; transactions are opened
explicitly with ``begin()`` / ``commit()`` / ``rollback()``.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import psycopg
from psycopg.types.json import Jsonb
from pydantic import BaseModel, Field

from pgexec.core.config import settings

_log = logging.getLogger(__name__)


class DatabaseConnectionError(ConnectionError):
    """Raised when a connection to the database cannot be opened."""

    pass


class QueryError(ValueError):
    """Raised when a statement (or transaction control command) fails."""

    pass


class ConnectionParams(BaseModel):
    """Connection coordinates, as given on the command line."""

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="postgres", min_length=1)
    user: str = Field(default="postgres", min_length=1)
    password: str = ""


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts (column order preserved)."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def _adapt(values: Sequence[Any]) -> list[Any]:
    """JSON objects in params are bound as jsonb; everything else as-is."""
    return [Jsonb(v) if isinstance(v, Mapping) else v for v in values]


class Connection:
    """Thin wrapper over a psycopg connection; driver errors become QueryError."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    def query(self, sql: str, values: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run one statement and return all rows (empty list for DML)."""
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, _adapt(values or ()))
                return cursor_to_dicts(cur)
        except psycopg.Error as e:
            raise QueryError(_message(e)) from e

    def stream(self, sql: str, values: Sequence[Any] | None = None) -> Iterator[dict[str, Any]]:
        """Yield rows one by one; statements without a result set (DML, DDL) yield nothing."""
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, _adapt(values or ()))
                if cur.description is None:
                    return
                names = [d[0] for d in cur.description]
                for row in cur:
                    yield dict(zip(names, row, strict=True))
        except psycopg.Error as e:
            raise QueryError(_message(e)) from e

    def begin(self) -> None:
        self._command("BEGIN")

    def commit(self) -> None:
        self._command("COMMIT")

    def rollback(self) -> None:
        self._command("ROLLBACK")

    def release(self) -> None:
        try:
            self._conn.close()
        except Exception:
            _log.debug("Closing connection failed", exc_info=True)

    def _command(self, sql: str) -> None:
        try:
            self._conn.execute(sql)
        except psycopg.Error as e:
            raise QueryError(_message(e)) from e


def _message(e: psycopg.Error) -> str:
    # psycopg appends LINE/HINT context after the primary message.
    diag = getattr(e, "diag", None)
    primary = getattr(diag, "message_primary", None) if diag is not None else None
    return primary or str(e).strip()


def connect(params: ConnectionParams) -> Connection:
    """
    Open a fresh connection for one request.

    Applies CONNECT_TIMEOUT and, when set, STATEMENT_TIMEOUT (seconds) as the
    session's statement_timeout.
    """
    try:
        conn = psycopg.connect(
            host=params.host,
            port=params.port,
            dbname=params.database,
            user=params.user,
            password=params.password,
            connect_timeout=settings.CONNECT_TIMEOUT,
            application_name=settings.APPLICATION_NAME,
            autocommit=True,
            cursor_factory=psycopg.RawCursor,
        )
    except psycopg.Error as e:
        raise DatabaseConnectionError(_message(e)) from e

    timeout_sec = settings.STATEMENT_TIMEOUT
    if timeout_sec is not None and timeout_sec > 0:
        timeout_ms = int(timeout_sec * 1000)
        try:
            conn.execute(f"SET statement_timeout = {timeout_ms}")
        except psycopg.Error as e:
            conn.close()
            raise DatabaseConnectionError(_message(e)) from e

    _log.debug("Connected to %s:%s/%s", params.host, params.port, params.database)
    return Connection(conn)
