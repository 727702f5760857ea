"""
PostgreSQL connection for one request: connect, query, stream, transaction control.

No pooling: every request opens its own connection and releases it when done.
"""

from .connect import (
    Connection,
    ConnectionParams,
    DatabaseConnectionError,
    QueryError,
    connect,
    cursor_to_dicts,
)

__all__ = [
    "connect",
    "cursor_to_dicts",
    "Connection",
    "ConnectionParams",
    "DatabaseConnectionError",
    "QueryError",
]
