"""
pgexec command line.

Usage:
  pgexec <host> <port> <database> <user> <password> < request.json

stdin holds one JSON request or NDJSON requests, e.g.
  {"action": "execute", "sql": "SELECT * FROM t WHERE id = :id", "params": {"id": 1}}

Exit codes: 0 ok, 1 error, 4 empty input. Log verbosity: PGEXEC_LOG_LEVEL.
"""

import argparse
import io
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from pgexec.core.config import settings
from pgexec.core.db import ConnectionParams, connect
from pgexec.engines import EXIT_FAILURE, RequestDispatcher

USAGE = "Usage: pgexec <host> <port> <database> <user> <password>"

_log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgexec",
        usage=USAGE.removeprefix("Usage: "),
        description="Run JSON / NDJSON SQL requests from stdin against PostgreSQL.",
    )
    parser.add_argument("host")
    parser.add_argument("port")
    parser.add_argument("database")
    parser.add_argument("user")
    parser.add_argument("password")
    return parser


def parse_connection_params(argv: Sequence[str]) -> ConnectionParams | None:
    """Connection coordinates from *argv*; None (after printing usage) if unusable."""
    if len(argv) < 5:
        print(USAGE, file=sys.stderr)
        return None
    # "--": a password may start with "-"
    args = build_parser().parse_args(["--", *argv[:5]])
    try:
        return ConnectionParams(
            host=args.host,
            port=args.port,
            database=args.database,
            user=args.user,
            password=args.password,
        )
    except ValidationError as e:
        print(f"{USAGE}\n{e}", file=sys.stderr)
        return None


def run(params: ConnectionParams, stdin_data: str | bytes) -> int:
    dispatcher = RequestDispatcher(lambda: connect(params))
    return dispatcher.run(stdin_data)


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    params = parse_connection_params(sys.argv[1:])
    if params is None:
        sys.exit(EXIT_FAILURE)
    for stream in (sys.stdout, sys.stderr):
        if isinstance(stream, io.TextIOWrapper):
            stream.reconfigure(encoding="utf-8")
    # Decoded strictly by the dispatcher; invalid UTF-8 is a parse error.
    stdin_data = sys.stdin.buffer.read()
    _log.debug("Read %d bytes from stdin", len(stdin_data))
    sys.exit(run(params, stdin_data))


if __name__ == "__main__":
    main()
