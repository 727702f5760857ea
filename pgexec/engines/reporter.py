"""
Output channels and outcomes.

Reporter writes success payloads (JSON arrays, the ``{"success": true, "count": n}``
summary, or one JSON row per line) to *out* and ErrorRecords to *err*.

Executors never exit the process: they return an Outcome and the dispatcher
turns the outcomes into an exit code.
"""

import json
import math
import sys
import uuid
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO


class Outcome(str, Enum):
    SUCCESS = "success"
    # Error reported on stderr, but the request asked to ignore it.
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


def policy(ignore: bool) -> Outcome:
    """Outcome of a reported error under the request's ignore flag."""
    return Outcome.RECOVERABLE if ignore else Outcome.FATAL


@dataclass(frozen=True)
class ErrorRecord:
    item: dict[str, Any] | None
    query: str
    error: str

    @classmethod
    def build(cls, item: dict[str, Any] | None, query: str | None, error: str) -> "ErrorRecord":
        return cls(item=item, query=query or "unknown", error=error)


def make_json_safe(obj: Any) -> Any:
    """Recursively convert non-JSON-serializable DB values to safe primitives.

    Handles: datetime, date, time, timedelta, Decimal, UUID, bytes, sets,
    and non-finite floats (written as null).
    Decimals become strings so numeric precision survives.
    """
    if isinstance(obj, float):
        # NaN and Infinity have no JSON form.
        return obj if math.isfinite(obj) else None
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(obj).hex()
    if isinstance(obj, dict):
        return {str(k): make_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [make_json_safe(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return [make_json_safe(item) for item in sorted(obj, key=str)]
    return str(obj)


def _dumps(obj: Any) -> str:
    return json.dumps(
        make_json_safe(obj), ensure_ascii=False, allow_nan=False, separators=(",", ":")
    )


class Reporter:
    """Writes payloads to *out* (stdout) and error records to *err* (stderr)."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self._out = out if out is not None else sys.stdout
        self._err = err if err is not None else sys.stderr

    def rows(self, rows: list[dict[str, Any]]) -> None:
        self._write(self._out, _dumps(rows))

    def row(self, row: dict[str, Any]) -> None:
        self._write(self._out, _dumps(row))

    def summary(self, count: int) -> None:
        self._write(self._out, _dumps({"success": True, "count": count}))

    def error(self, record: ErrorRecord) -> None:
        self._write(self._err, _dumps(asdict(record)))

    def errors(self, records: Iterable[ErrorRecord]) -> None:
        self._write(self._err, _dumps([asdict(r) for r in records]))

    @staticmethod
    def _write(stream: TextIO, line: str) -> None:
        stream.write(line + "\n")
        stream.flush()
