"""
Request protocol: stdin text -> one Request (single JSON) or many (NDJSON).

parse_input tries the whole text as one JSON document first. If that fails and
the text has more than one non-blank line, every line is parsed as its own
request. If neither works, the error of the single-document attempt is raised.
"""

import json
from enum import Enum
from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

# Top-level keys that belong to the engine (or the host tool invoking it),
# never to the SQL. Stripped from every item reported in an error record.
RESERVED_KEYS = frozenset(
    {
        "host",
        "port",
        "database",
        "user",
        "password",
        "action",
        "sql",
        "params",
        "items",
        "tx",
        "ignore",
        "inputStream",
        "aux4HomeDir",
        "configDir",
        "packageDir",
        "query",
        "file",
    }
)


class RequestParseError(ValueError):
    """Raised when stdin does not hold a valid request (or NDJSON requests)."""

    pass


class ActionEnum(str, Enum):
    """What to do with a request's SQL."""

    EXECUTE = "execute"
    EXECUTE_BATCH = "executeBatch"
    STREAM = "stream"
    STREAM_BATCH = "streamBatch"


class Request(BaseModel):
    """One execution unit. Unknown top-level keys are kept (never bound)."""

    model_config = ConfigDict(frozen=True, extra="allow")

    action: str
    sql: str
    params: dict[str, Any] = {}
    items: list[dict[str, Any]] | None = None
    tx: bool = False
    ignore: bool = False

    @field_validator("params", mode="before")
    @classmethod
    def _params_default(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_item(self) -> dict[str, Any]:
        """The request as an error-record item (reserved keys stripped)."""
        return strip_reserved(self.model_dump())


class ParsedInput(NamedTuple):
    mode: Literal["single", "ndjson"]
    requests: list[Request]


def strip_reserved(mapping: dict[str, Any] | None) -> dict[str, Any]:
    """Copy of *mapping* without engine-reserved keys."""
    if not mapping:
        return {}
    return {k: v for k, v in mapping.items() if k not in RESERVED_KEYS}


def validate_request(doc: Any) -> Request:
    """Check *doc* is an object with non-empty action and sql; build the Request."""
    if not isinstance(doc, dict):
        raise RequestParseError("Request must be an object")
    if not doc.get("action"):
        raise RequestParseError("Request must have an action property")
    if not doc.get("sql"):
        raise RequestParseError("Request must have an sql property")
    try:
        return Request.model_validate(doc)
    except ValidationError as e:
        messages = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err.get("loc", []))
            msg = err.get("msg", "Invalid value")
            messages.append(f"{loc}: {msg}" if loc else msg)
        raise RequestParseError("Invalid request: " + "; ".join(messages)) from e


def _parse_document(text: str) -> Request:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise RequestParseError(str(e)) from e
    return validate_request(doc)


def parse_input(text: str) -> ParsedInput:
    """
    Parse trimmed stdin *text* into requests.

    Raises RequestParseError with the single-document failure message when
    neither the single nor the NDJSON reading works.
    """
    try:
        return ParsedInput(mode="single", requests=[_parse_document(text)])
    except RequestParseError:
        lines = [line.strip() for line in text.split("\n") if line.strip()]
        requests = _parse_lines(lines) if len(lines) > 1 else None
        if requests is None:
            raise
        return ParsedInput(mode="ndjson", requests=requests)


def _parse_lines(lines: list[str]) -> list[Request] | None:
    """Every line as a request, or None if any line is not one."""
    try:
        return [_parse_document(line) for line in lines]
    except RequestParseError:
        return None
