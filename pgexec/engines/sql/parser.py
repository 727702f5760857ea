"""
Named-parameter translation: ``:name`` -> ``$n``.

``compile_template`` scans the SQL once and records parameter names in first
occurrence order; ``CompiledTemplate.bind`` turns a params mapping into the
positional value list. Repeated names reuse their position.

Not parameters:
- ``::`` casts (``value::int``): a colon preceded by a colon never starts a name.
- anything inside single-quoted (``'10:30'``, ``E'it\\'s'``), double-quoted, or dollar-quoted
  (``$$...$$``, ``$tag$...$tag$``) literals, and ``--`` / ``/* */`` comments.
"""

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, NamedTuple

_NAME_CHARS = re.compile(r"[A-Za-z0-9_]+")
_DOLLAR_TAG = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")

_CACHE_MAX_SIZE = 512


class BoundQuery(NamedTuple):
    sql: str
    values: list[Any]
    names: list[str]


class CompiledTemplate(NamedTuple):
    """Positional SQL plus the ordered, de-duplicated parameter names."""

    sql: str
    names: tuple[str, ...]

    def bind(self, params: Mapping[str, Any] | None) -> list[Any]:
        """Values in position order; names missing from *params* bind to None."""
        src = params or {}
        return [src.get(name) for name in self.names]


def _is_escape_string(sql: str, i: int) -> bool:
    """True if the quote at *i* opens an ``E'...'`` literal (backslash escapes)."""
    if i == 0 or sql[i - 1] not in "Ee":
        return False
    # "LIKE'x'" ends in E but is a keyword followed by a plain literal.
    return i == 1 or not (sql[i - 2].isalnum() or sql[i - 2] in "_$")


def _skip_quoted(sql: str, i: int) -> int:
    """Return the index just past the literal / comment starting at *i*, or *i*."""
    length = len(sql)
    ch = sql[i]

    if ch in ("'", '"'):
        quote = ch
        backslash_escapes = quote == "'" and _is_escape_string(sql, i)
        i += 1
        while i < length:
            c = sql[i]
            if backslash_escapes and c == "\\":
                i += 2
                continue
            if c == quote:
                if i + 1 < length and sql[i + 1] == quote:
                    i += 2
                    continue
                return i + 1
            i += 1
        return length

    if ch == "$":
        m = _DOLLAR_TAG.match(sql, i)
        if m is None:
            return i
        tag = m.group(0)
        end = sql.find(tag, m.end())
        return length if end == -1 else end + len(tag)

    if ch == "-" and sql.startswith("--", i):
        end = sql.find("\n", i)
        return length if end == -1 else end + 1

    if ch == "/" and sql.startswith("/*", i):
        end = sql.find("*/", i + 2)
        return length if end == -1 else end + 2

    return i


@lru_cache(maxsize=_CACHE_MAX_SIZE)
def compile_template(sql: str) -> CompiledTemplate:
    """Rewrite ``:name`` tokens in *sql* to ``$n`` and collect names in order."""
    out: list[str] = []
    positions: dict[str, int] = {}
    names: list[str] = []
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        skip_to = _skip_quoted(sql, i)
        if skip_to != i:
            out.append(sql[i:skip_to])
            i = skip_to
            continue

        if ch == ":":
            if i + 1 < length and sql[i + 1] == ":":
                out.append("::")
                i += 2
                continue
            m = _NAME_CHARS.match(sql, i + 1)
            if m is not None and (i == 0 or sql[i - 1] != ":"):
                name = m.group(0)
                if name not in positions:
                    names.append(name)
                    positions[name] = len(names)
                out.append(f"${positions[name]}")
                i = m.end()
                continue

        out.append(ch)
        i += 1

    return CompiledTemplate(sql="".join(out), names=tuple(names))


def translate(sql: str, params: Mapping[str, Any] | None = None) -> BoundQuery:
    """Translate *sql* with *params* into positional SQL and its value list."""
    tpl = compile_template(sql)
    return BoundQuery(sql=tpl.sql, values=tpl.bind(params), names=list(tpl.names))


def parse_parameters(sql: str) -> list[str]:
    """Parameter names used in *sql*, in first-occurrence order."""
    return list(compile_template(sql).names)
