"""
Named-parameter SQL: ``:name`` templates rewritten to PostgreSQL ``$n`` placeholders.

Exports: translate, compile_template, parse_parameters.
"""

from pgexec.engines.sql.parser import (
    BoundQuery,
    CompiledTemplate,
    compile_template,
    parse_parameters,
    translate,
)

__all__ = [
    "BoundQuery",
    "CompiledTemplate",
    "compile_template",
    "parse_parameters",
    "translate",
]
