"""
pgexec: run JSON / NDJSON SQL requests from stdin against PostgreSQL.

Named ``:param`` SQL is rewritten to ``$n`` placeholders, results go to stdout,
structured error records go to stderr.
"""

__version__ = "0.1.0"
