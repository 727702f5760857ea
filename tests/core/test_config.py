"""Tests for core.config Settings (PGEXEC_* environment)."""

import pytest

from pgexec.core.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PGEXEC_LOG_LEVEL", "PGEXEC_CONNECT_TIMEOUT", "PGEXEC_STATEMENT_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    s = Settings(_env_file=None)  # type: ignore[call-arg]
    assert s.LOG_LEVEL == "WARNING"
    assert s.CONNECT_TIMEOUT == 10
    assert s.STATEMENT_TIMEOUT is None
    assert s.APPLICATION_NAME == "pgexec"


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PGEXEC_LOG_LEVEL", "debug")
    monkeypatch.setenv("PGEXEC_CONNECT_TIMEOUT", "3")
    monkeypatch.setenv("PGEXEC_STATEMENT_TIMEOUT", "1.5")
    s = Settings(_env_file=None)  # type: ignore[call-arg]
    assert s.LOG_LEVEL == "debug"
    assert s.CONNECT_TIMEOUT == 3
    assert s.STATEMENT_TIMEOUT == 1.5


def test_empty_env_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PGEXEC_STATEMENT_TIMEOUT", "")
    s = Settings(_env_file=None)  # type: ignore[call-arg]
    assert s.STATEMENT_TIMEOUT is None
