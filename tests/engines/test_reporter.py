"""Unit tests for engines.reporter: output channels, JSON safety, outcome policy."""

import json
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from pgexec.engines.reporter import ErrorRecord, Outcome, make_json_safe, policy
from tests.utils.output import CapturedReporter


def test_policy() -> None:
    assert policy(True) is Outcome.RECOVERABLE
    assert policy(False) is Outcome.FATAL


def test_error_record_build_defaults_query() -> None:
    rec = ErrorRecord.build(None, None, "boom")
    assert rec == ErrorRecord(item=None, query="unknown", error="boom")
    assert ErrorRecord.build({}, "SELECT 1", "x").item == {}


def test_rows_written_as_one_array_line() -> None:
    rep = CapturedReporter()
    rep.rows([{"a": 1}, {"a": 2}])
    assert rep.out.getvalue() == '[{"a":1},{"a":2}]\n'
    assert rep.err.getvalue() == ""


def test_row_written_one_per_line() -> None:
    rep = CapturedReporter()
    rep.row({"a": 1})
    rep.row({"a": 2})
    assert rep.out_lines() == [{"a": 1}, {"a": 2}]


def test_summary() -> None:
    rep = CapturedReporter()
    rep.summary(3)
    assert rep.out_lines() == [{"success": True, "count": 3}]


def test_error_single_object_on_err_channel() -> None:
    rep = CapturedReporter()
    rep.error(ErrorRecord.build({"id": 1}, "SELECT :id", "bad"))
    assert rep.out.getvalue() == ""
    assert rep.err_lines() == [{"item": {"id": 1}, "query": "SELECT :id", "error": "bad"}]


def test_errors_array_on_err_channel() -> None:
    rep = CapturedReporter()
    rep.errors(
        [
            ErrorRecord.build({"id": 1}, "q", "e1"),
            ErrorRecord.build(None, "q", "e2"),
        ]
    )
    assert rep.err_lines() == [
        [
            {"item": {"id": 1}, "query": "q", "error": "e1"},
            {"item": None, "query": "q", "error": "e2"},
        ]
    ]


def test_column_order_preserved() -> None:
    rep = CapturedReporter()
    rep.row({"z": 1, "a": 2, "m": 3})
    assert rep.out.getvalue() == '{"z":1,"a":2,"m":3}\n'


def test_non_ascii_kept() -> None:
    rep = CapturedReporter()
    rep.row({"name": "Zoë"})
    assert rep.out.getvalue() == '{"name":"Zoë"}\n'


class TestMakeJsonSafe:
    def test_primitives_unchanged(self) -> None:
        assert make_json_safe([1, 1.5, "x", True, None]) == [1, 1.5, "x", True, None]

    def test_temporal(self) -> None:
        dt = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert make_json_safe(dt) == "2024-01-02T03:04:05+00:00"
        assert make_json_safe(date(2024, 1, 2)) == "2024-01-02"
        assert make_json_safe(time(3, 4)) == "03:04:00"
        assert make_json_safe(timedelta(minutes=2)) == 120.0

    def test_decimal_keeps_precision(self) -> None:
        assert make_json_safe(Decimal("12345678901234567890.123")) == "12345678901234567890.123"

    def test_uuid_and_bytes(self) -> None:
        u = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert make_json_safe(u) == "12345678-1234-5678-1234-567812345678"
        assert make_json_safe(b"\x00\xff") == "\\x00ff"

    def test_nested(self) -> None:
        out = make_json_safe({"a": [Decimal("1.5"), {"d": date(2020, 5, 1)}], "s": {2, 1}})
        assert out == {"a": ["1.5", {"d": "2020-05-01"}], "s": [1, 2]}

    def test_non_finite_floats_become_null(self) -> None:
        out = make_json_safe([float("nan"), float("inf"), float("-inf"), 2.5])
        assert out == [None, None, None, 2.5]


def test_nan_row_is_strict_json() -> None:
    rep = CapturedReporter()
    rep.rows([{"x": float("nan"), "y": float("inf")}])
    assert rep.out.getvalue() == '[{"x":null,"y":null}]\n'

    def _reject(token: str) -> None:
        raise ValueError(token)

    assert json.loads(rep.out.getvalue(), parse_constant=_reject) == [{"x": None, "y": None}]
