"""Tests for the BILLING_ENGINE_TRACE decorator."""

from datetime import date
from decimal import Decimal

from billing_engines.tracer import _canonicalize, compute_input_fingerprint, traced_engine


@traced_engine("sample", "2.1", fingerprint_fields=("a", "b"))
def _sample(a, b, c=None):
    return a + b


class TestFingerprint:

    def test_deterministic(self):
        args = {"a": 1, "b": "x"}
        assert compute_input_fingerprint(("a", "b"), args) == compute_input_fingerprint(
            ("a", "b"), dict(args)
        )

    def test_length(self):
        assert len(compute_input_fingerprint(("a",), {"a": 1})) == 16

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("a",), {}) == compute_input_fingerprint(
            ("a",), {"a": None}
        )

    def test_canonical_forms(self):
        assert _canonicalize(True) == "true"
        assert _canonicalize(date(2025, 6, 5)) == "2025-06-05"
        assert _canonicalize({"b": 1, "a": 2}) == "{a:2,b:1}"
        assert _canonicalize(Decimal("1.50")) == "1.50"


class TestTracedEngine:

    def test_returns_result(self):
        assert _sample(1, 2) == 3

    def test_positional_and_keyword_calls_share_fingerprint(self, captured_logs):
        _sample(1, 2)
        _sample(a=1, b=2)

        traces = [r for r in captured_logs() if r["message"] == "BILLING_ENGINE_TRACE"]
        assert len(traces) == 2
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert traces[0]["engine_name"] == "sample"
        assert traces[0]["engine_version"] == "2.1"
        assert traces[0]["trace_type"] == "BILLING_ENGINE_TRACE"
        assert "duration_ms" in traces[0]

    def test_unlisted_arguments_do_not_change_fingerprint(self, captured_logs):
        _sample(1, 2, c="first")
        _sample(1, 2, c="second")

        traces = [r for r in captured_logs() if r["message"] == "BILLING_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_preserves_name(self):
        assert _sample.__name__ == "_sample"
