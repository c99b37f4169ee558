"""Tests for @traced_engine and the input fingerprint."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from precast_engines.tracer import compute_input_fingerprint, traced_engine


@dataclass(frozen=True)
class _Sample:
    amount: Decimal
    day: date


class TestFingerprint:
    def test_decimal_normalized(self):
        a = compute_input_fingerprint(("x",), {"x": Decimal("1.50")})
        b = compute_input_fingerprint(("x",), {"x": Decimal("1.5")})
        assert a == b

    def test_dict_order_irrelevant(self):
        a = compute_input_fingerprint(("m",), {"m": {"b": 1, "a": 2}})
        b = compute_input_fingerprint(("m",), {"m": {"a": 2, "b": 1}})
        assert a == b

    def test_dataclass_fields_participate(self):
        a = compute_input_fingerprint(("s",), {"s": _Sample(Decimal("1"), date(2024, 1, 1))})
        b = compute_input_fingerprint(("s",), {"s": _Sample(Decimal("1"), date(2024, 1, 2))})
        assert a != b

    def test_uuid_keys_supported(self):
        key = UUID("00000000-0000-0000-0000-000000000001")
        fp = compute_input_fingerprint(("p",), {"p": {key: Decimal("2")}})
        assert len(fp) == 16


class TestTracedEngine:
    def test_trace_record_emitted(self, captured_logs):
        @traced_engine("double", "2.1", fingerprint_fields=("value",))
        def double(*, value):
            return value * 2

        assert double(value=Decimal("4")) == Decimal("8")

        traces = [r for r in captured_logs() if r["message"] == "PRICING_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "double"
        assert traces[0]["engine_version"] == "2.1"
        assert traces[0]["input_fingerprint"] == compute_input_fingerprint(
            ("value",), {"value": Decimal("4")}
        )
        assert "duration_ms" in traces[0]
