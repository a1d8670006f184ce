"""Tests for themeshift.core.metrics, the Prometheus counters of the engine."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY
from themeshift.core.metrics import metrics_generate_latest, observe_evaluation
from themeshift.engine.advisory import AdvisoryGateway
from themeshift.signals.collector import SignalCollector

from tests.fakes import FakeAdvisoryScorer
from tests.helpers import make_context, make_metrics


def _value(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_dropped_samples_counted_by_reason() -> None:
    before = _value("themeshift_samples_dropped_total", reason="negative_timestamp")
    SignalCollector().record({"timestamp_ms": -1, "kind": "click"})
    assert _value("themeshift_samples_dropped_total", reason="negative_timestamp") == before + 1


@pytest.mark.asyncio
async def test_advisory_fallback_counted() -> None:
    before = _value("themeshift_advisory_fallbacks_total", reason="error")
    gateway = AdvisoryGateway(FakeAdvisoryScorer(error=RuntimeError("down")))

    await gateway.suggest(make_context(), make_metrics(), {})

    assert _value("themeshift_advisory_fallbacks_total", reason="error") == before + 1


def test_observe_evaluation_records_duration() -> None:
    before = _value("themeshift_evaluation_duration_seconds_count", trigger="manual")
    with observe_evaluation("manual"):
        pass
    assert _value("themeshift_evaluation_duration_seconds_count", trigger="manual") == before + 1


def test_exposition_contains_engine_metrics() -> None:
    output = metrics_generate_latest().decode()
    assert "themeshift_adaptations_total" in output
    assert "themeshift_triggers_rejected_total" in output
