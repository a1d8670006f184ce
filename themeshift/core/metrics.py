"""Prometheus metrics for the adaptation engine.

All metric objects are module-level singletons registered on the default
registry when this module is first imported.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, generate_latest

SAMPLES_DROPPED_TOTAL = Counter(
    "themeshift_samples_dropped_total",
    "Interaction samples rejected as malformed",
    ["reason"],
)
ADAPTATIONS_TOTAL = Counter(
    "themeshift_adaptations_total",
    "Adaptation events committed to the presentation store",
    ["trigger"],
)
RULE_FAILURES_TOTAL = Counter(
    "themeshift_rule_failures_total",
    "Rule transforms that raised or returned an invalid config",
    ["rule_id"],
)
ADVISORY_FALLBACKS_TOTAL = Counter(
    "themeshift_advisory_fallbacks_total",
    "Advisory scorer calls that fell back to the rule-composed config",
    ["reason"],
)
TRIGGERS_REJECTED_TOTAL = Counter(
    "themeshift_triggers_rejected_total",
    "Adaptation triggers rejected because an evaluation was in flight",
    ["trigger"],
)
EVALUATION_DURATION_SECONDS = Histogram(
    "themeshift_evaluation_duration_seconds",
    "Time spent evaluating rules for one tick",
    ["trigger"],
)
metrics_generate_latest = generate_latest


@contextmanager
def observe_evaluation(trigger: str) -> Iterator[None]:
    """Context manager that observes how long one evaluation takes."""
    start = time.monotonic()
    try:
        yield
    finally:
        EVALUATION_DURATION_SECONDS.labels(trigger=trigger).observe(time.monotonic() - start)


__all__ = [
    "ADAPTATIONS_TOTAL",
    "ADVISORY_FALLBACKS_TOTAL",
    "EVALUATION_DURATION_SECONDS",
    "RULE_FAILURES_TOTAL",
    "SAMPLES_DROPPED_TOTAL",
    "TRIGGERS_REJECTED_TOTAL",
    "metrics_generate_latest",
    "observe_evaluation",
]
