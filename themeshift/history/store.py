from __future__ import annotations

import logging
from collections import deque
from typing import Any

from themeshift.models.adaptation import AdaptationEvent, Feedback
from themeshift.models.context import EnvironmentalContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 50
DEFAULT_REWEIGHT_EVERY = 10
DEFAULT_MIN_SAMPLES = 3


class AdaptationHistory:
    """Append-only log of committed adaptations plus the feedback loop.

    Feedback is the only mutation: the matching event is replaced by a copy
    carrying the feedback, and only the first feedback for an event counts.
    Every ``reweight_every`` recorded events the per-(context bucket, rule)
    biases are recomputed from feedback-tagged events; those biases only
    break ties between rules of equal priority.
    """

    def __init__(
        self,
        *,
        max_events: int = DEFAULT_MAX_EVENTS,
        reweight_every: int = DEFAULT_REWEIGHT_EVERY,
        min_samples: int = DEFAULT_MIN_SAMPLES,
    ) -> None:
        if max_events <= 0:
            raise ValueError("max_events must be > 0")
        if reweight_every <= 0:
            raise ValueError("reweight_every must be > 0")
        if min_samples <= 0:
            raise ValueError("min_samples must be > 0")
        self._events: deque[AdaptationEvent] = deque(maxlen=max_events)
        self._reweight_every = reweight_every
        self._min_samples = min_samples
        self._recorded = 0
        self._biases: dict[str, dict[str, float]] = {}

    def __len__(self) -> int:
        return len(self._events)

    @property
    def recorded_count(self) -> int:
        return self._recorded

    def events(self) -> list[AdaptationEvent]:
        return list(self._events)

    def get(self, event_id: str) -> AdaptationEvent | None:
        return next((event for event in self._events if event.id == event_id), None)

    def record(self, event: AdaptationEvent) -> AdaptationEvent:
        self._events.append(event)
        self._recorded += 1
        if self._recorded % self._reweight_every == 0:
            self.reweight()
        return event

    def provide_feedback(self, event_id: str, feedback: Feedback | str) -> None:
        normalized = Feedback(feedback)
        if normalized is Feedback.none:
            raise ValueError("feedback must be 'positive' or 'negative'")

        for index, event in enumerate(self._events):
            if event.id != event_id:
                continue
            if event.has_feedback:
                logger.debug("Event %s already has feedback; ignoring", event_id)
                return
            self._events[index] = event.with_feedback(normalized)
            logger.info("Recorded %s feedback for %s", normalized.value, event_id)
            return

        logger.debug("Feedback for unknown event %s ignored", event_id)

    def reweight(self) -> dict[str, dict[str, float]]:
        tallies: dict[tuple[str, str], list[int]] = {}
        for event in self._events:
            if not event.has_feedback:
                continue
            for rule_id in event.rules_applied:
                counts = tallies.setdefault((event.context.bucket, rule_id), [0, 0])
                if event.user_feedback is Feedback.positive:
                    counts[0] += 1
                else:
                    counts[1] += 1

        biases: dict[str, dict[str, float]] = {}
        for (bucket, rule_id), (positive, negative) in tallies.items():
            total = positive + negative
            if total < self._min_samples:
                continue
            bias = round((positive - negative) / total, 4)
            biases.setdefault(bucket, {})[rule_id] = min(1.0, max(-1.0, bias))

        self._biases = biases
        logger.debug("Re-weighted rule biases for %d context buckets", len(biases))
        return {bucket: dict(values) for bucket, values in biases.items()}

    def bias_for(self, context: EnvironmentalContext) -> dict[str, float]:
        return dict(self._biases.get(context.bucket, {}))

    def stats(self) -> dict[str, Any]:
        rules: dict[str, dict[str, int]] = {}
        for event in self._events:
            for rule_id in event.rules_applied:
                counts = rules.setdefault(rule_id, {"applied": 0, "positive": 0, "negative": 0})
                counts["applied"] += 1
                if event.user_feedback is Feedback.positive:
                    counts["positive"] += 1
                elif event.user_feedback is Feedback.negative:
                    counts["negative"] += 1
        return {
            "total_events": len(self._events),
            "recorded": self._recorded,
            "with_feedback": sum(1 for event in self._events if event.has_feedback),
            "rules": rules,
            "biases": {bucket: dict(values) for bucket, values in self._biases.items()},
        }


__all__ = ["AdaptationHistory"]
