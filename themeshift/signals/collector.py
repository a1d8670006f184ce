"""Rolling window of interaction samples for one session."""

from __future__ import annotations

import bisect
import logging
import math
from collections.abc import Mapping

from pydantic import ValidationError

from themeshift.core.metrics import SAMPLES_DROPPED_TOTAL
from themeshift.models.signals import InteractionSample, RawSignals, SampleKind

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_CAPACITY = 100
DEFAULT_WINDOW_SECONDS = 300.0


class SignalCollector:
    """Time-ordered, bounded buffer of interaction samples.

    Samples are kept sorted by timestamp so clock jitter never produces
    negative deltas downstream. Once ``capacity`` is reached the oldest
    sample is evicted. Malformed samples are dropped and counted.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_BUFFER_CAPACITY,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        session_started_ms: int | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._capacity = capacity
        self._window_ms = int(window_seconds * 1000)
        self._explicit_start = session_started_ms
        self._first_seen_ms: int | None = None
        self._samples: list[InteractionSample] = []
        self._keys: list[int] = []
        self._dropped: dict[str, int] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dropped_count(self) -> int:
        return sum(self._dropped.values())

    @property
    def dropped_by_reason(self) -> dict[str, int]:
        return dict(self._dropped)

    @property
    def session_started_ms(self) -> int | None:
        if self._explicit_start is not None:
            return self._explicit_start
        return self._first_seen_ms

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, sample: InteractionSample | Mapping[str, object]) -> None:
        if not isinstance(sample, InteractionSample):
            try:
                sample = InteractionSample.model_validate(sample)
            except ValidationError:
                self._drop("invalid")
                return

        reason = _malformed_reason(sample)
        if reason is not None:
            self._drop(reason)
            return

        if self._first_seen_ms is None or sample.timestamp_ms < self._first_seen_ms:
            self._first_seen_ms = sample.timestamp_ms

        index = bisect.bisect_right(self._keys, sample.timestamp_ms)
        self._keys.insert(index, sample.timestamp_ms)
        self._samples.insert(index, sample)

        if len(self._samples) > self._capacity:
            overflow = len(self._samples) - self._capacity
            del self._samples[:overflow]
            del self._keys[:overflow]

    def snapshot(self, now_ms: int | None = None) -> RawSignals:
        """Return the samples inside the time window ending at ``now_ms``.

        Without ``now_ms`` the window ends at the newest buffered sample.
        """
        if not self._samples:
            return RawSignals(
                session_started_ms=self.session_started_ms,
                window_ms=self._window_ms,
                dropped_count=self.dropped_count,
            )

        end_ms = self._keys[-1] if now_ms is None else now_ms
        start_index = bisect.bisect_left(self._keys, end_ms - self._window_ms)
        end_index = bisect.bisect_right(self._keys, end_ms)
        return RawSignals(
            samples=tuple(self._samples[start_index:end_index]),
            session_started_ms=self.session_started_ms,
            window_ms=self._window_ms,
            dropped_count=self.dropped_count,
        )

    def reset(self, *, session_started_ms: int | None = None) -> None:
        self._samples.clear()
        self._keys.clear()
        self._dropped.clear()
        self._first_seen_ms = None
        self._explicit_start = session_started_ms

    def _drop(self, reason: str) -> None:
        self._dropped[reason] = self._dropped.get(reason, 0) + 1
        SAMPLES_DROPPED_TOTAL.labels(reason=reason).inc()
        logger.debug("Dropped malformed interaction sample (%s)", reason)


def _malformed_reason(sample: InteractionSample) -> str | None:
    if not math.isfinite(sample.scalar_value):
        return "non_finite"
    if sample.timestamp_ms < 0:
        return "negative_timestamp"
    if sample.kind == SampleKind.focus_pause and sample.scalar_value < 0:
        return "negative_duration"
    return None


__all__ = ["DEFAULT_BUFFER_CAPACITY", "DEFAULT_WINDOW_SECONDS", "SignalCollector"]
