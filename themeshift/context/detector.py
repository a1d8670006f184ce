"""Context detection: wall clock + device + signals -> (context, metrics).

The detector never reads a clock on its own; ``now`` is always passed in so
identical inputs produce identical outputs.

Ambient light is inferred from the hour of day only. Boundaries are
inclusive-low / exclusive-high, and hour 24 is treated as hour 0:

    [0, 6)   dark
    [6, 11)  bright
    [11, 17) bright
    [17, 21) medium
    [21, 24) dim
"""

from __future__ import annotations

import logging
from datetime import datetime

from themeshift.context.weights import MetricWeights, clamp_score
from themeshift.models.context import (
    AmbientLight,
    BehavioralMetrics,
    ContentMeta,
    DeviceInfo,
    EnvironmentalContext,
    TimeOfDay,
)
from themeshift.models.signals import RawSignals, SampleKind

logger = logging.getLogger(__name__)

AMBIENT_LIGHT_TABLE: tuple[tuple[int, int, AmbientLight], ...] = (
    (0, 6, AmbientLight.dark),
    (6, 11, AmbientLight.bright),
    (11, 17, AmbientLight.bright),
    (17, 21, AmbientLight.medium),
    (21, 24, AmbientLight.dim),
)

TIME_OF_DAY_TABLE: tuple[tuple[int, int, TimeOfDay], ...] = (
    (0, 6, TimeOfDay.night),
    (6, 12, TimeOfDay.morning),
    (12, 17, TimeOfDay.afternoon),
    (17, 21, TimeOfDay.evening),
    (21, 24, TimeOfDay.night),
)

DEFAULT_SCROLL_SPEED_SAMPLES = 20
_MS_PER_MINUTE = 60_000.0


def _normalize_hour(hour: int) -> int:
    if hour < 0 or hour > 24:
        raise ValueError(f"hour must be within 0..24, got {hour}")
    return hour % 24


def ambient_light_for_hour(hour: int) -> AmbientLight:
    normalized = _normalize_hour(hour)
    for low, high, light in AMBIENT_LIGHT_TABLE:
        if low <= normalized < high:
            return light
    raise AssertionError(f"ambient light table does not cover hour {normalized}")


def time_of_day_for_hour(hour: int) -> TimeOfDay:
    normalized = _normalize_hour(hour)
    for low, high, bucket in TIME_OF_DAY_TABLE:
        if low <= normalized < high:
            return bucket
    raise AssertionError(f"time-of-day table does not cover hour {normalized}")


class ContextDetector:
    def __init__(
        self,
        weights: MetricWeights | None = None,
        *,
        scroll_speed_samples: int = DEFAULT_SCROLL_SPEED_SAMPLES,
    ) -> None:
        if scroll_speed_samples < 2:
            raise ValueError("scroll_speed_samples must be >= 2")
        self._weights = weights or MetricWeights()
        self._scroll_speed_samples = scroll_speed_samples

    @property
    def weights(self) -> MetricWeights:
        return self._weights

    def detect(
        self,
        raw: RawSignals,
        now: datetime,
        device: DeviceInfo | None = None,
        content: ContentMeta | None = None,
    ) -> tuple[EnvironmentalContext, BehavioralMetrics]:
        context = self.detect_context(now, device, content)
        metrics = self.derive_metrics(raw, now)
        return context, metrics

    def detect_context(
        self,
        now: datetime,
        device: DeviceInfo | None = None,
        content: ContentMeta | None = None,
    ) -> EnvironmentalContext:
        device_info = device or DeviceInfo()
        content_meta = content or ContentMeta()
        return EnvironmentalContext(
            hour_of_day=now.hour,
            device_class=device_info.resolve_class(),
            ambient_light=ambient_light_for_hour(now.hour),
            content_category=content_meta.category,
            time_of_day=time_of_day_for_hour(now.hour),
        )

    def derive_metrics(self, raw: RawSignals, now: datetime) -> BehavioralMetrics:
        now_ms = int(now.timestamp() * 1000)
        session_minutes = self._session_minutes(raw, now_ms)
        scroll_speed = self._scroll_speed(raw)

        # Rates are per minute of observed window, floored at one minute.
        observed_minutes = session_minutes
        if raw.window_ms is not None:
            observed_minutes = min(observed_minutes, raw.window_ms / _MS_PER_MINUTE)
        observed_minutes = max(observed_minutes, 1.0)

        pause_frequency = len(raw.of_kind(SampleKind.focus_pause)) / observed_minutes
        clicks_per_minute = len(raw.of_kind(SampleKind.click)) / observed_minutes

        weights = self._weights
        eye_strain = (
            session_minutes * weights.eye_strain_per_session_minute
            + pause_frequency * weights.eye_strain_per_pause
        )
        if scroll_speed > weights.eye_strain_fast_scroll_threshold:
            eye_strain += weights.eye_strain_fast_scroll_penalty

        focus = weights.focus_base - pause_frequency * weights.focus_per_pause
        if scroll_speed > weights.focus_fast_scroll_threshold:
            focus -= weights.focus_fast_scroll_penalty

        engagement = weights.engagement_base - pause_frequency * weights.engagement_per_pause
        if session_minutes > weights.engagement_bonus_after_minutes:
            engagement += weights.engagement_session_bonus

        return BehavioralMetrics(
            scroll_speed=scroll_speed,
            pause_frequency=pause_frequency,
            clicks_per_minute=clicks_per_minute,
            session_duration_minutes=session_minutes,
            engagement_score=clamp_score(engagement),
            eye_strain_index=clamp_score(eye_strain),
            focus_level=clamp_score(focus),
        )

    def _session_minutes(self, raw: RawSignals, now_ms: int) -> float:
        started = raw.session_started_ms
        if started is None:
            return 0.0
        return max(0.0, (now_ms - started) / _MS_PER_MINUTE)

    def _scroll_speed(self, raw: RawSignals) -> float:
        """Pixels per second between the first and last of the recent scroll samples."""
        scrolls = raw.of_kind(SampleKind.scroll)[-self._scroll_speed_samples :]
        if len(scrolls) < 2:
            return 0.0
        first, last = scrolls[0], scrolls[-1]
        elapsed_s = (last.timestamp_ms - first.timestamp_ms) / 1000.0
        if elapsed_s <= 0:
            return 0.0
        return abs(last.scalar_value - first.scalar_value) / elapsed_s


__all__ = [
    "AMBIENT_LIGHT_TABLE",
    "ContextDetector",
    "DEFAULT_SCROLL_SPEED_SAMPLES",
    "TIME_OF_DAY_TABLE",
    "ambient_light_for_hour",
    "time_of_day_for_hour",
]
