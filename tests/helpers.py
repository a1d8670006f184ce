"""Shared test helpers."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from themeshift.context.detector import ambient_light_for_hour, time_of_day_for_hour
from themeshift.models.context import (
    AmbientLight,
    BehavioralMetrics,
    DeviceClass,
    EnvironmentalContext,
)
from themeshift.models.signals import InteractionSample, SampleKind


async def wait_until(
    predicate: Callable[[], bool] | Callable[[], Awaitable[bool]],
    timeout: float = 3.0,
    interval: float = 0.05,
) -> None:
    """Poll a condition until it passes or timeout is reached.

    Supports both sync and async predicates.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return
        await asyncio.sleep(interval)
    raise TimeoutError("Condition not met within timeout")


def to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def make_context(
    hour: int = 12,
    device: DeviceClass = DeviceClass.desktop,
    *,
    ambient: AmbientLight | None = None,
    category: str = "general",
) -> EnvironmentalContext:
    return EnvironmentalContext(
        hour_of_day=hour,
        device_class=device,
        ambient_light=ambient or ambient_light_for_hour(hour),
        content_category=category,
        time_of_day=time_of_day_for_hour(hour),
    )


def make_metrics(**overrides: float) -> BehavioralMetrics:
    values: dict[str, float] = {
        "engagement_score": 50.0,
        "eye_strain_index": 10.0,
        "focus_level": 80.0,
        "session_duration_minutes": 5.0,
    }
    values.update(overrides)
    return BehavioralMetrics(**values)


def reading_samples(
    now: datetime,
    *,
    minutes: float,
    pauses: int,
    window_minutes: float = 5.0,
) -> list[InteractionSample]:
    """A slow scroll over the whole session plus ``pauses`` focus pauses in the last window."""
    start = now - timedelta(minutes=minutes)
    samples = [
        InteractionSample(timestamp_ms=to_ms(start), kind=SampleKind.scroll, scalar_value=0.0),
        InteractionSample(
            timestamp_ms=to_ms(now - timedelta(seconds=1)),
            kind=SampleKind.scroll,
            scalar_value=1200.0,
        ),
    ]
    window_start = now - timedelta(minutes=window_minutes)
    step = timedelta(minutes=window_minutes) / (pauses + 1)
    for index in range(pauses):
        moment = window_start + step * (index + 1)
        samples.append(
            InteractionSample(
                timestamp_ms=to_ms(moment),
                kind=SampleKind.focus_pause,
                scalar_value=2500.0,
            )
        )
    return samples
