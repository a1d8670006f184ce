"""Signal snapshot -> context detection -> rule decision, for one session."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from themeshift.context.detector import ContextDetector
from themeshift.core.metrics import observe_evaluation
from themeshift.engine.decision import Decision, DecisionEngine
from themeshift.models.adaptation import PresentationConfig, TriggerKind
from themeshift.models.context import (
    BehavioralMetrics,
    ContentMeta,
    DeviceInfo,
    EnvironmentalContext,
)
from themeshift.signals.collector import SignalCollector

logger = logging.getLogger(__name__)

DEFAULT_ADAPTATION_STRENGTH = 50
DEFAULT_WARMUP_MINUTES = 2.0

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True, slots=True)
class Evaluation:
    context: EnvironmentalContext
    metrics: BehavioralMetrics
    decision: Decision


class AdaptationPipeline:
    def __init__(
        self,
        collector: SignalCollector,
        detector: ContextDetector,
        engine: DecisionEngine,
        *,
        adaptation_strength: int = DEFAULT_ADAPTATION_STRENGTH,
        warmup_minutes: float = DEFAULT_WARMUP_MINUTES,
        device: DeviceInfo | None = None,
        content: ContentMeta | None = None,
        clock: Clock = local_now,
    ) -> None:
        if warmup_minutes < 0:
            raise ValueError("warmup_minutes must be >= 0")
        self.collector = collector
        self.detector = detector
        self.engine = engine
        self.warmup_minutes = warmup_minutes
        self.device = device or DeviceInfo()
        self.content = content or ContentMeta()
        self._clock = clock
        self._adaptation_strength = DEFAULT_ADAPTATION_STRENGTH
        self.adaptation_strength = adaptation_strength

    @property
    def adaptation_strength(self) -> int:
        return self._adaptation_strength

    @adaptation_strength.setter
    def adaptation_strength(self, value: int) -> None:
        if not 0 <= value <= 100:
            raise ValueError("adaptation_strength must be within 0..100")
        self._adaptation_strength = value

    def now(self) -> datetime:
        return self._clock()

    async def evaluate(
        self,
        before: PresentationConfig,
        *,
        trigger: TriggerKind,
    ) -> Evaluation | None:
        now = self._clock()
        raw = self.collector.snapshot(int(now.timestamp() * 1000))
        context, metrics = self.detector.detect(raw, now, self.device, self.content)

        if (
            trigger == TriggerKind.scheduled
            and metrics.session_duration_minutes < self.warmup_minutes
        ):
            logger.debug(
                "Session at %.1f min is still warming up; skipping scheduled tick",
                metrics.session_duration_minutes,
            )
            return None

        with observe_evaluation(trigger.value):
            decision = await self.engine.decide(
                before,
                metrics,
                context,
                adaptation_strength=self._adaptation_strength,
            )
        return Evaluation(context=context, metrics=metrics, decision=decision)


__all__ = [
    "AdaptationPipeline",
    "Clock",
    "DEFAULT_ADAPTATION_STRENGTH",
    "DEFAULT_WARMUP_MINUTES",
    "Evaluation",
    "local_now",
]
