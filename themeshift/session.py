"""One user session's adaptation engine, wired from settings."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping

from themeshift.config import ThemeshiftSettings
from themeshift.context.detector import ContextDetector
from themeshift.core.logging import correlation_scope
from themeshift.engine.advisory import AdvisoryGateway
from themeshift.engine.decision import DecisionEngine
from themeshift.engine.pipeline import AdaptationPipeline, Clock, local_now
from themeshift.history.store import AdaptationHistory
from themeshift.models.adaptation import (
    AdaptationEvent,
    Feedback,
    SchedulerState,
    TriggerResult,
)
from themeshift.models.context import ContentMeta, DeviceInfo
from themeshift.models.signals import InteractionSample
from themeshift.protocols.advisory import AdvisoryScorer
from themeshift.protocols.presentation import PresentationStore, PresetCatalog
from themeshift.protocols.scheduler import IntervalTimer
from themeshift.rules.catalog import RuleCatalog, builtin_rules
from themeshift.rules.declarative import compile_rules
from themeshift.scheduler.adaptation import AdaptationScheduler
from themeshift.scheduler.timer import HeartbeatTimer
from themeshift.signals.collector import SignalCollector

logger = logging.getLogger(__name__)


def build_catalog(
    settings: ThemeshiftSettings,
    presets: PresetCatalog | None = None,
) -> RuleCatalog:
    catalog = RuleCatalog()
    if settings.engine.builtin_rules:
        catalog.extend(builtin_rules(presets))
    catalog.extend(compile_rules(settings.rules, presets))
    return catalog


class AdaptationSession:
    """Owns every piece of engine state for a single user session.

    Nothing here is shared across sessions: each session gets its own
    collector, history and scheduler (and its own timer unless one is passed).
    """

    def __init__(
        self,
        store: PresentationStore,
        settings: ThemeshiftSettings | None = None,
        *,
        session_id: str | None = None,
        presets: PresetCatalog | None = None,
        catalog: RuleCatalog | None = None,
        advisory: AdvisoryScorer | None = None,
        device: DeviceInfo | None = None,
        content: ContentMeta | None = None,
        clock: Clock = local_now,
        timer: IntervalTimer | None = None,
        session_started_ms: int | None = None,
    ) -> None:
        self.settings = settings or ThemeshiftSettings()
        self.session_id = session_id or uuid.uuid4().hex
        self.store = store
        self.presets = presets
        self.catalog = catalog if catalog is not None else build_catalog(self.settings, presets)

        signals = self.settings.signals
        self.collector = SignalCollector(
            capacity=signals.buffer_capacity,
            window_seconds=signals.window_seconds,
            session_started_ms=session_started_ms,
        )
        self.detector = ContextDetector(
            self.settings.weights,
            scroll_speed_samples=signals.scroll_speed_samples,
        )

        history_config = self.settings.history
        self.history = AdaptationHistory(
            max_events=history_config.max_events,
            reweight_every=history_config.reweight_every,
            min_samples=history_config.min_samples,
        )

        gateway = None
        if advisory is not None:
            advisory_config = self.settings.advisory
            gateway = AdvisoryGateway(
                advisory,
                timeout_ms=advisory_config.timeout_ms,
                breaker_failure_limit=advisory_config.breaker_failure_limit,
                breaker_cooldown=advisory_config.breaker_cooldown,
            )

        engine_config = self.settings.engine
        self.engine = DecisionEngine(
            self.catalog,
            max_rules_per_tick=engine_config.max_rules_per_tick,
            acceptance_threshold=engine_config.acceptance_threshold,
            advisory=gateway,
            advisory_blend=self.settings.advisory.blend,
            bias_provider=self.history.bias_for,
        )
        self.pipeline = AdaptationPipeline(
            self.collector,
            self.detector,
            self.engine,
            adaptation_strength=engine_config.adaptation_strength,
            warmup_minutes=self.settings.scheduler.warmup_minutes,
            device=device,
            content=content,
            clock=clock,
        )
        self._owns_timer = timer is None
        self.timer = timer if timer is not None else HeartbeatTimer()
        self.scheduler = AdaptationScheduler(
            self.pipeline,
            store,
            self.history,
            tick_interval_ms=self.settings.scheduler.tick_interval_ms,
            timer=self.timer,
            name=f"adaptation:{self.session_id}",
            session_id=self.session_id,
        )

    @property
    def state(self) -> SchedulerState:
        return self.scheduler.state

    @property
    def adaptation_strength(self) -> int:
        return self.pipeline.adaptation_strength

    def set_adaptation_strength(self, value: int) -> None:
        self.pipeline.adaptation_strength = value

    def update_device(self, device: DeviceInfo) -> None:
        self.pipeline.device = device

    def update_content(self, content: ContentMeta) -> None:
        self.pipeline.content = content

    def record(self, sample: InteractionSample | Mapping[str, object]) -> None:
        self.collector.record(sample)

    async def tick(self) -> AdaptationEvent | None:
        with correlation_scope(session_id=self.session_id):
            return await self.scheduler.tick()

    async def trigger_now(self) -> TriggerResult:
        with correlation_scope(session_id=self.session_id):
            return await self.scheduler.trigger_now()

    def provide_feedback(self, event_id: str, feedback: Feedback | str) -> None:
        with correlation_scope(session_id=self.session_id, event_id=event_id):
            self.history.provide_feedback(event_id, feedback)

    def start(self) -> None:
        """Start periodic adaptation. Must be called from a running event loop."""
        with correlation_scope(session_id=self.session_id):
            self.scheduler.start()
            logger.info("Adaptation session started")

    def stop(self) -> None:
        with correlation_scope(session_id=self.session_id):
            self.scheduler.stop()
            if self._owns_timer:
                self.timer.stop()
            logger.info("Adaptation session stopped")


__all__ = ["AdaptationSession", "build_catalog"]
