"""Adaptation scheduler: the idle -> evaluating -> committing -> idle machine.

Only two entry points start an evaluation: the interval timer (``tick``) and
``trigger_now``. Both go through the same compare-and-set on the state flag,
so a second request while one is in flight is rejected instead of queued.
"""

from __future__ import annotations

import logging
import threading
import uuid

from themeshift.core.logging import correlation_scope
from themeshift.core.metrics import ADAPTATIONS_TOTAL, TRIGGERS_REJECTED_TOTAL
from themeshift.history.store import AdaptationHistory
from themeshift.models.adaptation import (
    AdaptationEvent,
    SchedulerState,
    TriggerKind,
    TriggerResult,
)
from themeshift.protocols.presentation import PresentationStore
from themeshift.protocols.scheduler import Evaluator, IntervalTimer

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 30_000


class SchedulerBusyError(RuntimeError):
    def __init__(self, state: SchedulerState) -> None:
        super().__init__(f"adaptation already in flight ({state.value})")
        self.state = state


class AdaptationScheduler:
    def __init__(
        self,
        evaluator: Evaluator,
        store: PresentationStore,
        history: AdaptationHistory,
        *,
        tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
        timer: IntervalTimer | None = None,
        name: str = "adaptation",
        session_id: str | None = None,
    ) -> None:
        if tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be > 0")
        self._evaluator = evaluator
        self._store = store
        self._history = history
        self._tick_interval_ms = tick_interval_ms
        self._timer = timer
        self._name = name
        self._session_id = session_id
        self._schedule_id: str | None = None
        self._state = SchedulerState.idle
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def tick_interval_ms(self) -> int:
        return self._tick_interval_ms

    @property
    def running(self) -> bool:
        return self._schedule_id is not None

    def start(self) -> None:
        """Register the periodic tick on the timer and start it. Idempotent."""
        if self._timer is None:
            raise RuntimeError("no interval timer configured")
        if self._schedule_id is not None:
            return
        self._schedule_id = self._timer.add_heartbeat(
            self._name,
            self._tick_interval_ms / 1000.0,
            self._on_timer,
        )
        self._timer.start()

    def stop(self) -> None:
        """Unregister the periodic tick. Idempotent."""
        if self._timer is None or self._schedule_id is None:
            return
        try:
            self._timer.remove_schedule(self._schedule_id)
        except KeyError:
            logger.debug("Schedule %s already gone", self._schedule_id)
        self._schedule_id = None

    async def tick(self) -> AdaptationEvent | None:
        """Run one scheduled evaluation; a busy scheduler skips the tick."""
        try:
            return await self._run(TriggerKind.scheduled)
        except SchedulerBusyError as exc:
            TRIGGERS_REJECTED_TOTAL.labels(trigger=TriggerKind.scheduled.value).inc()
            logger.debug("Skipping scheduled tick: %s", exc)
            return None

    async def trigger_now(self) -> TriggerResult:
        try:
            event = await self._run(TriggerKind.manual)
        except SchedulerBusyError as exc:
            TRIGGERS_REJECTED_TOTAL.labels(trigger=TriggerKind.manual.value).inc()
            logger.info("Manual trigger rejected: %s", exc)
            return TriggerResult.rejected(exc.state)
        return TriggerResult.completed(event)

    async def _on_timer(self) -> None:
        await self.tick()

    async def _run(self, trigger: TriggerKind) -> AdaptationEvent | None:
        if not self._compare_and_set(SchedulerState.idle, SchedulerState.evaluating):
            raise SchedulerBusyError(self._state)

        with correlation_scope(session_id=self._session_id, tick_id=uuid.uuid4().hex[:12]):
            try:
                before = self._store.get_current()
                evaluation = await self._evaluator.evaluate(before, trigger=trigger)
                if evaluation is None or not evaluation.decision.has_change:
                    logger.debug("Evaluation produced no change")
                    return None

                self._compare_and_set(SchedulerState.evaluating, SchedulerState.committing)
                decision = evaluation.decision
                self._store.apply(dict(decision.config))

                event = AdaptationEvent(
                    trigger=trigger,
                    context=evaluation.context,
                    metrics=evaluation.metrics,
                    rules_applied=decision.rules_applied,
                    before_config=decision.before,
                    after_config=decision.config,
                    rationale=decision.rationale,
                    advisory_used=decision.advisory_used,
                )
                self._history.record(event)
                ADAPTATIONS_TOTAL.labels(trigger=trigger.value).inc()
                with correlation_scope(event_id=event.id):
                    logger.info(
                        "Committed adaptation via %s: %s",
                        trigger.value,
                        ", ".join(event.rules_applied),
                    )
                return event
            finally:
                self._set_state(SchedulerState.idle)

    def _compare_and_set(self, expected: SchedulerState, new: SchedulerState) -> bool:
        with self._state_lock:
            if self._state != expected:
                return False
            self._state = new
            return True

    def _set_state(self, new: SchedulerState) -> None:
        with self._state_lock:
            self._state = new


__all__ = ["AdaptationScheduler", "DEFAULT_TICK_INTERVAL_MS", "SchedulerBusyError"]
