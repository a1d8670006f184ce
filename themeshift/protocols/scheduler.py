from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from themeshift.models.adaptation import PresentationConfig, TriggerKind

if TYPE_CHECKING:
    from themeshift.engine.pipeline import Evaluation


@runtime_checkable
class IntervalTimer(Protocol):
    @property
    def running(self) -> bool: ...

    def add_heartbeat(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
    ) -> str: ...

    def remove_schedule(self, schedule_id: str) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


@runtime_checkable
class Evaluator(Protocol):
    async def evaluate(
        self,
        before: PresentationConfig,
        *,
        trigger: TriggerKind,
    ) -> Evaluation | None: ...


__all__ = ["Evaluator", "IntervalTimer"]
