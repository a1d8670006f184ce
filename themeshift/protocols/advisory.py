from __future__ import annotations

from typing import Protocol, runtime_checkable

from themeshift.models.adaptation import AdvisorySuggestion, PresentationConfig
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext


@runtime_checkable
class AdvisoryScorer(Protocol):
    """Optional external suggestion source.

    Implementations may return an ``AdvisorySuggestion``, a mapping, or raw
    JSON text; anything else is treated as unparseable by the gateway.
    """

    async def suggest(
        self,
        context: EnvironmentalContext,
        metrics: BehavioralMetrics,
        config: PresentationConfig,
    ) -> AdvisorySuggestion | dict[str, object] | str: ...


__all__ = ["AdvisoryScorer"]
