from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from themeshift.models.adaptation import PresentationConfig
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext

RulePredicate = Callable[[BehavioralMetrics, EnvironmentalContext], bool]
RuleTransform = Callable[
    [PresentationConfig, BehavioralMetrics, EnvironmentalContext],
    Mapping[str, object],
]


@dataclass(frozen=True, slots=True)
class AdaptationRule:
    """Condition -> presentation change, with a static priority.

    ``transform`` must return a new mapping; the draft it receives is a copy
    owned by the current evaluation.
    """

    id: str
    priority: int
    predicate: RulePredicate
    transform: RuleTransform
    rationale: str
    name: str = ""
    source: str = "builtin"

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("rule id must be a non-empty string")

    def matches(self, metrics: BehavioralMetrics, context: EnvironmentalContext) -> bool:
        return bool(self.predicate(metrics, context))

    def apply(
        self,
        config: PresentationConfig,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
    ) -> Mapping[str, object]:
        return self.transform(dict(config), metrics, context)

    def declared_writes(self) -> frozenset[str]:
        """Keys the transform always writes, when it says so up front."""
        return frozenset(getattr(self.transform, "writes", ()))

    def describe(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name or self.id,
            "priority": self.priority,
            "rationale": self.rationale,
            "source": self.source,
        }


def overlay(values: Mapping[str, object]) -> RuleTransform:
    """Transform that writes a fixed set of parameters over the draft."""
    frozen = dict(values)

    def _transform(
        config: PresentationConfig,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
    ) -> Mapping[str, object]:
        return {**config, **frozen}

    _transform.writes = frozenset(frozen)  # type: ignore[attr-defined]
    return _transform


__all__ = ["AdaptationRule", "RulePredicate", "RuleTransform", "overlay"]
