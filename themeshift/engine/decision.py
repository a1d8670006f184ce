"""Rule resolution: rank candidates, gate, compose, then ask the advisory scorer.

Composition is left-to-right over the ranked candidates. A key an earlier
(higher-priority) rule changes, or declares that it writes, is claimed, and
later rules cannot overwrite or delete it; everything else they change is kept.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from themeshift.core.metrics import RULE_FAILURES_TOTAL
from themeshift.engine.advisory import AdvisoryGateway
from themeshift.models.adaptation import AdvisorySuggestion, ConfigValue, PresentationConfig
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext
from themeshift.rules.catalog import RuleCatalog
from themeshift.rules.model import AdaptationRule

logger = logging.getLogger(__name__)

DEFAULT_MAX_RULES_PER_TICK = 3
DEFAULT_ACCEPTANCE_THRESHOLD = 0.2
DEFAULT_ADVISORY_BLEND = 0.3

BiasProvider = Callable[[EnvironmentalContext], Mapping[str, float]]

_CONFIG_SCALARS = (str, bool, int, float)


class InvalidTransformError(TypeError):
    """A rule transform returned something that is not a presentation config."""


@dataclass(frozen=True, slots=True)
class Decision:
    before: PresentationConfig
    config: PresentationConfig
    candidates: tuple[str, ...] = ()
    rules_applied: tuple[str, ...] = ()
    rules_skipped: tuple[str, ...] = ()
    rationale: tuple[str, ...] = ()
    claimed_keys: frozenset[str] = field(default_factory=frozenset)
    gated: bool = False
    advisory_used: bool = False

    @property
    def has_change(self) -> bool:
        return bool(self.rules_applied) and self.config != self.before


class DecisionEngine:
    def __init__(
        self,
        catalog: RuleCatalog,
        *,
        max_rules_per_tick: int = DEFAULT_MAX_RULES_PER_TICK,
        acceptance_threshold: float = DEFAULT_ACCEPTANCE_THRESHOLD,
        advisory: AdvisoryGateway | None = None,
        advisory_blend: float = DEFAULT_ADVISORY_BLEND,
        bias_provider: BiasProvider | None = None,
    ) -> None:
        if max_rules_per_tick < 1:
            raise ValueError("max_rules_per_tick must be >= 1")
        _check_threshold(acceptance_threshold)
        if not 0.0 <= advisory_blend <= 1.0:
            raise ValueError("advisory_blend must be within 0..1")
        self._catalog = catalog
        self._max_rules = max_rules_per_tick
        self._acceptance_threshold = acceptance_threshold
        self._advisory = advisory
        self._advisory_blend = advisory_blend
        self._bias_provider = bias_provider

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    @property
    def max_rules_per_tick(self) -> int:
        return self._max_rules

    def candidates(
        self,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
    ) -> list[AdaptationRule]:
        """Matching rules, highest priority first.

        Equal priorities are ordered by feedback bias, then by id.
        """
        bias = dict(self._bias_provider(context)) if self._bias_provider else {}
        matching: list[AdaptationRule] = []
        for rule in self._catalog.snapshot():
            try:
                if rule.matches(metrics, context):
                    matching.append(rule)
            except Exception:
                logger.warning("Rule %s predicate raised; treating as not applicable", rule.id, exc_info=True)
        return sorted(
            matching,
            key=lambda rule: (-rule.priority, -(1.0 + bias.get(rule.id, 0.0)), rule.id),
        )

    def compose(
        self,
        config: PresentationConfig,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
        *,
        adaptation_strength: int,
        acceptance_threshold: float | None = None,
    ) -> Decision:
        if not 0 <= adaptation_strength <= 100:
            raise ValueError("adaptation_strength must be within 0..100")
        threshold = self._acceptance_threshold if acceptance_threshold is None else acceptance_threshold
        _check_threshold(threshold)

        before = dict(config)
        ranked = self.candidates(metrics, context)
        candidate_ids = tuple(rule.id for rule in ranked)
        if not ranked:
            return Decision(before=before, config=dict(before))

        if adaptation_strength / 100 < threshold:
            logger.debug(
                "Sensitivity gate closed (strength=%d, threshold=%.2f); skipping tick",
                adaptation_strength,
                threshold,
            )
            return Decision(before=before, config=dict(before), candidates=candidate_ids, gated=True)

        draft: PresentationConfig = dict(before)
        claimed: dict[str, ConfigValue] = {}
        applied: list[str] = []
        skipped: list[str] = []
        rationale: list[str] = []

        for rule in ranked[: self._max_rules]:
            try:
                produced = _as_config(rule.apply(draft, metrics, context))
            except Exception:
                logger.warning("Rule %s transform failed; skipping it", rule.id, exc_info=True)
                RULE_FAILURES_TOTAL.labels(rule_id=rule.id).inc()
                skipped.append(rule.id)
                rationale.append(f"{rule.id} failed, skipped")
                continue

            written = {key for key, value in produced.items() if key not in draft or draft[key] != value}
            written |= rule.declared_writes() & produced.keys()
            produced.update(claimed)
            for key in written - claimed.keys():
                claimed[key] = produced[key]
            draft = produced
            applied.append(rule.id)
            rationale.append(rule.rationale)

        if applied:
            logger.info("Composed adaptation from rules: %s", ", ".join(applied))

        return Decision(
            before=before,
            config=draft,
            candidates=candidate_ids,
            rules_applied=tuple(applied),
            rules_skipped=tuple(skipped),
            rationale=tuple(rationale),
            claimed_keys=frozenset(claimed),
        )

    async def decide(
        self,
        config: PresentationConfig,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
        *,
        adaptation_strength: int,
        acceptance_threshold: float | None = None,
    ) -> Decision:
        decision = self.compose(
            config,
            metrics,
            context,
            adaptation_strength=adaptation_strength,
            acceptance_threshold=acceptance_threshold,
        )
        if self._advisory is None or not decision.rules_applied:
            return decision

        suggestion = await self._advisory.suggest(context, metrics, decision.config)
        if suggestion is None:
            return decision
        return self._merge_advisory(decision, suggestion)

    def _merge_advisory(self, decision: Decision, suggestion: AdvisorySuggestion) -> Decision:
        merged = dict(decision.config)
        for key, suggested in suggestion.parameters.items():
            if key in decision.claimed_keys:
                continue
            current = merged.get(key)
            if _is_number(current) and _is_number(suggested):
                blended = current + (suggested - current) * self._advisory_blend
                merged[key] = round(blended, 4)
            else:
                merged[key] = suggested

        if merged == decision.config:
            return decision

        note = suggestion.reasoning.strip() or "suggestion applied"
        return dataclasses.replace(
            decision,
            config=merged,
            rationale=(*decision.rationale, f"advisory: {note}"),
            advisory_used=True,
        )


def _check_threshold(value: float) -> None:
    if not 0.0 < value <= 1.0:
        raise ValueError("acceptance_threshold must be within (0, 1]")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_config(produced: object) -> PresentationConfig:
    if not isinstance(produced, Mapping):
        raise InvalidTransformError(f"transform returned {type(produced).__name__}, not a mapping")
    config: PresentationConfig = {}
    for key, value in produced.items():
        if not isinstance(key, str):
            raise InvalidTransformError(f"config key {key!r} is not a string")
        if not isinstance(value, _CONFIG_SCALARS):
            raise InvalidTransformError(f"config value for {key!r} is not a scalar")
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidTransformError(f"config value for {key!r} is not finite")
        config[key] = value
    return config


__all__ = [
    "BiasProvider",
    "DEFAULT_ACCEPTANCE_THRESHOLD",
    "DEFAULT_ADVISORY_BLEND",
    "DEFAULT_MAX_RULES_PER_TICK",
    "Decision",
    "DecisionEngine",
    "InvalidTransformError",
]
