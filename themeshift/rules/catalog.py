"""Rule catalog and the built-in adaptation rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from themeshift.models.adaptation import PresentationConfig
from themeshift.models.context import (
    AmbientLight,
    BehavioralMetrics,
    DeviceClass,
    EnvironmentalContext,
)
from themeshift.protocols.presentation import PresetCatalog
from themeshift.rules.model import AdaptationRule, RuleTransform, overlay

logger = logging.getLogger(__name__)

NIGHT_STARTS_AT = 20
NIGHT_ENDS_AT = 6
MORNING_STARTS_AT = 6
MORNING_ENDS_AT = 10
LONG_SESSION_MINUTES = 15.0
HIGH_ENGAGEMENT = 80.0
LOW_FOCUS = 40.0
HIGH_EYE_STRAIN = 60.0
DARK_PRESET_ID = "dark"


class RuleCatalog:
    """Ordered-by-id registry of adaptation rules.

    Evaluations work on ``snapshot()``, an immutable tuple, so registering or
    replacing rules never affects an evaluation already in progress.
    """

    def __init__(self, rules: Iterable[AdaptationRule] = ()) -> None:
        self._rules: tuple[AdaptationRule, ...] = ()
        self.extend(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[AdaptationRule]:
        return iter(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(rule.id == rule_id for rule in self._rules)

    @property
    def ids(self) -> list[str]:
        return [rule.id for rule in self._rules]

    def snapshot(self) -> tuple[AdaptationRule, ...]:
        return self._rules

    def get(self, rule_id: str) -> AdaptationRule | None:
        return next((rule for rule in self._rules if rule.id == rule_id), None)

    def register(self, rule: AdaptationRule) -> None:
        if rule.id in self:
            raise ValueError(f"rule '{rule.id}' already registered")
        self._rules = tuple(sorted((*self._rules, rule), key=lambda item: item.id))
        logger.debug("Registered rule %s (priority %d)", rule.id, rule.priority)

    def extend(self, rules: Iterable[AdaptationRule]) -> None:
        for rule in rules:
            self.register(rule)

    def replace(self, rules: Iterable[AdaptationRule]) -> None:
        """Swap the whole rule set at once (hot reload)."""
        incoming = list(rules)
        seen: set[str] = set()
        for rule in incoming:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id '{rule.id}'")
            seen.add(rule.id)
        self._rules = tuple(sorted(incoming, key=lambda item: item.id))
        logger.info("Rule catalog replaced with %d rules", len(self._rules))

    def describe(self) -> list[dict[str, object]]:
        ordered = sorted(self._rules, key=lambda item: (-item.priority, item.id))
        return [rule.describe() for rule in ordered]


def preset_fill(presets: PresetCatalog, preset_id: str) -> RuleTransform:
    """Transform that copies a whole named bundle over the draft."""

    def _transform(
        config: PresentationConfig,
        metrics: BehavioralMetrics,
        context: EnvironmentalContext,
    ) -> Mapping[str, object]:
        parameters = presets.resolve(preset_id)
        if parameters is None:
            raise LookupError(f"preset '{preset_id}' is not in the catalog")
        return {**config, **parameters}

    _transform.writes = frozenset(presets.resolve(preset_id) or ())  # type: ignore[attr-defined]
    return _transform


def _is_night(metrics: BehavioralMetrics, context: EnvironmentalContext) -> bool:
    return context.hour_of_day >= NIGHT_STARTS_AT or context.hour_of_day <= NIGHT_ENDS_AT


def _is_morning(metrics: BehavioralMetrics, context: EnvironmentalContext) -> bool:
    return MORNING_STARTS_AT <= context.hour_of_day <= MORNING_ENDS_AT


def builtin_rules(presets: PresetCatalog | None = None) -> list[AdaptationRule]:
    rules = [
        AdaptationRule(
            id="night-reading-comfort",
            name="Night reading comfort",
            priority=9,
            predicate=_is_night,
            transform=overlay(
                {
                    "background": "oklch(0.08 0.01 230)",
                    "foreground": "oklch(0.85 0.02 40)",
                    "card": "oklch(0.12 0.01 230)",
                    "card_foreground": "oklch(0.85 0.02 40)",
                    "primary": "oklch(0.6 0.15 40)",
                    "accent": "oklch(0.5 0.2 60)",
                }
            ),
            rationale="Applied a dark palette for comfortable night reading",
        ),
        AdaptationRule(
            id="high-engagement-contrast",
            name="High engagement contrast",
            priority=7,
            predicate=lambda metrics, context: metrics.engagement_score > HIGH_ENGAGEMENT,
            transform=overlay(
                {
                    "primary": "oklch(0.2 0.15 250)",
                    "accent": "oklch(0.7 0.25 45)",
                    "border": "oklch(0.15 0.05 250)",
                    "foreground": "oklch(0.05 0 0)",
                    "contrast_level": "high",
                }
            ),
            rationale="Raised contrast to support high engagement",
        ),
        AdaptationRule(
            id="mobile-readability",
            name="Mobile readability",
            priority=6,
            predicate=lambda metrics, context: context.device_class == DeviceClass.mobile,
            transform=overlay(
                {
                    "background": "oklch(0.99 0 0)",
                    "foreground": "oklch(0.1 0 0)",
                    "card": "oklch(0.97 0.01 45)",
                    "muted": "oklch(0.96 0.01 45)",
                }
            ),
            rationale="Tuned colors for small screens",
        ),
        AdaptationRule(
            id="long-session-eye-comfort",
            name="Long session eye comfort",
            priority=8,
            predicate=lambda metrics, context: (
                metrics.session_duration_minutes > LONG_SESSION_MINUTES
            ),
            transform=overlay(
                {
                    "background": "oklch(0.94 0.02 45)",
                    "card": "oklch(0.96 0.01 45)",
                    "foreground": "oklch(0.25 0.05 45)",
                    "primary": "oklch(0.35 0.12 160)",
                }
            ),
            rationale="Applied eye-friendly colors for a long reading session",
        ),
        AdaptationRule(
            id="morning-energy-boost",
            name="Morning energy boost",
            priority=5,
            predicate=_is_morning,
            transform=overlay(
                {
                    "primary": "oklch(0.45 0.15 45)",
                    "accent": "oklch(0.65 0.2 60)",
                    "background": "oklch(0.99 0.005 45)",
                }
            ),
            rationale="Fresh colors to energize morning reading",
        ),
        AdaptationRule(
            id="low-focus-enhancement",
            name="Low focus enhancement",
            priority=6,
            predicate=lambda metrics, context: metrics.focus_level < LOW_FOCUS,
            transform=overlay(
                {
                    "primary": "oklch(0.3 0.15 250)",
                    "accent": "oklch(0.6 0.2 30)",
                    "border": "oklch(0.2 0.1 250)",
                }
            ),
            rationale="Stimulating accents to recover attention",
        ),
        AdaptationRule(
            id="eye-strain-relief",
            name="Eye strain relief",
            priority=9,
            predicate=lambda metrics, context: metrics.eye_strain_index > HIGH_EYE_STRAIN,
            transform=overlay(
                {
                    "background": "oklch(0.92 0.02 120)",
                    "foreground": "oklch(0.3 0.05 120)",
                    "card": "oklch(0.94 0.01 120)",
                    "primary": "oklch(0.4 0.1 160)",
                    "reduce_motion": True,
                }
            ),
            rationale="Calm green tones and reduced motion to relieve eye strain",
        ),
    ]
    if presets is not None:
        rules.append(
            AdaptationRule(
                id="dark-ambient-preset",
                name="Dark ambient preset",
                priority=4,
                predicate=lambda metrics, context: context.ambient_light == AmbientLight.dark,
                transform=preset_fill(presets, DARK_PRESET_ID),
                rationale="Switched to the dark preset for a dark environment",
            )
        )
    return rules


def build_default_catalog(presets: PresetCatalog | None = None) -> RuleCatalog:
    return RuleCatalog(builtin_rules(presets))


__all__ = [
    "RuleCatalog",
    "build_default_catalog",
    "builtin_rules",
    "preset_fill",
]
