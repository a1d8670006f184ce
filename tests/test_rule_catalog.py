from __future__ import annotations

import pytest
from themeshift.models.context import AmbientLight, DeviceClass
from themeshift.presentation.memory import InMemoryPresetCatalog
from themeshift.rules.catalog import RuleCatalog, build_default_catalog, builtin_rules, preset_fill
from themeshift.rules.model import AdaptationRule, overlay

from tests.helpers import make_context, make_metrics

BUILTIN_IDS = {
    "night-reading-comfort",
    "high-engagement-contrast",
    "mobile-readability",
    "long-session-eye-comfort",
    "morning-energy-boost",
    "low-focus-enhancement",
    "eye-strain-relief",
}


def _rule(rule_id: str, priority: int = 5) -> AdaptationRule:
    return AdaptationRule(
        id=rule_id,
        priority=priority,
        predicate=lambda metrics, context: True,
        transform=overlay({"background": rule_id}),
        rationale=f"{rule_id} fired",
    )


class TestRuleCatalog:
    def test_register_keeps_id_order(self) -> None:
        catalog = RuleCatalog([_rule("b"), _rule("a"), _rule("c")])
        assert catalog.ids == ["a", "b", "c"]
        assert "b" in catalog
        assert len(catalog) == 3

    def test_duplicate_id_rejected(self) -> None:
        catalog = RuleCatalog([_rule("a")])
        with pytest.raises(ValueError, match="already registered"):
            catalog.register(_rule("a", priority=9))

    def test_blank_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            _rule("  ")

    def test_snapshot_unaffected_by_later_registration(self) -> None:
        catalog = RuleCatalog([_rule("a")])
        snapshot = catalog.snapshot()
        catalog.register(_rule("b"))
        assert [rule.id for rule in snapshot] == ["a"]
        assert catalog.ids == ["a", "b"]

    def test_replace_swaps_rules(self) -> None:
        catalog = RuleCatalog([_rule("a")])
        catalog.replace([_rule("x"), _rule("y")])
        assert catalog.ids == ["x", "y"]
        assert catalog.get("a") is None

    def test_replace_rejects_duplicates(self) -> None:
        catalog = RuleCatalog([_rule("a")])
        with pytest.raises(ValueError, match="duplicate"):
            catalog.replace([_rule("x"), _rule("x")])
        assert catalog.ids == ["a"]

    def test_describe_orders_by_priority_then_id(self) -> None:
        catalog = RuleCatalog([_rule("b", 5), _rule("a", 5), _rule("z", 9)])
        assert [entry["id"] for entry in catalog.describe()] == ["z", "a", "b"]


class TestBuiltinRules:
    def test_builtin_ids_without_presets(self) -> None:
        assert {rule.id for rule in builtin_rules()} == BUILTIN_IDS

    def test_dark_preset_rule_needs_catalog(self, presets: InMemoryPresetCatalog) -> None:
        catalog = build_default_catalog(presets)
        assert set(catalog.ids) == BUILTIN_IDS | {"dark-ambient-preset"}

    @pytest.mark.parametrize(
        ("hour", "expected"),
        [(20, True), (23, True), (0, True), (6, True), (7, False), (19, False)],
    )
    def test_night_window(self, hour: int, expected: bool) -> None:
        rule = RuleCatalog(builtin_rules()).get("night-reading-comfort")
        assert rule is not None
        assert rule.matches(make_metrics(), make_context(hour)) is expected

    def test_threshold_predicates(self) -> None:
        catalog = RuleCatalog(builtin_rules())
        context = make_context(14)

        def fires(rule_id: str, **metrics: float) -> bool:
            rule = catalog.get(rule_id)
            assert rule is not None
            return rule.matches(make_metrics(**metrics), context)

        assert fires("high-engagement-contrast", engagement_score=81)
        assert not fires("high-engagement-contrast", engagement_score=80)
        assert fires("low-focus-enhancement", focus_level=39)
        assert not fires("low-focus-enhancement", focus_level=40)
        assert fires("eye-strain-relief", eye_strain_index=61)
        assert not fires("eye-strain-relief", eye_strain_index=60)
        assert fires("long-session-eye-comfort", session_duration_minutes=16)
        assert not fires("long-session-eye-comfort", session_duration_minutes=15)

    def test_mobile_rule(self) -> None:
        rule = RuleCatalog(builtin_rules()).get("mobile-readability")
        assert rule is not None
        assert rule.matches(make_metrics(), make_context(14, DeviceClass.mobile))
        assert not rule.matches(make_metrics(), make_context(14, DeviceClass.tablet))

    def test_dark_preset_rule_copies_bundle(self, presets: InMemoryPresetCatalog) -> None:
        rule = build_default_catalog(presets).get("dark-ambient-preset")
        assert rule is not None
        context = make_context(3)
        assert context.ambient_light == AmbientLight.dark
        assert rule.matches(make_metrics(), context)

        result = rule.apply({"font_scale": 1.1}, make_metrics(), context)
        assert result["background"] == presets.resolve("dark")["background"]
        assert result["font_scale"] == 1.1


def test_preset_fill_missing_preset_raises() -> None:
    transform = preset_fill(InMemoryPresetCatalog([]), "sepia")
    with pytest.raises(LookupError, match="sepia"):
        transform({}, make_metrics(), make_context())


def test_transform_receives_a_copy() -> None:
    seen: list[dict[str, object]] = []

    def mutate(config, metrics, context):  # type: ignore[no-untyped-def]
        config["background"] = "changed"
        seen.append(config)
        return config

    rule = AdaptationRule(
        id="mutator",
        priority=1,
        predicate=lambda metrics, context: True,
        transform=mutate,
        rationale="mutates",
    )
    original = {"background": "white"}
    rule.apply(original, make_metrics(), make_context())
    assert original == {"background": "white"}
    assert seen[0]["background"] == "changed"
