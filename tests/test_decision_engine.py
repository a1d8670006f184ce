from __future__ import annotations

import random

import pytest
from themeshift.engine.decision import DecisionEngine
from themeshift.models.context import AmbientLight, DeviceClass
from themeshift.presentation.memory import DEFAULT_CONFIG
from themeshift.rules.catalog import RuleCatalog
from themeshift.rules.model import AdaptationRule, overlay

from tests.helpers import make_context, make_metrics


def _always(rule_id: str, priority: int, values: dict[str, object]) -> AdaptationRule:
    return AdaptationRule(
        id=rule_id,
        priority=priority,
        predicate=lambda metrics, context: True,
        transform=overlay(values),
        rationale=f"{rule_id} rationale",
    )


def _engine(*rules: AdaptationRule, **kwargs: object) -> DecisionEngine:
    return DecisionEngine(RuleCatalog(rules), **kwargs)  # type: ignore[arg-type]


class TestCandidates:
    def test_priority_then_id(self) -> None:
        engine = _engine(
            _always("b-rule", 5, {}),
            _always("a-rule", 5, {}),
            _always("top", 9, {}),
            _always("low", 1, {}),
        )
        ranked = engine.candidates(make_metrics(), make_context())
        assert [rule.id for rule in ranked] == ["top", "a-rule", "b-rule", "low"]

    def test_bias_breaks_equal_priority_ties_only(self) -> None:
        engine = _engine(
            _always("a-rule", 5, {}),
            _always("b-rule", 5, {}),
            _always("c-rule", 6, {}),
            bias_provider=lambda context: {"b-rule": 0.5, "c-rule": -1.0},
        )
        ranked = engine.candidates(make_metrics(), make_context())
        assert [rule.id for rule in ranked] == ["c-rule", "b-rule", "a-rule"]

    def test_raising_predicate_is_not_a_candidate(self) -> None:
        def boom(metrics, context):  # type: ignore[no-untyped-def]
            raise ZeroDivisionError

        broken = AdaptationRule(
            id="broken",
            priority=9,
            predicate=boom,
            transform=overlay({}),
            rationale="never",
        )
        engine = _engine(broken, _always("fine", 1, {}))
        assert [rule.id for rule in engine.candidates(make_metrics(), make_context())] == ["fine"]


class TestCompose:
    def test_higher_priority_value_survives_same_key(self) -> None:
        engine = _engine(
            _always("p7", 7, {"background": "seven", "border": "seven"}),
            _always("p9", 9, {"background": "nine"}),
        )
        decision = engine.compose({"background": "white"}, make_metrics(), make_context(), adaptation_strength=100)

        assert decision.rules_applied == ("p9", "p7")
        assert decision.config == {"background": "nine", "border": "seven"}
        assert decision.claimed_keys == frozenset({"background", "border"})
        assert decision.rationale == ("p9 rationale", "p7 rationale")

    def test_lower_priority_cannot_delete_claimed_key(self) -> None:
        def drop_background(config, metrics, context):  # type: ignore[no-untyped-def]
            return {key: value for key, value in config.items() if key != "background"}

        engine = _engine(
            _always("p9", 9, {"background": "nine"}),
            AdaptationRule(
                id="p1",
                priority=1,
                predicate=lambda metrics, context: True,
                transform=drop_background,
                rationale="drops",
            ),
        )
        decision = engine.compose({}, make_metrics(), make_context(), adaptation_strength=100)
        assert decision.config["background"] == "nine"

    def test_max_rules_per_tick(self) -> None:
        engine = _engine(
            *(_always(f"rule-{index}", index, {f"key-{index}": index}) for index in range(1, 5)),
            max_rules_per_tick=3,
        )
        decision = engine.compose({}, make_metrics(), make_context(), adaptation_strength=100)
        assert decision.rules_applied == ("rule-4", "rule-3", "rule-2")
        assert decision.candidates == ("rule-4", "rule-3", "rule-2", "rule-1")
        assert "key-1" not in decision.config

    def test_failing_transform_is_skipped(self) -> None:
        def explode(config, metrics, context):  # type: ignore[no-untyped-def]
            raise RuntimeError("bad transform")

        engine = _engine(
            AdaptationRule(
                id="exploding",
                priority=8,
                predicate=lambda metrics, context: True,
                transform=explode,
                rationale="never shown",
            ),
            _always("steady", 5, {"accent": "blue"}),
        )
        decision = engine.compose({}, make_metrics(), make_context(), adaptation_strength=100)

        assert decision.rules_applied == ("steady",)
        assert decision.rules_skipped == ("exploding",)
        assert decision.rationale == ("exploding failed, skipped", "steady rationale")
        assert decision.config == {"accent": "blue"}

    @pytest.mark.parametrize(
        "produced",
        [None, ["background"], {"background": ["a", "b"]}, {"contrast": float("nan")}],
    )
    def test_invalid_transform_output_is_skipped(self, produced: object) -> None:
        engine = _engine(
            AdaptationRule(
                id="invalid",
                priority=5,
                predicate=lambda metrics, context: True,
                transform=lambda config, metrics, context: produced,  # type: ignore[arg-type,return-value]
                rationale="invalid",
            )
        )
        decision = engine.compose({"a": 1}, make_metrics(), make_context(), adaptation_strength=100)
        assert decision.rules_applied == ()
        assert decision.rules_skipped == ("invalid",)
        assert not decision.has_change

    def test_no_candidates_means_no_change(self) -> None:
        engine = _engine()
        decision = engine.compose(dict(DEFAULT_CONFIG), make_metrics(), make_context(), adaptation_strength=100)
        assert decision.config == DEFAULT_CONFIG
        assert not decision.has_change
        assert not decision.gated

    def test_input_config_not_mutated(self) -> None:
        engine = _engine(_always("p9", 9, {"background": "nine"}))
        before = {"background": "white"}
        engine.compose(before, make_metrics(), make_context(), adaptation_strength=100)
        assert before == {"background": "white"}

    def test_recomposing_own_output_is_stable(self, catalog: RuleCatalog) -> None:
        engine = DecisionEngine(catalog)
        metrics = make_metrics(session_duration_minutes=30)
        context = make_context(23, DeviceClass.mobile)

        first = engine.compose(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=100)
        second = engine.compose(first.config, metrics, context, adaptation_strength=100)

        assert first.has_change
        assert first.config["background"] == "oklch(0.08 0.01 230)"
        assert second.config == first.config
        assert not second.has_change

    def test_same_values_as_before_is_not_a_change(self) -> None:
        engine = _engine(_always("p9", 9, {"background": "white"}))
        decision = engine.compose({"background": "white"}, make_metrics(), make_context(), adaptation_strength=100)
        assert decision.rules_applied == ("p9",)
        assert not decision.has_change


class TestSensitivityGate:
    def test_zero_strength_never_adapts(self) -> None:
        engine = _engine(_always("p9", 9, {"background": "nine"}))
        decision = engine.compose({}, make_metrics(), make_context(), adaptation_strength=0)
        assert decision.gated
        assert decision.rules_applied == ()
        assert decision.candidates == ("p9",)

    @pytest.mark.parametrize(("strength", "gated"), [(19, True), (20, False), (100, False)])
    def test_default_threshold(self, strength: int, gated: bool) -> None:
        engine = _engine(_always("p9", 9, {"background": "nine"}))
        decision = engine.compose({}, make_metrics(), make_context(), adaptation_strength=strength)
        assert decision.gated is gated

    def test_per_call_threshold_override(self) -> None:
        engine = _engine(_always("p9", 9, {"background": "nine"}))
        decision = engine.compose(
            {},
            make_metrics(),
            make_context(),
            adaptation_strength=50,
            acceptance_threshold=0.6,
        )
        assert decision.gated

    @pytest.mark.parametrize("strength", [-1, 101])
    def test_strength_out_of_range(self, strength: int) -> None:
        with pytest.raises(ValueError, match="adaptation_strength"):
            _engine().compose({}, make_metrics(), make_context(), adaptation_strength=strength)

    @pytest.mark.parametrize("threshold", [0.0, 1.5])
    def test_threshold_out_of_range(self, threshold: float) -> None:
        with pytest.raises(ValueError, match="acceptance_threshold"):
            _engine(acceptance_threshold=threshold)

    def test_zero_strength_across_random_inputs(self, catalog: RuleCatalog) -> None:
        engine = DecisionEngine(catalog)
        rng = random.Random(1234)
        for _ in range(1_000):
            metrics = make_metrics(
                engagement_score=rng.uniform(0, 100),
                eye_strain_index=rng.uniform(0, 100),
                focus_level=rng.uniform(0, 100),
                session_duration_minutes=rng.uniform(0, 120),
            )
            context = make_context(
                rng.randrange(24),
                rng.choice(list(DeviceClass)),
                ambient=rng.choice(list(AmbientLight)),
            )
            decision = engine.compose(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=0)
            assert not decision.has_change
            assert decision.config == DEFAULT_CONFIG


def test_compose_is_deterministic(catalog: RuleCatalog) -> None:
    engine = DecisionEngine(catalog, max_rules_per_tick=5)
    metrics = make_metrics(engagement_score=90, eye_strain_index=75, session_duration_minutes=30)
    context = make_context(21, DeviceClass.mobile)

    first = engine.compose(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=80)
    for _ in range(20):
        again = engine.compose(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=80)
        assert again == first


@pytest.mark.asyncio
async def test_decide_without_advisory_matches_compose(catalog: RuleCatalog) -> None:
    engine = DecisionEngine(catalog)
    metrics = make_metrics(session_duration_minutes=30)
    context = make_context(23)
    composed = engine.compose(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=50)
    decided = await engine.decide(dict(DEFAULT_CONFIG), metrics, context, adaptation_strength=50)
    assert decided == composed
    assert not decided.advisory_used
