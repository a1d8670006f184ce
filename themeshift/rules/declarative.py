"""Data-described rules loaded from configuration.

A definition names its conditions as ``metrics.<field>`` / ``context.<field>``
comparisons and either a fixed set of parameters or a preset id:

    - id: dim-tablet-warmth
      priority: 5
      rationale: Warmer palette for tablets in dim light
      logic: and
      conditions:
        - {field: context.ambient_light, op: eq, value: dim}
        - {field: context.device_class, op: eq, value: tablet}
      set: {background: "oklch(0.98 0.01 30)"}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from themeshift.models.adaptation import ConfigValue
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext
from themeshift.protocols.presentation import PresetCatalog
from themeshift.rules.catalog import preset_fill
from themeshift.rules.model import AdaptationRule, overlay

ComparisonOp = Literal["gt", "ge", "lt", "le", "eq", "ne", "in", "not_in"]

_NAMESPACES: dict[str, frozenset[str]] = {
    "metrics": frozenset(BehavioralMetrics.model_fields),
    "context": frozenset(EnvironmentalContext.model_fields),
}
_NUMERIC_FIELDS = frozenset(
    f"{namespace}.{name}"
    for namespace, model in (("metrics", BehavioralMetrics), ("context", EnvironmentalContext))
    for name, info in model.model_fields.items()
    if info.annotation in (int, float)
)
_ORDERING_OPS = {"gt", "ge", "lt", "le"}
_MEMBERSHIP_OPS = {"in", "not_in"}


class RuleCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    op: ComparisonOp
    value: ConfigValue | list[ConfigValue]

    @field_validator("field")
    @classmethod
    def _validate_field_path(cls, value: str) -> str:
        namespace, _, name = value.strip().partition(".")
        known = _NAMESPACES.get(namespace)
        if known is None:
            raise ValueError("condition field must start with 'metrics.' or 'context.'")
        if name not in known:
            raise ValueError(f"unknown {namespace} field: {name!r}")
        return f"{namespace}.{name}"

    @model_validator(mode="after")
    def _validate_operand(self) -> RuleCondition:
        if self.op in _MEMBERSHIP_OPS and not isinstance(self.value, list):
            raise ValueError(f"op '{self.op}' requires a list value")
        if self.op in _ORDERING_OPS:
            if isinstance(self.value, (list, bool, str)):
                raise ValueError(f"op '{self.op}' requires a numeric value")
            if self.field not in _NUMERIC_FIELDS:
                raise ValueError(f"op '{self.op}' needs a numeric field, not {self.field!r}")
        return self

    def evaluate(self, metrics: BehavioralMetrics, context: EnvironmentalContext) -> bool:
        namespace, _, name = self.field.partition(".")
        source = metrics if namespace == "metrics" else context
        actual = getattr(source, name)

        if self.op == "eq":
            return actual == self.value
        if self.op == "ne":
            return actual != self.value
        if self.op == "in":
            return actual in self.value
        if self.op == "not_in":
            return actual not in self.value

        number = float(actual)
        threshold = float(self.value)
        if self.op == "gt":
            return number > threshold
        if self.op == "ge":
            return number >= threshold
        if self.op == "lt":
            return number < threshold
        return number <= threshold


class RuleDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = ""
    priority: int
    rationale: str = Field(min_length=1)
    logic: Literal["and", "or"] = "and"
    conditions: list[RuleCondition] = Field(min_length=1)
    set_values: dict[str, ConfigValue] = Field(default_factory=dict, alias="set")
    preset: str | None = None

    @model_validator(mode="after")
    def _validate_action(self) -> RuleDefinition:
        if bool(self.set_values) == bool(self.preset):
            raise ValueError("rule must define exactly one of 'set' or 'preset'")
        return self

    def matches(self, metrics: BehavioralMetrics, context: EnvironmentalContext) -> bool:
        results = (condition.evaluate(metrics, context) for condition in self.conditions)
        if self.logic == "or":
            return any(results)
        return all(results)

    def to_rule(self, presets: PresetCatalog | None = None) -> AdaptationRule:
        if self.preset is not None:
            if presets is None:
                raise ValueError(f"rule '{self.id}' references preset '{self.preset}' but no catalog")
            transform = preset_fill(presets, self.preset)
        else:
            transform = overlay(self.set_values)
        return AdaptationRule(
            id=self.id,
            name=self.name,
            priority=self.priority,
            predicate=self.matches,
            transform=transform,
            rationale=self.rationale,
            source="config",
        )


def compile_rules(
    definitions: list[RuleDefinition] | list[Mapping[str, object]],
    presets: PresetCatalog | None = None,
) -> list[AdaptationRule]:
    compiled: list[AdaptationRule] = []
    for definition in definitions:
        if not isinstance(definition, RuleDefinition):
            definition = RuleDefinition.model_validate(definition)
        compiled.append(definition.to_rule(presets))
    return compiled


__all__ = ["ComparisonOp", "RuleCondition", "RuleDefinition", "compile_rules"]
