from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from themeshift.context.weights import MetricWeights
from themeshift.rules.declarative import RuleDefinition


class SignalsConfig(BaseModel):
    buffer_capacity: int = Field(default=100, ge=1)
    window_seconds: float = Field(default=300.0, gt=0)
    scroll_speed_samples: int = Field(default=20, ge=2)


class EngineConfig(BaseModel):
    adaptation_strength: int = Field(default=50, ge=0, le=100)
    """User sensitivity; below ``acceptance_threshold * 100`` no tick adapts."""
    max_rules_per_tick: int = Field(default=3, ge=1)
    acceptance_threshold: float = Field(default=0.2, gt=0.0, le=1.0)
    builtin_rules: bool = True


class SchedulerConfig(BaseModel):
    tick_interval_ms: int = Field(default=30_000, ge=1)
    warmup_minutes: float = Field(default=2.0, ge=0.0)


class AdvisoryConfig(BaseModel):
    """Optional LLM advisory scorer. Disabled unless explicitly enabled."""

    enabled: bool = False
    model: str = "openai:gpt-4o-mini"
    timeout_ms: int = Field(default=3_000, ge=1)
    breaker_failure_limit: int = Field(default=3, ge=1)
    breaker_cooldown_s: float = Field(default=300.0, ge=0.0)
    blend: float = Field(default=0.3, ge=0.0, le=1.0)

    @property
    def breaker_cooldown(self) -> timedelta:
        return timedelta(seconds=self.breaker_cooldown_s)


class HistoryConfig(BaseModel):
    max_events: int = Field(default=50, ge=1)
    reweight_every: int = Field(default=10, ge=1)
    min_samples: int = Field(default=3, ge=1)


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    json_logs: bool = False


class ThemeshiftSettings(BaseSettings):
    engine: EngineConfig = Field(default_factory=EngineConfig)
    signals: SignalsConfig = Field(default_factory=SignalsConfig)
    weights: MetricWeights = Field(default_factory=MetricWeights)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    rules: list[RuleDefinition] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="THEMESHIFT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("rules")
    @classmethod
    def _unique_rule_ids(cls, value: list[RuleDefinition]) -> list[RuleDefinition]:
        seen: set[str] = set()
        for definition in value:
            if definition.id in seen:
                raise ValueError(f"duplicate rule id in config: {definition.id}")
            seen.add(definition.id)
        return value


ENV_PREFIX = "THEMESHIFT_"


def _env_overrides(environ: Mapping[str, str]) -> Iterator[tuple[list[str], object]]:
    """Yield ``(path, value)`` for each ``THEMESHIFT_A__B=value`` variable.

    Values are parsed as YAML scalars, so ``"0.5"`` becomes a float and
    ``"true"`` a bool; an empty value stays a string.
    """
    for name, text in sorted(environ.items()):
        if name.startswith(ENV_PREFIX):
            parsed = yaml.safe_load(text)
            path = name.removeprefix(ENV_PREFIX).lower().split("__")
            yield path, text if parsed is None else parsed


def _merge_env(data: dict[str, object], environ: Mapping[str, str]) -> dict[str, object]:
    result = dict(data)
    for path, value in _env_overrides(environ):
        *parents, leaf = path
        node = result
        for part in parents:
            child = node.get(part)
            node[part] = child = dict(child) if isinstance(child, dict) else {}
            node = child
        node[leaf] = value
    return result


def load_config(path: str | Path = "config/themeshift.yaml") -> ThemeshiftSettings:
    """Load the YAML file at ``path`` (optionally under a ``themeshift:`` key), then env overrides."""
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"config file not found: {source}")

    document = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    if not isinstance(document, dict):
        raise ValueError("config file must contain a top-level mapping")

    section = document.get("themeshift", document)
    if not isinstance(section, dict):
        raise ValueError("themeshift config section must be a mapping")

    return ThemeshiftSettings.model_validate(_merge_env(section, os.environ))


__all__ = [
    "AdvisoryConfig",
    "EngineConfig",
    "HistoryConfig",
    "ObservabilityConfig",
    "SchedulerConfig",
    "SignalsConfig",
    "ThemeshiftSettings",
    "load_config",
]
