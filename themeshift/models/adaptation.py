from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from themeshift.models.context import BehavioralMetrics, EnvironmentalContext

ConfigValue = str | bool | int | float
PresentationConfig = dict[str, ConfigValue]

POSITIVE_EFFECTIVENESS = 90.0
NEGATIVE_EFFECTIVENESS = 20.0


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_event_id() -> str:
    return f"adapt:{uuid.uuid4().hex}"


class Feedback(StrEnum):
    positive = "positive"
    negative = "negative"
    none = "none"

    @property
    def effectiveness(self) -> float:
        if self is Feedback.positive:
            return POSITIVE_EFFECTIVENESS
        if self is Feedback.negative:
            return NEGATIVE_EFFECTIVENESS
        return 0.0


class TriggerKind(StrEnum):
    scheduled = "scheduled"
    manual = "manual"


class PresetCategory(StrEnum):
    light = "light"
    dark = "dark"
    auto = "auto"


class NamedConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: PresetCategory = PresetCategory.auto
    parameters: PresentationConfig = Field(default_factory=dict)


class AdvisorySuggestion(BaseModel):
    """Typed shape every advisory scorer answer must validate against."""

    model_config = ConfigDict(allow_inf_nan=False)

    parameters: PresentationConfig = Field(default_factory=dict)
    reasoning: str = ""

    @field_validator("parameters")
    @classmethod
    def _reject_non_finite(cls, value: PresentationConfig) -> PresentationConfig:
        for key, item in value.items():
            if isinstance(item, float) and not math.isfinite(item):
                raise ValueError(f"parameter {key!r} is not finite")
        return value


class AdaptationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_event_id)
    timestamp: datetime = Field(default_factory=utc_now)
    trigger: TriggerKind = TriggerKind.scheduled
    context: EnvironmentalContext
    metrics: BehavioralMetrics
    rules_applied: tuple[str, ...] = ()
    before_config: PresentationConfig
    after_config: PresentationConfig
    rationale: tuple[str, ...] = ()
    advisory_used: bool = False
    user_feedback: Feedback = Feedback.none
    effectiveness_score: float = Field(default=0.0, ge=0.0, le=100.0)

    @field_validator("timestamp")
    @classmethod
    def _ensure_timezone_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            raise ValueError("timestamp must be timezone-aware")
        return value

    @property
    def has_feedback(self) -> bool:
        return self.user_feedback is not Feedback.none

    def changed_keys(self) -> list[str]:
        keys = set(self.before_config) | set(self.after_config)
        return sorted(
            key for key in keys if self.before_config.get(key) != self.after_config.get(key)
        )

    def with_feedback(self, feedback: Feedback) -> AdaptationEvent:
        return self.model_copy(
            update={
                "user_feedback": feedback,
                "effectiveness_score": feedback.effectiveness,
            }
        )


class SchedulerState(StrEnum):
    idle = "idle"
    evaluating = "evaluating"
    committing = "committing"


class TriggerStatus(StrEnum):
    completed = "completed"
    rejected = "rejected"


class TriggerResult(BaseModel):
    """Outcome of a manual trigger: a committed event, no change, or rejection."""

    status: TriggerStatus
    event: AdaptationEvent | None = None
    reason: str | None = None

    @property
    def is_rejected(self) -> bool:
        return self.status == TriggerStatus.rejected

    @classmethod
    def completed(cls, event: AdaptationEvent | None) -> TriggerResult:
        return cls(status=TriggerStatus.completed, event=event)

    @classmethod
    def rejected(cls, state: SchedulerState) -> TriggerResult:
        return cls(status=TriggerStatus.rejected, reason=f"scheduler busy ({state.value})")


__all__ = [
    "AdaptationEvent",
    "AdvisorySuggestion",
    "ConfigValue",
    "Feedback",
    "NamedConfig",
    "NEGATIVE_EFFECTIVENESS",
    "POSITIVE_EFFECTIVENESS",
    "PresentationConfig",
    "PresetCategory",
    "SchedulerState",
    "TriggerKind",
    "TriggerResult",
    "TriggerStatus",
    "new_event_id",
    "utc_now",
]
