from __future__ import annotations

from themeshift.models.adaptation import (
    AdaptationEvent,
    AdvisorySuggestion,
    ConfigValue,
    Feedback,
    NamedConfig,
    PresentationConfig,
    PresetCategory,
    SchedulerState,
    TriggerKind,
    TriggerResult,
    TriggerStatus,
)
from themeshift.models.context import (
    AmbientLight,
    BehavioralMetrics,
    ContentMeta,
    DeviceClass,
    DeviceInfo,
    EnvironmentalContext,
    TimeOfDay,
)
from themeshift.models.signals import InteractionSample, RawSignals, SampleKind

__all__ = [
    "AdaptationEvent",
    "AdvisorySuggestion",
    "AmbientLight",
    "BehavioralMetrics",
    "ConfigValue",
    "ContentMeta",
    "DeviceClass",
    "DeviceInfo",
    "EnvironmentalContext",
    "Feedback",
    "InteractionSample",
    "NamedConfig",
    "PresentationConfig",
    "PresetCategory",
    "RawSignals",
    "SampleKind",
    "SchedulerState",
    "TimeOfDay",
    "TriggerKind",
    "TriggerResult",
    "TriggerStatus",
]
