from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

MOBILE_MAX_WIDTH = 768
TABLET_MAX_WIDTH = 1024


class DeviceClass(StrEnum):
    mobile = "mobile"
    tablet = "tablet"
    desktop = "desktop"


class AmbientLight(StrEnum):
    bright = "bright"
    medium = "medium"
    dim = "dim"
    dark = "dark"


class TimeOfDay(StrEnum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"
    night = "night"


class DeviceInfo(BaseModel):
    """What the host knows about the screen; an explicit class wins over width."""

    model_config = ConfigDict(frozen=True)

    device_class: DeviceClass | None = None
    viewport_width: int | None = Field(default=None, ge=0)

    def resolve_class(self) -> DeviceClass:
        if self.device_class is not None:
            return self.device_class
        if self.viewport_width is None:
            return DeviceClass.desktop
        if self.viewport_width < MOBILE_MAX_WIDTH:
            return DeviceClass.mobile
        if self.viewport_width < TABLET_MAX_WIDTH:
            return DeviceClass.tablet
        return DeviceClass.desktop


class ContentMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str = "general"


class EnvironmentalContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    hour_of_day: int = Field(ge=0, le=23)
    device_class: DeviceClass
    ambient_light: AmbientLight
    content_category: str = "general"
    time_of_day: TimeOfDay

    @property
    def bucket(self) -> str:
        """Coarse key used to group feedback when re-weighting rules."""
        return f"{self.ambient_light.value}:{self.device_class.value}"


class BehavioralMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    scroll_speed: float = Field(default=0.0, ge=0.0)
    pause_frequency: float = Field(default=0.0, ge=0.0)
    clicks_per_minute: float = Field(default=0.0, ge=0.0)
    session_duration_minutes: float = Field(default=0.0, ge=0.0)
    engagement_score: float = Field(default=0.0, ge=0.0, le=100.0)
    eye_strain_index: float = Field(default=0.0, ge=0.0, le=100.0)
    focus_level: float = Field(default=100.0, ge=0.0, le=100.0)


__all__ = [
    "AmbientLight",
    "BehavioralMetrics",
    "ContentMeta",
    "DeviceClass",
    "DeviceInfo",
    "EnvironmentalContext",
    "MOBILE_MAX_WIDTH",
    "TABLET_MAX_WIDTH",
    "TimeOfDay",
]
