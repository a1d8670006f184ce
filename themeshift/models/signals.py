from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SampleKind(StrEnum):
    scroll = "scroll"
    click = "click"
    focus_pause = "focus_pause"


class InteractionSample(BaseModel):
    """One observed interaction.

    ``scalar_value`` is the scroll position in pixels for ``scroll`` samples
    and the pause length in milliseconds for ``focus_pause`` samples. Clicks
    carry no meaningful value.
    """

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    kind: SampleKind
    scalar_value: float = 1.0


class RawSignals(BaseModel):
    """Best-effort copy of the collector window handed to the context detector."""

    model_config = ConfigDict(frozen=True)

    samples: tuple[InteractionSample, ...] = ()
    session_started_ms: int | None = None
    window_ms: int | None = Field(default=None, gt=0)
    dropped_count: int = Field(default=0, ge=0)

    def of_kind(self, kind: SampleKind) -> list[InteractionSample]:
        return [sample for sample in self.samples if sample.kind == kind]


__all__ = ["InteractionSample", "RawSignals", "SampleKind"]
