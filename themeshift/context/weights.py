"""Weights for the derived behavioral scores.

Each score is a clamped linear combination of session duration, pause
frequency and scroll speed. The defaults reproduce the production tuning:

    eye_strain = minutes * 3.0 + pauses_per_minute * 20.0 + (30.0 if scroll > 1000 px/s)
    focus      = 100.0 - pauses_per_minute * 15.0 - (20.0 if scroll > 2000 px/s)
    engagement = 70.0 - pauses_per_minute * 10.0 + (15.0 if minutes > 5)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

EYE_STRAIN_PER_SESSION_MINUTE = 3.0
EYE_STRAIN_PER_PAUSE = 20.0
EYE_STRAIN_FAST_SCROLL_THRESHOLD = 1000.0
EYE_STRAIN_FAST_SCROLL_PENALTY = 30.0

FOCUS_BASE = 100.0
FOCUS_PER_PAUSE = 15.0
FOCUS_FAST_SCROLL_THRESHOLD = 2000.0
FOCUS_FAST_SCROLL_PENALTY = 20.0

ENGAGEMENT_BASE = 70.0
ENGAGEMENT_PER_PAUSE = 10.0
ENGAGEMENT_SESSION_BONUS = 15.0
ENGAGEMENT_BONUS_AFTER_MINUTES = 5.0

SCORE_MIN = 0.0
SCORE_MAX = 100.0


class MetricWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    eye_strain_per_session_minute: float = EYE_STRAIN_PER_SESSION_MINUTE
    eye_strain_per_pause: float = EYE_STRAIN_PER_PAUSE
    eye_strain_fast_scroll_threshold: float = Field(default=EYE_STRAIN_FAST_SCROLL_THRESHOLD, ge=0.0)
    eye_strain_fast_scroll_penalty: float = EYE_STRAIN_FAST_SCROLL_PENALTY

    focus_base: float = FOCUS_BASE
    focus_per_pause: float = FOCUS_PER_PAUSE
    focus_fast_scroll_threshold: float = Field(default=FOCUS_FAST_SCROLL_THRESHOLD, ge=0.0)
    focus_fast_scroll_penalty: float = FOCUS_FAST_SCROLL_PENALTY

    engagement_base: float = ENGAGEMENT_BASE
    engagement_per_pause: float = ENGAGEMENT_PER_PAUSE
    engagement_session_bonus: float = ENGAGEMENT_SESSION_BONUS
    engagement_bonus_after_minutes: float = Field(default=ENGAGEMENT_BONUS_AFTER_MINUTES, ge=0.0)


def clamp_score(value: float) -> float:
    return min(SCORE_MAX, max(SCORE_MIN, value))


__all__ = ["MetricWeights", "clamp_score"]
