"""Bounded, failure-tolerant access to an optional advisory scorer."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import timedelta

from pydantic import ValidationError

from themeshift.core.metrics import ADVISORY_FALLBACKS_TOTAL
from themeshift.models.adaptation import AdvisorySuggestion, PresentationConfig
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext
from themeshift.protocols.advisory import AdvisoryScorer

logger = logging.getLogger(__name__)

DEFAULT_ADVISORY_TIMEOUT_MS = 3_000
DEFAULT_BREAKER_FAILURE_LIMIT = 3
DEFAULT_BREAKER_COOLDOWN = timedelta(minutes=5)


@dataclass
class _Breaker:
    failure_limit: int
    cooldown_seconds: float
    failures: int = 0
    reopens_at: float | None = None

    def is_open(self) -> bool:
        if self.reopens_at is None:
            return False
        if time.monotonic() < self.reopens_at:
            return True
        # Cooldown over: the next call is a fresh trial.
        self.close()
        return False

    def close(self) -> None:
        self.failures = 0
        self.reopens_at = None

    def trip(self) -> None:
        self.failures += 1
        if self.failures >= self.failure_limit:
            self.reopens_at = time.monotonic() + self.cooldown_seconds


class AdvisoryGateway:
    """Calls the advisory scorer and turns every failure into ``None``.

    Timeouts cancel the underlying call. After ``breaker_failure_limit``
    consecutive failures the gateway stops calling the scorer until
    ``breaker_cooldown`` has elapsed.
    """

    def __init__(
        self,
        scorer: AdvisoryScorer,
        *,
        timeout_ms: int = DEFAULT_ADVISORY_TIMEOUT_MS,
        breaker_failure_limit: int = DEFAULT_BREAKER_FAILURE_LIMIT,
        breaker_cooldown: timedelta = DEFAULT_BREAKER_COOLDOWN,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")
        self.scorer = scorer
        self.timeout_seconds = timeout_ms / 1000.0
        self._breaker = _Breaker(breaker_failure_limit, breaker_cooldown.total_seconds())

    @property
    def breaker_open(self) -> bool:
        return self._breaker.is_open()

    async def suggest(
        self,
        context: EnvironmentalContext,
        metrics: BehavioralMetrics,
        config: PresentationConfig,
    ) -> AdvisorySuggestion | None:
        if self._breaker.is_open():
            return self._give_up("breaker_open")

        try:
            raw = await asyncio.wait_for(
                self.scorer.suggest(context, metrics, dict(config)),
                self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Advisory scorer timed out after %.2fs; using rule-composed config",
                self.timeout_seconds,
            )
            return self._give_up("timeout", failed=True)
        except Exception:
            logger.warning("Advisory scorer failed; using rule-composed config", exc_info=True)
            return self._give_up("error", failed=True)

        suggestion = parse_suggestion(raw)
        if suggestion is None:
            logger.warning("Advisory scorer returned an unparseable result; using rule-composed config")
            return self._give_up("unparseable", failed=True)

        self._breaker.close()
        return suggestion

    def _give_up(self, reason: str, *, failed: bool = False) -> None:
        if failed:
            self._breaker.trip()
        ADVISORY_FALLBACKS_TOTAL.labels(reason=reason).inc()
        return None


def parse_suggestion(raw: object) -> AdvisorySuggestion | None:
    if isinstance(raw, AdvisorySuggestion):
        return raw
    try:
        if isinstance(raw, (str, bytes)):
            return AdvisorySuggestion.model_validate_json(raw)
        if isinstance(raw, dict):
            return AdvisorySuggestion.model_validate(raw)
    except ValidationError:
        return None
    return None


__all__ = [
    "AdvisoryGateway",
    "DEFAULT_ADVISORY_TIMEOUT_MS",
    "parse_suggestion",
]
