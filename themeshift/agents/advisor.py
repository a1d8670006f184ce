"""LLM-backed advisory scorer with structured ``AdvisorySuggestion`` output."""

from __future__ import annotations

import json
import logging

from pydantic_ai import Agent
from pydantic_ai.models import Model

from themeshift.models.adaptation import AdvisorySuggestion, PresentationConfig
from themeshift.models.context import BehavioralMetrics, EnvironmentalContext

logger = logging.getLogger(__name__)

DEFAULT_ADVISOR_SYSTEM_PROMPT = """You tune reading comfort for a news reader.

Given the reader's environment, behavior metrics and current presentation
parameters, return an AdvisorySuggestion. Only include parameters you want to
change. Keep color values in the same notation as the current config.
Numeric parameters such as contrast or intensity should move gradually.
"""


class LLMAdvisoryScorer:
    def __init__(self, model: str | Model, system_prompt: str = DEFAULT_ADVISOR_SYSTEM_PROMPT) -> None:
        self.model = model
        self.system_prompt = system_prompt

        try:
            self.agent: Agent[None, AdvisorySuggestion] | None = Agent(
                model=model,
                output_type=AdvisorySuggestion,
                system_prompt=system_prompt,
            )
        except Exception:
            logger.warning("Failed to initialize advisory agent; advisory calls will fall back")
            self.agent = None

    async def suggest(
        self,
        context: EnvironmentalContext,
        metrics: BehavioralMetrics,
        config: PresentationConfig,
    ) -> AdvisorySuggestion:
        if self.agent is None:
            raise RuntimeError("advisory agent is not available")
        result = await self.agent.run(build_prompt(context, metrics, config))
        return result.output


def build_prompt(
    context: EnvironmentalContext,
    metrics: BehavioralMetrics,
    config: PresentationConfig,
) -> str:
    return (
        "[CONTEXT]\n"
        f"{context.model_dump_json()}\n\n"
        "[METRICS]\n"
        f"{metrics.model_dump_json()}\n\n"
        "[CURRENT CONFIG]\n"
        f"{json.dumps(config, sort_keys=True)}"
    )


def build_advisory_scorer(model: str | Model) -> LLMAdvisoryScorer:
    return LLMAdvisoryScorer(model=model)


__all__ = ["LLMAdvisoryScorer", "build_advisory_scorer", "build_prompt"]
