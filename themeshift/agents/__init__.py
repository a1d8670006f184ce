from themeshift.agents.advisor import LLMAdvisoryScorer, build_advisory_scorer

__all__ = ["LLMAdvisoryScorer", "build_advisory_scorer"]
