from themeshift.engine.advisory import AdvisoryGateway, parse_suggestion
from themeshift.engine.decision import Decision, DecisionEngine, InvalidTransformError
from themeshift.engine.pipeline import AdaptationPipeline, Evaluation

__all__ = [
    "AdaptationPipeline",
    "AdvisoryGateway",
    "Decision",
    "DecisionEngine",
    "Evaluation",
    "InvalidTransformError",
    "parse_suggestion",
]
