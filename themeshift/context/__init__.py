from themeshift.context.detector import (
    ContextDetector,
    ambient_light_for_hour,
    time_of_day_for_hour,
)
from themeshift.context.weights import MetricWeights

__all__ = [
    "ContextDetector",
    "MetricWeights",
    "ambient_light_for_hour",
    "time_of_day_for_hour",
]
