from themeshift.protocols.advisory import AdvisoryScorer
from themeshift.protocols.presentation import PresentationStore, PresetCatalog
from themeshift.protocols.scheduler import Evaluator, IntervalTimer

__all__ = [
    "AdvisoryScorer",
    "Evaluator",
    "IntervalTimer",
    "PresentationStore",
    "PresetCatalog",
]
