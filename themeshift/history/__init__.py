from themeshift.history.store import AdaptationHistory

__all__ = ["AdaptationHistory"]
