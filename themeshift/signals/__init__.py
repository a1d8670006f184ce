from themeshift.signals.collector import SignalCollector

__all__ = ["SignalCollector"]
