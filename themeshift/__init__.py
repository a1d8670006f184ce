"""themeshift: a behavioral adaptation engine."""

from themeshift.config import ThemeshiftSettings, load_config
from themeshift.session import AdaptationSession, build_catalog

__all__ = ["AdaptationSession", "ThemeshiftSettings", "build_catalog", "load_config"]
