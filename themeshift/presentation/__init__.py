from themeshift.presentation.memory import (
    DEFAULT_CONFIG,
    DEFAULT_PRESETS,
    InMemoryPresentationStore,
    InMemoryPresetCatalog,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_PRESETS",
    "InMemoryPresentationStore",
    "InMemoryPresetCatalog",
]
