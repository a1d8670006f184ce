from __future__ import annotations

import logging

from themeshift.models.adaptation import NamedConfig, PresentationConfig, PresetCategory

logger = logging.getLogger(__name__)

DEFAULT_PRESETS: tuple[NamedConfig, ...] = (
    NamedConfig(
        id="light",
        name="Light",
        description="Default bright palette",
        category=PresetCategory.light,
        parameters={
            "primary": "oklch(0.25 0.08 250)",
            "secondary": "oklch(0.9 0 0)",
            "accent": "oklch(0.65 0.15 45)",
            "background": "oklch(1 0 0)",
            "foreground": "oklch(0.15 0 0)",
            "card": "oklch(0.98 0 0)",
            "card_foreground": "oklch(0.15 0 0)",
            "muted": "oklch(0.95 0 0)",
            "border": "oklch(0.9 0 0)",
        },
    ),
    NamedConfig(
        id="dark",
        name="Dark",
        description="Dark palette that is easy on the eyes",
        category=PresetCategory.dark,
        parameters={
            "primary": "oklch(0.6 0.15 250)",
            "secondary": "oklch(0.15 0 0)",
            "accent": "oklch(0.7 0.2 45)",
            "background": "oklch(0.08 0 0)",
            "foreground": "oklch(0.9 0 0)",
            "card": "oklch(0.12 0 0)",
            "card_foreground": "oklch(0.9 0 0)",
            "muted": "oklch(0.15 0 0)",
            "border": "oklch(0.2 0 0)",
        },
    ),
    NamedConfig(
        id="warm",
        name="Warm",
        description="Warm palette for relaxed reading",
        category=PresetCategory.light,
        parameters={
            "primary": "oklch(0.4 0.12 20)",
            "secondary": "oklch(0.92 0.01 30)",
            "accent": "oklch(0.6 0.18 35)",
            "background": "oklch(0.98 0.01 30)",
            "foreground": "oklch(0.2 0.02 30)",
            "card": "oklch(0.96 0.02 30)",
            "card_foreground": "oklch(0.2 0.02 30)",
            "muted": "oklch(0.93 0.02 30)",
            "border": "oklch(0.88 0.03 30)",
        },
    ),
    NamedConfig(
        id="cool",
        name="Cool",
        description="Cool dark palette for deep focus",
        category=PresetCategory.dark,
        parameters={
            "primary": "oklch(0.55 0.2 220)",
            "secondary": "oklch(0.18 0.02 240)",
            "accent": "oklch(0.65 0.25 200)",
            "background": "oklch(0.12 0.02 240)",
            "foreground": "oklch(0.85 0.03 240)",
            "card": "oklch(0.15 0.02 240)",
            "card_foreground": "oklch(0.85 0.03 240)",
            "muted": "oklch(0.18 0.02 240)",
            "border": "oklch(0.25 0.03 240)",
        },
    ),
)

DEFAULT_CONFIG: PresentationConfig = {
    **DEFAULT_PRESETS[0].parameters,
    "contrast_level": "normal",
    "reduce_motion": False,
}


class InMemoryPresetCatalog:
    def __init__(self, presets: tuple[NamedConfig, ...] | list[NamedConfig] = DEFAULT_PRESETS) -> None:
        self._presets: dict[str, NamedConfig] = {}
        for preset in presets:
            if preset.id in self._presets:
                raise ValueError(f"duplicate preset id '{preset.id}'")
            self._presets[preset.id] = preset

    def list(self) -> list[NamedConfig]:
        return list(self._presets.values())

    def resolve(self, preset_id: str) -> PresentationConfig | None:
        preset = self._presets.get(preset_id)
        if preset is None:
            return None
        return dict(preset.parameters)


class InMemoryPresentationStore:
    """Holds the single current presentation config for a session."""

    def __init__(self, initial: PresentationConfig | None = None) -> None:
        self._current: PresentationConfig = dict(DEFAULT_CONFIG if initial is None else initial)
        self.apply_count = 0

    def get_current(self) -> PresentationConfig:
        return dict(self._current)

    def apply(self, config: PresentationConfig) -> None:
        self._current = dict(config)
        self.apply_count += 1
        logger.debug("Presentation config replaced (%d parameters)", len(config))


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_PRESETS",
    "InMemoryPresentationStore",
    "InMemoryPresetCatalog",
]
