from __future__ import annotations

from typing import Protocol, runtime_checkable

from themeshift.models.adaptation import NamedConfig, PresentationConfig


@runtime_checkable
class PresentationStore(Protocol):
    def get_current(self) -> PresentationConfig: ...

    def apply(self, config: PresentationConfig) -> None: ...


@runtime_checkable
class PresetCatalog(Protocol):
    def list(self) -> list[NamedConfig]: ...

    def resolve(self, preset_id: str) -> PresentationConfig | None: ...


__all__ = ["PresentationStore", "PresetCatalog"]
