from __future__ import annotations

from datetime import datetime

import pytest
from themeshift.history.store import AdaptationHistory
from themeshift.presentation.memory import InMemoryPresentationStore, InMemoryPresetCatalog
from themeshift.rules.catalog import RuleCatalog, build_default_catalog

from tests.fakes import FakeIntervalTimer, FixedClock


@pytest.fixture
def presets() -> InMemoryPresetCatalog:
    return InMemoryPresetCatalog()


@pytest.fixture
def store() -> InMemoryPresentationStore:
    return InMemoryPresentationStore()


@pytest.fixture
def catalog(presets: InMemoryPresetCatalog) -> RuleCatalog:
    return build_default_catalog(presets)


@pytest.fixture
def history() -> AdaptationHistory:
    return AdaptationHistory()


@pytest.fixture
def late_evening() -> datetime:
    return datetime(2026, 3, 2, 23, 0).astimezone()


@pytest.fixture
def clock(late_evening: datetime) -> FixedClock:
    return FixedClock(late_evening)


@pytest.fixture
def interval_timer() -> FakeIntervalTimer:
    return FakeIntervalTimer()
