"""Shared test fixtures for Rikken."""

from __future__ import annotations

import pytest

from rikken.db.memory import InMemoryNightRepository, InMemorySettingsRepository
from rikken.game.catalog import default_variants
from rikken.game.engine import NightEngine


@pytest.fixture
def night_repo():
    return InMemoryNightRepository()


@pytest.fixture
def settings_repo():
    return InMemorySettingsRepository()


@pytest.fixture
def variants():
    return default_variants()


@pytest.fixture
def engine(night_repo, settings_repo):
    return NightEngine(night_repo, settings_repo)


@pytest.fixture
def night(engine):
    """A 4-player night with a start dealer, no rounds yet."""
    result = engine.create_night(["a", "b", "c", "d"], date="2025-01-10", location="Kerkstraat")
    assert result.success
    result = engine.set_start_dealer(result.night.night_id, "a")
    assert result.success
    return result.night
