"""Shared fixtures: player store under tmp_path, manual clock, name pools."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from botworld.engine.beer_base import BeerBaseService
from botworld.engine.generator import BotGenerator
from botworld.loaders.game_config_loader import BeerBaseConfig, BotSystemConfig
from botworld.loaders.name_loader import NamePools
from botworld.persistence.database import PlayerStore
from botworld.util.clock import ManualClock
from botworld.util.events import EventBus

START = datetime(2025, 3, 3, 6, 0, tzinfo=timezone.utc)  # a Monday


class ScriptedRandom(random.Random):
    """``random()`` returns scripted values first, then falls back to the seed."""

    def __init__(self, rolls=(), seed=0):
        super().__init__(seed)
        self.rolls = list(rolls)

    def random(self):
        if self.rolls:
            return self.rolls.pop(0)
        return super().random()


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def names():
    return NamePools(prefixes=("Alpha", "Shadow", "Quantum"), suffixes=("Prime", "Hunter", "Omega"))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def generator(names, clock, rng):
    return BotGenerator(names, clock, rng)


@pytest_asyncio.fixture
async def store(tmp_path):
    """Create a fresh SQLite player store for each test."""
    s = PlayerStore(str(tmp_path / "test.db"))
    await s.connect()
    yield s
    await s.close()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def beer_bases(store, generator, clock, rng, bus):
    return BeerBaseService(store, generator, BeerBaseConfig(), BotSystemConfig(), clock, rng, bus)
