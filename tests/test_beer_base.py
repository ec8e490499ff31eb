"""Tests for Beer Base generation, population targets and the weekly respawn."""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from botworld.engine.beer_base import (
    LEVEL_RANGES,
    POWER_BANDS,
    BeerBaseConfigError,
    BeerBaseError,
    BeerBaseService,
    generate_beer_base_units,
    is_schedule_due,
    next_respawn_time,
    next_schedule_time,
    split_power,
    target_power_for_tier,
    unit_rarity,
)
from botworld.engine.zones import calculate_zone
from botworld.loaders.game_config_loader import BeerBaseConfig, BotSystemConfig, RespawnSchedule
from botworld.models.account import PowerTier, Specialization
from botworld.util.events import BeerBaseRemoved, BeerBasesRespawned, BotSpawned

SUNDAY_0410 = datetime(2025, 3, 9, 4, 10, tzinfo=timezone.utc)


async def _seed_regular_bots(store, generator, count):
    for i in range(count):
        bot = generator.generate()
        bot.username = f"Bot-{i:03d}"
        await store.insert(bot)


def _counting_service(regular, cap=1000, **beer_cfg):
    store = MagicMock()
    store.count = AsyncMock(return_value=regular)
    return BeerBaseService(
        store, MagicMock(), BeerBaseConfig(**beer_cfg), BotSystemConfig(total_bot_cap=cap),
        MagicMock(), random.Random(5),
    )


# ── Power and units ─────────────────────────────────────────────────────────


def test_legendary_power_band():
    rng = random.Random(8)
    for _ in range(300):
        power = target_power_for_tier(PowerTier.LEGENDARY, rng)
        assert 50_000_000 <= power < 100_000_000


def test_split_power():
    assert split_power(1000) == [100, 200, 300, 240, 160]
    assert sum(split_power(123_457)) == 123_457


def test_units_spend_the_target():
    units = generate_beer_base_units(Specialization.RAIDER, 1_000_000, random.Random(2))
    str_power = sum(u.total_strength for u in units if u.category == "STR")
    def_power = sum(u.total_defense for u in units if u.category == "DEF")
    assert 700_000 - 5 * 540 <= str_power <= 700_000
    assert 300_000 - 5 * 540 <= def_power <= 300_000
    assert {u.unit_type[:2] for u in units} == {"T1", "T2", "T3", "T4", "T5"}


def test_tiny_power_builds_no_units():
    assert generate_beer_base_units(Specialization.BALANCED, 10, random.Random(1)) == []


def test_unit_rarity():
    assert unit_rarity(5, 10) == "common"
    assert unit_rarity(60, 30) == "uncommon"
    assert unit_rarity(90, 105) == "rare"
    assert unit_rarity(180, 210) == "epic"
    assert unit_rarity(540, 360) == "legendary"


# ── Respawn schedule ────────────────────────────────────────────────────────


class TestRespawnSchedule:
    def test_from_monday(self, clock):
        assert next_respawn_time(clock.now(), 0, 4) == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)

    def test_same_day_before_hour(self):
        now = datetime(2025, 3, 9, 3, 0, tzinfo=timezone.utc)
        assert next_respawn_time(now, 0, 4) == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)

    def test_during_window_is_next_week(self):
        assert next_respawn_time(SUNDAY_0410, 0, 4) == datetime(2025, 3, 16, 4, tzinfo=timezone.utc)

    def test_saturday_target(self, clock):
        assert next_respawn_time(clock.now(), 6, 12) == datetime(2025, 3, 8, 12, tzinfo=timezone.utc)

    def test_is_respawn_time(self):
        service = _counting_service(regular=0)
        assert service.is_respawn_time(SUNDAY_0410)
        assert not service.is_respawn_time(SUNDAY_0410.replace(hour=5))


# ── Population targets ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_target_within_rate_band():
    service = _counting_service(regular=1000, cap=1000)
    for _ in range(50):
        assert 50 <= await service.target_beer_base_count() <= 100


@pytest.mark.asyncio
async def test_target_capped_at_ten_percent_of_cap():
    service = _counting_service(regular=1000, cap=200)
    assert await service.target_beer_base_count() == 20


@pytest.mark.asyncio
async def test_target_at_least_one():
    assert await _counting_service(regular=3).target_beer_base_count() == 1


@pytest.mark.asyncio
async def test_target_zero_without_bots_or_when_disabled():
    assert await _counting_service(regular=0).target_beer_base_count() == 0
    assert await _counting_service(regular=500, enabled=False).target_beer_base_count() == 0


# ── Spawning and removal ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_build_beer_base(beer_bases):
    for _ in range(50):
        bot = beer_bases.build_beer_base()
        tier = bot.config.power_tier
        assert bot.is_beer_base
        assert bot.username.startswith(f"BeerBase-{tier.value}-")
        assert bot.config.zone == calculate_zone(bot.base.x, bot.base.y)
        assert bot.config.specialization is not Specialization.BOSS
        min_level, max_level, rank = LEVEL_RANGES[tier]
        assert min_level <= bot.level <= max_level
        assert bot.rank == rank
        spent = sum(u.total_strength if u.category == "STR" else u.total_defense for u in bot.units)
        assert spent < POWER_BANDS[tier][1]
        assert bot.total_strength == sum(u.total_strength for u in bot.units)


@pytest.mark.asyncio
async def test_spawn_stores_and_emits(store, beer_bases, bus):
    seen = []
    bus.on(BotSpawned, seen.append)
    names = await beer_bases.spawn_beer_bases(5)
    assert len(names) == 5
    assert len(set(names)) == 5
    assert await beer_bases.current_beer_base_count() == 5
    assert all(e.is_beer_base for e in seen)


@pytest.mark.asyncio
async def test_remove_beer_base(store, beer_bases, bus):
    removed = []
    bus.on(BeerBaseRemoved, removed.append)
    bot = await beer_bases.spawn_beer_base()
    await beer_bases.remove_beer_base(bot.username)
    assert await store.get(bot.username) is None
    assert removed[0].username == bot.username


@pytest.mark.asyncio
async def test_remove_rejects_missing_and_regular(store, generator, beer_bases):
    with pytest.raises(BeerBaseError):
        await beer_bases.remove_beer_base("nobody")
    regular = generator.generate()
    await store.insert(regular)
    with pytest.raises(BeerBaseError):
        await beer_bases.remove_beer_base(regular.username)
    assert await store.get(regular.username) is not None


# ── Weekly respawn and maintenance ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_weekly_respawn_replaces_population(store, generator, beer_bases, bus):
    await _seed_regular_bots(store, generator, 20)
    old = await beer_bases.spawn_beer_bases(3)
    events = []
    bus.on(BeerBasesRespawned, events.append)

    result = await beer_bases.weekly_respawn()

    assert result["removed"] == 3
    assert result["spawned"] == 1
    assert not set(old) & set(result["beer_bases"])
    assert await store.count(is_bot=True, beer_bases=False) == 20
    assert events == [BeerBasesRespawned(removed=3, spawned=1)]


@pytest.mark.asyncio
async def test_check_weekly_respawn_runs_once_per_window(store, generator, beer_bases, clock):
    await _seed_regular_bots(store, generator, 20)
    assert await beer_bases.check_weekly_respawn() is None

    clock.set(SUNDAY_0410)
    assert (await beer_bases.check_weekly_respawn())["spawned"] == 1
    clock.advance(minutes=30)
    assert await beer_bases.check_weekly_respawn() is None


@pytest.mark.asyncio
async def test_maintain_population_tops_up(store, generator, beer_bases):
    await _seed_regular_bots(store, generator, 20)
    assert await beer_bases.maintain_population() == 1
    assert await beer_bases.maintain_population() == 0


@pytest.mark.asyncio
async def test_stats(store, generator, beer_bases):
    await _seed_regular_bots(store, generator, 20)
    await beer_bases.spawn_beer_bases(2)
    stats = await beer_bases.get_beer_base_stats()
    assert stats["current"] == 2
    assert stats["target"] == 1
    assert stats["config"]["respawn_hour"] == 4
    assert stats["next_respawn"] == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)
    assert {b["username"] for b in stats["beer_bases"]} == {
        b.username for b in await store.find_bots(beer_bases=True)
    }


@pytest.mark.asyncio
async def test_respawn_percentage_scales_target():
    def service():
        s = _counting_service(regular=100)
        s._store.delete_many = AsyncMock(return_value=0)
        s.spawn_beer_bases = AsyncMock(side_effect=lambda n: [f"BeerBase-{i}" for i in range(n)])
        return s

    full = await service().weekly_respawn()
    half = await service().weekly_respawn(spawn_percentage=50)
    double = await service().weekly_respawn(spawn_percentage=200)

    assert 5 <= full["spawned"] <= 10
    assert half["spawned"] == full["spawned"] // 2
    assert double["spawned"] == full["spawned"] * 2


@pytest.mark.asyncio
async def test_respawn_waits_for_simulation_lock(store, generator, clock, rng):
    lock = asyncio.Lock()
    service = BeerBaseService(store, generator, BeerBaseConfig(), BotSystemConfig(), clock, rng,
                              simulation_lock=lock)
    async with lock:
        task = asyncio.create_task(service.weekly_respawn())
        await asyncio.sleep(0)
        assert not task.done()
    assert (await task)["removed"] == 0


# ── Respawn schedules ───────────────────────────────────────────────────────


def _schedule(schedule_id="sunday", day=0, hour=4, zone="UTC", **kwargs):
    return RespawnSchedule(id=schedule_id, day_of_week=day, hour=hour, timezone=zone, **kwargs)


class TestScheduleTimes:
    def test_utc_schedule(self, clock):
        assert next_schedule_time(clock.now(), _schedule()) == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)

    def test_local_hour_converted_to_utc(self, clock):
        berlin = _schedule(zone="Europe/Berlin")
        assert next_schedule_time(clock.now(), berlin) == datetime(2025, 3, 9, 3, tzinfo=timezone.utc)

    def test_due_in_local_hour(self):
        berlin = _schedule(zone="Europe/Berlin")
        assert is_schedule_due(datetime(2025, 3, 9, 3, 30, tzinfo=timezone.utc), berlin)
        assert not is_schedule_due(SUNDAY_0410, berlin)

    def test_earliest_enabled_schedule_wins(self, clock):
        service = _counting_service(regular=0, schedules_enabled=True, schedules=[
            _schedule(),
            _schedule("wednesday", day=3, hour=12),
            _schedule("monday", day=1, hour=7, enabled=False),
        ])
        assert service.next_respawn_time(clock.now()) == datetime(2025, 3, 5, 12, tzinfo=timezone.utc)
        assert service.is_respawn_time(datetime(2025, 3, 5, 12, 59, tzinfo=timezone.utc))
        assert not service.is_respawn_time(datetime(2025, 3, 10, 7, tzinfo=timezone.utc))

    def test_legacy_pair_when_schedules_off(self, clock):
        service = _counting_service(regular=0, schedules=[_schedule("wednesday", day=3, hour=12)])
        assert service.next_respawn_time(clock.now()) == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)

    def test_legacy_pair_when_no_schedule_enabled(self, clock):
        service = _counting_service(regular=0, schedules_enabled=True,
                                    schedules=[_schedule("wednesday", day=3, hour=12, enabled=False)])
        assert service.next_respawn_time(clock.now()) == datetime(2025, 3, 9, 4, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_schedules_fire_once_per_slot(store, generator, clock, rng):
    config = BeerBaseConfig(respawn_day=3, schedules_enabled=True, schedules=[
        _schedule("morning", spawn_percentage=50),
        _schedule("bonus", spawn_percentage=60),
    ])
    service = BeerBaseService(store, generator, config, BotSystemConfig(), clock, rng)
    await _seed_regular_bots(store, generator, 20)

    clock.set(SUNDAY_0410)
    result = await service.check_weekly_respawn()

    assert result["spawned"] == 1
    assert [s.last_run for s in config.schedules] == [SUNDAY_0410, SUNDAY_0410]
    clock.advance(minutes=30)
    assert await service.check_weekly_respawn() is None
    clock.set(SUNDAY_0410 + timedelta(days=7))
    assert (await service.check_weekly_respawn())["removed"] == 1


@pytest.fixture
def admin(generator, clock, rng):
    return BeerBaseService(MagicMock(), generator, BeerBaseConfig(), BotSystemConfig(), clock, rng)


class TestScheduleAdmin:
    def test_add_generates_id(self, admin):
        schedule = admin.add_schedule(6, 20, spawn_percentage=25, zone="Europe/Berlin", name="Saturday")
        assert schedule.id.startswith("schedule-")
        assert admin.list_schedules() == [schedule]
        assert admin.add_schedule(0, 4).id != schedule.id

    @pytest.mark.parametrize("kwargs", [
        {"day_of_week": 7, "hour": 4},
        {"day_of_week": 0, "hour": 24},
        {"day_of_week": 0, "hour": 4, "spawn_percentage": 0},
        {"day_of_week": 0, "hour": 4, "spawn_percentage": 250},
        {"day_of_week": 0, "hour": 4, "zone": "Mars/Olympus_Mons"},
    ])
    def test_add_rejects_invalid(self, admin, kwargs):
        with pytest.raises(BeerBaseConfigError):
            admin.add_schedule(**kwargs)
        assert admin.list_schedules() == []

    def test_add_rejects_duplicate_id(self, admin):
        admin.add_schedule(0, 4, schedule_id="sunday")
        with pytest.raises(BeerBaseConfigError, match="already exists"):
            admin.add_schedule(1, 4, schedule_id="sunday")

    def test_update(self, admin):
        admin.add_schedule(0, 4, schedule_id="sunday")
        updated = admin.update_schedule("sunday", hour=6, enabled=False)
        assert (updated.hour, updated.enabled) == (6, False)
        assert admin.list_schedules() == [updated]
        assert admin.update_schedule("missing", hour=6) is None

    def test_update_validates(self, admin):
        admin.add_schedule(0, 4, schedule_id="sunday")
        with pytest.raises(BeerBaseConfigError):
            admin.update_schedule("sunday", hour=30)
        with pytest.raises(BeerBaseConfigError, match="Unknown"):
            admin.update_schedule("sunday", last_run=SUNDAY_0410)
        assert admin.list_schedules()[0].hour == 4

    def test_delete(self, admin):
        admin.add_schedule(0, 4, schedule_id="sunday")
        assert admin.delete_schedule("sunday")
        assert not admin.delete_schedule("sunday")
        assert admin.list_schedules() == []


# ── Runtime config ──────────────────────────────────────────────────────────


class TestConfigUpdates:
    def test_update_applies(self, admin):
        snapshot = admin.update_config(spawn_rate_min=2, resource_multiplier=5, schedules_enabled=True)
        assert snapshot["spawn_rate_min"] == 2
        assert snapshot["resource_multiplier"] == 5
        assert admin.config.schedules_enabled is True
        assert admin.config.spawn_rate_max == 10.0

    @pytest.mark.parametrize("changes", [
        {"spawn_rate_max": 150},
        {"resource_multiplier": 0.5},
        {"respawn_day": 7},
        {"respawn_hour": -1},
        {"spawn_rate_min": 12},
        {"total_bot_cap": 5},
    ])
    def test_invalid_update_changes_nothing(self, admin, changes):
        before = admin.config_snapshot()
        with pytest.raises(BeerBaseConfigError):
            admin.update_config(**changes)
        assert admin.config_snapshot() == before

    @pytest.mark.asyncio
    async def test_disable_stops_respawns(self, store, generator, beer_bases, clock):
        await _seed_regular_bots(store, generator, 20)
        beer_bases.update_config(enabled=False)
        clock.set(SUNDAY_0410)
        assert await beer_bases.check_weekly_respawn() is None
        assert await beer_bases.target_beer_base_count() == 0
