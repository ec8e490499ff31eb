"""Tests for the simulation loop scheduler."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from botworld.engine.game_loop import SimulationLoop
from botworld.loaders.game_config_loader import GameConfig


# ── Fixtures ────────────────────────────────────────────────────────────────


def _make_loop(clock, gc=None):
    combat = MagicMock()
    combat.run_bot_attack_cycle = AsyncMock()
    growth = MagicMock()
    growth.run_growth_cycle = AsyncMock()
    beer_bases = MagicMock()
    beer_bases.check_weekly_respawn = AsyncMock(return_value=None)
    beer_bases.maintain_population = AsyncMock(return_value=0)
    loop = SimulationLoop(combat, growth, beer_bases, clock, gc or GameConfig())
    return loop, combat, growth, beer_bases


# ── Scheduling ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_first_tick_runs_everything(clock):
    loop, combat, growth, beer_bases = _make_loop(clock)
    await loop.tick()
    combat.run_bot_attack_cycle.assert_awaited_once()
    growth.run_growth_cycle.assert_awaited_once()
    beer_bases.check_weekly_respawn.assert_awaited_once()
    beer_bases.maintain_population.assert_awaited_once()
    assert (loop.attack_cycles, loop.growth_cycles, loop.respawn_checks) == (1, 1, 1)


@pytest.mark.asyncio
async def test_jobs_wait_for_their_interval(clock):
    loop, combat, growth, beer_bases = _make_loop(clock)
    await loop.tick()
    await loop.tick()
    assert combat.run_bot_attack_cycle.await_count == 1
    assert beer_bases.check_weekly_respawn.await_count == 1

    clock.advance(seconds=61)
    await loop.tick()
    assert combat.run_bot_attack_cycle.await_count == 1
    assert beer_bases.check_weekly_respawn.await_count == 2

    clock.advance(hours=1)
    await loop.tick()
    assert combat.run_bot_attack_cycle.await_count == 2
    assert growth.run_growth_cycle.await_count == 2
    assert loop.tick_count == 4


@pytest.mark.asyncio
async def test_weekly_respawn_replaces_top_up(clock):
    loop, _, _, beer_bases = _make_loop(clock)
    beer_bases.check_weekly_respawn.return_value = {"removed": 2, "spawned": 3, "beer_bases": []}
    await loop.tick()
    beer_bases.maintain_population.assert_not_awaited()


@pytest.mark.asyncio
async def test_disabled_bots_only_check_beer_bases(clock):
    gc = GameConfig()
    gc.bots.enabled = False
    loop, combat, growth, beer_bases = _make_loop(clock, gc)
    await loop.tick()
    combat.run_bot_attack_cycle.assert_not_awaited()
    growth.run_growth_cycle.assert_not_awaited()
    beer_bases.check_weekly_respawn.assert_awaited_once()


@pytest.mark.asyncio
async def test_growth_switch(clock):
    gc = GameConfig()
    gc.bots.growth_enabled = False
    loop, combat, growth, _ = _make_loop(clock, gc)
    await loop.tick()
    combat.run_bot_attack_cycle.assert_awaited_once()
    growth.run_growth_cycle.assert_not_awaited()


# ── Failure handling ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_slow_job_times_out(clock):
    gc = GameConfig()
    gc.scheduler.cycle_timeout_seconds = 0.01
    loop, combat, growth, _ = _make_loop(clock, gc)

    async def _slow():
        await asyncio.sleep(5)

    combat.run_bot_attack_cycle = AsyncMock(side_effect=_slow)
    await loop.tick()
    assert loop.timeouts == 1
    assert loop.attack_cycles == 0
    growth.run_growth_cycle.assert_awaited_once()


@pytest.mark.asyncio
async def test_failing_job_does_not_stop_tick(clock):
    loop, combat, growth, _ = _make_loop(clock)
    combat.run_bot_attack_cycle.side_effect = RuntimeError("boom")
    await loop.tick()
    assert loop.failures == 1
    assert loop.growth_cycles == 1


# ── Run / stop ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_run_until_stopped(clock):
    gc = GameConfig()
    gc.scheduler.tick_seconds = 0
    loop, combat, _, _ = _make_loop(clock, gc)
    combat.run_bot_attack_cycle.side_effect = lambda: loop.stop()

    await asyncio.wait_for(loop.run(), timeout=2)

    assert not loop.is_running
    assert loop.tick_count == 1
    assert loop.uptime_seconds >= 0
