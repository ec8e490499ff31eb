"""Simulation loop — asyncio tick driving the periodic bot jobs.

Responsibilities per tick:
- Run the bot attack cycle when ``attack_interval_hours`` elapsed
- Run the growth/regeneration cycle when ``regen_interval_hours`` elapsed
- Check the weekly Beer Base respawn window and top up the population
  every ``respawn_check_interval_seconds``

Each job runs under ``cycle_timeout_seconds``; a job that exceeds it is
cancelled and logged, and the next scheduled run proceeds normally.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from botworld.engine.beer_base import BeerBaseService
    from botworld.engine.bot_combat_service import BotCombatService
    from botworld.engine.growth import BotGrowthService
    from botworld.loaders.game_config_loader import GameConfig
    from botworld.util.clock import Clock

log = logging.getLogger(__name__)


class SimulationLoop:
    """The periodic scheduler for attack, growth and Beer Base jobs.

    Args:
        combat: Attack cycle driver.
        growth: Growth/regeneration service.
        beer_bases: Beer Base scheduler.
        clock: Time source used for the job intervals.
        game_config: Intervals and feature switches.
    """

    def __init__(
        self,
        combat: BotCombatService,
        growth: BotGrowthService,
        beer_bases: BeerBaseService,
        clock: Clock,
        game_config: GameConfig,
    ) -> None:
        self._combat = combat
        self._growth = growth
        self._beer_bases = beer_bases
        self._clock = clock
        self._config = game_config
        self._running = False

        self._last_attack: Optional[datetime] = None
        self._last_growth: Optional[datetime] = None
        self._last_respawn_check: Optional[datetime] = None

        # --- Monitoring counters ---
        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.attack_cycles: int = 0
        self.growth_cycles: int = 0
        self.respawn_checks: int = 0
        self.timeouts: int = 0
        self.failures: int = 0
        self.last_tick_duration_ms: float = 0.0

    async def run(self) -> None:
        """Start the loop. Runs until stop() is called."""
        self._running = True
        self.started_at = time.monotonic()
        interval = self._config.scheduler.tick_seconds
        log.info("Simulation loop started (tick every %.0fs)", interval)
        while self._running:
            t0 = time.monotonic()
            await self.tick()
            self.last_tick_duration_ms = (time.monotonic() - t0) * 1000
            await asyncio.sleep(interval)

    @property
    def uptime_seconds(self) -> float:
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the loop to stop after the current tick."""
        self._running = False

    @staticmethod
    def _due(last: Optional[datetime], now: datetime, interval: timedelta) -> bool:
        return last is None or now - last >= interval

    async def tick(self) -> None:
        """Run every job whose interval has elapsed."""
        self.tick_count += 1
        now = self._clock.now()
        sched = self._config.scheduler
        bots_enabled = self._config.bots.enabled

        if bots_enabled and self._due(self._last_attack, now, timedelta(hours=sched.attack_interval_hours)):
            self._last_attack = now
            if await self._run_job("attack cycle", self._combat.run_bot_attack_cycle):
                self.attack_cycles += 1

        if (bots_enabled and self._config.bots.growth_enabled
                and self._due(self._last_growth, now, timedelta(hours=sched.regen_interval_hours))):
            self._last_growth = now
            if await self._run_job("growth cycle", self._growth.run_growth_cycle):
                self.growth_cycles += 1

        if self._due(self._last_respawn_check, now, timedelta(seconds=sched.respawn_check_interval_seconds)):
            self._last_respawn_check = now
            if await self._run_job("beer base check", self._beer_base_check):
                self.respawn_checks += 1

    async def _beer_base_check(self) -> None:
        result = await self._beer_bases.check_weekly_respawn()
        if result is None:
            await self._beer_bases.maintain_population()

    async def _run_job(self, name: str, job: Callable[[], Awaitable[Any]]) -> bool:
        """Run one job under the cycle timeout. Returns True on success."""
        try:
            await asyncio.wait_for(job(), timeout=self._config.scheduler.cycle_timeout_seconds)
            return True
        except asyncio.TimeoutError:
            self.timeouts += 1
            log.error("%s exceeded %.0fs and was cancelled", name.capitalize(),
                      self._config.scheduler.cycle_timeout_seconds)
        except Exception:
            self.failures += 1
            log.exception("%s failed", name.capitalize())
        return False
