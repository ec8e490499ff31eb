"""Bot growth engine — hourly regeneration, unit building and movement.

Every growth cycle visits each bot once and:

1.  **Regenerates** resources (:func:`botworld.engine.regeneration.regenerate`)
    and advances ``last_resource_regen`` by the whole hours consumed.  Bots
    already at or above their ceiling (freshly spawned Beer Bases) are left
    alone so their loot is not clawed back.
2.  **Moves** roaming bots 1–3 tiles and gives teleporters a 5 % jump.
3.  **Builds** at most one unit, with a chance equal to the
    specialization's build rate times the age multiplier, until the army
    cap ``20 * tier * age_multiplier`` is reached.

Cycles run under the simulation lock shared with the attack cycle, so a
growth cycle never persists a balance read before a concurrent defeat.

The service also seeds the initial bot population.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional

from botworld.engine.regeneration import elapsed_regen_hours, max_resources, regen_anchor, regenerate
from botworld.engine.zones import clamp_to_map
from botworld.models.account import BotPlayer, Movement, Position, Resources, Specialization, Unit
from botworld.models.combat import GrowthSummary
from botworld.util.constants import MAP_SIZE
from botworld.util.events import BotSpawned

if TYPE_CHECKING:
    from botworld.engine.generator import BotGenerator
    from botworld.persistence.database import PlayerStore
    from botworld.util.clock import Clock
    from botworld.util.events import EventBus

log = logging.getLogger(__name__)

# -- Tables ----------------------------------------------------------------

BUILD_RATES: dict[Specialization, float] = {
    Specialization.FORTRESS: 0.5,
    Specialization.RAIDER: 1.0,
    Specialization.HOARDER: 0.25,
    Specialization.GHOST: 0.67,
    Specialization.BALANCED: 1.0,
    Specialization.BOSS: 0.5,
}
"""Units per hour (a chance, capped at one unit per cycle)."""

STR_SHARE: dict[Specialization, float] = {
    Specialization.FORTRESS: 0.3,
    Specialization.RAIDER: 0.7,
    Specialization.HOARDER: 0.5,
    Specialization.GHOST: 0.5,
    Specialization.BALANCED: 0.5,
    Specialization.BOSS: 0.3,
}
"""Probability that a built unit is a STR unit."""

ARMY_CAP_PER_TIER: int = 20

AGE_MULTIPLIERS: tuple[tuple[float, float], ...] = (
    (7.0, 1.0),
    (30.0, 1.5),
)
OLD_AGE_MULTIPLIER: float = 2.0

GROWTH_UNITS: dict[str, tuple[tuple[str, str, int, int], ...]] = {
    "STR": (("warrior", "Warrior", 10, 5), ("berserker", "Berserker", 25, 10), ("champion", "Champion", 50, 20)),
    "DEF": (("guard", "Guard", 5, 10), ("sentinel", "Sentinel", 10, 25), ("bastion", "Bastion", 20, 50)),
}
"""``(unit_type, name, strength, defense)`` for unit tiers 1–3."""

GROWTH_RARITY: tuple[str, ...] = ("common", "uncommon", "rare")

NAME_ATTEMPTS: int = 5
"""Fresh names drawn for a seeded bot whose username is taken."""

ROAM_MIN: int = 1
ROAM_MAX: int = 3
TELEPORT_CHANCE: float = 0.05


def age_days(bot: BotPlayer, now: datetime) -> float:
    if bot.created_at is None:
        return 0.0
    return (now - bot.created_at).total_seconds() / 86400.0


def age_multiplier(days: float) -> float:
    for limit, mult in AGE_MULTIPLIERS:
        if days < limit:
            return mult
    return OLD_AGE_MULTIPLIER


def army_cap(tier: int, days: float) -> int:
    return math.floor(ARMY_CAP_PER_TIER * tier * age_multiplier(days))


def army_size(bot: BotPlayer) -> int:
    return sum(u.quantity for u in bot.units)


# -- Service ---------------------------------------------------------------

class BotGrowthService:
    """Runs growth cycles and seeds bots.

    Args:
        store: Account store.
        generator: Bot generator for seeding.
        clock: Time source.
        rng: Random source.
        events: Event bus for :class:`BotSpawned`.
        total_bot_cap: Upper bound of the regular bot population.
        regen_enabled: Apply resource regeneration in growth cycles.
        simulation_lock: Lock shared with the attack cycle; a private one is
            created when omitted.
    """

    def __init__(
        self,
        store: PlayerStore,
        generator: BotGenerator,
        clock: Clock,
        rng: random.Random | None = None,
        events: Optional[EventBus] = None,
        total_bot_cap: int = 1000,
        regen_enabled: bool = True,
        simulation_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._clock = clock
        self._rng = rng or random.Random()
        self._events = events
        self._total_bot_cap = total_bot_cap
        self._regen_enabled = regen_enabled
        self._simulation_lock = simulation_lock or asyncio.Lock()
        self.last_summary: GrowthSummary | None = None

    # -- Regeneration ------------------------------------------------------

    def _regen_updates(self, bot: BotPlayer, now: datetime) -> dict[str, Any]:
        """Store updates that bring *bot* up to date, or ``{}``."""
        hours = elapsed_regen_hours(bot, now)
        if regen_anchor(bot) is None:
            return {"bot_config.last_resource_regen": now}
        if hours < 1:
            return {}

        anchor = regen_anchor(bot) + timedelta(hours=hours)
        if min(bot.resources.metal, bot.resources.energy) >= max_resources(bot):
            return {"bot_config.last_resource_regen": anchor}

        new = regenerate(bot, now)
        return {
            "resources.metal": new.metal,
            "resources.energy": new.energy,
            "bot_config.last_resource_regen": anchor,
        }

    @staticmethod
    def _apply_regen(bot: BotPlayer, updates: dict[str, Any]) -> None:
        if "resources.metal" in updates:
            bot.resources = Resources(metal=updates["resources.metal"], energy=updates["resources.energy"])
        if "bot_config.last_resource_regen" in updates:
            bot.config.last_resource_regen = updates["bot_config.last_resource_regen"]

    async def regenerate_bot_resources(self, bot: BotPlayer) -> Resources:
        """Regenerate one bot now and persist the result.

        Raises:
            TypeError: If *bot* is not a bot account.
        """
        if not isinstance(bot, BotPlayer):
            raise TypeError(f"regenerate_bot_resources called on non-bot account {bot.username!r}")
        updates = self._regen_updates(bot, self._clock.now())
        if updates:
            await self._store.update(bot.username, set_fields=updates)
            self._apply_regen(bot, updates)
            if "resources.metal" in updates:
                log.debug("[REGEN] %s -> %d/%d", bot.username, bot.resources.metal, bot.resources.energy)
        return bot.resources

    # -- Movement ----------------------------------------------------------

    def move(self, bot: BotPlayer) -> Optional[Position]:
        """New current position, or None if the bot stays put."""
        movement = bot.config.movement
        if movement is Movement.ROAM:
            distance = self._rng.randint(ROAM_MIN, ROAM_MAX)
            angle = self._rng.random() * 2 * math.pi
            pos = bot.current_position
            return Position(
                clamp_to_map(pos.x + math.floor(math.cos(angle) * distance)),
                clamp_to_map(pos.y + math.floor(math.sin(angle) * distance)),
            )
        if movement is Movement.TELEPORT and self._rng.random() < TELEPORT_CHANCE:
            return Position(self._rng.randint(1, MAP_SIZE), self._rng.randint(1, MAP_SIZE))
        return None

    # -- Unit building -----------------------------------------------------

    def build_unit(self, bot: BotPlayer, now: datetime) -> Optional[Unit]:
        """Maybe add one unit to ``bot.units``; returns the built unit."""
        days = age_days(bot, now)
        if army_size(bot) >= army_cap(bot.config.tier, days):
            return None
        spec = bot.config.specialization
        if self._rng.random() >= BUILD_RATES[spec] * age_multiplier(days):
            return None

        category = "STR" if self._rng.random() < STR_SHARE[spec] else "DEF"
        unit_tier = min(bot.config.tier, len(GROWTH_UNITS[category]))
        unit_type, name, strength, defense = GROWTH_UNITS[category][unit_tier - 1]

        for unit in bot.units:
            if unit.unit_type == unit_type:
                unit.quantity += 1
                break
        else:
            bot.units.append(Unit(
                unit_type=unit_type,
                name=name,
                category=category,
                strength=strength,
                defense=defense,
                quantity=1,
                rarity=GROWTH_RARITY[unit_tier - 1],
            ))
        bot.total_strength += strength
        bot.total_defense += defense
        return Unit(unit_type, name, category, strength, defense)

    # -- Cycle -------------------------------------------------------------

    async def grow_bot(self, bot: BotPlayer, summary: GrowthSummary) -> None:
        now = self._clock.now()
        updates: dict[str, Any] = {}

        if self._regen_enabled:
            regen = self._regen_updates(bot, now)
            if "resources.metal" in regen and (
                    regen["resources.metal"] != bot.resources.metal
                    or regen["resources.energy"] != bot.resources.energy):
                summary.regenerated += 1
            updates.update(regen)
            self._apply_regen(bot, regen)

        position = self.move(bot)
        if position is not None and position != bot.current_position:
            bot.current_position = position
            updates["current_position"] = position
            summary.moved += 1

        unit = self.build_unit(bot, now)
        if unit is not None:
            updates["units"] = bot.units
            updates["total_strength"] = bot.total_strength
            updates["total_defense"] = bot.total_defense
            summary.units_built += 1
            log.debug("[GROWTH] %s built %s (army %d, STR %d, DEF %d)",
                      bot.username, unit.name, army_size(bot), bot.total_strength, bot.total_defense)

        updates["bot_config.last_growth"] = now
        bot.config.last_growth = now
        await self._store.update(bot.username, set_fields=updates)

    async def run_growth_cycle(self) -> GrowthSummary:
        """Grow every bot once; per-bot failures are logged and collected.

        Waits for a running attack cycle or respawn to finish first.
        """
        summary = GrowthSummary()
        if self._simulation_lock.locked():
            log.info("[GROWTH] Waiting for the running simulation cycle")
        async with self._simulation_lock:
            bots = await self._store.find_bots()
            log.info("[GROWTH] Processing %d bots", len(bots))
            for bot in bots:
                try:
                    await self.grow_bot(bot, summary)
                    summary.processed += 1
                except Exception as exc:
                    log.exception("[GROWTH] Failed to process bot %s", bot.username)
                    summary.errors.append(f"Failed to process bot {bot.username}: {exc}")
        log.info("[GROWTH] Cycle complete: processed=%d regenerated=%d moved=%d units_built=%d errors=%d",
                 summary.processed, summary.regenerated, summary.moved,
                 summary.units_built, len(summary.errors))
        self.last_summary = summary
        return summary

    # -- Seeding -----------------------------------------------------------

    async def seed_bots(self, count: int, zone: Optional[int] = None,
                        specialization: Optional[Specialization] = None) -> list[str]:
        """Generate and store up to *count* regular bots, respecting the bot cap."""
        regular = await self._store.count(is_bot=True, beer_bases=False)
        room = max(0, self._total_bot_cap - regular)
        if count > room:
            log.warning("Bot cap %d reached: seeding %d of %d requested bots",
                        self._total_bot_cap, room, count)
            count = room

        created: list[str] = []
        for _ in range(count):
            try:
                bot = self._generator.generate(zone=zone, specialization=specialization)
                for _ in range(NAME_ATTEMPTS):
                    if await self._store.get(bot.username) is None:
                        break
                    bot.username = self._generator.generate_name()
                await self._store.insert(bot)
            except Exception:
                log.exception("Failed to seed bot")
                continue
            created.append(bot.username)
            if self._events:
                self._events.emit(BotSpawned(
                    username=bot.username,
                    specialization=bot.config.specialization.value,
                    tier=bot.config.tier,
                    zone=bot.config.zone,
                    is_beer_base=False,
                ))
        if created:
            log.info("Seeded %d bots", len(created))
        return created
