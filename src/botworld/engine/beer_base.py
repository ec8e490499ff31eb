"""Beer Base scheduler — the transient, high-value bot population.

Beer Bases are bots with ``is_special_base`` set.  Unlike permanent bots
they are deleted when defeated, and the whole population is replaced once
a week (``respawn_day`` / ``respawn_hour``, server time UTC).  Admins can
instead enable a list of timezone-aware :class:`RespawnSchedule` slots;
the earliest enabled slot then decides the next respawn.  Between resets
:meth:`BeerBaseService.maintain_population` tops up the deficit.

Power is built bottom-up: a power tier is rolled, a target power is drawn
from that tier's band, and :func:`generate_beer_base_units` spends the
target across five unit tiers.  This is deliberately separate from the
generic top-down :func:`botworld.engine.generator.calculate_defense`.

=== Unit allocation =========================================================

The target power is split into STR and DEF by the specialization's
``STR_RATIOS`` entry; each side is then spent as::

    T1  10 %       T2  20 %       T3  30 %
    T4  60 % of the remainder     T5  the rest

One random archetype is picked per bracket and the quantity is
``floor(allocated / per_unit_stat)``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import math
import random
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Optional

import pytz

from botworld.engine.zones import calculate_zone
from botworld.loaders.game_config_loader import RespawnSchedule
from botworld.models.account import BotPlayer, Position, PowerTier, Specialization, Unit
from botworld.util.constants import MAP_SIZE
from botworld.util.events import BeerBaseRemoved, BeerBasesRespawned, BotSpawned
from botworld.util.sampling import WeightedTable
from botworld.util.types import format_amount, format_percent

if TYPE_CHECKING:
    from botworld.engine.generator import BotGenerator
    from botworld.loaders.game_config_loader import BeerBaseConfig, BotSystemConfig
    from botworld.persistence.database import PlayerStore
    from botworld.util.clock import Clock
    from botworld.util.events import EventBus

log = logging.getLogger(__name__)


class BeerBaseError(Exception):
    """The named account does not exist or is not a Beer Base."""


class BeerBaseConfigError(ValueError):
    """A config update or respawn schedule failed validation."""


CONFIG_LIMITS: dict[str, tuple[float, float]] = {
    "spawn_rate_min": (0, 100),
    "spawn_rate_max": (0, 100),
    "resource_multiplier": (1, 20),
    "respawn_day": (0, 6),
    "respawn_hour": (0, 23),
}
"""Inclusive bounds for runtime config updates."""

UPDATABLE_CONFIG: frozenset[str] = frozenset(CONFIG_LIMITS) | {"enabled", "schedules_enabled"}

SCHEDULE_LIMITS: dict[str, tuple[float, float]] = {
    "day_of_week": (0, 6),
    "hour": (0, 23),
    "spawn_percentage": (1, 200),
}

SCHEDULE_FIELDS: frozenset[str] = frozenset(SCHEDULE_LIMITS) | {"enabled", "timezone", "name"}


# ── Tables ──────────────────────────────────────────────────────────────────

BEER_BASE_SPECIALIZATIONS: WeightedTable[Specialization] = WeightedTable([
    (30, Specialization.HOARDER),
    (20, Specialization.FORTRESS),
    (20, Specialization.RAIDER),
    (20, Specialization.BALANCED),
    (10, Specialization.GHOST),
])

POWER_TIERS: WeightedTable[PowerTier] = WeightedTable([
    (10, PowerTier.WEAK),
    (30, PowerTier.MID),
    (30, PowerTier.STRONG),
    (20, PowerTier.ELITE),
    (8, PowerTier.ULTRA),
    (2, PowerTier.LEGENDARY),
])

POWER_BANDS: dict[PowerTier, tuple[int, int]] = {
    PowerTier.WEAK: (1_000, 50_000),
    PowerTier.MID: (50_000, 500_000),
    PowerTier.STRONG: (500_000, 2_000_000),
    PowerTier.ELITE: (2_000_000, 10_000_000),
    PowerTier.ULTRA: (10_000_000, 50_000_000),
    PowerTier.LEGENDARY: (50_000_000, 100_000_000),
}
"""Half-open ``[min, max)`` target power per tier."""

LEVEL_RANGES: dict[PowerTier, tuple[int, int, int]] = {
    PowerTier.WEAK: (1, 5, 1),
    PowerTier.MID: (5, 9, 2),
    PowerTier.STRONG: (10, 19, 3),
    PowerTier.ELITE: (20, 29, 4),
    PowerTier.ULTRA: (30, 39, 5),
    PowerTier.LEGENDARY: (40, 59, 6),
}
"""``(min_level, max_level, rank)`` per power tier, levels inclusive."""

RESOURCE_TIER_MULTIPLIERS: dict[PowerTier, int] = {
    PowerTier.WEAK: 2,
    PowerTier.MID: 3,
    PowerTier.STRONG: 5,
    PowerTier.ELITE: 8,
    PowerTier.ULTRA: 12,
    PowerTier.LEGENDARY: 20,
}

STR_RATIOS: dict[Specialization, float] = {
    Specialization.RAIDER: 0.7,
    Specialization.FORTRESS: 0.3,
    Specialization.BALANCED: 0.5,
    Specialization.GHOST: 0.6,
    Specialization.HOARDER: 0.4,
}


@dataclass(frozen=True)
class UnitArchetype:
    unit_type: str
    name: str
    strength: int
    defense: int


def _pool(tier: int, *entries: tuple[str, int, int]) -> tuple[UnitArchetype, ...]:
    return tuple(UnitArchetype(f"T{tier}_{name.upper()}", name, s, d) for name, s, d in entries)


UNIT_POOLS: dict[tuple[int, str], tuple[UnitArchetype, ...]] = {
    (1, "STR"): _pool(1, ("Sniper", 15, 5), ("Grenadier", 12, 8), ("Scout", 8, 10), ("Rifleman", 5, 10)),
    (1, "DEF"): _pool(1, ("Shield", 5, 15), ("Turret", 8, 12), ("Barrier", 7, 8), ("Bunker", 6, 5)),
    (2, "STR"): _pool(2, ("Demolisher", 60, 30), ("Assassin", 50, 35), ("Ranger", 40, 40), ("Commando", 30, 32)),
    (2, "DEF"): _pool(2, ("Sentinel", 30, 60), ("Cannon", 35, 50), ("Barricade", 32, 40), ("Fortress", 40, 30)),
    (3, "STR"): _pool(3, ("Warlord", 135, 90), ("Enforcer", 120, 95), ("Raider", 105, 100), ("Striker", 90, 105)),
    (3, "DEF"): _pool(3, ("Guardian", 90, 135), ("Artillery", 95, 120), ("Bulwark", 100, 105), ("Citadel", 105, 90)),
    (4, "STR"): _pool(4, ("Annihilator", 270, 180), ("Destroyer", 240, 190), ("Juggernaut", 210, 200),
                      ("Titan", 180, 210)),
    (4, "DEF"): _pool(4, ("Colossus", 180, 270), ("Dreadnought", 190, 240), ("Rampart", 200, 210),
                      ("Stronghold", 210, 180)),
    (5, "STR"): _pool(5, ("Apocalypse", 540, 360), ("Devastator", 480, 380), ("Conqueror", 420, 400),
                      ("Overlord", 360, 420)),
    (5, "DEF"): _pool(5, ("Immortal", 360, 540), ("Leviathan", 380, 480), ("Monolith", 400, 420),
                      ("Bastion", 420, 360)),
}


def unit_rarity(strength: int, defense: int) -> str:
    total = strength + defense
    if total >= 500:
        return "legendary"
    if total >= 200:
        return "epic"
    if total >= 100:
        return "rare"
    if total >= 30:
        return "uncommon"
    return "common"


# ── Pure helpers ────────────────────────────────────────────────────────────

def target_power_for_tier(tier: PowerTier, rng: random.Random) -> int:
    """Draw a total target power from the tier's band."""
    lo, hi = POWER_BANDS[tier]
    return lo + math.floor(rng.random() * (hi - lo))


def split_power(total: int) -> list[int]:
    """Spend *total* across unit tiers T1–T5 (10/20/30/60 %-of-rest/rest)."""
    t1 = math.floor(total * 0.10)
    t2 = math.floor(total * 0.20)
    t3 = math.floor(total * 0.30)
    remaining = total - t1 - t2 - t3
    t4 = math.floor(remaining * 0.60)
    return [t1, t2, t3, t4, remaining - t4]


def generate_beer_base_units(
    specialization: Specialization,
    total_power: int,
    rng: random.Random,
) -> list[Unit]:
    """Build a progressive T1–T5 army worth about *total_power*.

    Args:
        specialization: Selects the STR:DEF split.
        total_power: Target power, usually from :func:`target_power_for_tier`.
        rng: Random source for the archetype picks.
    """
    ratio = STR_RATIOS.get(specialization, 0.5)
    sides = (
        ("STR", math.floor(total_power * ratio)),
        ("DEF", math.floor(total_power * (1 - ratio))),
    )
    units: list[Unit] = []
    for category, side_power in sides:
        for unit_tier, allocated in enumerate(split_power(side_power), start=1):
            if allocated <= 0:
                continue
            arch = rng.choice(UNIT_POOLS[(unit_tier, category)])
            per_unit = arch.strength if category == "STR" else arch.defense
            quantity = allocated // per_unit
            if quantity > 0:
                units.append(Unit(
                    unit_type=arch.unit_type,
                    name=arch.name,
                    category=category,
                    strength=arch.strength,
                    defense=arch.defense,
                    quantity=quantity,
                    rarity=unit_rarity(arch.strength, arch.defense),
                ))
    return units


def _sunday_weekday(when: datetime) -> int:
    """Weekday with Sunday = 0 … Saturday = 6."""
    return (when.weekday() + 1) % 7


def next_respawn_time(now: datetime, respawn_day: int, respawn_hour: int) -> datetime:
    """First respawn slot strictly after the current hour of *now*.

    During the respawn hour itself the next slot is a week away.
    """
    days = respawn_day - _sunday_weekday(now)
    if days < 0 or (days == 0 and now.hour >= respawn_hour):
        days += 7
    slot = now.replace(hour=respawn_hour, minute=0, second=0, microsecond=0)
    return slot + timedelta(days=days)


def is_respawn_time(now: datetime, respawn_day: int, respawn_hour: int) -> bool:
    return _sunday_weekday(now) == respawn_day and now.hour == respawn_hour


def schedule_zone(name: str) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise BeerBaseConfigError(f"Invalid timezone: {name}") from exc


def next_schedule_time(now: datetime, schedule: RespawnSchedule) -> datetime:
    """Next slot of *schedule* after the current local hour, in UTC."""
    zone = schedule_zone(schedule.timezone)
    local = now.astimezone(zone)
    days = schedule.day_of_week - _sunday_weekday(local)
    if days < 0 or (days == 0 and local.hour >= schedule.hour):
        days += 7
    day = local.date() + timedelta(days=days)
    slot = zone.localize(datetime(day.year, day.month, day.day, schedule.hour))
    return slot.astimezone(timezone.utc)


def is_schedule_due(now: datetime, schedule: RespawnSchedule) -> bool:
    local = now.astimezone(schedule_zone(schedule.timezone))
    return _sunday_weekday(local) == schedule.day_of_week and local.hour == schedule.hour


def validate_schedule(schedule: RespawnSchedule) -> None:
    """Raise :class:`BeerBaseConfigError` for out-of-range schedule fields."""
    for key, (low, high) in SCHEDULE_LIMITS.items():
        value = getattr(schedule, key)
        if not low <= value <= high:
            raise BeerBaseConfigError(f"{key} must be between {low} and {high}")
    schedule_zone(schedule.timezone)


# ── Service ─────────────────────────────────────────────────────────────────

class BeerBaseService:
    """Spawns, removes and periodically replaces Beer Bases.

    Args:
        store: Account store.
        generator: Bot generator used for the base record.
        config: Beer Base tuning.
        bot_config: Bot system tuning (``total_bot_cap``).
        clock: Time source.
        rng: Random source.
        events: Event bus for spawn/remove/respawn events.
        simulation_lock: Lock shared with the attack and growth cycles, held
            while the whole population is replaced.
    """

    def __init__(
        self,
        store: PlayerStore,
        generator: BotGenerator,
        config: BeerBaseConfig,
        bot_config: BotSystemConfig,
        clock: Clock,
        rng: random.Random | None = None,
        events: Optional[EventBus] = None,
        simulation_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._config = config
        self._bot_config = bot_config
        self._clock = clock
        self._rng = rng or random.Random()
        self._events = events
        self._last_weekly_respawn: datetime | None = None
        self._name_seq = itertools.count(1)
        self._schedule_seq = itertools.count(1)
        self._simulation_lock = simulation_lock or asyncio.Lock()

    @property
    def config(self) -> BeerBaseConfig:
        return self._config

    # -- Population targets ------------------------------------------------

    async def current_beer_base_count(self) -> int:
        return await self._store.count(is_bot=True, beer_bases=True)

    async def target_beer_base_count(self) -> int:
        """Desired Beer Base population.

        ``floor(regular_bots * U(min, max) / 100)`` capped at 10 % of the
        total bot cap; at least 1 once regular bots exist, 0 when the
        feature is disabled.  Beer Bases never count toward the base.
        """
        if not self._config.enabled:
            return 0
        regular = await self._store.count(is_bot=True, beer_bases=False)
        if regular == 0:
            return 0
        rate = self._rng.uniform(self._config.spawn_rate_min, self._config.spawn_rate_max)
        target = math.floor(regular * rate / 100)
        target = max(1, min(target, math.floor(self._bot_config.total_bot_cap * 0.10)))
        log.debug("[BEER_BASE] Target %d (%s of %d regular bots)", target, format_percent(rate / 100), regular)
        return target

    # -- Spawning ----------------------------------------------------------

    def build_beer_base(self) -> BotPlayer:
        """Create an unsaved Beer Base record."""
        specialization = BEER_BASE_SPECIALIZATIONS.pick(self._rng)
        power_tier = POWER_TIERS.pick(self._rng)

        bot = self._generator.generate(specialization=specialization, is_beer_base=True)

        position = Position(self._rng.randint(1, MAP_SIZE), self._rng.randint(1, MAP_SIZE))
        bot.base = position
        bot.current_position = position
        bot.config.zone = calculate_zone(position.x, position.y)
        bot.config.power_tier = power_tier

        bot.units = generate_beer_base_units(
            specialization, target_power_for_tier(power_tier, self._rng), self._rng,
        )
        bot.recalculate_power()

        ts = int(self._clock.now().timestamp() * 1000)
        # the sequence keeps names unique when several spawn in the same millisecond
        suffix = f"{next(self._name_seq)}{self._rng.randrange(10_000):04d}"
        bot.username = f"BeerBase-{power_tier.value}-{ts}-{suffix}"

        min_level, max_level, rank = LEVEL_RANGES[power_tier]
        bot.level = self._rng.randint(min_level, max_level)
        bot.rank = rank

        multiplier = RESOURCE_TIER_MULTIPLIERS[power_tier] * self._config.resource_multiplier
        bot.resources.metal = math.floor(bot.resources.metal * multiplier)
        bot.resources.energy = math.floor(bot.resources.energy * multiplier)
        return bot

    async def spawn_beer_base(self) -> BotPlayer:
        """Create and store one Beer Base."""
        bot = self.build_beer_base()
        await self._store.insert(bot)
        log.debug("[BEER_BASE] Spawned %s (%s) STR=%s DEF=%s units=%d",
                  bot.username, bot.config.specialization.value,
                  format_amount(bot.total_strength), format_amount(bot.total_defense), len(bot.units))
        if self._events:
            self._events.emit(BotSpawned(
                username=bot.username,
                specialization=bot.config.specialization.value,
                tier=bot.config.tier,
                zone=bot.config.zone,
                is_beer_base=True,
                power_tier=bot.config.power_tier.value if bot.config.power_tier else None,
            ))
        return bot

    async def spawn_beer_bases(self, count: int) -> list[str]:
        """Spawn up to *count* Beer Bases; failures are logged and skipped."""
        spawned: list[str] = []
        for i in range(count):
            try:
                bot = await self.spawn_beer_base()
                spawned.append(bot.username)
            except Exception:
                log.exception("[BEER_BASE] Failed to spawn Beer Base %d/%d", i + 1, count)
        if count:
            log.info("[BEER_BASE] Spawned %d/%d Beer Bases", len(spawned), count)
        return spawned

    # -- Removal -----------------------------------------------------------

    async def remove_beer_base(self, username: str) -> None:
        """Hard-delete one Beer Base.

        Raises:
            BeerBaseError: If *username* is missing or not a Beer Base.
        """
        account = await self._store.get(username)
        if not isinstance(account, BotPlayer) or not account.is_beer_base:
            raise BeerBaseError(f"{username!r} is not a Beer Base or does not exist")
        await self._store.delete(username)
        log.info("[BEER_BASE] Removed %s", username)
        if self._events:
            self._events.emit(BeerBaseRemoved(username=username))

    async def remove_all_beer_bases(self) -> int:
        return await self._store.delete_many(is_bot=True, beer_bases=True)

    # -- Respawn -----------------------------------------------------------

    async def weekly_respawn(self, spawn_percentage: float = 100.0) -> dict[str, Any]:
        """Replace the whole Beer Base population.

        Args:
            spawn_percentage: Share of the target population to spawn;
                a non-zero target always spawns at least one base.

        Returns:
            ``{"removed", "spawned", "beer_bases"}``.
        """
        if not self._config.enabled:
            return {"removed": 0, "spawned": 0, "beer_bases": []}

        async with self._simulation_lock:
            removed = await self.remove_all_beer_bases()
            target = await self.target_beer_base_count()
            if target and spawn_percentage != 100.0:
                target = max(1, math.floor(target * spawn_percentage / 100))
            beer_bases = await self.spawn_beer_bases(target)
        self._last_weekly_respawn = self._clock.now()

        log.info("[BEER_BASE] Weekly respawn: removed %d, spawned %d (target %d, %s)",
                 removed, len(beer_bases), target, format_percent(spawn_percentage / 100))
        if self._events:
            self._events.emit(BeerBasesRespawned(removed=removed, spawned=len(beer_bases)))
        return {"removed": removed, "spawned": len(beer_bases), "beer_bases": beer_bases}

    async def maintain_population(self) -> int:
        """Spawn the deficit between target and current count."""
        if not self._config.enabled:
            return 0
        current = await self.current_beer_base_count()
        target = await self.target_beer_base_count()
        deficit = target - current
        if deficit <= 0:
            return 0
        log.info("[BEER_BASE] Population %d/%d, spawning %d", current, target, deficit)
        return len(await self.spawn_beer_bases(deficit))

    # -- Schedules ---------------------------------------------------------

    def active_schedules(self) -> list[RespawnSchedule]:
        """Enabled schedules, or ``[]`` when the legacy day/hour applies."""
        if not self._config.schedules_enabled:
            return []
        return [s for s in self._config.schedules if s.enabled]

    def next_respawn_time(self, now: datetime | None = None) -> datetime:
        now = now or self._clock.now()
        schedules = self.active_schedules()
        if schedules:
            return min(next_schedule_time(now, s) for s in schedules)
        return next_respawn_time(now, self._config.respawn_day, self._config.respawn_hour)

    def is_respawn_time(self, now: datetime | None = None) -> bool:
        now = now or self._clock.now()
        schedules = self.active_schedules()
        if schedules:
            return any(is_schedule_due(now, s) for s in schedules)
        return is_respawn_time(now, self._config.respawn_day, self._config.respawn_hour)

    def due_schedules(self, now: datetime) -> list[RespawnSchedule]:
        """Active schedules inside their slot that have not fired this hour."""
        return [
            s for s in self.active_schedules()
            if is_schedule_due(now, s) and (s.last_run is None or now - s.last_run >= timedelta(hours=1))
        ]

    async def check_weekly_respawn(self) -> Optional[dict[str, Any]]:
        """Run the respawn if inside a window and not yet run this hour.

        Schedules that fire in the same hour are merged into one respawn
        whose spawn percentage is their sum.
        """
        now = self._clock.now()
        if not self._config.enabled:
            return None

        if self.active_schedules():
            due = self.due_schedules(now)
            if not due:
                return None
            percentage = sum(s.spawn_percentage for s in due)
            log.info("[BEER_BASE] Schedules due: %s", ", ".join(s.name or s.id for s in due))
            result = await self.weekly_respawn(spawn_percentage=percentage)
            for schedule in due:
                schedule.last_run = now
            return result

        if not self.is_respawn_time(now):
            return None
        last = self._last_weekly_respawn
        if last is not None and now - last < timedelta(hours=1):
            return None
        return await self.weekly_respawn()

    def list_schedules(self) -> list[RespawnSchedule]:
        return list(self._config.schedules)

    def add_schedule(
        self,
        day_of_week: int,
        hour: int,
        spawn_percentage: float = 100.0,
        zone: str = "UTC",
        enabled: bool = True,
        name: Optional[str] = None,
        schedule_id: Optional[str] = None,
    ) -> RespawnSchedule:
        """Validate and append a schedule; an id is generated when omitted.

        *zone* is the IANA timezone that *day_of_week* and *hour* refer to.

        Raises:
            BeerBaseConfigError: On an out-of-range field, an unknown
                timezone or a duplicate id.
        """
        if schedule_id is None:
            ts = int(self._clock.now().timestamp() * 1000)
            schedule_id = f"schedule-{ts}-{next(self._schedule_seq)}"
        if any(s.id == schedule_id for s in self._config.schedules):
            raise BeerBaseConfigError(f"Schedule {schedule_id!r} already exists")

        schedule = RespawnSchedule(
            id=schedule_id,
            enabled=enabled,
            day_of_week=day_of_week,
            hour=hour,
            spawn_percentage=spawn_percentage,
            timezone=zone,
            name=name,
        )
        validate_schedule(schedule)
        self._config.schedules.append(schedule)
        log.info("[BEER_BASE] Added schedule %s (day %d %02d:00 %s, %s)",
                 schedule.id, day_of_week, hour, zone, format_percent(spawn_percentage / 100))
        return schedule

    def update_schedule(self, schedule_id: str, **changes: Any) -> Optional[RespawnSchedule]:
        """Apply *changes* to one schedule; None if the id is unknown.

        Raises:
            BeerBaseConfigError: On an unknown field or invalid value.
        """
        unknown = set(changes) - SCHEDULE_FIELDS
        if unknown:
            raise BeerBaseConfigError(f"Unknown schedule fields: {', '.join(sorted(unknown))}")
        for i, schedule in enumerate(self._config.schedules):
            if schedule.id == schedule_id:
                updated = replace(schedule, **changes)
                validate_schedule(updated)
                self._config.schedules[i] = updated
                log.info("[BEER_BASE] Updated schedule %s: %s", schedule_id,
                         ", ".join(f"{k}={v}" for k, v in sorted(changes.items())))
                return updated
        return None

    def delete_schedule(self, schedule_id: str) -> bool:
        before = len(self._config.schedules)
        self._config.schedules = [s for s in self._config.schedules if s.id != schedule_id]
        deleted = len(self._config.schedules) < before
        if deleted:
            log.info("[BEER_BASE] Deleted schedule %s", schedule_id)
        return deleted

    # -- Runtime config ----------------------------------------------------

    def config_snapshot(self) -> dict[str, Any]:
        return asdict(self._config)

    def update_config(self, **changes: Any) -> dict[str, Any]:
        """Change tunables at runtime; returns the new config snapshot.

        Updates live in memory only; a restart reloads ``game.yaml``.

        Raises:
            BeerBaseConfigError: On an unknown key, an out-of-range value
                or ``spawn_rate_min`` above ``spawn_rate_max``.
        """
        unknown = set(changes) - UPDATABLE_CONFIG
        if unknown:
            raise BeerBaseConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        for key, (low, high) in CONFIG_LIMITS.items():
            if key in changes and not low <= changes[key] <= high:
                raise BeerBaseConfigError(f"{key} must be between {low} and {high}")
        rate_min = changes.get("spawn_rate_min", self._config.spawn_rate_min)
        rate_max = changes.get("spawn_rate_max", self._config.spawn_rate_max)
        if rate_min > rate_max:
            raise BeerBaseConfigError("spawn_rate_min must not exceed spawn_rate_max")

        for key, value in changes.items():
            setattr(self._config, key, value)
        if changes:
            log.info("[BEER_BASE] Config updated: %s",
                     ", ".join(f"{k}={v}" for k, v in sorted(changes.items())))
        return self.config_snapshot()

    # -- Reporting ---------------------------------------------------------

    async def get_beer_base_stats(self) -> dict[str, Any]:
        """Current and target counts, config, next respawn and a base list."""
        bases = await self._store.find_bots(beer_bases=True)
        return {
            "current": len(bases),
            "target": await self.target_beer_base_count(),
            "config": self.config_snapshot(),
            "next_respawn": self.next_respawn_time(),
            "beer_bases": [
                {
                    "username": b.username,
                    "specialization": b.config.specialization.value,
                    "tier": b.config.tier,
                    "power_tier": b.config.power_tier.value if b.config.power_tier else None,
                    "position": {"x": b.current_position.x, "y": b.current_position.y},
                    "resources": {"metal": b.resources.metal, "energy": b.resources.energy},
                    "total_strength": b.total_strength,
                    "total_defense": b.total_defense,
                }
                for b in bases
            ],
        }
