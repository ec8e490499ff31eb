"""Bot generator — procedural creation of bot accounts.

A generated bot gets a specialization (weighted roll), a zone (uniform),
a tier drawn from the zone's tier range, a random spawn coordinate inside
the zone, a resource stockpile from the specialization/tier range and a
top-down defense value from :func:`calculate_defense`.  Offensive
strength starts at zero; units are added later by the growth engine or,
for Beer Bases, by :func:`botworld.engine.beer_base.generate_beer_base_units`.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Optional

from botworld.engine.zones import ZONE_TIER_RANGES, calculate_zone, zone_bounds
from botworld.models.account import (
    BotConfig,
    BotPlayer,
    Movement,
    Position,
    Reputation,
    Resources,
    Specialization,
)
from botworld.util.constants import (
    BEER_BASE_RESOURCE_FACTOR,
    BOSS_BOUNTY,
    BOT_EMAIL_DOMAIN,
    BOT_PASSWORD,
    MAX_TIER,
    MIN_TIER,
    ZONE_COUNT,
)
from botworld.util.sampling import WeightedTable

if TYPE_CHECKING:
    from botworld.loaders.name_loader import NamePools
    from botworld.util.clock import Clock

log = logging.getLogger(__name__)

# ── Tables ──────────────────────────────────────────────────────────────────

SPECIALIZATION_TABLE: WeightedTable[Specialization] = WeightedTable([
    (1.0, Specialization.BOSS),
    (24.75, Specialization.HOARDER),
    (24.75, Specialization.RAIDER),
    (19.8, Specialization.FORTRESS),
    (14.85, Specialization.GHOST),
    (14.85, Specialization.BALANCED),
])

BASE_RESOURCE_RANGES: dict[Specialization, tuple[int, int]] = {
    Specialization.HOARDER: (50_000, 150_000),
    Specialization.FORTRESS: (5_000, 15_000),
    Specialization.RAIDER: (10_000, 40_000),
    Specialization.GHOST: (20_000, 80_000),
    Specialization.BALANCED: (15_000, 50_000),
}

BOSS_RESOURCE_RANGE: tuple[int, int] = (4_000_000, 6_000_000)
"""Fixed band, not scaled by tier."""

DEFENSE_MULTIPLIERS: dict[Specialization, float] = {
    Specialization.HOARDER: 0.5,
    Specialization.FORTRESS: 3.0,
    Specialization.RAIDER: 1.0,
    Specialization.GHOST: 0.8,
    Specialization.BALANCED: 1.0,
    Specialization.BOSS: 20.0,
}

MOVEMENT_PATTERNS: dict[Specialization, Movement] = {
    Specialization.HOARDER: Movement.STATIONARY,
    Specialization.FORTRESS: Movement.STATIONARY,
    Specialization.BOSS: Movement.STATIONARY,
    Specialization.RAIDER: Movement.ROAM,
    Specialization.BALANCED: Movement.ROAM,
    Specialization.GHOST: Movement.TELEPORT,
}

NAME_VARIANT_CHANCE: float = 0.30


# ── Pure helpers ────────────────────────────────────────────────────────────

def tier_multiplier(tier: int) -> float:
    """Resource scale of a tier: 0.75× at tier 1 up to 2.25× at tier 7."""
    return 0.5 + tier * 0.25


def resource_range(specialization: Specialization, tier: int) -> tuple[int, int]:
    """Inclusive ``(min, max)`` resource range for a specialization and tier.

    The Boss band ignores the tier.
    """
    if specialization is Specialization.BOSS:
        return BOSS_RESOURCE_RANGE
    lo, hi = BASE_RESOURCE_RANGES[specialization]
    mult = tier_multiplier(tier)
    return math.floor(lo * mult), math.floor(hi * mult)


def calculate_defense(specialization: Specialization, tier: int) -> int:
    """Top-down defense of a generated bot (tier curve × specialization)."""
    base = math.floor((100 + tier * 50) * 2 ** (tier - 1) * 0.1)
    return math.floor(base * DEFENSE_MULTIPLIERS[specialization])


def movement_for(specialization: Specialization) -> Movement:
    return MOVEMENT_PATTERNS[specialization]


# ── Generator ───────────────────────────────────────────────────────────────

class BotGenerator:
    """Creates unsaved :class:`BotPlayer` records.

    Args:
        names: Username word pools.
        clock: Time source for creation timestamps.
        rng: Random source.
    """

    def __init__(
        self,
        names: NamePools,
        clock: Clock,
        rng: random.Random | None = None,
    ) -> None:
        self._names = names
        self._clock = clock
        self._rng = rng or random.Random()

    def generate_name(self) -> str:
        """``Prefix-Suffix`` with a 30 % chance of a ``-N`` variant (1–999)."""
        prefix = self._rng.choice(self._names.prefixes)
        suffix = self._rng.choice(self._names.suffixes)
        if self._rng.random() < NAME_VARIANT_CHANCE:
            return f"{prefix}-{suffix}-{self._rng.randint(1, 999)}"
        return f"{prefix}-{suffix}"

    def random_position_in_zone(self, zone: int) -> Position:
        min_x, max_x, min_y, max_y = zone_bounds(zone)
        return Position(self._rng.randint(min_x, max_x), self._rng.randint(min_y, max_y))

    def _synthetic_email(self) -> str:
        ts = int(self._clock.now().timestamp() * 1000)
        return f"bot-{ts}-{self._rng.randrange(1_000_000_000)}@{BOT_EMAIL_DOMAIN}"

    def generate(
        self,
        zone: Optional[int] = None,
        specialization: Optional[Specialization] = None,
        is_beer_base: bool = False,
        tier: Optional[int] = None,
    ) -> BotPlayer:
        """Create a new bot with randomized stats.

        Args:
            zone: Spawn zone 0–8; uniform when omitted.
            specialization: Archetype; weighted roll when omitted.
            is_beer_base: Create a transient Beer Base (×3 resources).
            tier: Tier override; drawn from the zone's range when omitted.
                Boss bots are always tier 7.

        Raises:
            ValueError: On an unknown zone or a tier outside 1–7.
        """
        if zone is None:
            zone = self._rng.randrange(ZONE_COUNT)
        elif not 0 <= zone < ZONE_COUNT:
            raise ValueError(f"Unknown zone {zone}")
        if specialization is None:
            specialization = SPECIALIZATION_TABLE.pick(self._rng)

        if specialization is Specialization.BOSS:
            tier = MAX_TIER
        elif tier is None:
            lo, hi = ZONE_TIER_RANGES[zone]
            tier = self._rng.randint(lo, hi)
        elif not MIN_TIER <= tier <= MAX_TIER:
            raise ValueError(f"Tier {tier} outside {MIN_TIER}..{MAX_TIER}")

        lo, hi = resource_range(specialization, tier)
        amount = self._rng.randint(lo, hi)
        if is_beer_base:
            amount *= BEER_BASE_RESOURCE_FACTOR

        now = self._clock.now()
        position = self.random_position_in_zone(zone)
        bot = BotPlayer(
            username=self.generate_name(),
            base=position,
            current_position=position,
            resources=Resources(metal=amount, energy=amount),
            total_strength=0,
            total_defense=calculate_defense(specialization, tier),
            level=tier * 5,
            rank=tier,
            created_at=now,
            config=BotConfig(
                specialization=specialization,
                tier=tier,
                zone=zone,
                movement=movement_for(specialization),
                is_special_base=is_beer_base,
                permanent_base=True,
                attack_cooldown=now,
                last_growth=now,
                last_resource_regen=now,
            ),
            email=self._synthetic_email(),
            password=BOT_PASSWORD,
        )
        log.debug("Generated bot %s (%s T%d zone=%d beer_base=%s)",
                  bot.username, specialization.value, tier, zone, is_beer_base)
        return bot

    def generate_boss(self, x: int, y: int, zone: Optional[int] = None) -> BotPlayer:
        """Create a Boss at a fixed coordinate.

        The Boss is tier 7, Legendary from the start, stationary, carries a
        bounty and is never a Beer Base.
        """
        if zone is None:
            zone = calculate_zone(x, y)
        bot = self.generate(zone=zone, specialization=Specialization.BOSS, is_beer_base=False)
        position = Position(x, y)
        bot.base = position
        bot.current_position = position
        bot.config.reputation = Reputation.LEGENDARY
        bot.config.movement = Movement.STATIONARY
        bot.config.bounty_value = BOSS_BOUNTY
        log.info("Generated boss %s at (%d, %d) zone=%d", bot.username, x, y, zone)
        return bot
