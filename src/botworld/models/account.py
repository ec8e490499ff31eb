"""Account models — human players and bots.

An account is either a :class:`HumanPlayer` or a :class:`BotPlayer`.
Both share the :class:`Account` base (position, resources, army, XP);
only bots carry a :class:`BotConfig`, so combat and targeting code never
has to null-check bot-only fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Specialization(str, Enum):
    """Bot behaviour archetype."""

    HOARDER = "hoarder"
    FORTRESS = "fortress"
    RAIDER = "raider"
    GHOST = "ghost"
    BALANCED = "balanced"
    BOSS = "boss"


class Reputation(str, Enum):
    """Prestige tier derived from how often a bot has been defeated."""

    UNKNOWN = "unknown"
    NOTORIOUS = "notorious"
    INFAMOUS = "infamous"
    LEGENDARY = "legendary"


class Movement(str, Enum):
    STATIONARY = "stationary"
    ROAM = "roam"
    TELEPORT = "teleport"


class PowerTier(str, Enum):
    """Power band of a Beer Base."""

    WEAK = "WEAK"
    MID = "MID"
    STRONG = "STRONG"
    ELITE = "ELITE"
    ULTRA = "ULTRA"
    LEGENDARY = "LEGENDARY"


@dataclass(frozen=True)
class Position:
    """A map coordinate, 1-indexed on both axes."""

    x: int
    y: int


@dataclass
class Resources:
    metal: int = 0
    energy: int = 0


@dataclass
class Unit:
    """A stack of identical units.

    Attributes:
        unit_type: Archetype identifier, e.g. ``"T3_GUARDIAN"``.
        name: Display name.
        category: ``"STR"`` or ``"DEF"``.
        strength: Strength of a single unit.
        defense: Defense of a single unit.
        quantity: Number of units in the stack.
        rarity: Cosmetic rarity label.
    """

    unit_type: str
    name: str
    category: str
    strength: int
    defense: int
    quantity: int = 1
    rarity: str = "common"

    @property
    def total_strength(self) -> int:
        return self.strength * self.quantity

    @property
    def total_defense(self) -> int:
        return self.defense * self.quantity


@dataclass
class BotConfig:
    """Bot-only state.

    Attributes:
        specialization: Behaviour archetype.
        tier: Difficulty tier, 1–7.
        zone: Map zone (0–8) of the spawn coordinate.
        movement: Derived from the specialization.
        is_special_base: True for transient Beer Bases.
        permanent_base: Spawn location never changes (always True).
        attack_cooldown: The bot may not attack before this time.
        last_growth: Last growth-cycle pass.
        last_resource_regen: Anchor of the hourly regeneration clock.
        last_defeated: When the bot last lost a fight.
        revenge_target: Username of the player who most recently
            defeated this bot.
        defeated_count: Times defeated (monotonic).
        reputation: Derived from ``defeated_count``.
        bounty_value: Bounty on the bot's head.
        nest_affinity: Affiliated nest, if any.
        power_tier: Power band (Beer Bases only).
    """

    specialization: Specialization = Specialization.BALANCED
    tier: int = 1
    zone: int = 0
    movement: Movement = Movement.ROAM
    is_special_base: bool = False
    permanent_base: bool = True
    attack_cooldown: Optional[datetime] = None
    last_growth: Optional[datetime] = None
    last_resource_regen: Optional[datetime] = None
    last_defeated: Optional[datetime] = None
    revenge_target: Optional[str] = None
    defeated_count: int = 0
    reputation: Reputation = Reputation.UNKNOWN
    bounty_value: int = 0
    nest_affinity: Optional[int] = None
    power_tier: Optional[PowerTier] = None


@dataclass
class Account:
    """Fields shared by every account on the map."""

    username: str
    base: Position = field(default_factory=lambda: Position(1, 1))
    current_position: Position = field(default_factory=lambda: Position(1, 1))
    resources: Resources = field(default_factory=Resources)
    units: list[Unit] = field(default_factory=list)
    total_strength: int = 0
    total_defense: int = 0
    xp: int = 0
    level: int = 1
    rank: int = 1
    created_at: Optional[datetime] = None

    is_bot = False

    def recalculate_power(self) -> None:
        """Recompute ``total_strength`` / ``total_defense`` from ``units``."""
        self.total_strength = sum(u.total_strength for u in self.units)
        self.total_defense = sum(u.total_defense for u in self.units)


@dataclass
class HumanPlayer(Account):
    """A real player.

    Attributes:
        balance_multiplier: Army-balance power multiplier, computed by the
            unit subsystem from the player's STR:DEF ratio.
        unlocked_techs: Tech-tree unlock identifiers.
    """

    balance_multiplier: float = 1.0
    unlocked_techs: set[str] = field(default_factory=set)

    is_bot = False


@dataclass
class BotPlayer(Account):
    """An AI-controlled opponent."""

    config: BotConfig = field(default_factory=BotConfig)
    email: str = ""
    password: str = ""

    is_bot = True

    @property
    def is_beer_base(self) -> bool:
        return self.config.is_special_base


Player = Union[HumanPlayer, BotPlayer]
