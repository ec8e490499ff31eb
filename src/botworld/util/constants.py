"""Simulation constants — map geometry, timing, combat tuning.

Values that never change at runtime live here.  Tunable knobs are in
``config/game.yaml`` (see :mod:`botworld.loaders.game_config_loader`).
"""

# -- Map -----------------------------------------------------------------

MAP_SIZE: int = 150
"""Width and height of the map in tiles (coordinates are 1-indexed)."""

ZONE_SIZE: int = 50
"""Edge length of one zone in tiles."""

ZONES_PER_ROW: int = 3
"""The map is a 3×3 grid of zones."""

ZONE_COUNT: int = ZONES_PER_ROW * ZONES_PER_ROW

# -- Timing --------------------------------------------------------------

SECONDS_PER_HOUR: float = 3600.0

BASE_ATTACK_COOLDOWN_HOURS: float = 6.0
"""Cooldown for an aggression multiplier of 1.0."""

# -- Targeting -----------------------------------------------------------

REVENGE_ATTACK_CHANCE: float = 0.60
SAME_ZONE_CHANCE: float = 0.50
ADJACENT_ZONE_CHANCE: float = 0.30

# -- Combat --------------------------------------------------------------

ROLL_MIN: float = 0.8
ROLL_MAX: float = 1.2
"""Random power multiplier range applied to both sides."""

STEAL_MIN: float = 0.10
STEAL_MAX: float = 0.30
"""Fraction of the defender's resources a winning bot takes."""

DEFENDER_LOSS_XP: int = 25
DEFEAT_XP_BASE: int = 50
DEFEAT_XP_PER_TIER: int = 25
BEER_BASE_XP_MULTIPLIER: float = 1.5

# -- Bots ----------------------------------------------------------------

MIN_TIER: int = 1
MAX_TIER: int = 7

BEER_BASE_RESOURCE_FACTOR: int = 3
"""Resource factor applied by the generator to every Beer Base."""

BOSS_BOUNTY: int = 5_000_000

BOT_PASSWORD: str = "BOT_ACCOUNT"
"""Sentinel password — bots cannot log in."""

BOT_EMAIL_DOMAIN: str = "bots.internal"
