"""Combat resolver — one randomized roll per side, nothing persisted.

The attacker's roll weights its own strength fully and its defense at
half; the defender's roll does the opposite and is additionally scaled
by the player's army-balance multiplier::

    bot_roll    = (str + def * 0.5) * U(0.8, 1.2)
    target_roll = (str * 0.5 + def) * balance * U(0.8, 1.2)

Ties go to the defender.
"""

from __future__ import annotations

import math
import random

from botworld.models.account import BotPlayer, HumanPlayer, Resources
from botworld.models.combat import CombatOutcome
from botworld.util.constants import (
    BEER_BASE_XP_MULTIPLIER,
    DEFEAT_XP_BASE,
    DEFEAT_XP_PER_TIER,
    DEFENDER_LOSS_XP,
    ROLL_MAX,
    ROLL_MIN,
    STEAL_MAX,
    STEAL_MIN,
)


def bot_attack_power(bot: BotPlayer) -> float:
    """Unrolled offensive power of a bot."""
    return bot.total_strength + bot.total_defense * 0.5


def target_defense_power(target: HumanPlayer) -> float:
    """Unrolled defensive power of a player, balance multiplier included."""
    return (target.total_strength * 0.5 + target.total_defense) * target.balance_multiplier


def defeat_xp(bot: BotPlayer) -> int:
    """XP a player earns for beating *bot*."""
    xp = DEFEAT_XP_BASE + bot.config.tier * DEFEAT_XP_PER_TIER
    if bot.config.is_special_base:
        return math.floor(xp * BEER_BASE_XP_MULTIPLIER)
    return xp


def resolve(bot: BotPlayer, target: HumanPlayer, rng: random.Random) -> CombatOutcome:
    """Fight *bot* against *target* and report the outcome."""
    bot_roll = bot_attack_power(bot) * rng.uniform(ROLL_MIN, ROLL_MAX)
    target_roll = target_defense_power(target) * rng.uniform(ROLL_MIN, ROLL_MAX)
    bot_wins = bot_roll > target_roll

    if bot_wins:
        share = rng.uniform(STEAL_MIN, STEAL_MAX)
        stolen = Resources(
            metal=math.floor(target.resources.metal * share),
            energy=math.floor(target.resources.energy * share),
        )
        xp = DEFENDER_LOSS_XP
    else:
        stolen = Resources()
        xp = defeat_xp(bot)

    return CombatOutcome(
        bot_wins=bot_wins,
        bot_power=math.floor(bot_roll),
        target_power=math.floor(target_roll),
        resources_stolen=stolen,
        xp_awarded=xp,
    )
