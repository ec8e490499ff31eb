"""Resource regeneration — bots refill their stockpile over wall-clock time.

Regeneration is quantised to whole hours: a bot whose anchor is 59
minutes old gains nothing, one that is 2h59m old gains two hours' worth.
:func:`regenerate` is pure and never touches timestamps; the caller
applies the result and advances ``last_resource_regen``.
"""

from __future__ import annotations

import math
from datetime import datetime

from botworld.engine.generator import resource_range
from botworld.models.account import Account, BotPlayer, Resources, Specialization
from botworld.util.clock import hours_between
from botworld.util.constants import BEER_BASE_RESOURCE_FACTOR

REGEN_RATES: dict[Specialization, float] = {
    Specialization.HOARDER: 0.05,
    Specialization.FORTRESS: 0.10,
    Specialization.BALANCED: 0.10,
    Specialization.RAIDER: 0.15,
    Specialization.GHOST: 0.20,
    Specialization.BOSS: 0.02,
}
"""Fraction of the resource ceiling regained per hour."""


def regen_rate(specialization: Specialization) -> float:
    return REGEN_RATES[specialization]


def max_resources(bot: BotPlayer) -> int:
    """Regeneration ceiling of a bot (the top of its resource range)."""
    _, hi = resource_range(bot.config.specialization, bot.config.tier)
    if bot.config.is_special_base:
        return hi * BEER_BASE_RESOURCE_FACTOR
    return hi


def regen_anchor(bot: BotPlayer) -> datetime | None:
    """Start of the current regeneration window."""
    return bot.config.last_resource_regen or bot.config.last_growth


def elapsed_regen_hours(bot: BotPlayer, now: datetime) -> int:
    """Whole hours since the regeneration anchor (0 when there is none)."""
    anchor = regen_anchor(bot)
    if anchor is None:
        return 0
    return max(0, math.floor(hours_between(anchor, now)))


def regenerate(bot: Account, now: datetime) -> Resources:
    """Resources the bot should hold at *now*.

    ``new = min(current + floor(max * rate * hours), max)`` with metal and
    energy moving in lockstep.  Returns the current resources unchanged
    when less than one whole hour has elapsed.

    Raises:
        TypeError: If *bot* is not a bot account.
    """
    if not isinstance(bot, BotPlayer):
        raise TypeError(f"regenerate called on non-bot account {bot.username!r}")

    hours = elapsed_regen_hours(bot, now)
    if hours < 1:
        return Resources(metal=bot.resources.metal, energy=bot.resources.energy)

    cap = max_resources(bot)
    amount = math.floor(cap * regen_rate(bot.config.specialization) * hours)
    return Resources(
        metal=min(bot.resources.metal + amount, cap),
        energy=min(bot.resources.energy + amount, cap),
    )
