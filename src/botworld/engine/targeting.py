"""Target selection — which human player a bot attacks.

Order of preference:

1.  **Revenge** — if the bot remembers who last defeated it and that
    player is still around, attack them with ``revenge_attack_chance``.
2.  **Zone roll** — 50 % same zone, 30 % adjacent zones, 20 % anywhere.
3.  **Fallback** — if the chosen pool is empty, anyone eligible.

Eligible means: a human account that is not the bot itself.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Sequence

from botworld.engine.zones import adjacent_zones, zone_of
from botworld.models.account import BotPlayer, HumanPlayer
from botworld.models.combat import TargetSelection
from botworld.util.constants import ADJACENT_ZONE_CHANCE, REVENGE_ATTACK_CHANCE, SAME_ZONE_CHANCE

log = logging.getLogger(__name__)


def eligible_targets(bot: BotPlayer, players: Iterable[object]) -> list[HumanPlayer]:
    return [
        p for p in players
        if isinstance(p, HumanPlayer) and p.username != bot.username
    ]


def select_target(
    bot: BotPlayer,
    players: Sequence[object],
    rng: random.Random,
    revenge_chance: float = REVENGE_ATTACK_CHANCE,
) -> Optional[TargetSelection]:
    """Pick a target for *bot* among *players*.

    Zones are taken from each player's current position.  Returns
    ``None`` when nobody is eligible.
    """
    eligible = eligible_targets(bot, players)

    revenge_name = bot.config.revenge_target
    if revenge_name:
        revenge = next((p for p in eligible if p.username == revenge_name), None)
        if revenge is not None and rng.random() < revenge_chance:
            return TargetSelection(player=revenge, reason="revenge")

    if not eligible:
        return None

    bot_zone = bot.config.zone
    roll = rng.random()
    if roll < SAME_ZONE_CHANCE:
        reason = "same_zone"
        pool = [p for p in eligible if zone_of(p.current_position) == bot_zone]
    elif roll < SAME_ZONE_CHANCE + ADJACENT_ZONE_CHANCE:
        reason = "adjacent"
        neighbours = set(adjacent_zones(bot_zone))
        pool = [p for p in eligible if zone_of(p.current_position) in neighbours]
    else:
        reason = "any"
        pool = eligible

    if not pool:
        reason = "fallback"
        pool = eligible

    target = rng.choice(pool)
    log.debug("[BOT_ATTACK] %s targets %s (%s)", bot.username, target.username, reason)
    return TargetSelection(player=target, reason=reason)
