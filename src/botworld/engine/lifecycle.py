"""Defeat handling — what happens to a bot that loses a fight.

Two branches:

*   **Beer Base** — the base is hard-deleted.  If the delete fails the
    defeat is still recorded through the permanent branch so the player's
    loot is never lost.
*   **Permanent bot** ("Full Permanence") — the bot stays on the map with
    zeroed resources, counts the defeat, recomputes its reputation,
    remembers the defeater as its revenge target and restarts its
    regeneration clock.

In both branches the winning player receives the bot's resources times
the loot bonus plus the defeat XP.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional

from botworld.models.account import BotPlayer, HumanPlayer, Reputation, Resources
from botworld.models.combat import DefeatResult
from botworld.util.events import BotDefeated

if TYPE_CHECKING:
    from botworld.engine.beer_base import BeerBaseService
    from botworld.persistence.database import PlayerStore
    from botworld.util.events import EventBus

log = logging.getLogger(__name__)

# -- Loot tables ------------------------------------------------------------

TECH_LOOT_BONUSES: tuple[tuple[str, float], ...] = (
    ("advanced-tracking", 1.75),
    ("bot-hunter", 1.25),
)
"""Checked in order; the first unlocked tech wins."""

REPUTATION_THRESHOLDS: tuple[tuple[int, Reputation], ...] = (
    (31, Reputation.LEGENDARY),
    (16, Reputation.INFAMOUS),
    (6, Reputation.NOTORIOUS),
)

REPUTATION_LOOT_BONUSES: dict[Reputation, float] = {
    Reputation.UNKNOWN: 1.0,
    Reputation.NOTORIOUS: 1.25,
    Reputation.INFAMOUS: 1.5,
    Reputation.LEGENDARY: 2.0,
}


def calculate_reputation(defeated_count: int) -> Reputation:
    """Reputation tier for a defeat count (thresholds 6 / 16 / 31)."""
    for threshold, reputation in REPUTATION_THRESHOLDS:
        if defeated_count >= threshold:
            return reputation
    return Reputation.UNKNOWN


def calculate_loot_bonus(unlocked_techs: Iterable[str]) -> float:
    techs = set(unlocked_techs)
    for tech, bonus in TECH_LOOT_BONUSES:
        if tech in techs:
            return bonus
    return 1.0


def reputation_loot_bonus(reputation: Reputation) -> float:
    return REPUTATION_LOOT_BONUSES[reputation]


class DefeatHandler:
    """Applies a bot defeat to the store.

    Args:
        store: Account store.
        beer_bases: Service used to hard-delete defeated Beer Bases.
        events: Event bus for :class:`BotDefeated`.
        reputation_loot_enabled: Multiply loot by the bot's reputation bonus.
    """

    def __init__(
        self,
        store: PlayerStore,
        beer_bases: BeerBaseService,
        events: Optional[EventBus] = None,
        reputation_loot_enabled: bool = False,
    ) -> None:
        self._store = store
        self._beer_bases = beer_bases
        self._events = events
        self._reputation_loot_enabled = reputation_loot_enabled

    def loot_bonus(self, bot: BotPlayer, target: HumanPlayer) -> float:
        bonus = calculate_loot_bonus(target.unlocked_techs)
        if self._reputation_loot_enabled:
            bonus *= reputation_loot_bonus(bot.config.reputation)
        return bonus

    async def handle_defeat(
        self,
        bot: BotPlayer,
        target: HumanPlayer,
        xp: int,
        now: datetime,
    ) -> DefeatResult:
        """Record that *target* beat *bot*.

        The in-memory ``bot`` and ``target`` are updated to mirror the
        stored state.
        """
        bonus = self.loot_bonus(bot, target)
        loot = Resources(
            metal=math.floor(bot.resources.metal * bonus),
            energy=math.floor(bot.resources.energy * bonus),
        )

        deleted = False
        degraded = False
        if bot.is_beer_base:
            try:
                await self._beer_bases.remove_beer_base(bot.username)
                deleted = True
            except Exception:
                log.exception("[BEER_BASE] Failed to delete defeated Beer Base %s, "
                              "recording defeat on the record instead", bot.username)
                degraded = True

        if not deleted:
            await self._record_permanent_defeat(bot, target, now)

        await self._store.update(target.username, inc_fields={
            "resources.metal": loot.metal,
            "resources.energy": loot.energy,
            "xp": xp,
        })
        target.resources.metal += loot.metal
        target.resources.energy += loot.energy
        target.xp += xp

        log.info("[BOT_ATTACK] %s defeated %s%s: loot=%d/%d (x%.2f) xp=%d",
                 target.username, bot.username,
                 " (Beer Base deleted)" if deleted else "",
                 loot.metal, loot.energy, bonus, xp)

        if self._events:
            self._events.emit(BotDefeated(
                username=bot.username,
                defeated_by=target.username,
                is_beer_base=bot.is_beer_base,
                deleted=deleted,
                loot_metal=loot.metal,
                loot_energy=loot.energy,
                power_tier=bot.config.power_tier.value if bot.config.power_tier else None,
            ))

        return DefeatResult(
            deleted=deleted,
            loot=loot,
            loot_bonus=bonus,
            xp_awarded=xp,
            defeated_count=bot.config.defeated_count,
            degraded=degraded,
        )

    async def _record_permanent_defeat(self, bot: BotPlayer, target: HumanPlayer, now: datetime) -> None:
        updated = await self._store.update(
            bot.username,
            set_fields={
                "resources.metal": 0,
                "resources.energy": 0,
                "bot_config.last_defeated": now,
                "bot_config.revenge_target": target.username,
                "bot_config.last_resource_regen": now,
            },
            inc_fields={"bot_config.defeated_count": 1},
        )
        if not isinstance(updated, BotPlayer):
            raise TypeError(f"defeat recorded on non-bot account {bot.username!r}")
        count = updated.config.defeated_count
        reputation = calculate_reputation(count)
        if reputation is not updated.config.reputation:
            await self._store.update(bot.username, set_fields={"bot_config.reputation": reputation})
            log.info("[BOT_ATTACK] %s is now %s (%d defeats)", bot.username, reputation.value, count)

        bot.resources = Resources()
        bot.config.last_defeated = now
        bot.config.revenge_target = target.username
        bot.config.last_resource_regen = now
        bot.config.defeated_count = count
        bot.config.reputation = reputation
