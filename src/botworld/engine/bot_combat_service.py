"""Bot combat service — the periodic bot attack cycle.

Each cycle loads all bots and all human players once, then for every bot
whose cooldown has expired and that owns units:

1.  select a target (:func:`botworld.engine.targeting.select_target`),
2.  resolve the fight (:func:`botworld.engine.combat.resolve`),
3.  persist the result via :meth:`BotCombatService.process_bot_attack`.

A failing bot is logged and recorded in the summary's ``errors``; the
rest of the population is still processed.  Cycles never overlap: a call
made while another cycle holds the lock returns a skipped summary.  The
cycle body also runs under the shared simulation lock, so a growth cycle
or weekly respawn waits for it and then reads the post-attack records.

Log lines are tagged ``[BOT_ATTACK]``::

    [BOT_ATTACK] WIN  Shadow-Hunter -> alice stole=1200/1200 power=5400 vs 3100
    [BOT_ATTACK] LOSS Shadow-Hunter -> alice power=2100 vs 3100
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from botworld.engine.combat import resolve
from botworld.engine.targeting import select_target
from botworld.models.account import BotPlayer, HumanPlayer, Specialization
from botworld.models.combat import AttackResult, CycleSummary
from botworld.util.constants import BASE_ATTACK_COOLDOWN_HOURS, REVENGE_ATTACK_CHANCE
from botworld.util.events import AttackCycleCompleted, BotAttackResolved
from botworld.util.types import format_hours

if TYPE_CHECKING:
    from botworld.engine.lifecycle import DefeatHandler
    from botworld.persistence.database import PlayerStore
    from botworld.util.clock import Clock
    from botworld.util.events import EventBus

log = logging.getLogger(__name__)

AGGRESSION: dict[Specialization, float] = {
    Specialization.RAIDER: 3.0,
    Specialization.FORTRESS: 0.5,
    Specialization.HOARDER: 0.7,
    Specialization.GHOST: 0.3,
    Specialization.BALANCED: 1.0,
    Specialization.BOSS: 1.0,
}
"""Attack frequency multiplier; the cooldown is ``base / aggression``."""


def attack_cooldown_hours(
    specialization: Specialization,
    base_hours: float = BASE_ATTACK_COOLDOWN_HOURS,
) -> float:
    return base_hours / AGGRESSION[specialization]


def can_attack(bot: BotPlayer, now: datetime) -> bool:
    cooldown = bot.config.attack_cooldown
    return cooldown is None or now >= cooldown


class BotCombatService:
    """Runs bot-vs-player attacks.

    Args:
        store: Account store.
        defeat_handler: Applies bot defeats.
        clock: Time source.
        rng: Random source for targeting and combat rolls.
        events: Event bus.
        base_cooldown_hours: Cooldown at aggression 1.0.
        revenge_chance: Chance to pick the remembered revenge target.
        simulation_lock: Lock shared with the growth cycle and the weekly
            respawn; a private one is created when omitted.
    """

    def __init__(
        self,
        store: PlayerStore,
        defeat_handler: DefeatHandler,
        clock: Clock,
        rng: random.Random | None = None,
        events: Optional[EventBus] = None,
        base_cooldown_hours: float = BASE_ATTACK_COOLDOWN_HOURS,
        revenge_chance: float = REVENGE_ATTACK_CHANCE,
        simulation_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._store = store
        self._defeat_handler = defeat_handler
        self._clock = clock
        self._rng = rng or random.Random()
        self._events = events
        self._base_cooldown_hours = base_cooldown_hours
        self._revenge_chance = revenge_chance
        self._cycle_lock = asyncio.Lock()
        self._simulation_lock = simulation_lock or asyncio.Lock()
        self.last_summary: CycleSummary | None = None

    @property
    def cycle_running(self) -> bool:
        return self._cycle_lock.locked()

    def next_cooldown(self, bot: BotPlayer, now: datetime) -> datetime:
        hours = attack_cooldown_hours(bot.config.specialization, self._base_cooldown_hours)
        return now + timedelta(hours=hours)

    async def process_bot_attack(
        self,
        bot: BotPlayer,
        target: HumanPlayer,
        revenge: bool = False,
    ) -> AttackResult:
        """Fight *bot* against *target* and persist everything.

        Sets the bot's next cooldown, then either moves stolen resources
        from the target to the bot or hands the defeat to the
        :class:`DefeatHandler`.  A revenge attack clears the bot's revenge
        target first, so a defeat in that same fight sets it again.
        """
        now = self._clock.now()
        outcome = resolve(bot, target, self._rng)
        cooldown = self.next_cooldown(bot, now)

        bot_set: dict[str, object] = {"bot_config.attack_cooldown": cooldown}
        if revenge:
            bot_set["bot_config.revenge_target"] = None
            bot.config.revenge_target = None
        bot.config.attack_cooldown = cooldown

        defeat = None
        if outcome.bot_wins:
            stolen = outcome.resources_stolen
            await self._store.update(bot.username, set_fields=bot_set, inc_fields={
                "resources.metal": stolen.metal,
                "resources.energy": stolen.energy,
            })
            bot.resources.metal += stolen.metal
            bot.resources.energy += stolen.energy

            target.resources.metal = max(0, target.resources.metal - stolen.metal)
            target.resources.energy = max(0, target.resources.energy - stolen.energy)
            target.xp += outcome.xp_awarded
            await self._store.update(target.username, set_fields={
                "resources.metal": target.resources.metal,
                "resources.energy": target.resources.energy,
            }, inc_fields={"xp": outcome.xp_awarded})

            message = (f"{bot.username} attacked and stole {stolen.metal} Metal "
                       f"and {stolen.energy} Energy!")
            log.info("[BOT_ATTACK] WIN  %s -> %s stole=%d/%d power=%d vs %d%s",
                     bot.username, target.username, stolen.metal, stolen.energy,
                     outcome.bot_power, outcome.target_power, " (revenge)" if revenge else "")
        else:
            await self._store.update(bot.username, set_fields=bot_set)
            defeat = await self._defeat_handler.handle_defeat(bot, target, outcome.xp_awarded, now)
            if defeat.deleted:
                message = (f"You defeated Beer Base {bot.username} and looted {defeat.loot.metal} Metal "
                           f"and {defeat.loot.energy} Energy! The base has been destroyed! "
                           f"(+{outcome.xp_awarded} XP)")
            else:
                message = (f"You defended against {bot.username} and looted {defeat.loot.metal} Metal "
                           f"and {defeat.loot.energy} Energy! (+{outcome.xp_awarded} XP)")
            log.info("[BOT_ATTACK] LOSS %s -> %s power=%d vs %d%s",
                     bot.username, target.username, outcome.bot_power, outcome.target_power,
                     " (revenge)" if revenge else "")

        log.debug("[BOT_ATTACK] %s next attack in %s",
                  bot.username, format_hours((cooldown - now).total_seconds() / 3600))

        if self._events:
            self._events.emit(BotAttackResolved(
                attacker=bot.username,
                defender=target.username,
                bot_won=outcome.bot_wins,
                bot_power=outcome.bot_power,
                target_power=outcome.target_power,
                metal_stolen=outcome.resources_stolen.metal,
                energy_stolen=outcome.resources_stolen.energy,
                xp_awarded=outcome.xp_awarded,
            ))

        return AttackResult(
            bot_won=outcome.bot_wins,
            message=message,
            attacker=bot.username,
            defender=target.username,
            outcome=outcome,
            defeat=defeat,
            timestamp=now,
        )

    async def run_bot_attack_cycle(self) -> CycleSummary:
        """Let every ready bot attack once.

        Returns:
            Summary with ``processed``, ``attacks``, ``bot_victories``,
            ``player_victories`` and ``errors``; ``skipped`` is set when
            another cycle was still running.
        """
        if self._cycle_lock.locked():
            log.warning("[BOT_ATTACK] Attack cycle already running, skipping")
            return CycleSummary(skipped=True)

        async with self._cycle_lock, self._simulation_lock:
            summary = CycleSummary()
            bots = await self._store.find_bots()
            players = await self._store.find_humans()
            log.info("[BOT_ATTACK] Processing %d bots against %d players", len(bots), len(players))

            for bot in bots:
                summary.processed += 1
                try:
                    if not can_attack(bot, self._clock.now()) or not bot.units:
                        continue
                    selection = select_target(bot, players, self._rng, self._revenge_chance)
                    if selection is None:
                        continue
                    result = await self.process_bot_attack(
                        bot, selection.player, revenge=selection.is_revenge,
                    )
                    summary.attacks += 1
                    if result.bot_won:
                        summary.bot_victories += 1
                    else:
                        summary.player_victories += 1
                except Exception as exc:
                    log.exception("[BOT_ATTACK] Failed to process bot %s", bot.username)
                    summary.errors.append(f"Failed to process bot attack for {bot.username}: {exc}")

            log.info("[BOT_ATTACK] Cycle complete: processed=%d attacks=%d bot_wins=%d "
                     "player_wins=%d errors=%d",
                     summary.processed, summary.attacks, summary.bot_victories,
                     summary.player_victories, len(summary.errors))
            self.last_summary = summary
            if self._events:
                self._events.emit(AttackCycleCompleted(
                    processed=summary.processed,
                    attacks=summary.attacks,
                    bot_victories=summary.bot_victories,
                    player_victories=summary.player_victories,
                    errors=tuple(summary.errors),
                ))
            return summary
