"""Statistics service — bot population and combat analytics.

Counters are fed by the event bus (see ``main.wire_events``); population
breakdowns are computed from the store on request.

Tracked:
- Spawns and defeats per Beer Base power tier.
- Bot vs. player win counts over all resolved attacks.
- Last attack-cycle summary and the last weekly Beer Base respawn.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from botworld.util.events import (
    AttackCycleCompleted,
    BeerBasesRespawned,
    BotAttackResolved,
    BotDefeated,
    BotSpawned,
)

if TYPE_CHECKING:
    from botworld.persistence.database import PlayerStore


@dataclass
class CombatTotals:
    attacks: int = 0
    bot_victories: int = 0
    player_victories: int = 0
    metal_stolen: int = 0
    energy_stolen: int = 0
    metal_looted: int = 0
    energy_looted: int = 0


@dataclass
class BeerBaseTotals:
    spawned_by_tier: Counter = field(default_factory=Counter)
    defeated_by_tier: Counter = field(default_factory=Counter)
    last_respawn: Optional[dict[str, int]] = None


class StatisticsService:
    """Aggregates simulation events for the admin API.

    Args:
        store: Account store used for population breakdowns.
    """

    def __init__(self, store: PlayerStore) -> None:
        self._store = store
        self.combat = CombatTotals()
        self.beer_bases = BeerBaseTotals()
        self.bots_spawned = 0
        self.last_cycle: Optional[AttackCycleCompleted] = None

    # -- Event handlers ----------------------------------------------------

    def on_bot_spawned(self, event: BotSpawned) -> None:
        self.bots_spawned += 1
        if event.is_beer_base and event.power_tier:
            self.beer_bases.spawned_by_tier[event.power_tier] += 1

    def on_attack_resolved(self, event: BotAttackResolved) -> None:
        self.combat.attacks += 1
        if event.bot_won:
            self.combat.bot_victories += 1
            self.combat.metal_stolen += event.metal_stolen
            self.combat.energy_stolen += event.energy_stolen
        else:
            self.combat.player_victories += 1

    def on_bot_defeated(self, event: BotDefeated) -> None:
        self.combat.metal_looted += event.loot_metal
        self.combat.energy_looted += event.loot_energy
        if event.is_beer_base and event.power_tier:
            self.beer_bases.defeated_by_tier[event.power_tier] += 1

    def on_cycle_completed(self, event: AttackCycleCompleted) -> None:
        self.last_cycle = event

    def on_beer_bases_respawned(self, event: BeerBasesRespawned) -> None:
        self.beer_bases.last_respawn = {"removed": event.removed, "spawned": event.spawned}

    # -- Reports -----------------------------------------------------------

    def bot_win_rate(self) -> float:
        if not self.combat.attacks:
            return 0.0
        return self.combat.bot_victories / self.combat.attacks

    async def population_stats(self) -> dict[str, Any]:
        """Bot counts broken down by specialization, tier, zone and reputation."""
        bots = await self._store.find_bots()
        humans = await self._store.count(is_bot=False)
        regular = [b for b in bots if not b.is_beer_base]
        return {
            "total_bots": len(bots),
            "regular_bots": len(regular),
            "beer_bases": len(bots) - len(regular),
            "human_players": humans,
            "by_specialization": dict(Counter(b.config.specialization.value for b in bots)),
            "by_tier": {str(k): v for k, v in sorted(Counter(b.config.tier for b in bots).items())},
            "by_zone": {str(k): v for k, v in sorted(Counter(b.config.zone for b in bots).items())},
            "by_reputation": dict(Counter(b.config.reputation.value for b in regular)),
            "with_units": sum(1 for b in bots if b.units),
            "with_revenge_target": sum(1 for b in regular if b.config.revenge_target),
        }

    def snapshot(self) -> dict[str, Any]:
        """Event-fed counters as a JSON-compatible dict."""
        return {
            "bots_spawned": self.bots_spawned,
            "combat": asdict(self.combat),
            "bot_win_rate": round(self.bot_win_rate(), 4),
            "beer_bases": {
                "spawned_by_tier": dict(self.beer_bases.spawned_by_tier),
                "defeated_by_tier": dict(self.beer_bases.defeated_by_tier),
                "last_respawn": self.beer_bases.last_respawn,
            },
            "last_cycle": asdict(self.last_cycle) if self.last_cycle else None,
        }
