"""Combat and cycle result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from botworld.models.account import HumanPlayer, Resources


@dataclass
class TargetSelection:
    """A chosen target and which branch of the targeting roll picked it.

    ``reason`` is one of ``revenge``, ``same_zone``, ``adjacent``,
    ``any`` or ``fallback`` (weighted pool was empty).
    """

    player: HumanPlayer
    reason: str

    @property
    def is_revenge(self) -> bool:
        return self.reason == "revenge"


@dataclass
class CombatOutcome:
    """Result of a single bot-vs-player fight (nothing persisted yet)."""

    bot_wins: bool
    bot_power: int
    target_power: int
    resources_stolen: Resources = field(default_factory=Resources)
    xp_awarded: int = 0


@dataclass
class DefeatResult:
    """What the defeat handler did to a losing bot."""

    deleted: bool
    loot: Resources
    loot_bonus: float
    xp_awarded: int
    defeated_count: int = 0
    degraded: bool = False
    """True when a Beer Base could not be deleted and was zeroed instead."""


@dataclass
class AttackResult:
    """Outcome of :meth:`BotCombatService.process_bot_attack`."""

    bot_won: bool
    message: str
    attacker: str
    defender: str
    outcome: CombatOutcome
    defeat: Optional[DefeatResult] = None
    timestamp: Optional[datetime] = None


@dataclass
class CycleSummary:
    """Summary of one attack cycle over the bot population."""

    processed: int = 0
    attacks: int = 0
    bot_victories: int = 0
    player_victories: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: bool = False


@dataclass
class GrowthSummary:
    """Summary of one growth cycle over the bot population."""

    processed: int = 0
    regenerated: int = 0
    moved: int = 0
    units_built: int = 0
    errors: list[str] = field(default_factory=list)
