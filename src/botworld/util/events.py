"""Typed event bus — decoupled inter-service communication.

Services publish what happened (a bot spawned, a bot was defeated, a
cycle finished); analytics and logging subscribe without the services
knowing about them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Bot population events -----------------------------------------------

@dataclass(frozen=True)
class BotSpawned:
    """A bot was created and stored."""
    username: str
    specialization: str
    tier: int
    zone: int
    is_beer_base: bool
    power_tier: str | None = None


@dataclass(frozen=True)
class BeerBaseRemoved:
    """A Beer Base was hard-deleted from the store."""
    username: str


@dataclass(frozen=True)
class BeerBasesRespawned:
    """The weekly Beer Base population replace finished."""
    removed: int
    spawned: int


# -- Combat events -------------------------------------------------------

@dataclass(frozen=True)
class BotAttackResolved:
    """A bot attacked a player and the outcome was persisted."""
    attacker: str
    defender: str
    bot_won: bool
    bot_power: int
    target_power: int
    metal_stolen: int
    energy_stolen: int
    xp_awarded: int


@dataclass(frozen=True)
class BotDefeated:
    """A bot lost a fight against a player."""
    username: str
    defeated_by: str
    is_beer_base: bool
    deleted: bool
    loot_metal: int
    loot_energy: int
    power_tier: str | None = None


@dataclass(frozen=True)
class AttackCycleCompleted:
    """One pass of the attack cycle over the whole bot population."""
    processed: int
    attacks: int
    bot_victories: int
    player_victories: int
    errors: tuple[str, ...] = field(default_factory=tuple)


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(BotDefeated, lambda e: print(e.username))
        bus.emit(BotDefeated(username="Alpha-Omega", ...))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
