"""Simulation server entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (game.yaml, bot name pools)
2. Initialize persistence layer (player store)
3. Create engine services (generator, Beer Bases, defeat handler, combat, growth, statistics)
4. Create event bus and wire up services
5. Seed the initial bot population if the store has none
6. Start the admin REST API (uvicorn)
7. Start the simulation loop

Usage:
    python -m botworld.main
    # or via entry point:
    botworld --config config/game.yaml
"""

from __future__ import annotations

import asyncio
import logging
import random
import signal
import sys
from dataclasses import dataclass
from typing import Any, Optional

from botworld.engine.beer_base import BeerBaseService
from botworld.engine.bot_combat_service import BotCombatService
from botworld.engine.game_loop import SimulationLoop
from botworld.engine.generator import BotGenerator
from botworld.engine.growth import BotGrowthService
from botworld.engine.lifecycle import DefeatHandler
from botworld.engine.statistics import StatisticsService
from botworld.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, GameConfig, load_game_config
from botworld.loaders.name_loader import NamePools, load_name_pools
from botworld.persistence.database import PlayerStore
from botworld.util.clock import Clock, SystemClock
from botworld.util.events import (
    AttackCycleCompleted,
    BeerBasesRespawned,
    BotAttackResolved,
    BotDefeated,
    BotSpawned,
    EventBus,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all engine services."""

    game_config: Optional[GameConfig] = None
    event_bus: Optional[EventBus] = None
    clock: Optional[Clock] = None
    store: Optional[PlayerStore] = None
    generator: Optional[BotGenerator] = None
    beer_base_service: Optional[BeerBaseService] = None
    defeat_handler: Optional[DefeatHandler] = None
    combat_service: Optional[BotCombatService] = None
    growth_service: Optional[BotGrowthService] = None
    statistics: Optional[StatisticsService] = None
    simulation_loop: Optional[SimulationLoop] = None
    rest_server: Any = None


# ===================================================================
# 1. Initialize persistence layer
# ===================================================================


async def init_persistence(db_path: str) -> PlayerStore:
    """Open the player store."""
    log.info("Initializing persistence …")
    store = PlayerStore(db_path)
    await store.connect()
    log.info("  player store: %d bots, %d players",
             await store.count(is_bot=True), await store.count(is_bot=False))
    return store


# ===================================================================
# 2. Create engine services
# ===================================================================


def create_services(
    gc: GameConfig,
    store: PlayerStore,
    names: NamePools,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> Services:
    """Instantiate all engine services with proper dependency injection.

    Wiring order matters: services that are injected into others are
    created first.  All services share one clock, one random source and
    one simulation lock, so attack, growth and respawn cycles never
    interleave their writes.
    """
    log.info("Creating services …")
    clock = clock or SystemClock()
    rng = rng or random.Random(gc.random_seed)
    event_bus = EventBus()
    simulation_lock = asyncio.Lock()

    generator = BotGenerator(names, clock, rng)
    beer_base_service = BeerBaseService(
        store, generator, gc.beer_bases, gc.bots, clock, rng, event_bus,
        simulation_lock=simulation_lock,
    )
    defeat_handler = DefeatHandler(
        store, beer_base_service, event_bus,
        reputation_loot_enabled=gc.bots.reputation_loot_enabled,
    )
    combat_service = BotCombatService(
        store, defeat_handler, clock, rng, event_bus,
        base_cooldown_hours=gc.bots.base_attack_cooldown_hours,
        revenge_chance=gc.bots.revenge_attack_chance,
        simulation_lock=simulation_lock,
    )
    growth_service = BotGrowthService(
        store, generator, clock, rng, event_bus,
        total_bot_cap=gc.bots.total_bot_cap,
        regen_enabled=gc.bots.regen_enabled,
        simulation_lock=simulation_lock,
    )
    statistics = StatisticsService(store)
    simulation_loop = SimulationLoop(combat_service, growth_service, beer_base_service, clock, gc)
    log.info("  all services created")

    return Services(
        game_config=gc,
        event_bus=event_bus,
        clock=clock,
        store=store,
        generator=generator,
        beer_base_service=beer_base_service,
        defeat_handler=defeat_handler,
        combat_service=combat_service,
        growth_service=growth_service,
        statistics=statistics,
        simulation_loop=simulation_loop,
    )


# ===================================================================
# 3. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register event handlers to connect services via the EventBus."""
    log.info("Wiring event handlers …")
    bus = services.event_bus
    stats = services.statistics

    bus.on(BotSpawned, stats.on_bot_spawned)
    bus.on(BotAttackResolved, stats.on_attack_resolved)
    bus.on(BotDefeated, stats.on_bot_defeated)
    bus.on(AttackCycleCompleted, stats.on_cycle_completed)
    bus.on(BeerBasesRespawned, stats.on_beer_bases_respawned)

    log.info("  event handlers registered")


# ===================================================================
# 4. Seed population
# ===================================================================


async def seed_population(services: Services) -> None:
    """Create the initial bots and Beer Bases on an empty store."""
    gc = services.game_config
    if not gc.bots.enabled:
        log.info("Bot system disabled, skipping seeding")
        return
    if await services.store.count(is_bot=True, beer_bases=False) == 0:
        created = await services.growth_service.seed_bots(gc.bots.initial_spawn_count)
        log.info("Seeded initial population: %d bots", len(created))
    spawned = await services.beer_base_service.maintain_population()
    if spawned:
        log.info("Topped up Beer Bases: %d spawned", spawned)


# ===================================================================
# 5. Start REST API
# ===================================================================


async def start_network(services: Services) -> None:
    """Start the admin REST API as a background uvicorn task."""
    from botworld.network.rest_api import create_app
    import uvicorn

    gc = services.game_config
    rest_app = create_app(services)
    config = uvicorn.Config(
        rest_app,
        host=gc.rest_host,
        port=gc.rest_port,
        log_level="info",
        access_log=False,
    )
    rest_server = uvicorn.Server(config)
    services.rest_server = rest_server
    asyncio.create_task(rest_server.serve())
    log.info("  REST API listening on http://%s:%d", gc.rest_host, gc.rest_port)


# ===================================================================
# 6. Start simulation loop
# ===================================================================


async def start_simulation_loop(services: Services) -> None:
    """Run the simulation loop until a shutdown signal is received."""
    log.info("Starting simulation loop …")
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        log.info("Shutdown signal received, stopping …")
        services.simulation_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    await services.simulation_loop.run()

    log.info("Shutting down …")
    if services.rest_server is not None:
        services.rest_server.should_exit = True
        log.info("  REST API server stopped")
    if services.store is not None:
        await services.store.close()
        log.info("  player store closed")
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str = DEFAULT_GAME_CONFIG_PATH) -> None:
    """Initialize and run all server components."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== Botworld simulation starting ===")

    gc = load_game_config(config_path)
    names = load_name_pools(gc.names_path)
    store = await init_persistence(gc.db_path)

    services = create_services(gc, store, names)
    wire_events(services)
    await seed_population(services)
    await start_network(services)
    await start_simulation_loop(services)


def main() -> None:
    """Entry point for the simulation server.

    Supports command-line arguments:
        --config <path>  Game config YAML (default: config/game.yaml)
    """
    config_path = DEFAULT_GAME_CONFIG_PATH
    if "--config" in sys.argv:
        idx = sys.argv.index("--config")
        if idx + 1 >= len(sys.argv):
            print("Error: --config requires an argument", file=sys.stderr)
            sys.exit(1)
        config_path = sys.argv[idx + 1]

    asyncio.run(_start(config_path=config_path))


if __name__ == "__main__":
    main()
