"""REST API — FastAPI application for Beer Base and bot administration.

Usage::

    from botworld.network.rest_api import create_app

    app = create_app(services)
    # Start with uvicorn as an asyncio task alongside the simulation loop
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from botworld.engine.beer_base import BeerBaseConfigError, BeerBaseError
from botworld.models.account import Specialization
from botworld.network.rest_models import (
    AttackCycleResponse,
    BeerBaseConfigResponse,
    BeerBaseConfigUpdate,
    BeerBaseStatsResponse,
    BotStatsResponse,
    CreateScheduleRequest,
    DeleteScheduleResponse,
    GrowthCycleResponse,
    RemoveBeerBaseResponse,
    RespawnResponse,
    ScheduleListResponse,
    ScheduleResponse,
    SpawnBeerBasesRequest,
    SpawnBeerBasesResponse,
    SpawnBotsRequest,
    SpawnBotsResponse,
    UpdateScheduleRequest,
)

if TYPE_CHECKING:
    from botworld.main import Services

log = logging.getLogger(__name__)


def create_app(services: "Services") -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    The ``services`` reference is captured by closure so every endpoint
    can access the simulation without global state.
    """
    app = FastAPI(title="Botworld Simulation", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =================================================================
    # Beer Bases
    # =================================================================

    @app.get("/api/beer-bases", response_model=BeerBaseStatsResponse)
    async def beer_base_stats() -> dict[str, Any]:
        return await services.beer_base_service.get_beer_base_stats()

    @app.post("/api/admin/beer-bases/spawn", response_model=SpawnBeerBasesResponse)
    async def spawn_beer_bases(body: SpawnBeerBasesRequest) -> dict[str, Any]:
        spawned = await services.beer_base_service.spawn_beer_bases(body.count)
        return {"success": bool(spawned), "requested": body.count, "spawned": spawned}

    @app.delete("/api/admin/beer-bases/{username}", response_model=RemoveBeerBaseResponse)
    async def remove_beer_base(username: str) -> dict[str, Any]:
        try:
            await services.beer_base_service.remove_beer_base(username)
        except BeerBaseError as exc:
            return {"success": False, "username": username, "error": str(exc)}
        return {"success": True, "username": username}

    @app.post("/api/admin/beer-bases/respawn", response_model=RespawnResponse)
    async def respawn_beer_bases() -> dict[str, Any]:
        result = await services.beer_base_service.weekly_respawn()
        return {"success": True, **result}

    @app.get("/api/admin/beer-bases/config", response_model=BeerBaseConfigResponse)
    async def get_beer_base_config() -> dict[str, Any]:
        return {"success": True, "config": services.beer_base_service.config_snapshot()}

    @app.post("/api/admin/beer-bases/config", response_model=BeerBaseConfigResponse)
    async def update_beer_base_config(body: BeerBaseConfigUpdate) -> dict[str, Any]:
        try:
            config = services.beer_base_service.update_config(**body.model_dump(exclude_none=True))
        except BeerBaseConfigError as exc:
            return {"success": False, "config": services.beer_base_service.config_snapshot(),
                    "error": str(exc)}
        return {"success": True, "config": config}

    # =================================================================
    # Respawn schedules
    # =================================================================

    @app.get("/api/admin/beer-bases/schedules", response_model=ScheduleListResponse)
    async def list_schedules() -> dict[str, Any]:
        schedules = [asdict(s) for s in services.beer_base_service.list_schedules()]
        return {"success": True, "schedules": schedules, "count": len(schedules)}

    @app.post("/api/admin/beer-bases/schedules", response_model=ScheduleResponse)
    async def create_schedule(body: CreateScheduleRequest) -> dict[str, Any]:
        try:
            schedule = services.beer_base_service.add_schedule(
                body.day_of_week,
                body.hour,
                spawn_percentage=body.spawn_percentage,
                zone=body.timezone,
                enabled=body.enabled,
                name=body.name,
            )
        except BeerBaseConfigError as exc:
            return {"success": False, "error": str(exc)}
        return {"success": True, "schedule": asdict(schedule)}

    @app.put("/api/admin/beer-bases/schedules", response_model=ScheduleResponse)
    async def update_schedule(body: UpdateScheduleRequest) -> dict[str, Any]:
        changes = body.model_dump(exclude_none=True)
        schedule_id = changes.pop("id")
        try:
            schedule = services.beer_base_service.update_schedule(schedule_id, **changes)
        except BeerBaseConfigError as exc:
            return {"success": False, "error": str(exc)}
        if schedule is None:
            return {"success": False, "error": f"Schedule {schedule_id!r} not found"}
        return {"success": True, "schedule": asdict(schedule)}

    @app.delete("/api/admin/beer-bases/schedules/{schedule_id}", response_model=DeleteScheduleResponse)
    async def delete_schedule(schedule_id: str) -> dict[str, Any]:
        if not services.beer_base_service.delete_schedule(schedule_id):
            return {"success": False, "id": schedule_id, "error": f"Schedule {schedule_id!r} not found"}
        return {"success": True, "id": schedule_id}

    # =================================================================
    # Bots
    # =================================================================

    @app.post("/api/admin/bots/spawn", response_model=SpawnBotsResponse)
    async def spawn_bots(body: SpawnBotsRequest) -> dict[str, Any]:
        specialization = None
        if body.specialization:
            try:
                specialization = Specialization(body.specialization.lower())
            except ValueError:
                return {"success": False, "error": f"Unknown specialization {body.specialization!r}"}
        spawned = await services.growth_service.seed_bots(
            body.count, zone=body.zone, specialization=specialization,
        )
        return {"success": bool(spawned), "spawned": spawned}

    @app.post("/api/admin/bots/attack-cycle", response_model=AttackCycleResponse)
    async def attack_cycle() -> dict[str, Any]:
        summary = await services.combat_service.run_bot_attack_cycle()
        return {"success": not summary.skipped, **asdict(summary)}

    @app.post("/api/admin/bots/growth-cycle", response_model=GrowthCycleResponse)
    async def growth_cycle() -> dict[str, Any]:
        summary = await services.growth_service.run_growth_cycle()
        return {"success": True, **asdict(summary)}

    @app.get("/api/admin/bots/stats", response_model=BotStatsResponse)
    async def bot_stats() -> dict[str, Any]:
        loop = services.simulation_loop
        loop_info = None
        if loop is not None:
            loop_info = {
                "running": loop.is_running,
                "uptime_seconds": round(loop.uptime_seconds, 1),
                "ticks": loop.tick_count,
                "attack_cycles": loop.attack_cycles,
                "growth_cycles": loop.growth_cycles,
                "respawn_checks": loop.respawn_checks,
                "timeouts": loop.timeouts,
                "failures": loop.failures,
            }
        return {
            "population": await services.statistics.population_stats(),
            "analytics": services.statistics.snapshot(),
            "loop": loop_info,
        }

    return app
