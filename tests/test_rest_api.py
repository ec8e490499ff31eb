"""Tests for the admin REST API.

Uses httpx AsyncClient with the ASGI transport to test REST endpoints
end-to-end against real services and a temporary player store, without
starting a server.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from botworld.loaders.game_config_loader import GameConfig
from botworld.loaders.name_loader import load_name_pools
from botworld.main import create_services, wire_events
from botworld.models.account import HumanPlayer, Position, Resources
from botworld.models.combat import CycleSummary
from botworld.network.rest_api import create_app

NAMES_FILE = Path(__file__).resolve().parent.parent / "config" / "bot_names.yaml"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def services(store, clock) -> Any:
    svc = create_services(GameConfig(), store, load_name_pools(NAMES_FILE), clock, random.Random(21))
    wire_events(svc)
    return svc


@pytest_asyncio.fixture
async def client(services):
    app = create_app(services)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Beer Bases
# ---------------------------------------------------------------------------


class TestBeerBaseEndpoints:
    @pytest.mark.asyncio
    async def test_stats_empty(self, client):
        resp = await client.get("/api/beer-bases")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current"] == 0
        assert data["target"] == 0
        assert data["beer_bases"] == []
        assert data["config"]["respawn_day"] == 0
        assert data["next_respawn"].startswith("2025-03-09T04:00:00")

    @pytest.mark.asyncio
    async def test_spawn_and_list(self, client):
        resp = await client.post("/api/admin/beer-bases/spawn", json={"count": 3})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["requested"] == 3
        assert len(data["spawned"]) == 3

        listed = (await client.get("/api/beer-bases")).json()
        assert listed["current"] == 3
        assert {b["username"] for b in listed["beer_bases"]} == set(data["spawned"])

    @pytest.mark.asyncio
    async def test_spawn_count_validated(self, client):
        resp = await client.post("/api/admin/beer-bases/spawn", json={"count": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_remove(self, client):
        spawned = (await client.post("/api/admin/beer-bases/spawn", json={"count": 1})).json()["spawned"]
        resp = await client.delete(f"/api/admin/beer-bases/{spawned[0]}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "username": spawned[0], "error": ""}
        assert (await client.get("/api/beer-bases")).json()["current"] == 0

    @pytest.mark.asyncio
    async def test_remove_unknown(self, client):
        resp = await client.delete("/api/admin/beer-bases/nobody")
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is False
        assert "not a Beer Base" in data["error"]

    @pytest.mark.asyncio
    async def test_respawn(self, client):
        await client.post("/api/admin/bots/spawn", json={"count": 10})
        await client.post("/api/admin/beer-bases/spawn", json={"count": 2})
        resp = await client.post("/api/admin/beer-bases/respawn")
        data = resp.json()
        assert data["success"] is True
        assert data["removed"] == 2
        assert data["spawned"] == 1
        assert len(data["beer_bases"]) == 1


class TestBeerBaseAdminEndpoints:
    @pytest.mark.asyncio
    async def test_get_config(self, client):
        data = (await client.get("/api/admin/beer-bases/config")).json()
        assert data["success"] is True
        assert data["config"]["spawn_rate_min"] == 5.0
        assert data["config"]["schedules_enabled"] is False
        assert data["config"]["schedules"] == []

    @pytest.mark.asyncio
    async def test_update_config(self, client, services):
        resp = await client.post("/api/admin/beer-bases/config",
                                 json={"spawn_rate_max": 20, "respawn_hour": 6})
        data = resp.json()
        assert data["success"] is True
        assert data["config"]["spawn_rate_max"] == 20
        assert services.beer_base_service.config.respawn_hour == 6

        stats = (await client.get("/api/beer-bases")).json()
        assert stats["next_respawn"].startswith("2025-03-09T06:00:00")

    @pytest.mark.asyncio
    async def test_update_config_out_of_range(self, client):
        resp = await client.post("/api/admin/beer-bases/config", json={"resource_multiplier": 50})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_update_config_rates_crossed(self, client):
        data = (await client.post("/api/admin/beer-bases/config", json={"spawn_rate_min": 40})).json()
        assert data["success"] is False
        assert "spawn_rate_max" in data["error"]
        assert data["config"]["spawn_rate_min"] == 5.0

    @pytest.mark.asyncio
    async def test_schedule_lifecycle(self, client):
        created = (await client.post("/api/admin/beer-bases/schedules", json={
            "day_of_week": 3, "hour": 12, "spawn_percentage": 50, "name": "Midweek",
        })).json()
        assert created["success"] is True
        schedule_id = created["schedule"]["id"]
        assert created["schedule"]["timezone"] == "UTC"

        listed = (await client.get("/api/admin/beer-bases/schedules")).json()
        assert listed["count"] == 1
        assert listed["schedules"][0]["name"] == "Midweek"

        updated = (await client.put("/api/admin/beer-bases/schedules",
                                    json={"id": schedule_id, "hour": 13})).json()
        assert updated["schedule"]["hour"] == 13

        await client.post("/api/admin/beer-bases/config", json={"schedules_enabled": True})
        stats = (await client.get("/api/beer-bases")).json()
        assert stats["next_respawn"].startswith("2025-03-05T13:00:00")

        deleted = (await client.delete(f"/api/admin/beer-bases/schedules/{schedule_id}")).json()
        assert deleted == {"success": True, "id": schedule_id, "error": ""}
        assert (await client.get("/api/admin/beer-bases/schedules")).json()["count"] == 0

    @pytest.mark.asyncio
    async def test_schedule_errors(self, client):
        bad_zone = (await client.post("/api/admin/beer-bases/schedules", json={
            "day_of_week": 0, "hour": 4, "timezone": "Nowhere/Special",
        })).json()
        assert bad_zone["success"] is False
        assert "timezone" in bad_zone["error"]

        resp = await client.post("/api/admin/beer-bases/schedules", json={"day_of_week": 9, "hour": 4})
        assert resp.status_code == 422

        missing = (await client.put("/api/admin/beer-bases/schedules",
                                    json={"id": "nope", "hour": 5})).json()
        assert missing["success"] is False
        assert "not found" in missing["error"]

        gone = (await client.delete("/api/admin/beer-bases/schedules/nope")).json()
        assert gone["success"] is False


# ---------------------------------------------------------------------------
# Bots
# ---------------------------------------------------------------------------


class TestBotEndpoints:
    @pytest.mark.asyncio
    async def test_spawn_bots(self, client, store):
        resp = await client.post("/api/admin/bots/spawn",
                                 json={"count": 4, "zone": 7, "specialization": "Fortress"})
        data = resp.json()
        assert data["success"] is True
        assert len(data["spawned"]) == 4
        bots = await store.find_bots()
        assert {b.config.zone for b in bots} == {7}
        assert {b.config.specialization.value for b in bots} == {"fortress"}

    @pytest.mark.asyncio
    async def test_spawn_unknown_specialization(self, client):
        resp = await client.post("/api/admin/bots/spawn", json={"count": 1, "specialization": "pirate"})
        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert "pirate" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_spawn_zone_validated(self, client):
        resp = await client.post("/api/admin/bots/spawn", json={"count": 1, "zone": 9})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_attack_cycle(self, client, store):
        await client.post("/api/admin/bots/spawn", json={"count": 5})
        pos = Position(75, 75)
        await store.insert(HumanPlayer(username="alice", base=pos, current_position=pos,
                                       resources=Resources(metal=1000, energy=1000)))
        resp = await client.post("/api/admin/bots/attack-cycle")
        data = resp.json()
        assert data["success"] is True
        assert data["skipped"] is False
        assert data["processed"] == 5
        # freshly seeded bots own no units yet
        assert data["attacks"] == 0

    @pytest.mark.asyncio
    async def test_growth_cycle(self, client):
        await client.post("/api/admin/bots/spawn", json={"count": 3})
        data = (await client.post("/api/admin/bots/growth-cycle")).json()
        assert data["success"] is True
        assert data["processed"] == 3
        assert data["errors"] == []

    @pytest.mark.asyncio
    async def test_stats(self, client):
        await client.post("/api/admin/bots/spawn", json={"count": 2})
        data = (await client.get("/api/admin/bots/stats")).json()
        assert data["population"]["regular_bots"] == 2
        assert data["analytics"]["bots_spawned"] == 2
        assert data["loop"]["running"] is False
        assert data["loop"]["ticks"] == 0


class TestSkippedCycle:
    @pytest.mark.asyncio
    async def test_overlapping_cycle_reports_failure(self):
        svc = MagicMock()
        svc.combat_service.run_bot_attack_cycle = AsyncMock(return_value=CycleSummary(skipped=True))
        app = create_app(svc)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            resp = await c.post("/api/admin/bots/attack-cycle")
        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert resp.json()["skipped"] is True
