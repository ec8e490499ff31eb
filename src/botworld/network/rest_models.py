"""Pydantic request/response models for the admin REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ===================================================================
# Beer Bases
# ===================================================================


class SpawnBeerBasesRequest(BaseModel):
    count: int = Field(1, ge=1, le=1000)


class SpawnBeerBasesResponse(BaseModel):
    success: bool
    requested: int = 0
    spawned: List[str] = Field(default_factory=list)


class RemoveBeerBaseResponse(BaseModel):
    success: bool
    username: str
    error: str = ""


class RespawnResponse(BaseModel):
    success: bool
    removed: int = 0
    spawned: int = 0
    beer_bases: List[str] = Field(default_factory=list)


class BeerBaseConfigUpdate(BaseModel):
    enabled: Optional[bool] = None
    spawn_rate_min: Optional[float] = Field(None, ge=0, le=100)
    spawn_rate_max: Optional[float] = Field(None, ge=0, le=100)
    resource_multiplier: Optional[float] = Field(None, ge=1, le=20)
    respawn_day: Optional[int] = Field(None, ge=0, le=6)
    respawn_hour: Optional[int] = Field(None, ge=0, le=23)
    schedules_enabled: Optional[bool] = None


class BeerBaseConfigResponse(BaseModel):
    success: bool
    config: Dict[str, Any] = Field(default_factory=dict)
    error: str = ""


class RespawnScheduleEntry(BaseModel):
    id: str
    enabled: bool
    day_of_week: int
    hour: int
    spawn_percentage: float
    timezone: str
    name: Optional[str] = None
    last_run: Optional[datetime] = None


class CreateScheduleRequest(BaseModel):
    enabled: bool = True
    day_of_week: int = Field(..., ge=0, le=6)
    hour: int = Field(..., ge=0, le=23)
    spawn_percentage: float = Field(100.0, ge=1, le=200)
    timezone: str = "UTC"
    name: Optional[str] = None


class UpdateScheduleRequest(BaseModel):
    id: str
    enabled: Optional[bool] = None
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    hour: Optional[int] = Field(None, ge=0, le=23)
    spawn_percentage: Optional[float] = Field(None, ge=1, le=200)
    timezone: Optional[str] = None
    name: Optional[str] = None


class ScheduleResponse(BaseModel):
    success: bool
    schedule: Optional[RespawnScheduleEntry] = None
    error: str = ""


class ScheduleListResponse(BaseModel):
    success: bool
    schedules: List[RespawnScheduleEntry] = Field(default_factory=list)
    count: int = 0


class DeleteScheduleResponse(BaseModel):
    success: bool
    id: str
    error: str = ""


class BeerBaseEntry(BaseModel):
    username: str
    specialization: str
    tier: int
    power_tier: Optional[str] = None
    position: Dict[str, int]
    resources: Dict[str, int]
    total_strength: int = 0
    total_defense: int = 0


class BeerBaseStatsResponse(BaseModel):
    current: int
    target: int
    config: Dict[str, Any]
    next_respawn: datetime
    beer_bases: List[BeerBaseEntry] = Field(default_factory=list)


# ===================================================================
# Bots
# ===================================================================


class SpawnBotsRequest(BaseModel):
    count: int = Field(1, ge=1, le=1000)
    zone: Optional[int] = Field(None, ge=0, le=8)
    specialization: Optional[str] = None


class SpawnBotsResponse(BaseModel):
    success: bool
    spawned: List[str] = Field(default_factory=list)
    error: str = ""


class AttackCycleResponse(BaseModel):
    success: bool
    skipped: bool = False
    processed: int = 0
    attacks: int = 0
    bot_victories: int = 0
    player_victories: int = 0
    errors: List[str] = Field(default_factory=list)


class GrowthCycleResponse(BaseModel):
    success: bool
    processed: int = 0
    regenerated: int = 0
    moved: int = 0
    units_built: int = 0
    errors: List[str] = Field(default_factory=list)


class BotStatsResponse(BaseModel):
    population: Dict[str, Any]
    analytics: Dict[str, Any]
    loop: Optional[Dict[str, Any]] = None
