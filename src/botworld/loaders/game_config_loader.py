"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.  The file
has three nested sections (``bots``, ``beer_bases``, ``scheduler``) plus
a few flat server keys.  ``beer_bases.schedules`` is a list of
:class:`RespawnSchedule` mappings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Type, TypeVar

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"

T = TypeVar("T")


@dataclass
class BotSystemConfig:
    """Bot population and attack tuning."""
    enabled: bool = True
    total_bot_cap: int = 1000
    initial_spawn_count: int = 100
    regen_enabled: bool = True
    base_attack_cooldown_hours: float = 6.0
    revenge_attack_chance: float = 0.60
    reputation_loot_enabled: bool = False
    growth_enabled: bool = True


@dataclass
class RespawnSchedule:
    """One admin-managed Beer Base respawn slot.

    ``day_of_week`` counts from Sunday (0); ``hour`` is local to
    ``timezone`` (an IANA name).  ``spawn_percentage`` scales the target
    population spawned when the slot fires.
    """
    id: str = ""
    enabled: bool = True
    day_of_week: int = 0
    hour: int = 4
    spawn_percentage: float = 100.0
    timezone: str = "UTC"
    name: str | None = None
    last_run: datetime | None = None


@dataclass
class BeerBaseConfig:
    """Transient Beer Base population.

    ``respawn_day`` counts from Sunday (0) to Saturday (6); the hour is
    server time (UTC).  When ``schedules_enabled`` is set and at least one schedule is
    enabled, the schedules replace the legacy day/hour pair.
    """
    enabled: bool = True
    spawn_rate_min: float = 5.0
    spawn_rate_max: float = 10.0
    resource_multiplier: float = 3.0
    respawn_day: int = 0
    respawn_hour: int = 4
    schedules_enabled: bool = False
    schedules: list[RespawnSchedule] = field(default_factory=list)


@dataclass
class SchedulerConfig:
    """Intervals of the simulation loop."""
    attack_interval_hours: float = 1.0
    regen_interval_hours: float = 1.0
    respawn_check_interval_seconds: float = 60.0
    tick_seconds: float = 60.0
    cycle_timeout_seconds: float = 600.0


@dataclass
class GameConfig:
    """All tunable simulation constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the server can start even without the file.
    """

    bots: BotSystemConfig = field(default_factory=BotSystemConfig)
    beer_bases: BeerBaseConfig = field(default_factory=BeerBaseConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    # -- Server ------------------------------------------------------
    db_path: str = "botworld.db"
    names_path: str = "config/bot_names.yaml"
    rest_host: str = "0.0.0.0"
    rest_port: int = 8080
    random_seed: int | None = None


def _section(cls: Type[T], raw: Any) -> T:
    """Build a config section from a dict, ignoring unknown keys."""
    if not isinstance(raw, dict):
        return cls()
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        log.warning("Ignoring unknown %s keys: %s", cls.__name__, ", ".join(sorted(unknown)))
    return cls(**{k: v for k, v in raw.items() if k in known})


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    bots = _section(BotSystemConfig, raw.pop("bots", None))
    beer_bases = _section(BeerBaseConfig, raw.pop("beer_bases", None))
    beer_bases.schedules = [
        _section(RespawnSchedule, entry) for entry in beer_bases.schedules or []
    ]
    for i, schedule in enumerate(beer_bases.schedules, start=1):
        schedule.id = str(schedule.id) if schedule.id else f"schedule-{i}"
    scheduler = _section(SchedulerConfig, raw.pop("scheduler", None))

    cfg = GameConfig(bots=bots, beer_bases=beer_bases, scheduler=scheduler, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
    return cfg
