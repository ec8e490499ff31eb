"""Document conversion — accounts to/from JSON-compatible dicts.

Datetimes are stored as ISO-8601 strings, enums by value.  A document
with ``is_bot: true`` always carries a ``bot_config`` sub-document.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from botworld.models.account import (
    Account,
    BotConfig,
    BotPlayer,
    HumanPlayer,
    Movement,
    Position,
    PowerTier,
    Reputation,
    Resources,
    Specialization,
    Unit,
)

_BOT_CONFIG_TIMES = ("attack_cooldown", "last_growth", "last_resource_regen", "last_defeated")


# ===================================================================
# Scalar helpers
# ===================================================================

def encode_value(value: Any) -> Any:
    """Convert a model value into its document representation."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(encode_value(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if is_dataclass(value) and not isinstance(value, type):
        return encode_value(asdict(value))
    return value


def _time(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _position(d: Optional[dict[str, int]]) -> Position:
    if not d:
        return Position(1, 1)
    return Position(x=int(d["x"]), y=int(d["y"]))


# ===================================================================
# Serialization
# ===================================================================

def _serialize_bot_config(cfg: BotConfig) -> dict[str, Any]:
    return {
        "specialization": cfg.specialization.value,
        "tier": cfg.tier,
        "zone": cfg.zone,
        "movement": cfg.movement.value,
        "is_special_base": cfg.is_special_base,
        "permanent_base": cfg.permanent_base,
        "attack_cooldown": encode_value(cfg.attack_cooldown),
        "last_growth": encode_value(cfg.last_growth),
        "last_resource_regen": encode_value(cfg.last_resource_regen),
        "last_defeated": encode_value(cfg.last_defeated),
        "revenge_target": cfg.revenge_target,
        "defeated_count": cfg.defeated_count,
        "reputation": cfg.reputation.value,
        "bounty_value": cfg.bounty_value,
        "nest_affinity": cfg.nest_affinity,
        "power_tier": cfg.power_tier.value if cfg.power_tier else None,
    }


def to_document(account: Account) -> dict[str, Any]:
    """Serialize an account into a storable document."""
    doc: dict[str, Any] = {
        "username": account.username,
        "is_bot": account.is_bot,
        "base": asdict(account.base),
        "current_position": asdict(account.current_position),
        "resources": asdict(account.resources),
        "units": [asdict(u) for u in account.units],
        "total_strength": account.total_strength,
        "total_defense": account.total_defense,
        "xp": account.xp,
        "level": account.level,
        "rank": account.rank,
        "created_at": encode_value(account.created_at),
    }
    if isinstance(account, BotPlayer):
        doc["bot_config"] = _serialize_bot_config(account.config)
        doc["email"] = account.email
        doc["password"] = account.password
    elif isinstance(account, HumanPlayer):
        doc["balance_multiplier"] = account.balance_multiplier
        doc["unlocked_techs"] = sorted(account.unlocked_techs)
    return doc


# ===================================================================
# Deserialization
# ===================================================================

def _deserialize_bot_config(d: dict[str, Any]) -> BotConfig:
    power_tier = d.get("power_tier")
    return BotConfig(
        specialization=Specialization(d.get("specialization", Specialization.BALANCED.value)),
        tier=int(d.get("tier", 1)),
        zone=int(d.get("zone", 0)),
        movement=Movement(d.get("movement", Movement.ROAM.value)),
        is_special_base=bool(d.get("is_special_base", False)),
        permanent_base=bool(d.get("permanent_base", True)),
        revenge_target=d.get("revenge_target"),
        defeated_count=int(d.get("defeated_count", 0)),
        reputation=Reputation(d.get("reputation", Reputation.UNKNOWN.value)),
        bounty_value=int(d.get("bounty_value", 0)),
        nest_affinity=d.get("nest_affinity"),
        power_tier=PowerTier(power_tier) if power_tier else None,
        **{name: _time(d.get(name)) for name in _BOT_CONFIG_TIMES},
    )


def account_from_document(doc: dict[str, Any]) -> Account:
    """Rebuild a :class:`HumanPlayer` or :class:`BotPlayer` from a document."""
    res = doc.get("resources") or {}
    common = dict(
        username=doc["username"],
        base=_position(doc.get("base")),
        current_position=_position(doc.get("current_position") or doc.get("base")),
        resources=Resources(metal=int(res.get("metal", 0)), energy=int(res.get("energy", 0))),
        units=[Unit(**u) for u in doc.get("units", [])],
        total_strength=int(doc.get("total_strength", 0)),
        total_defense=int(doc.get("total_defense", 0)),
        xp=int(doc.get("xp", 0)),
        level=int(doc.get("level", 1)),
        rank=int(doc.get("rank", 1)),
        created_at=_time(doc.get("created_at")),
    )
    if doc.get("is_bot"):
        return BotPlayer(
            config=_deserialize_bot_config(doc.get("bot_config") or {}),
            email=doc.get("email", ""),
            password=doc.get("password", ""),
            **common,
        )
    return HumanPlayer(
        balance_multiplier=float(doc.get("balance_multiplier", 1.0)),
        unlocked_techs=set(doc.get("unlocked_techs", [])),
        **common,
    )
