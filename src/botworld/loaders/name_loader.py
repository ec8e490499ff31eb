"""Name loader — word pools for generated bot usernames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

DEFAULT_NAMES_PATH = "config/bot_names.yaml"


@dataclass(frozen=True)
class NamePools:
    """Prefix and suffix word lists."""
    prefixes: tuple[str, ...]
    suffixes: tuple[str, ...]


FALLBACK_POOLS = NamePools(
    prefixes=("Alpha", "Bravo", "Shadow", "Quantum", "Iron"),
    suffixes=("Prime", "Omega", "Hunter", "Command", "Fury"),
)


def load_name_pools(path: str | Path = DEFAULT_NAMES_PATH) -> NamePools:
    """Load name pools from a YAML file.

    Args:
        path: Path to the names YAML file with ``prefixes`` and
            ``suffixes`` lists.

    Returns:
        The loaded pools, or a small built-in set if the file is missing.

    Raises:
        ValueError: If the file exists but one of the lists is empty.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Bot name pools not found at %s, using fallback pools", p)
        return FALLBACK_POOLS

    with p.open() as f:
        data = yaml.safe_load(f) or {}

    prefixes = tuple(str(w) for w in data.get("prefixes") or [])
    suffixes = tuple(str(w) for w in data.get("suffixes") or [])
    if not prefixes or not suffixes:
        raise ValueError(f"{p}: 'prefixes' and 'suffixes' must both be non-empty")

    log.info("Loaded %d name prefixes and %d suffixes from %s",
             len(prefixes), len(suffixes), p)
    return NamePools(prefixes=prefixes, suffixes=suffixes)
