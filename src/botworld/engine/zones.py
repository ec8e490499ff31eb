"""Map zones — the 150×150 map is a 3×3 grid of 50×50 zones.

Zone ids are row-major::

    0 1 2
    3 4 5
    6 7 8

Zones 0–2 are the beginner rows (low-tier bots), 6–8 the endgame rows.
"""

from __future__ import annotations

from botworld.models.account import Position
from botworld.util.constants import MAP_SIZE, ZONE_COUNT, ZONE_SIZE, ZONES_PER_ROW

ADJACENT_ZONES: dict[int, tuple[int, ...]] = {
    0: (1, 3, 4),
    1: (0, 2, 3, 4, 5),
    2: (1, 4, 5),
    3: (0, 1, 4, 6, 7),
    4: (0, 1, 2, 3, 5, 6, 7, 8),
    5: (1, 2, 4, 7, 8),
    6: (3, 4, 7),
    7: (3, 4, 5, 6, 8),
    8: (4, 5, 7),
}
"""8-neighbourhood of each zone: corners have 3 neighbours, edges 5, the centre 8."""

ZONE_TIER_RANGES: dict[int, tuple[int, int]] = {
    0: (1, 3), 1: (1, 3), 2: (1, 3),
    3: (3, 5), 4: (3, 5), 5: (3, 5),
    6: (5, 7), 7: (5, 7), 8: (5, 7),
}
"""Inclusive bot tier range per zone."""


def calculate_zone(x: int, y: int) -> int:
    """Zone id of a 1-indexed coordinate.

    Raises:
        ValueError: If the coordinate is off the map.
    """
    if not (1 <= x <= MAP_SIZE and 1 <= y <= MAP_SIZE):
        raise ValueError(f"Coordinate ({x}, {y}) is outside the {MAP_SIZE}x{MAP_SIZE} map")
    return ((y - 1) // ZONE_SIZE) * ZONES_PER_ROW + (x - 1) // ZONE_SIZE


def zone_of(position: Position) -> int:
    return calculate_zone(position.x, position.y)


def adjacent_zones(zone: int) -> tuple[int, ...]:
    """Zones sharing an edge or corner with *zone*."""
    if zone not in ADJACENT_ZONES:
        raise ValueError(f"Unknown zone {zone} (expected 0..{ZONE_COUNT - 1})")
    return ADJACENT_ZONES[zone]


def zone_bounds(zone: int) -> tuple[int, int, int, int]:
    """Inclusive ``(min_x, max_x, min_y, max_y)`` of a zone."""
    if not 0 <= zone < ZONE_COUNT:
        raise ValueError(f"Unknown zone {zone} (expected 0..{ZONE_COUNT - 1})")
    col = zone % ZONES_PER_ROW
    row = zone // ZONES_PER_ROW
    min_x = col * ZONE_SIZE + 1
    min_y = row * ZONE_SIZE + 1
    return min_x, min_x + ZONE_SIZE - 1, min_y, min_y + ZONE_SIZE - 1


def clamp_to_map(value: int) -> int:
    return max(1, min(MAP_SIZE, value))
