"""Formatting helpers for log lines and admin summaries."""

from __future__ import annotations


def format_hours(hours: float) -> str:
    """Format a duration in hours, e.g. ``8.6h`` or ``45m``."""
    if hours < 1:
        return f"{int(round(hours * 60))}m"
    if hours == int(hours):
        return f"{int(hours)}h"
    return f"{hours:.1f}h"


def format_amount(value: float) -> str:
    """Compact resource amount: 950, 12.5K, 4.2M."""
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if abs(value) >= 10_000:
        return f"{value / 1_000:.1f}K"
    return str(int(value))


def format_percent(value: float) -> str:
    """Format a float as percentage."""
    return f"{value * 100:.0f}%"
