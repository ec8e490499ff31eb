"""Tests for log formatting helpers."""

from botworld.util.types import format_amount, format_hours, format_percent


def test_format_hours():
    assert format_hours(0.75) == "45m"
    assert format_hours(2.0) == "2h"
    assert format_hours(8.57) == "8.6h"


def test_format_amount():
    assert format_amount(950) == "950"
    assert format_amount(12_500) == "12.5K"
    assert format_amount(4_200_000) == "4.2M"


def test_format_percent():
    assert format_percent(0.25) == "25%"
    assert format_percent(1.0) == "100%"
