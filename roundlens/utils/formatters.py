"""
RoundLens — Shared Formatters

Human-readable labels for multipliers, clock minutes and hours, and tier
sequences. Used in hot-spot keys and pressure-factor messages.
"""

from __future__ import annotations

import math
from datetime import time
from typing import Iterable


def format_multiplier(value: float | int, decimals: int = 2) -> str:
    """Format a payout multiplier.

    >>> format_multiplier(12.345)
    '12.35x'
    >>> format_multiplier(1500, decimals=0)
    '1500x'
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    return f"{value:.{decimals}f}x"


def format_minute(t: time | int) -> str:
    """Clock-minute label.

    >>> format_minute(time(14, 7, 30))
    ':07'
    >>> format_minute(59)
    ':59'
    """
    minute = t if isinstance(t, int) else t.minute
    return f":{minute:02d}"


def parse_minute(label: str) -> int:
    """Inverse of :func:`format_minute`.

    >>> parse_minute(':07')
    7
    """
    return int(label.lstrip(":"))


def format_hour(t: time) -> str:
    """Clock-hour bucket label.

    >>> format_hour(time(9, 41))
    '09:00'
    """
    return f"{t.hour:02d}:00"


def format_tiers(tiers: Iterable) -> str:
    """Dash-joined tier sequence, e.g. ``low-mid-high``."""
    return "-".join(getattr(t, "value", str(t)) for t in tiers)
