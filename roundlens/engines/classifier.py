"""
RoundLens — Outcome Classifier

Maps raw multipliers to ordinal tiers and positions to columns. Every other
engine works off the tier array produced here, materialized once per call.
"""

from __future__ import annotations

from typing import Sequence

from roundlens.constants import COLUMN_COUNT, HIGH_THRESHOLD, MID_THRESHOLD
from roundlens.models import Outcome, Tier


def classify(value: float) -> Tier:
    """Tier for a single multiplier (inclusive lower bounds 2.0 / 10.0).

    >>> classify(1.99)
    <Tier.LOW: 'low'>
    >>> classify(10.0)
    <Tier.HIGH: 'high'>
    """
    if value >= HIGH_THRESHOLD:
        return Tier.HIGH
    if value >= MID_THRESHOLD:
        return Tier.MID
    return Tier.LOW


def classify_all(outcomes: Sequence[Outcome]) -> list[Tier]:
    """Parallel tier array for an outcome list."""
    return [classify(o.value) for o in outcomes]


def column_of(index: int) -> int:
    """1-based column for a sequence position (index mod 7, plus one)."""
    return (index % COLUMN_COUNT) + 1


def high_indices(tiers: Sequence[Tier]) -> list[int]:
    return [i for i, t in enumerate(tiers) if t is Tier.HIGH]
