"""
RoundLens — Interval & Streak Tracker

Single pass over the classified sequence: tier counts, High positions,
High-to-High intervals, running Low / non-Low streaks, plus the
"Highs between extremes" reports for the 50x / 100x / 1000x bands.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from roundlens.constants import COLUMN_COUNT, EXTREME_TIERS, HIGH_THRESHOLD
from roundlens.models import ExtremeTierReport, Outcome, Tier


@dataclass
class StreakStats:
    """Intermediate tracker output shared by the downstream engines."""
    total: int = 0
    high_count: int = 0
    mid_count: int = 0
    low_count: int = 0
    high_indices: list[int] = field(default_factory=list)
    intervals: list[int] = field(default_factory=list)
    average_high_interval: float = 0.0
    plays_since_last_high: int = 0
    current_low_streak: int = 0
    current_non_low_streak: int = 0
    last_high_multiplier: Optional[float] = None
    average_mid_multiplier: float = 2.5

    @property
    def last_high_index(self) -> int:
        return self.high_indices[-1] if self.high_indices else -1


class StreakEngine:
    """Counts, intervals and streaks over a classified outcome list.

    Usage:
        engine = StreakEngine()
        stats = engine.track(outcomes, tiers)
    """

    def track(self, outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> StreakStats:
        stats = StreakStats(total=len(outcomes))
        mid_total = 0.0

        for i, (outcome, tier) in enumerate(zip(outcomes, tiers)):
            if tier is Tier.HIGH:
                stats.high_count += 1
                stats.high_indices.append(i)
                stats.last_high_multiplier = outcome.value
                stats.current_low_streak = 0
                stats.current_non_low_streak += 1
            elif tier is Tier.MID:
                stats.mid_count += 1
                mid_total += outcome.value
                stats.current_low_streak = 0
                stats.current_non_low_streak += 1
            else:
                stats.low_count += 1
                stats.current_low_streak += 1
                stats.current_non_low_streak = 0

        stats.intervals = [
            b - a for a, b in zip(stats.high_indices, stats.high_indices[1:])
        ]
        if stats.intervals:
            stats.average_high_interval = sum(stats.intervals) / len(stats.intervals)

        if stats.high_indices:
            stats.plays_since_last_high = stats.total - 1 - stats.last_high_index
        else:
            stats.plays_since_last_high = stats.total

        if stats.mid_count:
            stats.average_mid_multiplier = mid_total / stats.mid_count

        return stats

    # ──────────────────────────────────────────
    # Extreme multiplier bands
    # ──────────────────────────────────────────

    def extreme_report(
        self,
        outcomes: Sequence[Outcome],
        threshold: float,
        upper_threshold: Optional[float] = None,
    ) -> ExtremeTierReport:
        """Highs counted between consecutive outcomes in ``[threshold, upper)``."""
        hits = [
            i for i, o in enumerate(outcomes)
            if o.value >= threshold and (upper_threshold is None or o.value < upper_threshold)
        ]

        counts = [
            sum(1 for o in outcomes[start + 1:end] if o.value >= HIGH_THRESHOLD)
            for start, end in zip(hits, hits[1:])
        ]

        tail = outcomes[hits[-1] + 1:] if hits else outcomes
        highs_since = [o for o in tail if o.value >= HIGH_THRESHOLD]

        return ExtremeTierReport(
            threshold=threshold,
            upper_threshold=upper_threshold,
            average_highs=sum(counts) / len(counts) if counts else 5.0,
            counts=counts,
            last_count=len(highs_since),
            has_over_20x=any(o.value > 20 for o in highs_since),
            has_over_50x=any(o.value > 50 for o in highs_since),
        )

    def extreme_reports(self, outcomes: Sequence[Outcome]) -> list[ExtremeTierReport]:
        """Reports for the 50x, 100x and 1000x bands, in that order."""
        bounds = list(EXTREME_TIERS) + [None]
        return [
            self.extreme_report(outcomes, lower, bounds[n + 1])
            for n, lower in enumerate(EXTREME_TIERS)
        ]

    @staticmethod
    def highs_since_last(outcomes: Sequence[Outcome], threshold: float) -> int:
        """Highs below ``threshold`` after the last outcome at or above it."""
        last = -1
        for i, o in enumerate(outcomes):
            if o.value >= threshold:
                last = i
        return sum(
            1 for o in outcomes[last + 1:]
            if HIGH_THRESHOLD <= o.value < threshold
        )

    # ──────────────────────────────────────────
    # Column suggestion
    # ──────────────────────────────────────────

    @staticmethod
    def next_play_column(tiers: Sequence[Tier], lookback: int = 50) -> Optional[int]:
        """Column hint from the last High in the trailing window.

        Only offered while at most two Lows followed that High.
        """
        recent = list(tiers[-lookback:])
        last_high = next(
            (i for i in range(len(recent) - 1, -1, -1) if recent[i] is Tier.HIGH),
            -1,
        )
        if last_high == -1:
            return None

        lows_after = sum(1 for t in recent[last_high + 1:] if t is Tier.LOW)
        if lows_after > 2:
            return None

        since = len(recent) - 1 - last_high
        return (since % COLUMN_COUNT) + 1
