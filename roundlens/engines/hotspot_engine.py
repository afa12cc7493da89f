"""
RoundLens — Hot-Spot Ranker

Frequency histograms used for repetition analysis:

  Houses:   High-to-High interval lengths 1..25
  Columns:  High outcomes bucketed by position mod 7
  Minutes:  clock-minute counts per tier and per extreme band
  Hours:    tier mix per clock hour
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from roundlens.constants import MAX_HOUSE
from roundlens.engines.classifier import column_of
from roundlens.models import (
    ColumnCount,
    HotSpots,
    HourFrequency,
    HouseCount,
    MinuteCount,
    Outcome,
    Tier,
)
from roundlens.utils.formatters import format_hour, format_minute


class HotSpotEngine:
    """Ranks houses, columns and clock minutes.

    Usage:
        engine = HotSpotEngine()
        hot = engine.rank(outcomes, tiers, intervals)
    """

    def rank(
        self,
        outcomes: Sequence[Outcome],
        tiers: Sequence[Tier],
        intervals: Sequence[int],
    ) -> HotSpots:
        house_ranking = self.house_ranking(intervals)
        repeating, non_repeating = self._split_repeating(intervals)

        high_minutes = self._minute_counts(o for o, t in zip(outcomes, tiers) if t is Tier.HIGH)
        mid_minutes = self._minute_counts(o for o, t in zip(outcomes, tiers) if t is Tier.MID)

        return HotSpots(
            high_intervals=list(intervals),
            house_ranking=house_ranking,
            hottest_houses=[h.house for h in house_ranking[:5]],
            repeating_houses=repeating,
            non_repeating_houses=non_repeating,
            repeating_house_sequence=self._repeating_sequence(intervals),
            column_ranking=self.column_ranking(outcomes, tiers),
            hottest_minutes=[m for m, _ in self._sorted(high_minutes)[:5]],
            hottest_high_minutes=self._repeated_minutes(high_minutes),
            hottest_mid_minutes=self._repeated_minutes(mid_minutes),
            hottest_50x_minutes=self._top_minutes(outcomes, 50.0),
            hottest_100x_minutes=self._top_minutes(outcomes, 100.0),
            hottest_1000x_minutes=self._top_minutes(outcomes, 1000.0),
            hour_frequency=self.hour_frequency(outcomes, tiers),
        )

    # ──────────────────────────────────────────
    # Houses
    # ──────────────────────────────────────────

    @staticmethod
    def house_ranking(intervals: Sequence[int]) -> list[HouseCount]:
        """Every house 1..25 with its count, most frequent first."""
        freq = Counter(i for i in intervals if 1 <= i <= MAX_HOUSE)
        ranking = [HouseCount(house=h, count=freq.get(h, 0)) for h in range(1, MAX_HOUSE + 1)]
        ranking.sort(key=lambda h: h.count, reverse=True)
        return ranking

    @staticmethod
    def _split_repeating(intervals: Sequence[int]) -> tuple[list[int], list[int]]:
        seen: set[int] = set()
        repeating: list[int] = []
        non_repeating: list[int] = []
        for interval in intervals:
            if interval in seen:
                repeating.append(interval)
            else:
                non_repeating.append(interval)
                seen.add(interval)
        return repeating, non_repeating

    @staticmethod
    def _repeating_sequence(intervals: Sequence[int]):
        """Neighbourhood of the last house when it just repeated."""
        if len(intervals) <= 2 or intervals[-1] != intervals[-2]:
            return None
        last = intervals[-1]
        sequence = [last]
        if last > 1:
            sequence.append(last - 1)
        if last < MAX_HOUSE:
            sequence.append(last + 1)
        return sequence

    # ──────────────────────────────────────────
    # Columns
    # ──────────────────────────────────────────

    @staticmethod
    def column_ranking(outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> list[ColumnCount]:
        """Columns holding more than one High, most frequent first."""
        by_column: dict[int, list[Outcome]] = {}
        for i, (outcome, tier) in enumerate(zip(outcomes, tiers)):
            if tier is Tier.HIGH:
                by_column.setdefault(column_of(i), []).append(outcome)

        ranking = [
            ColumnCount(column=col, count=len(highs), last_time=highs[-1].time)
            for col, highs in sorted(by_column.items())
            if len(highs) > 1
        ]
        ranking.sort(key=lambda c: c.count, reverse=True)
        return ranking

    # ──────────────────────────────────────────
    # Minutes & hours
    # ──────────────────────────────────────────

    @staticmethod
    def _minute_counts(outcomes) -> Counter:
        return Counter(format_minute(o.time) for o in outcomes)

    @staticmethod
    def _sorted(counts: Counter) -> list[tuple[str, int]]:
        # Counter preserves first-seen order; the sort is stable on ties.
        return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)

    def _repeated_minutes(self, counts: Counter) -> list[MinuteCount]:
        return [
            MinuteCount(minute=m, count=c)
            for m, c in self._sorted(counts)
            if c > 1
        ]

    def _top_minutes(self, outcomes: Sequence[Outcome], threshold: float, limit: int = 3) -> list[str]:
        counts = self._minute_counts(o for o in outcomes if o.value >= threshold)
        return [m for m, _ in self._sorted(counts)[:limit]]

    @staticmethod
    def hour_frequency(outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> list[HourFrequency]:
        """Tier mix per clock hour, in first-seen hour order."""
        hours: dict[str, HourFrequency] = {}
        for outcome, tier in zip(outcomes, tiers):
            label = format_hour(outcome.time)
            bucket = hours.setdefault(label, HourFrequency(hour=label))
            if tier is Tier.HIGH:
                bucket.high += 1
            elif tier is Tier.MID:
                bucket.mid += 1
            else:
                bucket.low += 1
        return list(hours.values())
