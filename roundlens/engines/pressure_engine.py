"""
RoundLens — Pause & Pressure Analyzers

Heuristic 0–100 scores built from weighted factors:

  High pressure:  distance vs. average interval, market heat, hot clock
                  minutes, winning / losing cataloged trigger matches
  Mid pressure:   Low streak length, market heat, very low last outcome,
                  Mid density in the last 15 outcomes
  Pause risk:     post-giant effect, proximity to the average pause length

Plus the pause-episode detector feeding the pause-risk score.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from roundlens.constants import (
    PAUSE_ADAPTIVE_FACTOR,
    PAUSE_CLUSTER_LOOKBACK,
    PAUSE_CLUSTER_MIN_HIGHS,
    PAUSE_GIANT_TRIGGER,
    PAUSE_THRESHOLD,
    RECENT_TIER_WINDOW,
)
from roundlens.models import (
    CatalogedPattern,
    HighPressure,
    HighPressureLevel,
    MarketState,
    MidPressure,
    MidPressureLevel,
    MinuteCount,
    Outcome,
    PauseEpisode,
    PauseRisk,
    PauseRiskLevel,
    Tier,
)
from roundlens.utils.formatters import format_minute, format_multiplier, format_tiers, parse_minute

log = structlog.get_logger(__name__)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class PressureEngine:
    """Pause detection and pressure scoring.

    Usage:
        engine = PressureEngine()
        pauses = engine.detect_pauses(outcomes, tiers)
        paused = engine.is_market_paused(plays_since, avg_interval)
    """

    # ──────────────────────────────────────────
    # Pauses
    # ──────────────────────────────────────────

    def detect_pauses(self, outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> list[PauseEpisode]:
        """Closed runs of ≥ 25 non-High outcomes that started right after a High."""
        episodes: list[PauseEpisode] = []
        start = -1

        for i, tier in enumerate(tiers):
            if tier is Tier.HIGH:
                if start != -1 and i - start >= PAUSE_THRESHOLD:
                    episodes.append(self._episode(outcomes, tiers, start, i))
                start = -1
            elif start == -1 and i > 0 and tiers[i - 1] is Tier.HIGH:
                start = i

        return episodes

    def _episode(self, outcomes: Sequence[Outcome], tiers: Sequence[Tier], start: int, end: int) -> PauseEpisode:
        members = list(outcomes[start:end])
        return PauseEpisode(
            id=f"pause-{start}",
            duration=end - start,
            start_index=start,
            start_time=members[0].time,
            end_time=members[-1].time,
            outcomes=members,
            probable_trigger=self._probable_trigger(outcomes, tiers, start),
        )

    @staticmethod
    def _probable_trigger(outcomes: Sequence[Outcome], tiers: Sequence[Tier], start: int) -> str:
        trigger = outcomes[start - 1]
        if trigger.value > PAUSE_GIANT_TRIGGER:
            return f"After a {format_multiplier(trigger.value, decimals=0)} high"

        lookback = tiers[max(0, start - PAUSE_CLUSTER_LOOKBACK):start]
        preceding_highs = sum(1 for t in lookback if t is Tier.HIGH)
        if preceding_highs >= PAUSE_CLUSTER_MIN_HIGHS:
            return f"After a cluster of {preceding_highs} highs"
        return "Standard market pause"

    @staticmethod
    def pause_limit(average_high_interval: float) -> float:
        return max(PAUSE_THRESHOLD, average_high_interval * PAUSE_ADAPTIVE_FACTOR)

    def is_market_paused(self, plays_since_last_high: int, average_high_interval: float) -> bool:
        return plays_since_last_high > self.pause_limit(average_high_interval)

    # ──────────────────────────────────────────
    # High-tier pressure
    # ──────────────────────────────────────────

    def high_pressure(
        self,
        *,
        tiers: Sequence[Tier],
        plays_since_last_high: int,
        average_high_interval: float,
        market_state: MarketState,
        is_paused: bool,
        hot_minutes: Sequence[MinuteCount],
        current_minute: Optional[int],
        winning: Sequence[CatalogedPattern] = (),
        losing: Sequence[CatalogedPattern] = (),
    ) -> HighPressure:
        """Imminence of the next High as a 0–100 score."""
        percentage = 0.0
        factors: list[str] = []

        if average_high_interval > 0 and not is_paused:
            base = min((plays_since_last_high / average_high_interval) * 50, 60)
            percentage += base
            if base > 20:
                factors.append(f"Distance from last high ({plays_since_last_high} plays)")

        if market_state is MarketState.HOT:
            percentage += 15
            factors.append("Market is HOT")
        elif market_state is MarketState.VERY_HOT:
            percentage += 30
            factors.append("Market is VERY HOT")

        if current_minute is not None:
            minutes = {parse_minute(m.minute) for m in hot_minutes}
            if current_minute in minutes:
                percentage += 30
                factors.append(f"Minute {format_minute(current_minute)} is a hot minute")
            elif (current_minute + 1) % 60 in minutes:
                percentage += 15
                factors.append("Next minute is a hot minute")

        recent = list(tiers[-RECENT_TIER_WINDOW:])

        for p in winning:
            if self._tail_matches(recent, p.trigger):
                percentage += 25
                factors.append(f"Winning pattern [{format_tiers(p.trigger)}] active")
                break

        for p in losing:
            if self._tail_matches(recent, p.pattern):
                percentage = max(0.0, percentage - 50)
                factors.append(f"Escape trigger [{format_tiers(p.pattern)}] detected")
                break

        if is_paused:
            percentage = 5.0
            factors = ["High pause active"]

        percentage = _clamp(percentage)

        if percentage >= 95:
            level = HighPressureLevel.CRITICAL
        elif percentage >= 75:
            level = HighPressureLevel.IMMINENT
        elif percentage >= 40:
            level = HighPressureLevel.BUILDING
        else:
            level = HighPressureLevel.LOW

        return HighPressure(level=level, percentage=percentage, factors=factors)

    @staticmethod
    def _tail_matches(recent: Sequence[Tier], pattern: Sequence[Tier]) -> bool:
        if not pattern or len(recent) < len(pattern):
            return False
        return list(recent[-len(pattern):]) == list(pattern)

    # ──────────────────────────────────────────
    # Mid-tier pressure
    # ──────────────────────────────────────────

    def mid_pressure(
        self,
        *,
        outcomes: Sequence[Outcome],
        tiers: Sequence[Tier],
        current_low_streak: int,
        market_state: MarketState,
    ) -> MidPressure:
        """Imminence of the next Mid ("purple") outcome as a 0–100 score."""
        percentage = 0.0
        factors: list[str] = []

        if current_low_streak > 2:
            percentage += min((current_low_streak - 2) * 15, 60)
            factors.append(f"{current_low_streak} lows in a row")

        if market_state in (MarketState.HOT, MarketState.VERY_HOT):
            percentage += 25
            factors.append("Market heating up")
        elif market_state is MarketState.COLD and current_low_streak > 4:
            percentage -= 15

        if outcomes and outcomes[-1].value < 1.1:
            percentage += 20
            factors.append(f"Last outcome very low ({format_multiplier(outcomes[-1].value)})")

        mids = sum(1 for t in tiers[-15:] if t is Tier.MID)
        if mids > 4:
            percentage += (mids - 4) * 8
            factors.append("High density of mids")

        percentage = _clamp(percentage)

        if percentage >= 90:
            level = MidPressureLevel.CRITICAL
        elif percentage >= 70:
            level = MidPressureLevel.HIGH
        elif percentage >= 40:
            level = MidPressureLevel.BUILDING
        else:
            level = MidPressureLevel.LOW

        return MidPressure(level=level, percentage=percentage, factors=factors)

    # ──────────────────────────────────────────
    # Pause risk
    # ──────────────────────────────────────────

    def pause_risk(
        self,
        *,
        outcomes: Sequence[Outcome],
        plays_since_last_high: int,
        pauses: Sequence[PauseEpisode],
    ) -> PauseRisk:
        """Risk that a High pause is starting or about to extend."""
        percentage = 0.0
        factors: list[str] = []

        giant = next((o for o in outcomes[-5:] if o.value > 100), None)
        if giant is not None:
            percentage = 95.0
            factors.append(f"Post-giant effect ({format_multiplier(giant.value, decimals=0)})")
        elif pauses:
            average = sum(p.duration for p in pauses) / len(pauses)
            if plays_since_last_high > average * 0.75:
                percentage += min(((plays_since_last_high / average) - 0.75) * 100, 50)
                factors.append(f"Approaching pause limit (average: {average:.0f})")

        percentage = _clamp(percentage)

        if percentage >= 90:
            level = PauseRiskLevel.CRITICAL
        elif percentage >= 70:
            level = PauseRiskLevel.HIGH
        elif percentage >= 40:
            level = PauseRiskLevel.MEDIUM
        else:
            level = PauseRiskLevel.LOW

        log.debug("pressure.pause_risk", percentage=percentage, pauses=len(pauses))
        return PauseRisk(level=level, percentage=percentage, factors=factors)
