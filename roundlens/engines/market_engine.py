"""
RoundLens — Market-State Scorer

Recency-weighted heat over the trailing 24 outcomes, short-term volatility,
and "payout run" detection (stretches of mostly non-Low outcomes).

Score (per outcome in the window, oldest first):
  High:  2.0 × (position + 1) / 24
  Mid:   0.4 (flat)
  Low:   0
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from roundlens.constants import (
    MARKET_HIGH_WEIGHT,
    MARKET_HOT_SCORE,
    MARKET_MID_WEIGHT,
    MARKET_VERY_HOT_SCORE,
    MARKET_WARM_SCORE,
    MARKET_WINDOW,
    PAYOUT_RUN_BREAK_LOWS,
    PAYOUT_RUN_MIN_OUTCOMES,
    VOLATILITY_WINDOW,
)
from roundlens.models import MarketState, Outcome, PayoutRun, PayoutRunReport, Tier


class MarketEngine:
    """Market heat classification and run detection.

    Usage:
        engine = MarketEngine()
        state, pct = engine.market_state(tiers)
    """

    # ──────────────────────────────────────────
    # Market state
    # ──────────────────────────────────────────

    @staticmethod
    def market_score(tiers: Sequence[Tier]) -> float:
        score = 0.0
        for position, tier in enumerate(tiers[-MARKET_WINDOW:]):
            recency = (position + 1) / MARKET_WINDOW
            if tier is Tier.HIGH:
                score += MARKET_HIGH_WEIGHT * recency
            elif tier is Tier.MID:
                score += MARKET_MID_WEIGHT
        return score

    @staticmethod
    def classify_score(score: float, has_high: bool) -> tuple[MarketState, int]:
        """Map a window score to a state and its display percentage.

        VeryHot additionally requires a High inside the window.
        """
        if score > MARKET_VERY_HOT_SCORE and has_high:
            return MarketState.VERY_HOT, 95
        if score > MARKET_HOT_SCORE:
            return MarketState.HOT, 75
        if score > MARKET_WARM_SCORE:
            return MarketState.WARM, 45
        return MarketState.COLD, 15

    def market_state(self, tiers: Sequence[Tier]) -> tuple[MarketState, int]:
        window = tiers[-MARKET_WINDOW:]
        has_high = any(t is Tier.HIGH for t in window)
        return self.classify_score(self.market_score(tiers), has_high)

    # ──────────────────────────────────────────
    # Volatility
    # ──────────────────────────────────────────

    @staticmethod
    def short_term_volatility(outcomes: Sequence[Outcome]) -> float:
        """Population std-dev of the last 15 values × 10, capped at 100."""
        recent = outcomes[-VOLATILITY_WINDOW:]
        if len(recent) < 2:
            return 0.0
        values = np.array([o.value for o in recent], dtype=float)
        return float(min(100.0, np.std(values) * 10))

    # ──────────────────────────────────────────
    # Payout runs
    # ──────────────────────────────────────────

    @staticmethod
    def _qualifies(run: list[tuple[Outcome, Tier]]) -> bool:
        return (
            len(run) >= PAYOUT_RUN_MIN_OUTCOMES
            and any(t is Tier.HIGH for _, t in run)
        )

    def payout_runs(self, outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> PayoutRunReport:
        """Detect stretches opened by a non-Low and closed by 3 straight Lows.

        The closing Low is not part of the run. A run counts only with at
        least 7 outcomes and at least one High.
        """
        runs: list[PayoutRun] = []
        current: Optional[list[tuple[Outcome, Tier]]] = None
        low_streak = 0

        for outcome, tier in zip(outcomes, tiers):
            if tier is not Tier.LOW:
                if current is None:
                    current = []
                current.append((outcome, tier))
                low_streak = 0
                continue

            low_streak += 1
            if current is None:
                continue
            if low_streak >= PAYOUT_RUN_BREAK_LOWS:
                if self._qualifies(current):
                    runs.append(self._to_run(current))
                current = None
            else:
                current.append((outcome, tier))

        is_active = current is not None and self._qualifies(current)
        if is_active:
            runs.append(self._to_run(current))

        return PayoutRunReport(count=len(runs), is_active=is_active, runs=runs)

    @staticmethod
    def _to_run(items: list[tuple[Outcome, Tier]]) -> PayoutRun:
        members = [o for o, _ in items]
        return PayoutRun(
            start_time=members[0].time,
            end_time=members[-1].time,
            outcomes=members,
        )
