"""
RoundLens — Technical Indicator Engine

Classical indicators adapted to a discrete multiplier stream, every series
index-aligned with the input and ``None`` during warm-up:

  SMA(20) + Bollinger Bands(20, 2σ, population std) via the `ta` library
  RSI(14) with Wilder smoothing seeded by a simple average
  Confidence: composite 0–100 score from the trailing 50-outcome window
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import pandas as pd
from ta.volatility import BollingerBands

from roundlens.constants import (
    BOLLINGER_DEV,
    CONFIDENCE_WARMUP,
    CONFIDENCE_WINDOW,
    HIGH_THRESHOLD,
    MID_THRESHOLD,
    PAUSE_THRESHOLD,
    RSI_PERIOD,
    SMA_PERIOD,
)
from roundlens.models import Outcome, TechnicalIndicatorSeries
from roundlens.observability import traced


class TAEngine:
    """Indicator series over outcome multipliers.

    Usage:
        engine = TAEngine()
        series = engine.compute_indicators(outcomes)
    """

    @traced("indicators.compute")
    def compute_indicators(self, outcomes: Sequence[Outcome]) -> TechnicalIndicatorSeries:
        values = [o.value for o in outcomes]
        sma, upper, lower = self._bollinger(values, SMA_PERIOD, BOLLINGER_DEV)
        rsi = self._rsi(values, RSI_PERIOD)
        confidence = self._confidence(values, rsi)
        return TechnicalIndicatorSeries(
            sma=sma,
            bollinger_upper=upper,
            bollinger_lower=lower,
            rsi=rsi,
            confidence=confidence,
        )

    # ──────────────────────────────────────────
    # Indicator primitives
    # ──────────────────────────────────────────

    @staticmethod
    def _to_optional(series: pd.Series) -> list[Optional[float]]:
        return [None if pd.isna(v) else float(v) for v in series]

    def _bollinger(
        self,
        values: list[float],
        period: int,
        window_dev: int,
    ) -> tuple[list[Optional[float]], list[Optional[float]], list[Optional[float]]]:
        """SMA plus upper/lower bands at ``window_dev`` population std-devs."""
        if len(values) < period:
            empty: list[Optional[float]] = [None] * len(values)
            return empty, list(empty), list(empty)

        close = pd.Series(values, dtype="float64")
        bb = BollingerBands(close, window=period, window_dev=window_dev, fillna=False)
        return (
            self._to_optional(bb.bollinger_mavg()),
            self._to_optional(bb.bollinger_hband()),
            self._to_optional(bb.bollinger_lband()),
        )

    @staticmethod
    def _rsi(values: list[float], period: int = 14) -> list[Optional[float]]:
        """Relative Strength Index with Wilder smoothing.

        The first value (at ``period``) averages the first ``period``
        gains/losses; later values use ``(avg * (period - 1) + new) / period``.
        """
        result: list[Optional[float]] = [None] * len(values)
        if len(values) < period + 1:
            return result

        gains = []
        losses = []
        for i in range(1, len(values)):
            diff = values[i] - values[i - 1]
            gains.append(max(0.0, diff))
            losses.append(max(0.0, -diff))

        avg_gain = sum(gains[:period]) / period
        avg_loss = sum(losses[:period]) / period
        result[period] = _rsi_value(avg_gain, avg_loss)

        for i in range(period, len(gains)):
            avg_gain = (avg_gain * (period - 1) + gains[i]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i]) / period
            result[i + 1] = _rsi_value(avg_gain, avg_loss)

        return result

    # ──────────────────────────────────────────
    # Composite confidence
    # ──────────────────────────────────────────

    @staticmethod
    def _confidence(values: list[float], rsi: list[Optional[float]]) -> list[Optional[float]]:
        """Per-index 0–100 score; None before index 20.

        Starts at 50, then:
          + (2.5·Highs + 0.5·Mids in trailing 50 − 6) × 2.5
          − min((plays since High − 25) × 2, 30) when beyond 25
          + min((Low streak − 3) × 5, 25) when beyond 3
          ± 0.5 per RSI point outside the 30/70 band
        """
        result: list[Optional[float]] = []
        last_high = -1
        low_streak = 0

        for i, value in enumerate(values):
            if value >= HIGH_THRESHOLD:
                last_high = i
            low_streak = low_streak + 1 if value < MID_THRESHOLD else 0

            if i < CONFIDENCE_WARMUP:
                result.append(None)
                continue

            window = values[max(0, i - CONFIDENCE_WINDOW + 1): i + 1]
            highs = sum(1 for v in window if v >= HIGH_THRESHOLD)
            mids = sum(1 for v in window if MID_THRESHOLD <= v < HIGH_THRESHOLD)
            score = 50.0 + (highs * 2.5 + mids * 0.5 - 6) * 2.5

            plays_since = i + 1 if last_high == -1 else i - last_high
            if plays_since > PAUSE_THRESHOLD:
                score -= min((plays_since - PAUSE_THRESHOLD) * 2, 30)

            if low_streak > 3:
                score += min((low_streak - 3) * 5, 25)

            rsi_value = rsi[i]
            if rsi_value is not None:
                if rsi_value < 30:
                    score += (30 - rsi_value) * 0.5
                if rsi_value > 70:
                    score -= (rsi_value - 70) * 0.5

            result.append(max(0.0, min(100.0, score)))

        return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    value = 100 - 100 / (1 + rs)
    return value if math.isfinite(value) else 100.0
