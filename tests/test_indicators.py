"""
RoundLens — Technical Indicator Tests

SMA / Bollinger via ``ta``, Wilder RSI and the composite confidence score.
"""

import math
from datetime import datetime, timedelta

import pytest


def _outcomes(values, start=datetime(2024, 5, 1, 12, 0, 0), step=timedelta(seconds=20)):
    from roundlens.models import Outcome

    result = []
    for i, v in enumerate(values):
        ts = start + i * step
        result.append(Outcome(value=v, date=ts.date(), time=ts.time(), index=i))
    return result


def _wave(n):
    """Helper: bounded, oscillating multiplier stream."""
    return [round(1.0 + abs(math.sin(i / 3)) * 12 + (i % 5) * 0.7, 2) for i in range(n)]


class TestTAEngine:

    # ═══════════════════════════════════════════════
    #  ALIGNMENT & WARM-UP
    # ═══════════════════════════════════════════════

    def test_series_aligned_with_input(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes(_wave(60)))
        for name in ("sma", "bollinger_upper", "bollinger_lower", "rsi", "confidence"):
            assert len(getattr(series, name)) == 60

    def test_empty(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators([])
        assert series.sma == []
        assert series.rsi == []
        assert series.confidence == []

    def test_short_input_all_none(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes(_wave(10)))
        assert series.sma == [None] * 10
        assert series.bollinger_upper == [None] * 10
        assert series.rsi == [None] * 10
        assert series.confidence == [None] * 10

    def test_warmup_positions(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes(_wave(40)))
        assert series.sma[18] is None
        assert series.sma[19] is not None
        assert series.rsi[13] is None
        assert series.rsi[14] is not None
        assert series.confidence[19] is None
        assert series.confidence[20] is not None

    # ═══════════════════════════════════════════════
    #  SMA / BOLLINGER
    # ═══════════════════════════════════════════════

    def test_sma_matches_plain_average(self):
        from roundlens.engines.ta_engine import TAEngine

        values = _wave(45)
        series = TAEngine().compute_indicators(_outcomes(values))
        for i in range(19, len(values)):
            assert series.sma[i] == pytest.approx(sum(values[i - 19:i + 1]) / 20)

    def test_band_ordering(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes(_wave(80)))
        for upper, mid, lower in zip(series.bollinger_upper, series.sma, series.bollinger_lower):
            if mid is None:
                continue
            assert upper >= mid - 1e-9
            assert mid >= lower - 1e-9

    def test_bands_use_population_std(self):
        from roundlens.engines.ta_engine import TAEngine

        values = [1.0, 3.0] * 10
        series = TAEngine().compute_indicators(_outcomes(values))
        # mean 2.0, population std 1.0
        assert series.sma[19] == pytest.approx(2.0)
        assert series.bollinger_upper[19] == pytest.approx(4.0)
        assert series.bollinger_lower[19] == pytest.approx(0.0)

    # ═══════════════════════════════════════════════
    #  RSI
    # ═══════════════════════════════════════════════

    def test_rsi_bounds(self):
        from roundlens.engines.ta_engine import TAEngine

        rsi = TAEngine._rsi(_wave(120))
        assert all(0 <= v <= 100 for v in rsi if v is not None)

    def test_rsi_rising_series(self):
        from roundlens.engines.ta_engine import TAEngine

        rsi = TAEngine._rsi([float(i) for i in range(1, 21)])
        assert rsi[14] == 100.0

    def test_rsi_wilder_smoothing(self):
        from roundlens.engines.ta_engine import TAEngine

        rsi = TAEngine._rsi([1.0, 2.0, 1.0, 3.0], period=2)
        assert rsi[:2] == [None, None]
        assert rsi[2] == pytest.approx(50.0)
        assert rsi[3] == pytest.approx(100 - 100 / 6)

    # ═══════════════════════════════════════════════
    #  CONFIDENCE
    # ═══════════════════════════════════════════════

    def test_confidence_bounds(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes(_wave(150) + [1.1] * 40))
        assert all(0 <= v <= 100 for v in series.confidence if v is not None)

    def test_confidence_flat_low_stream(self):
        from roundlens.engines.ta_engine import TAEngine

        series = TAEngine().compute_indicators(_outcomes([1.5] * 21))
        # 50 - 15 (empty window) + 25 (long Low streak) - 15 (RSI pinned at 100)
        assert series.confidence[20] == pytest.approx(45.0)

    def test_confidence_long_pause_penalty(self):
        from roundlens.engines.ta_engine import TAEngine

        values = [12.0] + [1.5] * 40
        series = TAEngine().compute_indicators(_outcomes(values))
        # i=40: one High in window, 40 since High (-30), streak bonus +25, RSI pinned at 0 (+15)
        assert series.confidence[40] == pytest.approx(50 + (2.5 - 6) * 2.5 - 30 + 25 + 15)
