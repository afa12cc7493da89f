"""
RoundLens — Analysis Orchestrator

One pure call from an outcome list (+ optional pattern catalog) to an
``AnalysisResult``. Tiers are materialized once and shared by every engine;
nothing is cached or retained between calls.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Sequence

import structlog

from roundlens.config import get_settings
from roundlens.constants import (
    DISCOVERY_MAX_LENGTH,
    DISCOVERY_MIN_LENGTH,
    EXTREME_TIERS,
    PAUSE_THRESHOLD,
)
from roundlens.engines.classifier import classify_all
from roundlens.engines.hotspot_engine import HotSpotEngine
from roundlens.engines.market_engine import MarketEngine
from roundlens.engines.pattern_engine import PatternEngine
from roundlens.engines.pressure_engine import PressureEngine
from roundlens.engines.ranking_engine import RankingEngine
from roundlens.engines.streak_engine import StreakEngine
from roundlens.engines.ta_engine import TAEngine
from roundlens.models import (
    AnalysisResult,
    AnalysisSummary,
    CatalogDiscovery,
    CatalogedPattern,
    Outcome,
    PatternCatalog,
    PatternMatchResult,
    PauseDetails,
    RankedPattern,
    Tier,
    TierDistribution,
)
from roundlens.observability import trace_span

log = structlog.get_logger(__name__)


class AnalysisEngine:
    """Composes every engine into a single snapshot.

    Stateless: a shared instance is safe to call from several threads.

    Usage:
        engine = AnalysisEngine()
        result = engine.analyze(outcomes, catalog)
    """

    def __init__(self):
        self.streaks = StreakEngine()
        self.hotspots = HotSpotEngine()
        self.market = MarketEngine()
        self.pressure = PressureEngine()
        self.ta = TAEngine()
        self.patterns = PatternEngine()
        self.ranking = RankingEngine(self.patterns)

    def analyze(
        self,
        outcomes: Sequence[Outcome],
        catalog: Optional[PatternCatalog] = None,
        *,
        now: Optional[dt.time | dt.datetime] = None,
        today: Optional[dt.date] = None,
        include_daily_ranking: bool = True,
    ) -> AnalysisResult:
        """Run the full analysis.

        Args:
            outcomes: Time-ordered outcomes; ``index`` must equal position.
            catalog: Optional winning / losing cataloged patterns (read-only).
            now: Clock time used for hot-minute pressure; defaults to the
                last outcome's time.
            today: Calendar day for the daily ranking; defaults to the last
                outcome's date.
            include_daily_ranking: Skip the ranking pass when False.
        """
        catalog = catalog or PatternCatalog()
        self._check_catalog(catalog)

        with trace_span("analysis.run", outcomes=len(outcomes), catalog=len(catalog)):
            result = self._run(outcomes, catalog, now, today, include_daily_ranking)

        log.info(
            "analysis.completed",
            outcomes=len(outcomes),
            market_state=result.summary.market_state.value,
            pauses=len(result.pause_history),
            ranked=len(result.daily_ranking or []),
        )
        return result

    def _run(
        self,
        outcomes: Sequence[Outcome],
        catalog: PatternCatalog,
        now: Optional[dt.time | dt.datetime],
        today: Optional[dt.date],
        include_daily_ranking: bool,
    ) -> AnalysisResult:
        tiers = classify_all(outcomes)
        last = outcomes[-1] if outcomes else None

        stats = self.streaks.track(outcomes, tiers)
        ext_50, ext_100, ext_1000 = self.streaks.extreme_reports(outcomes)
        since_50, since_100, since_1000 = (
            self.streaks.highs_since_last(outcomes, t) for t in EXTREME_TIERS
        )

        market_state, market_pct = self.market.market_state(tiers)
        is_paused = self.pressure.is_market_paused(stats.plays_since_last_high, stats.average_high_interval)

        summary = AnalysisSummary(
            total_plays=stats.total,
            high_count=stats.high_count,
            mid_count=stats.mid_count,
            low_count=stats.low_count,
            plays_since_last_high=stats.plays_since_last_high,
            average_high_interval=stats.average_high_interval,
            current_low_streak=stats.current_low_streak,
            current_non_low_streak=stats.current_non_low_streak,
            market_state=market_state,
            market_state_percentage=market_pct,
            is_market_paused=is_paused,
            pause_details=PauseDetails(
                current=stats.plays_since_last_high,
                average=stats.average_high_interval,
                threshold=PAUSE_THRESHOLD,
            ),
            short_term_volatility=self.market.short_term_volatility(outcomes),
            last_high_multiplier=stats.last_high_multiplier,
            average_mid_multiplier=stats.average_mid_multiplier,
            next_play_column=self.streaks.next_play_column(tiers),
            highs_since_last_50x=since_50,
            highs_since_last_100x=since_100,
            highs_since_last_1000x=since_1000,
            extreme_50x=ext_50,
            extreme_100x=ext_100,
            extreme_1000x=ext_1000,
        )

        hot_spots = self.hotspots.rank(outcomes, tiers, stats.intervals)
        pauses = self.pressure.detect_pauses(outcomes, tiers)
        builtin = self.patterns.detect_builtin(outcomes, tiers)

        clock = now if now is not None else (last.time if last else None)
        high_pressure = self.pressure.high_pressure(
            tiers=tiers,
            plays_since_last_high=stats.plays_since_last_high,
            average_high_interval=stats.average_high_interval,
            market_state=market_state,
            is_paused=is_paused,
            hot_minutes=hot_spots.hottest_high_minutes,
            current_minute=clock.minute if clock is not None else None,
            winning=catalog.winning,
            losing=catalog.losing,
        )
        mid_pressure = self.pressure.mid_pressure(
            outcomes=outcomes,
            tiers=tiers,
            current_low_streak=stats.current_low_streak,
            market_state=market_state,
        )
        pause_risk = self.pressure.pause_risk(
            outcomes=outcomes,
            plays_since_last_high=stats.plays_since_last_high,
            pauses=pauses,
        )

        daily_ranking = None
        if include_daily_ranking and last is not None:
            daily_ranking = self.ranking.rank_daily(
                outcomes, builtin, catalog.winning, today or last.date,
            )

        return AnalysisResult(
            summary=summary,
            hot_spots=hot_spots,
            indicators=self.ta.compute_indicators(outcomes),
            patterns=builtin,
            pause_history=pauses,
            high_pressure=high_pressure,
            mid_pressure=mid_pressure,
            pause_risk=pause_risk,
            payout_runs=self.market.payout_runs(outcomes, tiers),
            daily_ranking=daily_ranking,
        )

    # ──────────────────────────────────────────
    # On-demand entry points
    # ──────────────────────────────────────────

    def match_pattern(
        self,
        pattern: CatalogedPattern | Sequence[Tier | str],
        outcomes: Sequence[Outcome],
    ) -> PatternMatchResult:
        """Backtest one cataloged pattern against ``outcomes``."""
        return self.patterns.match(pattern, outcomes)

    def discover_catalog(
        self,
        outcomes: Sequence[Outcome],
        min_length: int = DISCOVERY_MIN_LENGTH,
        max_length: int = DISCOVERY_MAX_LENGTH,
    ) -> CatalogDiscovery:
        """Mine a winning / losing catalog from history for later `analyze` calls."""
        with trace_span("analysis.discover_catalog", outcomes=len(outcomes)):
            return self.patterns.discover_catalog(outcomes, min_length, max_length)

    def next_tier_distribution(
        self,
        precursor: Sequence[Tier | str],
        outcomes: Sequence[Outcome],
    ) -> TierDistribution:
        return self.patterns.next_tier_distribution(precursor, outcomes)

    def rank_daily_patterns(
        self,
        outcomes: Sequence[Outcome],
        catalog: Optional[PatternCatalog] = None,
        today: Optional[dt.date] = None,
    ) -> Optional[list[RankedPattern]]:
        """Daily ranking without the rest of the analysis."""
        if not outcomes:
            return None
        catalog = catalog or PatternCatalog()
        builtin = self.patterns.detect_builtin(outcomes, classify_all(outcomes))
        return self.ranking.rank_daily(outcomes, builtin, catalog.winning, today or outcomes[-1].date)

    @staticmethod
    def _check_catalog(catalog: PatternCatalog) -> None:
        settings = get_settings()
        if len(catalog) > settings.max_catalog_size:
            log.warning(
                "analysis.catalog_oversized",
                size=len(catalog),
                limit=settings.max_catalog_size,
            )


_default_engine: Optional[AnalysisEngine] = None


def get_analysis_engine() -> AnalysisEngine:
    """Module-level shared engine (engines hold no state)."""
    global _default_engine
    if _default_engine is None:
        _default_engine = AnalysisEngine()
    return _default_engine


def analyze(
    outcomes: Sequence[Outcome],
    catalog: Optional[PatternCatalog] = None,
    *,
    now: Optional[dt.time | dt.datetime] = None,
    today: Optional[dt.date] = None,
    include_daily_ranking: bool = True,
) -> AnalysisResult:
    """Convenience wrapper around :meth:`AnalysisEngine.analyze`."""
    return get_analysis_engine().analyze(
        outcomes,
        catalog,
        now=now,
        today=today,
        include_daily_ranking=include_daily_ranking,
    )
