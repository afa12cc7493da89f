"""
RoundLens — Daily Pattern Ranking

Ranks today's pattern performance: both built-in detectors (success = a High
inside the detector's alert window after the trigger) plus the top cataloged
winning patterns replayed on today's outcomes only. Sorted by hit-rate, then
raw hits; top 5 kept.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import structlog

from roundlens.constants import (
    DAILY_RANKING_CATALOG_LIMIT,
    DAILY_RANKING_MAX_ENTRIES,
    DAILY_RANKING_MIN_OUTCOMES,
    HIGH_THRESHOLD,
)
from roundlens.engines.pattern_engine import PatternEngine
from roundlens.models import (
    BuiltInPatterns,
    BuiltInPatternState,
    CatalogedPattern,
    Outcome,
    RankedPattern,
)

log = structlog.get_logger(__name__)

CATALOGED_PATTERN = "Cataloged Pattern"


class RankingEngine:
    """Today-only leaderboard of detector and catalog performance.

    Usage:
        engine = RankingEngine()
        ranking = engine.rank_daily(outcomes, builtin, winning, today)
    """

    def __init__(self, pattern_engine: Optional[PatternEngine] = None):
        self._patterns = pattern_engine or PatternEngine()

    def rank_daily(
        self,
        outcomes: Sequence[Outcome],
        builtin: BuiltInPatterns,
        winning: Sequence[CatalogedPattern],
        today: date,
    ) -> Optional[list[RankedPattern]]:
        """Return up to 5 ranked entries, or None when nothing qualifies.

        Skipped entirely (None) when today holds fewer than 20 outcomes.
        """
        today_outcomes = [o for o in outcomes if o.date == today]
        if len(today_outcomes) < DAILY_RANKING_MIN_OUTCOMES:
            log.debug("ranking.insufficient_sample", today=today.isoformat(), count=len(today_outcomes))
            return None

        candidates: list[dict] = []
        for state in (builtin.immediate_repeat, builtin.near_repeat):
            entry = self._score_detector(state, today)
            if entry:
                candidates.append(entry)

        for pattern in list(winning)[:DAILY_RANKING_CATALOG_LIMIT]:
            result = self._patterns.match(pattern, today_outcomes)
            if result.occurrences > 0:
                candidates.append({
                    "name": pattern.name or CATALOGED_PATTERN,
                    "pattern": list(pattern.pattern),
                    "occurrences": result.occurrences,
                    "hits": result.hits,
                    "hit_rate": result.hit_rate,
                    "avg_multiplier": result.avg_multiplier,
                    "history": result.history,
                })

        candidates = [c for c in candidates if c["occurrences"] > 0]
        candidates.sort(key=lambda c: (c["hit_rate"], c["hits"]), reverse=True)

        ranked = [
            RankedPattern(rank=n + 1, **c)
            for n, c in enumerate(candidates[:DAILY_RANKING_MAX_ENTRIES])
        ]
        return ranked or None

    @staticmethod
    def _score_detector(state: BuiltInPatternState, today: date) -> Optional[dict]:
        todays = [occ for occ in state.history if occ.trigger_outcomes[1].date == today]
        if not todays:
            return None

        window = state.alert_window
        hit_highs: list[float] = []
        hits = 0
        for occ in todays:
            highs = [
                o.value for o in occ.outcome_window[window.start - 1:window.end]
                if o.value >= HIGH_THRESHOLD
            ]
            if highs:
                hits += 1
                hit_highs.extend(highs)

        return {
            "name": state.name,
            "occurrences": len(todays),
            "hits": hits,
            "hit_rate": (hits / len(todays)) * 100,
            "avg_multiplier": sum(hit_highs) / len(hit_highs) if hit_highs else 0.0,
        }
