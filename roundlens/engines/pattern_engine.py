"""
RoundLens — Pattern Detection Engine

Built-in short-range detectors over High positions, a generic matcher that
backtests any cataloged tier sequence against a history, and catalog
discovery that mines winning / losing precursors from that same history.

Built-in detectors (distance = gap between the last two Highs):
  Immediate Repeat:  distance == 1, alerts 2..8 plays after the last High
  Near Repeat:       1 < distance <= 7, alerts 1..7 plays after the last High

Generic matcher:
  trigger = pattern[:-1], expected = pattern[-1]; a hit needs the next tier
  to equal the expected tier AND the expected tier to be Mid or High.
  O(n · len(pattern)) — callers bound pattern length and catalog size.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from roundlens.config import get_settings
from roundlens.constants import (
    DISCOVERY_MAX_LENGTH,
    DISCOVERY_MIN_LENGTH,
    DISCOVERY_TOP,
    HIGH_THRESHOLD,
    IMMEDIATE_REPEAT_WINDOW,
    LOOKAHEAD_WINDOW,
    MID_THRESHOLD,
    NEAR_REPEAT_MAX_DISTANCE,
    NEAR_REPEAT_WINDOW,
)
from roundlens.engines.classifier import classify_all, high_indices
from roundlens.models import (
    AlertWindow,
    BuiltInPatterns,
    BuiltInPatternState,
    CatalogDiscovery,
    CatalogedPattern,
    DiscoveredPattern,
    HotTrigger,
    LosingPatternStats,
    Outcome,
    PatternCatalog,
    PatternMatchResult,
    PatternOccurrence,
    Tier,
    TierDistribution,
)

log = structlog.get_logger(__name__)

IMMEDIATE_REPEAT = "Immediate Repeat"
NEAR_REPEAT = "Near Repeat"

_HIT_TIERS = (Tier.MID, Tier.HIGH)


def occurrence_id(start_index: int, pattern_length: int) -> str:
    """Deterministic occurrence id derived from position and length."""
    return f"{start_index}-{pattern_length}"


class PatternEngine:
    """Built-in repeat detectors, the generic matcher and catalog discovery.

    Usage:
        engine = PatternEngine()
        state = engine.detect_builtin(outcomes, tiers)
        result = engine.match(pattern, outcomes)
        discovery = engine.discover_catalog(outcomes)
    """

    # ──────────────────────────────────────────
    # Built-in detectors
    # ──────────────────────────────────────────

    def detect_builtin(self, outcomes: Sequence[Outcome], tiers: Sequence[Tier]) -> BuiltInPatterns:
        highs = high_indices(tiers)
        immediate = BuiltInPatternState(
            name=IMMEDIATE_REPEAT,
            alert_window=AlertWindow(start=IMMEDIATE_REPEAT_WINDOW[0], end=IMMEDIATE_REPEAT_WINDOW[1]),
        )
        near = BuiltInPatternState(
            name=NEAR_REPEAT,
            alert_window=AlertWindow(start=NEAR_REPEAT_WINDOW[0], end=NEAR_REPEAT_WINDOW[1]),
        )

        for prev, last in zip(highs, highs[1:]):
            distance = last - prev
            if distance == 1:
                immediate.history.append(self._repeat_occurrence(outcomes, prev, last))
            elif distance <= NEAR_REPEAT_MAX_DISTANCE:
                near.history.append(self._repeat_occurrence(outcomes, prev, last))

        if len(highs) >= 2:
            prev, last = highs[-2], highs[-1]
            distance = last - prev
            plays_since = len(outcomes) - 1 - last
            trigger = [outcomes[prev], outcomes[last]]

            if distance == 1:
                self._activate(immediate, trigger, plays_since)
            elif distance <= NEAR_REPEAT_MAX_DISTANCE:
                self._activate(near, trigger, plays_since)
                near.last_distance = distance

        return BuiltInPatterns(immediate_repeat=immediate, near_repeat=near)

    @staticmethod
    def _repeat_occurrence(outcomes: Sequence[Outcome], prev: int, last: int) -> PatternOccurrence:
        return PatternOccurrence(
            id=occurrence_id(prev, last - prev + 1),
            trigger_outcomes=[outcomes[prev], outcomes[last]],
            outcome_window=list(outcomes[last + 1: last + 1 + LOOKAHEAD_WINDOW]),
            distance=last - prev,
        )

    @staticmethod
    def _activate(state: BuiltInPatternState, trigger: list[Outcome], plays_since: int) -> None:
        state.is_active = True
        state.trigger_outcomes = trigger
        window = state.alert_window
        if window.start <= plays_since <= window.end:
            state.is_alerting = True
            state.countdown = window.end - plays_since

    # ──────────────────────────────────────────
    # Generic matcher
    # ──────────────────────────────────────────

    def match(self, pattern: CatalogedPattern | Sequence[Tier | str], outcomes: Sequence[Outcome]) -> PatternMatchResult:
        """Scan the full history for every occurrence of the trigger.

        Args:
            pattern: Tier sequence (or CatalogedPattern) whose last element is
                the expected outcome tier. Plain tier names are accepted.
            outcomes: Time-ordered outcomes to scan.

        Returns:
            PatternMatchResult with occurrences, hits, hit-rate (percent),
            average payout on hits and a bounded lookahead per occurrence.
        """
        cataloged = _as_cataloged(pattern)
        trigger = list(cataloged.trigger)
        if not trigger:
            return PatternMatchResult()

        expected = cataloged.expected
        length = len(trigger)
        if length > get_settings().max_pattern_length:
            log.warning("pattern_matcher.pattern_too_long", length=length)

        tiers = classify_all(outcomes)
        occurrences = 0
        hits = 0
        total_hit_value = 0.0
        history: list[PatternOccurrence] = []

        for i in range(len(tiers) - length):
            if tiers[i:i + length] != trigger:
                continue
            occurrences += 1
            outcome_pos = i + length
            history.append(PatternOccurrence(
                id=occurrence_id(i, length + 1),
                trigger_outcomes=list(outcomes[i:outcome_pos]),
                outcome_window=list(outcomes[outcome_pos:outcome_pos + LOOKAHEAD_WINDOW]),
            ))
            if tiers[outcome_pos] == expected and expected in _HIT_TIERS:
                hits += 1
                total_hit_value += outcomes[outcome_pos].value

        return PatternMatchResult(
            occurrences=occurrences,
            hits=hits,
            hit_rate=(hits / occurrences) * 100 if occurrences else 0.0,
            avg_multiplier=total_hit_value / hits if hits else 0.0,
            history=history,
        )

    def next_tier_distribution(self, precursor: Sequence[Tier | str], outcomes: Sequence[Outcome]) -> TierDistribution:
        """Count which tier followed each occurrence of ``precursor``."""
        sequence = [Tier(t) for t in precursor]
        if not sequence:
            return TierDistribution()

        tiers = classify_all(outcomes)
        counts: Counter = Counter()
        length = len(sequence)
        for i in range(len(tiers) - length):
            if tiers[i:i + length] == sequence:
                counts[tiers[i + length]] += 1

        return TierDistribution(
            pattern=sequence,
            occurrences=sum(counts.values()),
            low=counts[Tier.LOW],
            mid=counts[Tier.MID],
            high=counts[Tier.HIGH],
        )

    # ──────────────────────────────────────────
    # Catalog discovery
    # ──────────────────────────────────────────

    def discover_catalog(
        self,
        outcomes: Sequence[Outcome],
        min_length: int = DISCOVERY_MIN_LENGTH,
        max_length: int = DISCOVERY_MAX_LENGTH,
    ) -> CatalogDiscovery:
        """Mine winning / losing precursors from history.

        Every tier run of ``min_length``..``max_length`` is a precursor; the
        outcome right after it is a win when Mid or High, a loss when Low.
        Precursors seen winning (or losing) more than once are ranked by that
        count and the top 5 of each kind form the catalog.

        Raises:
            ValueError: If the length range is empty or starts below 1.
        """
        if min_length < 1 or max_length < min_length:
            raise ValueError(f"Invalid precursor length range {min_length}..{max_length}")
        if max_length > get_settings().max_pattern_length:
            log.warning("pattern_discovery.pattern_too_long", length=max_length)

        tiers = classify_all(outcomes)
        totals: Counter = Counter()
        losses: Counter = Counter()
        wins: dict[tuple[Tier, ...], _WinTally] = {}

        for length in range(min_length, max_length + 1):
            for i in range(len(tiers) - length):
                key = tuple(tiers[i:i + length])
                next_tier = tiers[i + length]
                totals[key] += 1
                if next_tier is Tier.LOW:
                    losses[key] += 1
                    continue
                tally = wins.setdefault(key, _WinTally())
                tally.count += 1
                tally.total_multiplier += outcomes[i + length].value
                tally.next_tiers[next_tier] += 1
                tally.last_occurrence = list(outcomes[i:i + length + 1])

        winning = [
            DiscoveredPattern(
                pattern=[*key, tally.next_tiers.most_common(1)[0][0]],
                win_count=tally.count,
                total_count=totals[key],
                avg_multiplier=tally.total_multiplier / tally.count,
                confidence=(tally.count / totals[key]) * 100,
                last_occurrence=tally.last_occurrence,
            )
            for key, tally in wins.items()
            if tally.count > 1
        ]
        winning.sort(key=lambda p: p.win_count, reverse=True)
        winning = winning[:DISCOVERY_TOP]

        losing = [
            LosingPatternStats(pattern=list(key), loss_count=count, total_count=totals[key])
            for key, count in losses.items()
            if count > 1
        ]
        losing.sort(key=lambda p: p.loss_count, reverse=True)
        losing = losing[:DISCOVERY_TOP]

        log.info("pattern_discovery.completed", winning=len(winning), losing=len(losing))
        return CatalogDiscovery(
            catalog=PatternCatalog(
                winning=tuple(CatalogedPattern(pattern=tuple(p.pattern)) for p in winning),
                losing=tuple(CatalogedPattern(pattern=tuple(p.pattern)) for p in losing),
            ),
            winning=winning,
            losing=losing,
            hot_mid_trigger=self.hot_mid_trigger(outcomes),
        )

    @staticmethod
    def hot_mid_trigger(outcomes: Sequence[Outcome]) -> Optional[HotTrigger]:
        """Most frequent whole-number Mid range immediately followed by a High."""
        counts: Counter = Counter()
        for current, following in zip(outcomes, outcomes[1:]):
            if MID_THRESHOLD <= current.value < HIGH_THRESHOLD and following.value >= HIGH_THRESHOLD:
                whole = math.floor(current.value)
                counts[f"{whole}.00x - {whole}.99x"] += 1
        if not counts:
            return None
        label, count = counts.most_common(1)[0]
        return HotTrigger(multiplier_range=label, count=count)


@dataclass
class _WinTally:
    count: int = 0
    total_multiplier: float = 0.0
    next_tiers: Counter = field(default_factory=Counter)
    last_occurrence: list[Outcome] = field(default_factory=list)


def _as_cataloged(pattern: CatalogedPattern | Sequence[Tier | str]) -> CatalogedPattern:
    if isinstance(pattern, CatalogedPattern):
        return pattern
    return CatalogedPattern(pattern=tuple(Tier(t) for t in pattern))
