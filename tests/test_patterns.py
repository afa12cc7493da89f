"""
RoundLens — Built-in Detector & Pattern Matcher Tests
"""

from datetime import datetime, timedelta

import pytest


def _outcomes(values, start=datetime(2024, 5, 1, 12, 0, 0), step=timedelta(seconds=20)):
    from roundlens.models import Outcome

    result = []
    for i, v in enumerate(values):
        ts = start + i * step
        result.append(Outcome(value=v, date=ts.date(), time=ts.time(), index=i))
    return result


def _with_highs(length, positions, high=12.0, low=1.2):
    values = [low] * length
    for p in positions:
        values[p] = high
    return values


# ═══════════════════════════════════════════════
#  BUILT-IN DETECTORS
# ═══════════════════════════════════════════════

class TestBuiltInDetectors:

    def _detect(self, values):
        from roundlens.engines.classifier import classify_all
        from roundlens.engines.pattern_engine import PatternEngine
        outcomes = _outcomes(values)
        return PatternEngine().detect_builtin(outcomes, classify_all(outcomes)), outcomes

    def test_immediate_repeat_alerting(self):
        patterns, outcomes = self._detect(_with_highs(8, [3, 4]))
        state = patterns.immediate_repeat
        assert state.name == "Immediate Repeat"
        assert state.is_active is True
        assert state.is_alerting is True
        assert state.countdown == 5
        assert state.trigger_outcomes == [outcomes[3], outcomes[4]]
        assert patterns.near_repeat.is_active is False

    def test_immediate_repeat_before_window(self):
        patterns, _ = self._detect(_with_highs(4, [1, 2]))
        state = patterns.immediate_repeat
        assert state.is_active is True
        assert state.is_alerting is False
        assert state.countdown == 0

    def test_immediate_repeat_after_window(self):
        patterns, _ = self._detect(_with_highs(15, [1, 2]))
        state = patterns.immediate_repeat
        assert state.is_active is True
        assert state.is_alerting is False

    def test_near_repeat_alerting(self):
        patterns, _ = self._detect(_with_highs(9, [2, 6]))
        state = patterns.near_repeat
        assert state.name == "Near Repeat"
        assert state.is_active is True
        assert state.is_alerting is True
        assert state.countdown == 5
        assert state.last_distance == 4
        assert patterns.immediate_repeat.is_active is False

    def test_distance_beyond_seven(self):
        patterns, _ = self._detect(_with_highs(12, [0, 8]))
        assert patterns.immediate_repeat.is_active is False
        assert patterns.near_repeat.is_active is False
        assert patterns.near_repeat.history == []

    def test_fewer_than_two_highs(self):
        patterns, _ = self._detect(_with_highs(10, [4]))
        assert patterns.immediate_repeat.is_active is False
        assert patterns.near_repeat.is_active is False
        assert patterns.immediate_repeat.alert_window.start == 2
        assert patterns.immediate_repeat.alert_window.end == 8
        assert patterns.near_repeat.alert_window.start == 1
        assert patterns.near_repeat.alert_window.end == 7

    def test_history(self):
        patterns, outcomes = self._detect(_with_highs(25, [0, 1, 5, 20]))

        immediate = patterns.immediate_repeat.history
        assert [occ.id for occ in immediate] == ["0-2"]
        assert immediate[0].distance == 1
        assert immediate[0].outcome_window == outcomes[2:12]

        near = patterns.near_repeat.history
        assert [occ.id for occ in near] == ["1-5"]
        assert near[0].distance == 4
        assert near[0].trigger_outcomes == [outcomes[1], outcomes[5]]
        assert near[0].outcome_window == outcomes[6:16]

    @pytest.mark.parametrize("positions", [
        [0, 1, 2, 9, 10, 30],
        [3, 5, 12, 13, 19, 27, 28],
        [0, 7, 8, 16, 23],
    ])
    def test_history_distances(self, positions):
        patterns, _ = self._detect(_with_highs(40, positions))
        assert all(occ.distance == 1 for occ in patterns.immediate_repeat.history)
        assert all(2 <= occ.distance <= 7 for occ in patterns.near_repeat.history)

        gaps = [b - a for a, b in zip(positions, positions[1:])]
        assert len(patterns.immediate_repeat.history) == gaps.count(1)
        assert len(patterns.near_repeat.history) == sum(1 for g in gaps if 2 <= g <= 7)


# ═══════════════════════════════════════════════
#  GENERIC MATCHER
# ═══════════════════════════════════════════════

class TestPatternMatcher:

    def _match(self, pattern, values):
        from roundlens.engines.pattern_engine import PatternEngine
        return PatternEngine().match(pattern, _outcomes(values))

    def test_two_hits(self):
        from roundlens.models import Tier

        result = self._match(
            (Tier.LOW, Tier.MID, Tier.HIGH),
            [1.2, 3.0, 12.0, 1.3, 4.0, 20.0],
        )
        assert result.occurrences == 2
        assert result.hits == 2
        assert result.hit_rate == pytest.approx(100.0)
        assert result.avg_multiplier == pytest.approx(16.0)
        assert [occ.id for occ in result.history] == ["0-3", "3-3"]
        assert [o.value for o in result.history[0].outcome_window] == [12.0, 1.3, 4.0, 20.0]

    def test_accepts_cataloged_pattern(self):
        from roundlens.models import CatalogedPattern, Tier

        pattern = CatalogedPattern(pattern=(Tier.LOW, Tier.MID, Tier.HIGH), name="climb")
        result = self._match(pattern, [1.2, 3.0, 12.0, 1.3, 4.0, 20.0])
        assert result.occurrences == 2

    def test_partial_hit_rate(self):
        from roundlens.models import Tier

        result = self._match((Tier.LOW, Tier.MID), [1.2, 3.0, 1.2, 1.2, 1.2, 5.0])
        # triggers at 0, 2, 3, 4; Mid follows at 0 and 4
        assert result.occurrences == 4
        assert result.hits == 2
        assert result.hit_rate == pytest.approx(50.0)
        assert result.avg_multiplier == pytest.approx(4.0)

    def test_low_expected_never_hits(self):
        from roundlens.models import Tier

        result = self._match(
            (Tier.HIGH, Tier.HIGH, Tier.LOW),
            [12.0, 12.0, 1.1, 12.0, 12.0, 1.1],
        )
        assert result.occurrences == 2
        assert result.hits == 0
        assert result.hit_rate == 0.0
        assert result.avg_multiplier == 0.0

    def test_trigger_at_end_is_not_counted(self):
        from roundlens.models import Tier

        pattern = (Tier.LOW, Tier.MID, Tier.HIGH)
        assert self._match(pattern, [1.2, 3.0]).occurrences == 0
        assert self._match(pattern, [1.2, 3.0, 12.0, 1.2, 3.0]).occurrences == 1

    @pytest.mark.parametrize("pattern", [(), ("high",)])
    def test_empty_trigger(self, pattern):
        from roundlens.models import Tier

        result = self._match(tuple(Tier(t) for t in pattern), [1.2, 12.0, 12.0])
        assert result.occurrences == 0
        assert result.hits == 0
        assert result.hit_rate == 0.0
        assert result.history == []

    def test_long_pattern_warns(self):
        from structlog.testing import capture_logs

        from roundlens.models import Tier

        pattern = tuple([Tier.LOW] * 20)
        with capture_logs() as logs:
            result = self._match(pattern, [1.2] * 30)
        assert result.occurrences == 11
        assert any(e["event"] == "pattern_matcher.pattern_too_long" for e in logs)

    def test_plain_tier_names(self):
        result = self._match(["low", "mid", "high"], [1.2, 3.0, 12.0, 1.3, 4.0, 20.0])
        assert result.occurrences == 2
        assert result.hits == 2
        assert result.hit_rate == pytest.approx(100.0)

    def test_unknown_tier_name_rejected(self):
        with pytest.raises(ValueError):
            self._match(["low", "purple"], [1.2, 3.0])


# ═══════════════════════════════════════════════
#  CATALOG DISCOVERY
# ═══════════════════════════════════════════════

# Tiers: L M H L M H L M L
DISCOVERY_HISTORY = [1.2, 3.0, 12.0, 1.2, 3.0, 12.0, 1.2, 3.0, 1.1]


class TestCatalogDiscovery:

    def _discover(self, values, min_length=2, max_length=2):
        from roundlens.engines.pattern_engine import PatternEngine
        return PatternEngine().discover_catalog(_outcomes(values), min_length, max_length)

    def test_winning_precursors(self):
        from roundlens.models import Tier

        discovery = self._discover(DISCOVERY_HISTORY)
        assert [p.pattern for p in discovery.winning] == [
            [Tier.LOW, Tier.MID, Tier.HIGH],
            [Tier.HIGH, Tier.LOW, Tier.MID],
        ]
        low_mid = discovery.winning[0]
        assert (low_mid.win_count, low_mid.total_count) == (2, 3)
        assert low_mid.avg_multiplier == pytest.approx(12.0)
        assert low_mid.confidence == pytest.approx(200 / 3)
        assert [o.value for o in low_mid.last_occurrence] == [1.2, 3.0, 12.0]

        high_low = discovery.winning[1]
        assert high_low.confidence == pytest.approx(100.0)
        assert high_low.avg_multiplier == pytest.approx(3.0)

    def test_losing_precursors(self):
        from roundlens.models import Tier

        discovery = self._discover(DISCOVERY_HISTORY)
        # (low, mid) lost only once so it is not kept
        assert [(p.pattern, p.loss_count, p.total_count) for p in discovery.losing] == [
            ([Tier.MID, Tier.HIGH], 2, 2),
        ]

    def test_catalog_shape(self):
        from roundlens.models import Tier

        catalog = self._discover(DISCOVERY_HISTORY).catalog
        assert [p.pattern for p in catalog.winning] == [
            (Tier.LOW, Tier.MID, Tier.HIGH),
            (Tier.HIGH, Tier.LOW, Tier.MID),
        ]
        assert [p.pattern for p in catalog.losing] == [(Tier.MID, Tier.HIGH)]

    def test_discovered_catalog_backtests(self):
        from roundlens.engines.pattern_engine import PatternEngine

        outcomes = _outcomes(DISCOVERY_HISTORY)
        discovery = PatternEngine().discover_catalog(outcomes, 2, 2)
        result = PatternEngine().match(discovery.catalog.winning[0], outcomes)
        assert (result.occurrences, result.hits) == (3, 2)

    def test_top_five_only(self):
        values = [1.2, 3.0, 12.0, 1.1, 2.5, 1.3, 15.0, 4.0, 1.4, 1.2, 2.2, 11.0] * 6
        discovery = self._discover(values, 2, 4)
        assert len(discovery.winning) <= 5
        assert len(discovery.losing) <= 5
        wins = [p.win_count for p in discovery.winning]
        assert wins == sorted(wins, reverse=True)
        assert all(p.win_count > 1 for p in discovery.winning)
        assert all(p.pattern[-1].value in ("mid", "high") for p in discovery.winning)

    def test_short_history(self):
        discovery = self._discover([1.2, 3.0], 3, 6)
        assert discovery.winning == []
        assert discovery.losing == []
        assert len(discovery.catalog) == 0
        assert discovery.hot_mid_trigger is None

    @pytest.mark.parametrize("bounds", [(0, 3), (4, 3)])
    def test_invalid_length_range(self, bounds):
        with pytest.raises(ValueError):
            self._discover(DISCOVERY_HISTORY, *bounds)

    def test_hot_mid_trigger(self):
        trigger = self._discover(DISCOVERY_HISTORY).hot_mid_trigger
        assert trigger.multiplier_range == "3.00x - 3.99x"
        assert trigger.count == 2

    def test_hot_mid_trigger_picks_most_frequent(self):
        from roundlens.engines.pattern_engine import PatternEngine

        outcomes = _outcomes([5.5, 20.0, 2.1, 11.0, 2.9, 14.0, 3.0, 1.1])
        trigger = PatternEngine.hot_mid_trigger(outcomes)
        assert (trigger.multiplier_range, trigger.count) == ("2.00x - 2.99x", 2)


class TestNextTierDistribution:

    def test_counts(self):
        from roundlens.engines.pattern_engine import PatternEngine
        from roundlens.models import Tier

        dist = PatternEngine().next_tier_distribution(
            [Tier.LOW, Tier.MID], _outcomes(DISCOVERY_HISTORY),
        )
        assert dist.occurrences == 3
        assert (dist.low, dist.mid, dist.high) == (1, 0, 2)

    def test_plain_names_and_empty(self):
        from roundlens.engines.pattern_engine import PatternEngine

        engine = PatternEngine()
        assert engine.next_tier_distribution(["high"], _outcomes(DISCOVERY_HISTORY)).mid == 0
        assert engine.next_tier_distribution(["high"], _outcomes(DISCOVERY_HISTORY)).low == 2
        assert engine.next_tier_distribution([], _outcomes(DISCOVERY_HISTORY)).occurrences == 0


class TestCatalogedPattern:

    def test_trigger_and_expected(self):
        from roundlens.models import CatalogedPattern, Tier

        pattern = CatalogedPattern(pattern=("low", "mid", "high"))
        assert pattern.trigger == (Tier.LOW, Tier.MID)
        assert pattern.expected is Tier.HIGH
        assert CatalogedPattern().expected is None
