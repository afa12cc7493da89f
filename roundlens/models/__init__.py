"""
RoundLens — Pydantic Models

All input and output schemas. Engines consume ``Outcome`` lists and return
these models; ``AnalysisResult`` is the single aggregate handed to callers.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class Tier(str, Enum):
    """Ordinal category of a payout multiplier (Blue / Purple / Pink)."""
    LOW = "low"
    MID = "mid"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {Tier.LOW: 0, Tier.MID: 1, Tier.HIGH: 2}


class MarketState(str, Enum):
    """Recency-weighted market heat."""
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"
    VERY_HOT = "very_hot"


class HighPressureLevel(str, Enum):
    LOW = "low"
    BUILDING = "building"
    IMMINENT = "imminent"
    CRITICAL = "critical"


class MidPressureLevel(str, Enum):
    LOW = "low"
    BUILDING = "building"
    HIGH = "high"
    CRITICAL = "critical"


class PauseRiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ──────────────────────────────────────────────
# Input Models
# ──────────────────────────────────────────────

class Outcome(BaseModel):
    """Single recorded round: payout multiplier plus its timestamp.

    ``index`` is the position in the time-ordered input list and is the only
    basis for interval / streak math.
    """
    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0)
    date: dt.date
    time: dt.time
    index: int = Field(ge=0)

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}-{self.time.isoformat()}-{self.value:.2f}-{self.index}"

    @property
    def minute(self) -> int:
        return self.time.minute


class CatalogedPattern(BaseModel):
    """Externally supplied tier sequence; the last tier is the expected outcome."""
    model_config = ConfigDict(frozen=True)

    pattern: tuple[Tier, ...] = ()
    name: Optional[str] = None

    @property
    def trigger(self) -> tuple[Tier, ...]:
        return self.pattern[:-1]

    @property
    def expected(self) -> Optional[Tier]:
        return self.pattern[-1] if self.pattern else None


class PatternCatalog(BaseModel):
    """Read-only snapshot of winning / losing cataloged patterns."""
    model_config = ConfigDict(frozen=True)

    winning: tuple[CatalogedPattern, ...] = ()
    losing: tuple[CatalogedPattern, ...] = ()

    def __len__(self) -> int:
        return len(self.winning) + len(self.losing)


# ──────────────────────────────────────────────
# Summary Models
# ──────────────────────────────────────────────

class ExtremeTierReport(BaseModel):
    """How many Highs land between consecutive extreme multipliers."""
    threshold: float
    upper_threshold: Optional[float] = None
    average_highs: float = 5.0
    counts: list[int] = []
    last_count: int = 0
    has_over_20x: bool = False
    has_over_50x: bool = False


class PauseDetails(BaseModel):
    current: int = 0
    average: float = 0.0
    threshold: int = 25


class AnalysisSummary(BaseModel):
    """Aggregate counts, streaks and market heat."""
    total_plays: int = 0
    high_count: int = 0
    mid_count: int = 0
    low_count: int = 0
    plays_since_last_high: int = 0
    average_high_interval: float = 0.0
    current_low_streak: int = 0
    current_non_low_streak: int = 0
    market_state: MarketState = MarketState.COLD
    market_state_percentage: int = 15
    is_market_paused: bool = False
    pause_details: PauseDetails = Field(default_factory=PauseDetails)
    short_term_volatility: float = 0.0
    last_high_multiplier: Optional[float] = None
    average_mid_multiplier: float = 2.5
    next_play_column: Optional[int] = None
    highs_since_last_50x: int = 0
    highs_since_last_100x: int = 0
    highs_since_last_1000x: int = 0
    extreme_50x: ExtremeTierReport = Field(default_factory=lambda: ExtremeTierReport(threshold=50.0, upper_threshold=100.0))
    extreme_100x: ExtremeTierReport = Field(default_factory=lambda: ExtremeTierReport(threshold=100.0, upper_threshold=1000.0))
    extreme_1000x: ExtremeTierReport = Field(default_factory=lambda: ExtremeTierReport(threshold=1000.0))


# ──────────────────────────────────────────────
# Hot-Spot Models
# ──────────────────────────────────────────────

class HouseCount(BaseModel):
    house: int = Field(ge=1, le=25)
    count: int = 0


class ColumnCount(BaseModel):
    column: int = Field(ge=1, le=7)
    count: int = 0
    last_time: dt.time


class MinuteCount(BaseModel):
    minute: str  # ":MM"
    count: int


class HourFrequency(BaseModel):
    hour: str  # "HH:00"
    low: int = 0
    mid: int = 0
    high: int = 0


class HotSpots(BaseModel):
    """Frequency rankings over intervals, columns and clock minutes."""
    high_intervals: list[int] = []
    house_ranking: list[HouseCount] = []
    hottest_houses: list[int] = []
    repeating_houses: list[int] = []
    non_repeating_houses: list[int] = []
    repeating_house_sequence: Optional[list[int]] = None
    column_ranking: list[ColumnCount] = []
    hottest_minutes: list[str] = []
    hottest_high_minutes: list[MinuteCount] = []
    hottest_mid_minutes: list[MinuteCount] = []
    hottest_50x_minutes: list[str] = []
    hottest_100x_minutes: list[str] = []
    hottest_1000x_minutes: list[str] = []
    hour_frequency: list[HourFrequency] = []


# ──────────────────────────────────────────────
# Pause & Pressure Models
# ──────────────────────────────────────────────

class PauseEpisode(BaseModel):
    """A run of at least 25 outcomes between two High events."""
    id: str
    duration: int
    start_index: int
    start_time: dt.time
    end_time: dt.time
    outcomes: list[Outcome] = []
    probable_trigger: str


class HighPressure(BaseModel):
    level: HighPressureLevel = HighPressureLevel.LOW
    percentage: float = Field(0.0, ge=0, le=100)
    factors: list[str] = []


class MidPressure(BaseModel):
    level: MidPressureLevel = MidPressureLevel.LOW
    percentage: float = Field(0.0, ge=0, le=100)
    factors: list[str] = []


class PauseRisk(BaseModel):
    level: PauseRiskLevel = PauseRiskLevel.LOW
    percentage: float = Field(0.0, ge=0, le=100)
    factors: list[str] = []


# ──────────────────────────────────────────────
# Technical Indicator Models
# ──────────────────────────────────────────────

class TechnicalIndicatorSeries(BaseModel):
    """Index-aligned indicator arrays; ``None`` during warm-up."""
    sma: list[Optional[float]] = []
    bollinger_upper: list[Optional[float]] = []
    bollinger_lower: list[Optional[float]] = []
    rsi: list[Optional[float]] = []
    confidence: list[Optional[float]] = []


# ──────────────────────────────────────────────
# Pattern Models
# ──────────────────────────────────────────────

class PatternOccurrence(BaseModel):
    """One match instance with bounded lookahead for later auditing."""
    id: str
    trigger_outcomes: list[Outcome]
    outcome_window: list[Outcome] = []
    distance: Optional[int] = None


class AlertWindow(BaseModel):
    start: int
    end: int


class BuiltInPatternState(BaseModel):
    name: str
    is_active: bool = False
    is_alerting: bool = False
    trigger_outcomes: list[Outcome] = []
    alert_window: AlertWindow
    countdown: int = 0
    last_distance: Optional[int] = None
    history: list[PatternOccurrence] = []


class BuiltInPatterns(BaseModel):
    immediate_repeat: BuiltInPatternState
    near_repeat: BuiltInPatternState


class PatternMatchResult(BaseModel):
    """Backtest of a single cataloged pattern over a history."""
    occurrences: int = 0
    hits: int = 0
    hit_rate: float = 0.0
    avg_multiplier: float = 0.0
    history: list[PatternOccurrence] = []


class RankedPattern(BaseModel):
    rank: int = Field(ge=1)
    name: str
    pattern: Optional[list[Tier]] = None
    occurrences: int
    hits: int
    hit_rate: float
    avg_multiplier: float
    history: Optional[list[PatternOccurrence]] = None


class TierDistribution(BaseModel):
    """Next-tier counts observed after a precursor sequence."""
    pattern: list[Tier] = []
    occurrences: int = 0
    low: int = 0
    mid: int = 0
    high: int = 0


class DiscoveredPattern(BaseModel):
    """Precursor that was followed by a Mid or High more than once.

    ``pattern`` is the precursor plus its most frequent winning tier.
    """
    pattern: list[Tier]
    win_count: int
    total_count: int
    avg_multiplier: float
    confidence: float = Field(ge=0, le=100)
    last_occurrence: list[Outcome] = []


class LosingPatternStats(BaseModel):
    """Precursor that was followed by a Low more than once."""
    pattern: list[Tier]
    loss_count: int
    total_count: int


class HotTrigger(BaseModel):
    """Whole-number Mid multiplier range that most often preceded a High."""
    multiplier_range: str  # e.g. "3.00x - 3.99x"
    count: int


class CatalogDiscovery(BaseModel):
    """Winning / losing catalog mined from history, with the stats behind it."""
    catalog: PatternCatalog = PatternCatalog()
    winning: list[DiscoveredPattern] = []
    losing: list[LosingPatternStats] = []
    hot_mid_trigger: Optional[HotTrigger] = None


# ──────────────────────────────────────────────
# Payout Run Models
# ──────────────────────────────────────────────

class PayoutRun(BaseModel):
    """Stretch of mostly non-Low outcomes holding at least one High."""
    start_time: dt.time
    end_time: dt.time
    outcomes: list[Outcome] = []


class PayoutRunReport(BaseModel):
    count: int = 0
    is_active: bool = False
    runs: list[PayoutRun] = []


# ──────────────────────────────────────────────
# Aggregate Result
# ──────────────────────────────────────────────

class AnalysisResult(BaseModel):
    """Everything one ``analyze`` call produces."""
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    hot_spots: HotSpots = Field(default_factory=HotSpots)
    indicators: TechnicalIndicatorSeries = Field(default_factory=TechnicalIndicatorSeries)
    patterns: BuiltInPatterns
    pause_history: list[PauseEpisode] = []
    high_pressure: HighPressure = Field(default_factory=HighPressure)
    mid_pressure: MidPressure = Field(default_factory=MidPressure)
    pause_risk: PauseRisk = Field(default_factory=PauseRisk)
    payout_runs: PayoutRunReport = Field(default_factory=PayoutRunReport)
    daily_ranking: Optional[list[RankedPattern]] = None
