"""
RoundLens — Fixed Analysis Constants

Hand-tuned thresholds shared by every engine. Changing any of these changes
the output of the analysis, so they are plain module constants rather than
settings.
"""

# ── Tier boundaries (inclusive lower bound) ──
MID_THRESHOLD = 2.0
HIGH_THRESHOLD = 10.0

# ── Positional bucketing ──
COLUMN_COUNT = 7
MAX_HOUSE = 25

# ── Market state ──
MARKET_WINDOW = 24
MARKET_HIGH_WEIGHT = 2.0
MARKET_MID_WEIGHT = 0.4
MARKET_VERY_HOT_SCORE = 5.0
MARKET_HOT_SCORE = 3.0
MARKET_WARM_SCORE = 1.5

# ── Pauses ──
PAUSE_THRESHOLD = 25
PAUSE_ADAPTIVE_FACTOR = 1.1
PAUSE_CLUSTER_LOOKBACK = 15
PAUSE_CLUSTER_MIN_HIGHS = 3
PAUSE_GIANT_TRIGGER = 50.0

# ── Technical indicators ──
SMA_PERIOD = 20
BOLLINGER_DEV = 2
RSI_PERIOD = 14
CONFIDENCE_WARMUP = 20
CONFIDENCE_WINDOW = 50

# ── Built-in detectors ──
IMMEDIATE_REPEAT_WINDOW = (2, 8)
NEAR_REPEAT_WINDOW = (1, 7)
NEAR_REPEAT_MAX_DISTANCE = 7

# ── Pattern matching / ranking ──
LOOKAHEAD_WINDOW = 10
RECENT_TIER_WINDOW = 10
DAILY_RANKING_MIN_OUTCOMES = 20
DAILY_RANKING_MAX_ENTRIES = 5
DAILY_RANKING_CATALOG_LIMIT = 5

# ── Extreme multipliers ──
EXTREME_TIERS = (50.0, 100.0, 1000.0)
VOLATILITY_WINDOW = 15
PAYOUT_RUN_MIN_OUTCOMES = 7
PAYOUT_RUN_BREAK_LOWS = 3

# ── Catalog discovery ──
DISCOVERY_MIN_LENGTH = 3
DISCOVERY_MAX_LENGTH = 6
DISCOVERY_TOP = 5
