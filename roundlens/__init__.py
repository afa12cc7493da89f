"""
RoundLens — Sequential Outcome Analysis Engine

Pure, stateless analytics over time-ordered game-round multipliers.

Usage:
    from roundlens import analyze, parse_outcomes

    outcomes = parse_outcomes(records)
    result = analyze(outcomes)
"""

from roundlens.engines.analysis_engine import AnalysisEngine, analyze, get_analysis_engine
from roundlens.engines.classifier import classify
from roundlens.errors import OutcomeValidationError, RoundLensError
from roundlens.models import (
    AnalysisResult,
    CatalogDiscovery,
    CatalogedPattern,
    MarketState,
    Outcome,
    PatternCatalog,
    Tier,
)
from roundlens.utils.validators import parse_outcomes

__version__ = "1.0.0"

__all__ = [
    "AnalysisEngine",
    "AnalysisResult",
    "CatalogDiscovery",
    "CatalogedPattern",
    "MarketState",
    "Outcome",
    "OutcomeValidationError",
    "PatternCatalog",
    "RoundLensError",
    "Tier",
    "analyze",
    "classify",
    "get_analysis_engine",
    "parse_outcomes",
]
