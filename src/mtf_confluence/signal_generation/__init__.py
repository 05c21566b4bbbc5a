"""
Multi-Timeframe Signal Generation Framework.

This module provides a rule-based engine that turns per-period candle
snapshots into one trading decision. It includes per-period analysis, a
weighted period hierarchy, divergence and aligned sequence detection, force
aggregation, a priority rule cascade, probability estimation, level planning
and a market regime path with exhaustion, pullback and entry quality checks.
"""

from .core import (
    Candle,
    PeriodSnapshot,
    PeriodAnalysis,
    Decision,
    SignalType,
    TrendStrength,
    ConfidenceLabel,
)

from .signal_generator import MultiTimeframeSignalGenerator, CycleResult

from .components import (
    PeriodAnalyzer,
    HierarchyBuilder,
    DivergenceDetector,
    SequenceDetector,
    ForceAggregator,
    PriorityRuleCascade,
    ProbabilityEstimator,
    Corroboration,
    LevelPlanner,
    MarketRegimeDetector,
    SignalValidator,
    ExhaustionDetector,
    PullbackZoneCalculator,
)

__all__ = [
    # Core classes
    "Candle",
    "PeriodSnapshot",
    "PeriodAnalysis",
    "Decision",
    "SignalType",
    "TrendStrength",
    "ConfidenceLabel",
    # Main signal generator
    "MultiTimeframeSignalGenerator",
    "CycleResult",
    # Component classes
    "PeriodAnalyzer",
    "HierarchyBuilder",
    "DivergenceDetector",
    "SequenceDetector",
    "ForceAggregator",
    "PriorityRuleCascade",
    "ProbabilityEstimator",
    "Corroboration",
    "LevelPlanner",
    "MarketRegimeDetector",
    "SignalValidator",
    "ExhaustionDetector",
    "PullbackZoneCalculator",
]
