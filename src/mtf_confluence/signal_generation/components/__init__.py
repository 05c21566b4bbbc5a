"""
Components for the Multi-Timeframe Signal Generation Framework.

This module contains the individual components that work together to fuse
per-period analyses into a decision and to classify the market regime.
"""

from .period_analyzer import PeriodAnalyzer
from .hierarchy_builder import HierarchyBuilder
from .divergence_detector import DivergenceDetector
from .sequence_detector import SequenceDetector
from .force_aggregator import ForceAggregator
from .priority_cascade import PriorityRuleCascade
from .probability_estimator import ProbabilityEstimator, Corroboration
from .level_planner import LevelPlanner
from .dual_trend_analyzer import DualTrendAnalyzer, DualTrendResult
from .market_weights_analyzer import MarketWeightsAnalyzer, MarketWeights, MarketCondition, WeightAdjustments
from .signal_validator import SignalValidator
from .exhaustion_detector import ExhaustionDetector
from .pullback_zone_calculator import PullbackZoneCalculator
from .market_regime_detector import MarketRegimeDetector, RegimeAnalysis

__all__ = [
    "PeriodAnalyzer",
    "HierarchyBuilder",
    "DivergenceDetector",
    "SequenceDetector",
    "ForceAggregator",
    "PriorityRuleCascade",
    "ProbabilityEstimator",
    "Corroboration",
    "LevelPlanner",
    "DualTrendAnalyzer",
    "DualTrendResult",
    "MarketWeightsAnalyzer",
    "MarketWeights",
    "MarketCondition",
    "WeightAdjustments",
    "SignalValidator",
    "ExhaustionDetector",
    "PullbackZoneCalculator",
    "MarketRegimeDetector",
    "RegimeAnalysis",
]
