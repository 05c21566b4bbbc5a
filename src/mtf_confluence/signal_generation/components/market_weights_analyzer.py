"""
Market Weights Analyzer component for the Multi-Timeframe Confluence Engine.

Classifies the recent tape of one period (consolidation, volatility,
momentum burst, trend or neutral) and derives the sensitivity and
aggressiveness multipliers used when corroborating a decision, together with
the relative emphasis on trend-strength, indicators and periods.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence

import numpy as np

from ..core import Candle
from .. import indicators
from ...utils.logging import get_logger

logger = get_logger(__name__)


class MarketCondition(Enum):
    """Condition of the recent tape, checked in declaration order."""
    CONSOLIDATION = "CONSOLIDATION"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"
    STRONG_UP_MOMENTUM = "STRONG_UP_MOMENTUM"
    STRONG_DOWN_MOMENTUM = "STRONG_DOWN_MOMENTUM"
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    VOLATILE = "VOLATILE"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class WeightAdjustments:
    """Relative emphasis on each family of inputs."""
    trend_strength: float = 1.0
    indicators: float = 1.0
    periods: float = 1.0


@dataclass(frozen=True)
class MarketWeights:
    """
    Outcome of one market weights analysis.

    Attributes:
        condition: Market condition
        trend_score: -1 (below both means) to 1 (above both means)
        volatility_pct: Mean candle range in percent of the close
        momentum: Percent change over four bars, divided by ten
        consolidation: 1 for a tight range, 0.5 for a narrow one, else 0
        trend_label: STRONG, MODERATE or WEAK
        volatility_label: HIGH, MEDIUM or LOW
        sensitivity: Sensitivity multiplier
        aggressiveness: Aggressiveness multiplier
        adjustments: Emphasis multipliers for the condition
        from_defaults: Whether there were too few candles to analyze
    """
    condition: MarketCondition
    trend_score: float
    volatility_pct: float
    momentum: float
    consolidation: float
    trend_label: str
    volatility_label: str
    sensitivity: float
    aggressiveness: float
    adjustments: WeightAdjustments = field(default_factory=WeightAdjustments)
    from_defaults: bool = False
    timestamp: float = field(default_factory=time.time, compare=False)


class MarketWeightsAnalyzer:
    """Derives corroboration multipliers from the market condition."""

    def __init__(self, config: Dict):
        """
        Initialize the market weights analyzer.

        Args:
            config: Configuration dictionary with market weights parameters
        """
        self.config = config

        self.min_candles = config.get("min_candles", 50)
        self.default_sensitivity = config.get("default_sensitivity", 1.3)
        self.default_aggressiveness = config.get("default_aggressiveness", 1.2)

        self.volatility_lookback = config.get("volatility_lookback", 10)
        self.momentum_lookback = config.get("momentum_lookback", 5)
        self.consolidation_lookback = config.get("consolidation_lookback", 20)
        self.tight_range_ratio = config.get("tight_range_ratio", 0.005)
        self.narrow_range_ratio = config.get("narrow_range_ratio", 0.01)

        self.consolidation_threshold = config.get("consolidation_threshold", 0.7)
        self.high_volatility_pct = config.get("high_volatility_pct", 2.0)
        self.momentum_threshold = config.get("momentum_threshold", 2.0)
        self.trend_threshold = config.get("trend_threshold", 0.3)
        self.volatile_pct = config.get("volatile_pct", 1.0)

        self.strong_trend_label = config.get("strong_trend_label", 0.3)
        self.moderate_trend_label = config.get("moderate_trend_label", 0.15)
        self.high_volatility_label = config.get("high_volatility_label", 1.5)
        self.medium_volatility_label = config.get("medium_volatility_label", 0.5)

        # [trend_strength, indicators, periods, sensitivity, aggressiveness]
        self.condition_adjustments = config.get("condition_adjustments", {
            "CONSOLIDATION": [0.6, 0.8, 1.0, 1.1, 0.8],
            "HIGH_VOLATILITY": [1.0, 1.0, 0.9, 1.0, 0.9],
            "UPTREND": [1.2, 1.3, 1.2, 1.3, 1.3],
            "DOWNTREND": [1.2, 1.3, 1.2, 1.3, 1.3],
            "STRONG_UP_MOMENTUM": [1.0, 1.5, 1.1, 1.5, 1.7],
            "STRONG_DOWN_MOMENTUM": [1.0, 1.5, 1.1, 1.5, 1.7],
            "VOLATILE": [0.9, 1.1, 1.0, 1.1, 1.0],
            "NEUTRAL": [0.8, 1.1, 1.1, 1.1, 1.1],
        })

        # Analysis history
        self.weights_history: List[MarketWeights] = []
        self.max_history_size = config.get("max_history_size", 100)

    def analyze(self, candles: Sequence[Candle]) -> MarketWeights:
        """
        Classify the market and derive its weights.

        Args:
            candles: Candles ordered oldest first

        Returns:
            MarketWeights: Weights for the condition, or the defaults when
            fewer than ``min_candles`` candles are available
        """
        if not candles or len(candles) < self.min_candles:
            return self.default_weights()

        arrays = indicators.candles_to_arrays(candles)
        high, low, close = arrays["high"], arrays["low"], arrays["close"]

        trend = self.trend_score(close)
        volatility = self.volatility(high, low, close)
        momentum = self.momentum(close)
        consolidation = self.consolidation(high, low, close)

        condition = self.classify(trend, volatility, momentum, consolidation)
        trend_strength, indicator_weight, periods, sensitivity, aggressiveness = (
            self.condition_adjustments.get(condition.value, self.condition_adjustments["NEUTRAL"])
        )

        weights = MarketWeights(
            condition=condition,
            trend_score=trend,
            volatility_pct=volatility,
            momentum=momentum,
            consolidation=consolidation,
            trend_label=self.trend_label(trend),
            volatility_label=self.volatility_label(volatility),
            sensitivity=sensitivity,
            aggressiveness=aggressiveness,
            adjustments=WeightAdjustments(trend_strength, indicator_weight, periods),
        )

        logger.debug(
            "Market weights analyzed",
            condition=condition.value,
            sensitivity=sensitivity,
            aggressiveness=aggressiveness,
        )

        self.weights_history.append(weights)
        if len(self.weights_history) > self.max_history_size:
            self.weights_history = self.weights_history[-self.max_history_size:]

        return weights

    def default_weights(self) -> MarketWeights:
        """Weights used when there is too little data."""
        return MarketWeights(
            condition=MarketCondition.NEUTRAL,
            trend_score=0.0,
            volatility_pct=0.0,
            momentum=0.0,
            consolidation=0.0,
            trend_label="MODERATE",
            volatility_label="MEDIUM",
            sensitivity=self.default_sensitivity,
            aggressiveness=self.default_aggressiveness,
            from_defaults=True,
        )

    def classify(self, trend: float, volatility: float, momentum: float,
                 consolidation: float) -> MarketCondition:
        """First matching condition, from consolidation down to neutral."""
        if consolidation > self.consolidation_threshold:
            return MarketCondition.CONSOLIDATION
        if volatility > self.high_volatility_pct:
            return MarketCondition.HIGH_VOLATILITY
        if abs(momentum) > self.momentum_threshold:
            return MarketCondition.STRONG_UP_MOMENTUM if momentum > 0 else MarketCondition.STRONG_DOWN_MOMENTUM
        if trend > self.trend_threshold:
            return MarketCondition.UPTREND
        if trend < -self.trend_threshold:
            return MarketCondition.DOWNTREND
        if volatility > self.volatile_pct:
            return MarketCondition.VOLATILE
        return MarketCondition.NEUTRAL

    @staticmethod
    def trend_score(close: np.ndarray) -> float:
        """Position of the last close against a short and a long mean."""
        n = len(close)
        if n < 20:
            return 0.0
        short = min(10, n // 5)
        long = min(20, n // 2)
        price = close[-1]
        above = (0.5 if price > np.mean(close[-short:]) else 0.0) + (0.5 if price > np.mean(close[-long:]) else 0.0)
        return above * 2.0 - 1.0

    def volatility(self, high: np.ndarray, low: np.ndarray, close: np.ndarray) -> float:
        lookback = self.volatility_lookback
        if len(close) < lookback:
            return 0.0
        h, l, c = high[-lookback:], low[-lookback:], close[-lookback:]
        valid = c > 0
        if not valid.any():
            return 0.0
        return float(np.mean((h[valid] - l[valid]) / c[valid] * 100.0))

    def momentum(self, close: np.ndarray) -> float:
        lookback = self.momentum_lookback
        if len(close) < lookback or close[-lookback] <= 0:
            return 0.0
        return float((close[-1] - close[-lookback]) / close[-lookback] * 100.0 / 10.0)

    def consolidation(self, high: np.ndarray, low: np.ndarray, close: np.ndarray) -> float:
        lookback = self.consolidation_lookback
        if len(close) < lookback:
            return 0.0
        average_close = float(np.mean(close[-lookback:]))
        if average_close <= 0:
            return 0.0
        ratio = float(np.mean(high[-lookback:] - low[-lookback:])) / average_close
        if ratio < self.tight_range_ratio:
            return 1.0
        if ratio < self.narrow_range_ratio:
            return 0.5
        return 0.0

    def trend_label(self, trend: float) -> str:
        if abs(trend) > self.strong_trend_label:
            return "STRONG"
        if abs(trend) > self.moderate_trend_label:
            return "MODERATE"
        return "WEAK"

    def volatility_label(self, volatility: float) -> str:
        if volatility > self.high_volatility_label:
            return "HIGH"
        if volatility > self.medium_volatility_label:
            return "MEDIUM"
        return "LOW"

    def get_condition_distribution(self) -> Dict[str, int]:
        """Count of each condition across the recorded history."""
        distribution: Dict[str, int] = {}
        for weights in self.weights_history:
            key = weights.condition.value
            distribution[key] = distribution.get(key, 0) + 1
        return distribution
