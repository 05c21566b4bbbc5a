"""
Unit tests for the market weights analyzer.
"""

import pytest

from mtf_confluence.signal_generation.components import (
    MarketCondition, MarketWeightsAnalyzer, WeightAdjustments,
)


@pytest.fixture
def weights_analyzer(config_dict):
    return MarketWeightsAnalyzer(config_dict["market_weights"])


class TestMarketWeightsAnalyzer:
    """Test the MarketWeightsAnalyzer component."""

    def test_defaults_with_few_candles(self, weights_analyzer, make_candles):
        weights = weights_analyzer.analyze(make_candles([100.0] * 49))

        assert weights.from_defaults
        assert weights.condition == MarketCondition.NEUTRAL
        assert weights.sensitivity == 1.3
        assert weights.aggressiveness == 1.2
        assert weights.adjustments == WeightAdjustments()
        assert weights_analyzer.weights_history == []

    def test_uptrend(self, weights_analyzer, rising_candles):
        weights = weights_analyzer.analyze(rising_candles)

        assert not weights.from_defaults
        assert weights.condition == MarketCondition.UPTREND
        assert weights.trend_score == 1.0
        assert weights.trend_label == "STRONG"
        assert weights.volatility_pct == pytest.approx(1.19, abs=0.01)
        assert weights.volatility_label == "MEDIUM"
        assert weights.consolidation == 0.0
        assert weights.sensitivity == 1.3
        assert weights.aggressiveness == 1.3
        assert weights.adjustments == WeightAdjustments(1.2, 1.3, 1.2)

    def test_downtrend(self, weights_analyzer, falling_candles):
        weights = weights_analyzer.analyze(falling_candles)

        assert weights.condition == MarketCondition.DOWNTREND
        assert weights.trend_score == -1.0
        assert weights.momentum < 0

    def test_flat_market_is_consolidation(self, weights_analyzer, make_candles):
        weights = weights_analyzer.analyze(make_candles([100.0] * 60))

        assert weights.condition == MarketCondition.CONSOLIDATION
        assert weights.consolidation == 1.0
        assert weights.volatility_label == "LOW"
        assert weights.sensitivity == 1.1
        assert weights.aggressiveness == 0.8
        assert weights.adjustments == WeightAdjustments(0.6, 0.8, 1.0)

    @pytest.mark.parametrize("trend,volatility,momentum,consolidation,expected", [
        (0.0, 0.2, 0.0, 1.0, MarketCondition.CONSOLIDATION),
        (1.0, 2.5, 3.0, 0.5, MarketCondition.HIGH_VOLATILITY),
        (1.0, 1.0, 2.5, 0.0, MarketCondition.STRONG_UP_MOMENTUM),
        (1.0, 1.0, -2.5, 0.0, MarketCondition.STRONG_DOWN_MOMENTUM),
        (1.0, 1.2, 0.0, 0.5, MarketCondition.UPTREND),
        (-1.0, 0.4, 0.0, 0.0, MarketCondition.DOWNTREND),
        (0.0, 1.2, 0.0, 0.0, MarketCondition.VOLATILE),
        (0.0, 0.4, 0.0, 0.0, MarketCondition.NEUTRAL),
    ])
    def test_classify_order(self, weights_analyzer, trend, volatility, momentum, consolidation, expected):
        assert weights_analyzer.classify(trend, volatility, momentum, consolidation) == expected

    def test_labels(self, weights_analyzer):
        assert weights_analyzer.trend_label(-0.5) == "STRONG"
        assert weights_analyzer.trend_label(0.2) == "MODERATE"
        assert weights_analyzer.trend_label(0.1) == "WEAK"
        assert weights_analyzer.volatility_label(1.6) == "HIGH"
        assert weights_analyzer.volatility_label(0.6) == "MEDIUM"
        assert weights_analyzer.volatility_label(0.5) == "LOW"

    def test_history_and_distribution(self, config_dict, rising_candles, falling_candles):
        analyzer = MarketWeightsAnalyzer({**config_dict["market_weights"], "max_history_size": 2})

        analyzer.analyze(rising_candles)
        analyzer.analyze(rising_candles)
        analyzer.analyze(falling_candles)

        assert len(analyzer.weights_history) == 2
        assert analyzer.get_condition_distribution() == {"UPTREND": 1, "DOWNTREND": 1}
