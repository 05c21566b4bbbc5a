"""
Unit tests for core signal generation data structures.
"""

import json
import math

import pytest
from mtf_confluence.signal_generation.core import (
    Candle, PeriodSnapshot, PeriodAnalysis, Decision, TradeLevels, ForceScore,
    ForceWinner, SignalType, ConfidenceLabel, TrendStrength, AlignedSequence,
)


def _levels(price: float = 100.0) -> TradeLevels:
    return TradeLevels(
        entry=price,
        supports=(price, price, price),
        resistances=(price, price, price),
        stop_loss=price,
        targets=(price, price),
    )


class TestSignalType:
    """Test the SignalType enum."""

    def test_aliases(self):
        """CALL and PUT are aliases of BUY and SELL."""
        assert SignalType.CALL is SignalType.BUY
        assert SignalType.PUT is SignalType.SELL
        assert SignalType("BUY") is SignalType.CALL

    def test_is_directional(self):
        assert SignalType.BUY.is_directional
        assert SignalType.SELL.is_directional
        assert not SignalType.HOLD.is_directional


class TestCandle:
    """Test the Candle data class."""

    def test_candle_properties(self):
        candle = Candle(open=100.0, high=105.0, low=98.0, close=103.0, volume=10.0)

        assert candle.body == 3.0
        assert candle.range == 7.0
        assert candle.is_bullish
        assert not candle.is_bearish

    def test_candle_from_dict(self):
        candle = Candle.from_dict({"open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5})

        assert candle.close == 1.5
        assert candle.volume == 0.0
        assert candle.timestamp is None

    def test_candle_from_dict_coerces_strings(self):
        candle = Candle.from_dict({
            "open": "1.0", "high": "2.5", "low": "0.5", "close": "abc", "volume": "10", "timestamp": "1700000000",
        })

        assert candle.open == 1.0
        assert candle.high == 2.5
        assert candle.volume == 10.0
        assert candle.timestamp == 1_700_000_000.0
        assert math.isnan(candle.close)

    def test_from_candles_coerces_price(self):
        snapshot = PeriodSnapshot.from_candles("1h", [{"open": "1", "high": "2", "low": "1", "close": "1.5"}], "1.75")

        assert snapshot.price == 1.75
        assert snapshot.candles[0].close == 1.5


class TestPeriodSnapshot:
    """Test snapshot builders."""

    def test_from_candles_defaults_price_to_last_close(self):
        snapshot = PeriodSnapshot.from_candles("1h", [
            {"open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5},
            {"open": 1.5, "high": 2.5, "low": 1.0, "close": 2.0},
        ])

        assert snapshot.period == "1h"
        assert snapshot.price == 2.0
        assert len(snapshot.candles) == 2
        assert isinstance(snapshot.candles[0], Candle)

    def test_from_candles_empty(self):
        snapshot = PeriodSnapshot.from_candles("4h", [])

        assert snapshot.price == 0.0
        assert snapshot.candles == ()

    def test_from_dataframe(self, sample_ohlc_data):
        snapshot = PeriodSnapshot.from_dataframe("1h", sample_ohlc_data)

        assert len(snapshot.candles) == len(sample_ohlc_data)
        assert snapshot.price == pytest.approx(sample_ohlc_data["close"].iloc[-1])
        assert snapshot.candles[0].timestamp == sample_ohlc_data.index[0].timestamp()


class TestPeriodAnalysis:
    """Test the PeriodAnalysis data class."""

    def test_analysis_validation(self):
        """Test analysis validation."""
        with pytest.raises(ValueError, match="Strength must be between 0 and 100"):
            PeriodAnalysis(period="1h", price=1.0, signal=SignalType.BUY, strength=120.0,
                           trend=TrendStrength.WEAK, oscillator=50.0, trend_strength=20.0)

        with pytest.raises(ValueError, match="Oscillator must be between 0 and 100"):
            PeriodAnalysis(period="1h", price=1.0, signal=SignalType.BUY, strength=10.0,
                           trend=TrendStrength.WEAK, oscillator=-1.0, trend_strength=20.0)

        with pytest.raises(ValueError, match="Price must be non-negative"):
            PeriodAnalysis(period="1h", price=-1.0, signal=SignalType.BUY, strength=10.0,
                           trend=TrendStrength.WEAK, oscillator=50.0, trend_strength=20.0)

    def test_neutral_analysis(self):
        analysis = PeriodAnalysis.neutral("15m")

        assert analysis.signal == SignalType.HOLD
        assert analysis.strength == 0.0
        assert analysis.trend == TrendStrength.LATERAL
        assert analysis.oscillator == 50.0
        assert analysis.trend_strength == 20.0
        assert not analysis.volume.confirmed


class TestForceAndSequences:
    """Test helpers on force scores and sequences."""

    def test_winning_signal(self):
        assert ForceScore(buy_force=70, sell_force=30, winner=ForceWinner.BUY).winning_signal == SignalType.BUY
        assert ForceScore(buy_force=30, sell_force=70, winner=ForceWinner.SELL).winning_signal == SignalType.SELL
        assert ForceScore().winning_signal == SignalType.HOLD

    def test_sequence_length(self):
        sequence = AlignedSequence(periods=("24h", "4h", "1h"), signal=SignalType.BUY,
                                   strength=120.0, description="3 aligned periods")
        assert len(sequence) == 3


class TestDecision:
    """Test the Decision data class."""

    def test_probability_validation(self):
        with pytest.raises(ValueError, match="Probability must be between 10 and 90"):
            Decision(final_signal=SignalType.BUY, probability=95.0,
                     confidence=ConfidenceLabel.VERY_HIGH, action="x", levels=_levels())

    def test_equality_ignores_timestamp(self):
        first = Decision(final_signal=SignalType.HOLD, probability=50.0,
                         confidence=ConfidenceLabel.LOW, action="x", levels=_levels())
        second = Decision(final_signal=SignalType.HOLD, probability=50.0,
                          confidence=ConfidenceLabel.LOW, action="x", levels=_levels())

        assert first == second

    def test_decision_to_dict(self):
        decision = Decision(
            final_signal=SignalType.SELL,
            probability=30.0,
            confidence=ConfidenceLabel.VERY_LOW,
            action="SELL on rallies",
            levels=_levels(),
            alerts=("alert",),
        )

        decision_dict = decision.to_dict()

        assert decision_dict["final_signal"] == "SELL"
        assert decision_dict["confidence"] == "VERY_LOW"
        assert decision_dict["levels"]["targets"] == [100.0, 100.0]
        assert decision_dict["alerts"] == ["alert"]
        assert isinstance(decision_dict["timestamp"], str)
        json.dumps(decision_dict)
