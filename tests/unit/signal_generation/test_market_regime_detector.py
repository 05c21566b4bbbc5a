"""
Unit tests for the market regime detector.
"""

from unittest.mock import Mock

import pytest

from mtf_confluence.analysis.market_regime import (
    Bias, MarketState, RegimeResult, RegimeSignalType,
)
from mtf_confluence.signal_generation.components import MarketRegimeDetector
from mtf_confluence.signal_generation.components.exhaustion_detector import ExhaustionResult
from mtf_confluence.signal_generation.core import PeriodSnapshot, SignalType


@pytest.fixture
def detector(config_dict):
    return MarketRegimeDetector(
        config_dict["market_regime"],
        exhaustion_config=config_dict["exhaustion_detector"],
        pullback_config=config_dict["pullback_zone"],
        validator_config=config_dict["signal_validator"],
    )


@pytest.mark.unit
def test_detector_initialization(detector):
    assert detector.coarse_period == "4h"
    assert detector.fine_period == "1h"
    assert detector.block_on_exhaustion is True
    assert detector.get_current_analysis() is None
    assert detector.get_regime_duration() == 0


@pytest.mark.unit
def test_missing_snapshots_give_no_trade(detector):
    """Without data every reading falls back to its default."""
    analysis = detector.detect(None, None)

    assert analysis.result.market_state == MarketState.NO_TRADE
    assert analysis.result.reason_blocked == "No clear market structure"
    assert not analysis.result.trade_allowed
    assert analysis.result.confidence_score == 0.0
    assert analysis.signal == SignalType.HOLD
    assert analysis.entry_quality is None
    assert analysis.exhaustion is None


@pytest.mark.unit
def test_veto(detector, rising_candles):
    coarse = PeriodSnapshot.from_candles("4h", rising_candles)

    analysis = detector.detect(coarse, coarse, veto=True)

    assert analysis.result.market_state == MarketState.NO_TRADE
    assert not analysis.result.trade_allowed


@pytest.mark.unit
def test_overextended_uptrend_is_exhaustion(detector, rising_candles):
    """A straight-line rally pins the oscillator and is not tradable."""
    snapshot = PeriodSnapshot.from_candles("4h", rising_candles)

    analysis = detector.detect(snapshot, snapshot)

    assert analysis.coarse.structural_bias == Bias.BULLISH
    assert analysis.fine.momentum_bias == Bias.BULLISH
    assert analysis.result.market_state == MarketState.EXHAUSTION
    assert not analysis.result.trade_allowed
    assert analysis.entry_quality is not None
    assert analysis.summary()["state"] == "EXHAUSTION"


@pytest.mark.unit
def test_exhaustion_blocks_allowed_trade(detector, rising_candles):
    snapshot = PeriodSnapshot.from_candles("4h", rising_candles)
    detector.classifier.classify = Mock(return_value=RegimeResult(
        market_state=MarketState.STRONG_BULL_TREND,
        signal_type=RegimeSignalType.TREND_CONTINUATION,
        trade_allowed=True,
        final_bias=Bias.BULLISH,
        confidence_score=90.0,
    ))
    detector.exhaustion_detector.detect = Mock(return_value=ExhaustionResult(
        exhausted=True, signals=2, reasons=("MACD losing strength", "Rejection candle"), strength=0.5,
    ))

    analysis = detector.detect(snapshot, snapshot)

    assert not analysis.result.trade_allowed
    assert analysis.result.reason_blocked == "Exhaustion signs: MACD losing strength, Rejection candle"
    assert analysis.exhaustion.exhausted


@pytest.mark.unit
def test_pullback_computes_zone(detector, make_candles):
    closes = [100.0 + i for i in range(40)] + [138.0, 137.0, 136.0, 137.5]
    candles = make_candles(closes)
    snapshot = PeriodSnapshot.from_candles("1h", candles)
    detector.classifier.classify = Mock(return_value=RegimeResult(
        market_state=MarketState.BULLISH_CORRECTION,
        signal_type=RegimeSignalType.PULLBACK,
        trade_allowed=True,
        final_bias=Bias.BULLISH,
    ))
    detector.exhaustion_detector.detect = Mock(return_value=ExhaustionResult(exhausted=False))

    analysis = detector.detect(snapshot, snapshot)

    assert analysis.pullback_zone is not None
    assert analysis.pullback_zone.zone_type == "PULLBACK_BUY"
    assert analysis.pullback_zone.created_at == candles[-1].timestamp


@pytest.mark.unit
@pytest.mark.parametrize("score,expected", [
    (80.0, {"structure": 30.0, "momentum": 25.0, "confirmation": 15.0}),
    (20.0, {"structure": 20.0, "momentum": 30.0, "confirmation": 20.0}),
    (50.0, {"structure": 25.0, "momentum": 20.0, "confirmation": 15.0}),
])
def test_dynamic_weights(detector, score, expected):
    assert detector.adjust_dynamic_weights(score) == expected


@pytest.mark.unit
def test_history_and_stability(detector):
    for _ in range(3):
        detector.detect(None, None)

    assert len(detector.get_regime_history()) == 3
    assert detector.is_regime_stable(3)
    assert not detector.is_regime_stable(4)
    assert detector.get_regime_duration() == 3


@pytest.mark.unit
def test_history_is_bounded(config_dict):
    detector = MarketRegimeDetector({**config_dict["market_regime"], "max_history_size": 2})

    for _ in range(5):
        detector.detect(None, None)

    assert len(detector.get_regime_history()) == 2
