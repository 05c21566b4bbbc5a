"""
Unit tests for the per-period analyzer.
"""

import numpy as np
import pytest

from mtf_confluence.signal_generation.components import PeriodAnalyzer
from mtf_confluence.signal_generation.core import (
    Candle, MACDReading, MomentumTrend, PeriodSnapshot, SignalType, TrendStrength,
    VolumeConfirmation, VolumeStrength,
)


@pytest.fixture
def analyzer(config_dict):
    """A PeriodAnalyzer with the default configuration."""
    return PeriodAnalyzer(config_dict["period_analyzer"])


@pytest.mark.unit
def test_insufficient_candles_returns_neutral(analyzer, make_candles):
    snapshot = PeriodSnapshot.from_candles("1h", make_candles([100.0] * 5))

    analysis = analyzer.analyze(snapshot)

    assert analysis.signal == SignalType.HOLD
    assert analysis.strength == 0.0
    assert analysis.oscillator == 50.0
    assert analysis.trend_strength == 20.0
    assert analysis.trend == TrendStrength.LATERAL


@pytest.mark.unit
def test_uptrend_is_buy(analyzer, rising_candles):
    analysis = analyzer.analyze(PeriodSnapshot.from_candles("4h", rising_candles))

    assert analysis.signal == SignalType.BUY
    assert analysis.trend == TrendStrength.VERY_STRONG
    assert analysis.momentum_trend in (MomentumTrend.STRONG_UP, MomentumTrend.UP)
    assert 0.0 <= analysis.strength <= 100.0
    assert analysis.price == pytest.approx(rising_candles[-1].close)
    assert analysis.price_change > 0
    assert analysis.last_candle == rising_candles[-1]


@pytest.mark.unit
def test_downtrend_is_sell(analyzer, falling_candles):
    analysis = analyzer.analyze(PeriodSnapshot.from_candles("4h", falling_candles))

    assert analysis.signal == SignalType.SELL
    assert analysis.momentum_trend in (MomentumTrend.STRONG_DOWN, MomentumTrend.DOWN)
    assert analysis.price_change < 0


@pytest.mark.unit
def test_snapshot_price_takes_precedence(analyzer, rising_candles):
    analysis = analyzer.analyze(PeriodSnapshot.from_candles("4h", rising_candles, price=123.45))
    assert analysis.price == 123.45


@pytest.mark.unit
def test_analyze_all_preserves_order(analyzer, rising_candles):
    snapshots = [PeriodSnapshot.from_candles(p, rising_candles) for p in ("5m", "24h", "1h")]

    analyses = analyzer.analyze_all(snapshots)

    assert [a.period for a in analyses] == ["5m", "24h", "1h"]


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    (55.0, TrendStrength.VERY_STRONG),
    (45.0, TrendStrength.STRONG),
    (30.0, TrendStrength.MODERATE),
    (22.0, TrendStrength.WEAK),
    (10.0, TrendStrength.LATERAL),
])
def test_classify_trend(analyzer, value, expected):
    assert analyzer.classify_trend(value) == expected


@pytest.mark.unit
def test_classify_momentum(analyzer):
    assert analyzer.classify_momentum(MACDReading(1.0, 0.5, 0.5)) == MomentumTrend.STRONG_UP
    assert analyzer.classify_momentum(MACDReading(1.0, 1.0, 0.0005)) == MomentumTrend.UP
    assert analyzer.classify_momentum(MACDReading(-1.0, -0.5, -0.5)) == MomentumTrend.STRONG_DOWN
    assert analyzer.classify_momentum(MACDReading(-1.0, -1.0, -0.0005)) == MomentumTrend.DOWN
    assert analyzer.classify_momentum(MACDReading()) == MomentumTrend.NEUTRAL


@pytest.mark.unit
def test_score_strength(analyzer):
    strong_volume = VolumeConfirmation(True, "surge", VolumeStrength.STRONG, SignalType.BUY)
    no_volume = VolumeConfirmation(False, "below average")

    # tier 40 + strong momentum 30 + oscillator 10 + strong volume 15
    assert analyzer.score_strength(45.0, MomentumTrend.STRONG_UP, 50.0, SignalType.BUY, strong_volume) == 95.0
    # tier 20 + momentum 20, oscillator outside the band
    assert analyzer.score_strength(25.0, MomentumTrend.DOWN, 80.0, SignalType.SELL, no_volume) == 40.0
    # no oscillator bonus without a direction
    assert analyzer.score_strength(10.0, MomentumTrend.NEUTRAL, 50.0, SignalType.HOLD, no_volume) == 0.0


@pytest.mark.unit
def test_score_strength_is_clamped():
    analyzer = PeriodAnalyzer({"strength_tiers": [[0, 90]]})
    volume = VolumeConfirmation(True, "surge", VolumeStrength.STRONG, SignalType.BUY)

    assert analyzer.score_strength(60.0, MomentumTrend.STRONG_UP, 50.0, SignalType.BUY, volume) == 100.0


@pytest.mark.unit
def test_confirm_volume(analyzer):
    close = np.array([1.0, 2.0, 3.0, 4.0, 5.0])

    strong = analyzer.confirm_volume(close, np.array([100.0, 100.0, 100.0, 150.0, 300.0]))
    assert strong.confirmed
    assert strong.strength == VolumeStrength.STRONG
    assert strong.direction == SignalType.BUY

    medium = analyzer.confirm_volume(close, np.array([100.0, 100.0, 100.0, 100.0, 200.0]))
    assert medium.strength == VolumeStrength.MEDIUM

    below = analyzer.confirm_volume(close, np.array([100.0, 100.0, 100.0, 100.0, 50.0]))
    assert not below.confirmed

    missing = analyzer.confirm_volume(close, np.array([100.0, 0.0, 100.0, 100.0, 200.0]))
    assert not missing.confirmed
    assert missing.reason == "missing volume data"

    short = analyzer.confirm_volume(close[:3], np.array([1.0, 2.0, 3.0]))
    assert not short.confirmed


@pytest.mark.unit
def test_short_uptrend_is_buy(analyzer, make_candles):
    """Thirty candles are enough to read momentum."""
    candles = make_candles([100.0 * 1.01 ** i for i in range(30)])

    analysis = analyzer.analyze(PeriodSnapshot.from_candles("1h", candles))

    assert analysis.signal == SignalType.BUY
    assert analysis.momentum.histogram > 0


@pytest.mark.unit
def test_too_few_candles_for_momentum_is_hold(analyzer, make_candles):
    candles = make_candles([100.0 * 1.01 ** i for i in range(22)])

    analysis = analyzer.analyze(PeriodSnapshot.from_candles("1h", candles))

    assert analysis.signal == SignalType.HOLD
    assert analysis.momentum == MACDReading()
    assert analysis.last_candle == candles[-1]


@pytest.mark.unit
def test_malformed_candles_return_neutral(analyzer, make_candles):
    """Candles built directly with non-numeric fields never raise."""
    candles = make_candles([100.0 + i for i in range(25)])
    candles[10] = Candle(open="x", high="y", low=None, close="z", volume="v")

    analysis = analyzer.analyze(PeriodSnapshot(period="15m", price=120.0, candles=tuple(candles)))

    assert analysis == analyzer.neutral("15m")
