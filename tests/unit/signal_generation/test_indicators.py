"""
Unit tests for the TA-Lib indicator helpers.
"""

import numpy as np
import pytest

from mtf_confluence.signal_generation import indicators
from mtf_confluence.signal_generation.core import Candle, MACDReading


@pytest.mark.unit
def test_candles_to_arrays_fills_invalid_values():
    """Invalid prices are forward-filled and invalid volumes zeroed."""
    candles = [
        Candle(open=1.0, high=2.0, low=0.5, close=1.5, volume=10.0),
        Candle(open=float("nan"), high=float("inf"), low=0.6, close=float("nan"), volume=float("nan")),
        Candle(open=1.6, high=2.1, low=1.1, close=1.8, volume=-5.0),
    ]

    arrays = indicators.candles_to_arrays(candles)

    assert arrays["close"].tolist() == [1.5, 1.5, 1.8]
    assert arrays["open"].tolist() == [1.0, 1.0, 1.6]
    assert arrays["high"].tolist() == [2.0, 2.0, 2.1]
    assert arrays["volume"].tolist() == [10.0, 0.0, 0.0]
    assert arrays["close"].dtype == np.float64


@pytest.mark.unit
def test_candles_to_arrays_empty():
    arrays = indicators.candles_to_arrays([])
    assert len(arrays["close"]) == 0


@pytest.mark.unit
def test_short_series_use_defaults():
    """Too-short series fall back to the named defaults."""
    close = np.array([1.0, 2.0, 3.0])

    assert indicators.oscillator(close) == indicators.DEFAULT_OSCILLATOR
    assert indicators.trend_strength(close, close, close) == indicators.DEFAULT_TREND_STRENGTH
    assert indicators.momentum(close) == MACDReading()
    assert indicators.momentum_series(close) == []
    assert indicators.average_true_range(close, close, close) == indicators.DEFAULT_ATR


@pytest.mark.unit
def test_indicators_on_uptrend(rising_candles):
    """A clean uptrend saturates the oscillator and trend-strength."""
    arrays = indicators.candles_to_arrays(rising_candles)

    rsi = indicators.oscillator(arrays["close"])
    adx = indicators.trend_strength(arrays["high"], arrays["low"], arrays["close"])
    macd = indicators.momentum(arrays["close"])
    atr = indicators.average_true_range(arrays["high"], arrays["low"], arrays["close"])

    assert rsi == pytest.approx(100.0)
    assert adx > 50.0
    assert macd.macd > 0
    assert macd.histogram > 0
    assert atr > 0


@pytest.mark.unit
def test_momentum_series_drops_warmup(rising_candles):
    arrays = indicators.candles_to_arrays(rising_candles)

    series = indicators.momentum_series(arrays["close"])

    assert 0 < len(series) < len(rising_candles)
    assert series[-1] == indicators.momentum(arrays["close"])


@pytest.mark.unit
def test_momentum_before_signal_warmup():
    """Between the slow and slow+signal lengths the line is read against its own mean."""
    close = np.array([100.0 * 1.01 ** i for i in range(30)])

    macd = indicators.momentum(close)

    assert indicators.momentum_series(close) == []
    assert macd.macd > 0
    assert macd.macd > macd.signal
    assert macd.histogram == pytest.approx(macd.macd - macd.signal)
    assert macd.histogram > 0


@pytest.mark.unit
def test_momentum_below_slow_period_is_zero():
    close = np.array([100.0 * 1.01 ** i for i in range(22)])
    assert indicators.momentum(close) == MACDReading()
