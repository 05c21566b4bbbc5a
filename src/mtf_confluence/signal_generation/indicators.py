"""
Technical indicator helpers backed by TA-Lib.

Every helper returns the latest reading and substitutes a named default when
the series is too short or the result is NaN/inf:

- oscillator (RSI), range 0-100, default 50
- trend-strength (ADX), range 0-100, default 25
- momentum (MACD line, signal line, histogram), default 0/0/0
- average true range, default 0.001
"""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
import talib

from .core import Candle, MACDReading

DEFAULT_OSCILLATOR = 50.0
DEFAULT_TREND_STRENGTH = 25.0
DEFAULT_ATR = 0.001


def _is_valid(value: float) -> bool:
    return value is not None and not np.isnan(value) and not np.isinf(value)


def _last_valid(values: np.ndarray, default: float) -> float:
    if len(values) == 0:
        return default
    value = float(values[-1])
    return value if _is_valid(value) else default


def candles_to_arrays(candles: Sequence[Candle]) -> Dict[str, np.ndarray]:
    """
    Convert candles to float64 arrays suitable for TA-Lib.

    Invalid prices are forward-filled from the previous valid value (0.0 when
    there is none). Invalid volumes become 0.0.

    Args:
        candles: Candles ordered oldest first

    Returns:
        Dict[str, np.ndarray]: open/high/low/close/volume arrays
    """
    df = pd.DataFrame(
        [(c.open, c.high, c.low, c.close, c.volume) for c in candles],
        columns=["open", "high", "low", "close", "volume"],
        dtype="float64",
    )
    df = df.replace([np.inf, -np.inf], np.nan)
    prices = ["open", "high", "low", "close"]
    df[prices] = df[prices].ffill().fillna(0.0)
    df["volume"] = df["volume"].fillna(0.0).clip(lower=0.0)
    return {column: df[column].to_numpy(dtype=np.float64) for column in df.columns}


def oscillator(close: np.ndarray, period: int = 14, default: float = DEFAULT_OSCILLATOR) -> float:
    """Latest RSI reading clamped to [0, 100]."""
    if len(close) <= period:
        return default
    value = _last_valid(talib.RSI(close, timeperiod=period), default)
    return min(max(value, 0.0), 100.0)


def trend_strength(high: np.ndarray, low: np.ndarray, close: np.ndarray,
                   period: int = 14, default: float = DEFAULT_TREND_STRENGTH) -> float:
    """Latest ADX reading clamped to [0, 100]."""
    if len(close) < 2 * period:
        return default
    value = _last_valid(talib.ADX(high, low, close, timeperiod=period), default)
    return min(max(value, 0.0), 100.0)


def momentum_series(close: np.ndarray, fast: int = 12, slow: int = 26,
                    signal: int = 9) -> List[MACDReading]:
    """
    Full MACD history with NaN warm-up bars removed.

    Args:
        close: Close prices
        fast: Fast EMA period
        slow: Slow EMA period
        signal: Signal EMA period

    Returns:
        List[MACDReading]: Readings ordered oldest first
    """
    if len(close) < slow + signal:
        return []

    macd_line, signal_line, histogram = talib.MACD(
        close, fastperiod=fast, slowperiod=slow, signalperiod=signal
    )
    return [
        MACDReading(macd=float(m), signal=float(s), histogram=float(h))
        for m, s, h in zip(macd_line, signal_line, histogram)
        if _is_valid(m) and _is_valid(s) and _is_valid(h)
    ]


def momentum(close: np.ndarray, fast: int = 12, slow: int = 26, signal: int = 9) -> MACDReading:
    """
    Latest MACD reading.

    With at least ``slow`` but fewer than ``slow + signal`` closes the signal
    EMA cannot warm up, so the MACD line is compared against the mean of its
    own available history instead. Below ``slow`` closes the reading is zeros.
    """
    series = momentum_series(close, fast, slow, signal)
    if series:
        return series[-1]
    if len(close) < slow:
        return MACDReading()
    return _short_momentum(close, fast, slow)


def _short_momentum(close: np.ndarray, fast: int, slow: int) -> MACDReading:
    line = talib.EMA(close, timeperiod=fast) - talib.EMA(close, timeperiod=slow)
    line = line[~np.isnan(line)]
    if len(line) == 0:
        return MACDReading()
    macd_value = float(line[-1])
    signal_value = float(np.mean(line))
    if not (_is_valid(macd_value) and _is_valid(signal_value)):
        return MACDReading()
    return MACDReading(macd=macd_value, signal=signal_value, histogram=macd_value - signal_value)


def average_true_range(high: np.ndarray, low: np.ndarray, close: np.ndarray,
                       period: int = 14, default: float = DEFAULT_ATR) -> float:
    """Mean true range across the last ``period`` bars."""
    if len(close) < max(period, 2):
        return default
    ranges = talib.TRANGE(high[-period:], low[-period:], close[-period:])
    ranges = ranges[~np.isnan(ranges)]
    if len(ranges) == 0:
        return default
    value = float(np.mean(ranges))
    return value if _is_valid(value) and value > 0 else default
