"""
Pytest configuration and shared fixtures for the Multi-Timeframe Confluence
Engine test suite.

This module provides common fixtures and configuration for all test categories,
ensuring consistent test data and setup across the entire test suite.
"""

import pytest
import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional

from mtf_confluence.signal_generation.core import (
    Candle,
    HierarchyEntry,
    PeriodAnalysis,
    PeriodSnapshot,
    SignalType,
    TrendStrength,
)
from mtf_confluence.signal_generation.signal_generator import MultiTimeframeSignalGenerator
from mtf_confluence.config.signal_generation import SignalGenerationConfig


CANONICAL_PERIODS = ["24h", "4h", "1h", "30m", "15m", "5m"]
PERIOD_WEIGHTS = {"24h": 0.35, "4h": 0.25, "1h": 0.20, "30m": 0.10, "15m": 0.06, "5m": 0.04}


# ==============================
# Pytest Configuration
# ==============================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take longer to run"
    )


# ==============================
# Market Data Fixtures
# ==============================

@pytest.fixture
def sample_ohlc_data() -> pd.DataFrame:
    """Create sample OHLCV data for testing."""
    np.random.seed(42)  # For reproducible tests

    dates = pd.date_range(start='2023-01-01', periods=100, freq='h')

    # Create a trending price series
    base_price = 100
    trend = np.linspace(0, 20, 100)  # Upward trend
    noise = np.random.normal(0, 2, 100)  # Random noise
    close_prices = base_price + trend + noise

    # Generate OHLC data
    high = close_prices + np.random.uniform(0, 2, 100)
    low = close_prices - np.random.uniform(0, 2, 100)
    open_prices = low + np.random.uniform(0, high - low)
    volume = np.random.uniform(1000000, 5000000, 100)

    return pd.DataFrame({
        'open': open_prices,
        'high': high,
        'low': low,
        'close': close_prices,
        'volume': volume
    }, index=dates)


def build_candles(closes: List[float], volume: float = 1000.0,
                  start_ts: Optional[float] = 1_700_000_000.0,
                  step: float = 3600.0) -> List[Candle]:
    """Candles opening at the previous close with a thin wick on each side."""
    candles = []
    previous = closes[0]
    for i, close in enumerate(closes):
        open_ = previous
        candles.append(Candle(
            open=open_,
            high=max(open_, close) * 1.001,
            low=min(open_, close) * 0.999,
            close=close,
            volume=volume,
            timestamp=None if start_ts is None else start_ts + i * step,
        ))
        previous = close
    return candles


@pytest.fixture
def make_candles():
    """Factory for candle lists built from close prices."""
    return build_candles


@pytest.fixture
def rising_candles() -> List[Candle]:
    """Steadily accelerating uptrend: every bar closes 1% higher."""
    return build_candles([100.0 * 1.01 ** i for i in range(80)])


@pytest.fixture
def falling_candles() -> List[Candle]:
    """Steadily accelerating downtrend: every bar closes 1% lower."""
    return build_candles([100.0 * 0.99 ** i for i in range(80)])


# ==============================
# Pipeline Fixtures
# ==============================

@pytest.fixture
def make_entry():
    """Factory for hierarchy entries with sensible defaults."""
    def _make(period: str, signal: SignalType, strength: float = 50.0,
              trend_strength: float = 20.0, oscillator: float = 50.0,
              price: float = 100.0) -> HierarchyEntry:
        return HierarchyEntry(
            period=period,
            signal=signal,
            strength=strength,
            weight=PERIOD_WEIGHTS.get(period, 0.0),
            trend=TrendStrength.WEAK,
            trend_strength=trend_strength,
            oscillator=oscillator,
            price=price,
        )
    return _make


@pytest.fixture
def make_analysis():
    """Factory for period analyses with sensible defaults."""
    def _make(period: str, signal: SignalType, strength: float = 50.0,
              trend_strength: float = 20.0, oscillator: float = 50.0,
              price: float = 100.0, last_candle: Optional[Candle] = None) -> PeriodAnalysis:
        return PeriodAnalysis(
            period=period,
            price=price,
            signal=signal,
            strength=strength,
            trend=TrendStrength.WEAK,
            oscillator=oscillator,
            trend_strength=trend_strength,
            last_candle=last_candle,
        )
    return _make


@pytest.fixture
def config_dict() -> Dict[str, Any]:
    """Default engine configuration as a plain dictionary."""
    return SignalGenerationConfig().to_dict()


@pytest.fixture
def signal_generator(config_dict) -> MultiTimeframeSignalGenerator:
    """Signal generator built from the default configuration."""
    return MultiTimeframeSignalGenerator(config_dict)


@pytest.fixture
def dummy_snapshots() -> List[PeriodSnapshot]:
    """One candle-less snapshot per canonical period."""
    return [PeriodSnapshot(period=period, price=100.0) for period in CANONICAL_PERIODS]
