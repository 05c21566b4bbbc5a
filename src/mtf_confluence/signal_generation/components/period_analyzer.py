"""
Per-Period Analyzer component for the Multi-Timeframe Confluence Engine.

This component turns one period's candle history into a PeriodAnalysis:
trend label from the trend-strength indicator, momentum label and signal
from MACD, a composite 0-100 strength score and a volume confirmation.
"""

from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core import (
    MACDReading,
    MomentumTrend,
    PeriodAnalysis,
    PeriodSnapshot,
    SignalType,
    TrendStrength,
    VolumeConfirmation,
    VolumeStrength,
)
from .. import indicators
from ...utils.logging import get_logger

logger = get_logger(__name__)


class PeriodAnalyzer:
    """
    Analyzes a single period snapshot.

    The analyzer never raises on malformed or insufficient data; it returns
    the neutral analysis instead.
    """

    def __init__(self, config: Dict):
        """
        Initialize the period analyzer.

        Args:
            config: Configuration dictionary with analyzer parameters
        """
        self.config = config

        self.min_candles = config.get("min_candles", 20)
        self.rsi_period = config.get("rsi_period", 14)
        self.adx_period = config.get("adx_period", 14)
        self.macd_fast = config.get("macd_fast", 12)
        self.macd_slow = config.get("macd_slow", 26)
        self.macd_signal = config.get("macd_signal", 9)
        self.momentum_deadband = config.get("momentum_deadband", 0.001)

        self.trend_thresholds = config.get("trend_thresholds", {
            "VERY_STRONG": 50.0,
            "STRONG": 40.0,
            "MODERATE": 25.0,
            "WEAK": 20.0,
        })
        self.strength_tiers = config.get("strength_tiers", [[50, 50], [40, 40], [30, 30], [25, 20], [20, 10]])
        self.strong_momentum_bonus = config.get("strong_momentum_bonus", 30.0)
        self.momentum_bonus = config.get("momentum_bonus", 20.0)
        self.oscillator_bonus = config.get("oscillator_bonus", 10.0)
        self.oscillator_lower = config.get("oscillator_lower", 30.0)
        self.oscillator_upper = config.get("oscillator_upper", 70.0)
        self.strong_volume_bonus = config.get("strong_volume_bonus", 15.0)
        self.volume_bonus = config.get("volume_bonus", 5.0)

        self.volume_lookback = config.get("volume_lookback", 5)
        self.price_change_lookback = config.get("price_change_lookback", 10)

        self.default_oscillator = config.get("default_oscillator", indicators.DEFAULT_OSCILLATOR)
        self.default_trend_strength = config.get("default_trend_strength", indicators.DEFAULT_TREND_STRENGTH)
        self.neutral_trend_strength = config.get("neutral_trend_strength", 20.0)

    def analyze(self, snapshot: PeriodSnapshot) -> PeriodAnalysis:
        """
        Analyze one period snapshot.

        Args:
            snapshot: Price and candle history for the period

        Returns:
            PeriodAnalysis: Analysis, or the neutral analysis when fewer than
            ``min_candles`` candles are available or the candles cannot be
            analyzed
        """
        candles = snapshot.candles or ()
        if len(candles) < self.min_candles:
            logger.debug(
                "Insufficient candles, using neutral analysis",
                period=snapshot.period, candles=len(candles), required=self.min_candles,
            )
            return self.neutral(snapshot.period)

        try:
            return self._analyze(snapshot, candles)
        except Exception as e:
            logger.warning(
                "Period analysis failed, using neutral analysis",
                period=snapshot.period, error=str(e),
            )
            return self.neutral(snapshot.period)

    def _analyze(self, snapshot: PeriodSnapshot, candles) -> PeriodAnalysis:
        arrays = indicators.candles_to_arrays(candles)
        high, low, close, volume = arrays["high"], arrays["low"], arrays["close"], arrays["volume"]

        rsi = indicators.oscillator(close, self.rsi_period, self.default_oscillator)
        adx = indicators.trend_strength(high, low, close, self.adx_period, self.default_trend_strength)
        macd = indicators.momentum(close, self.macd_fast, self.macd_slow, self.macd_signal)

        trend = self.classify_trend(adx)
        momentum_trend = self.classify_momentum(macd)
        signal = self.signal_for(momentum_trend)
        volume_confirmation = self.confirm_volume(close, volume)
        strength = self.score_strength(adx, momentum_trend, rsi, signal, volume_confirmation)

        return PeriodAnalysis(
            period=snapshot.period,
            price=self._resolve_price(snapshot.price, close),
            signal=signal,
            strength=strength,
            trend=trend,
            oscillator=rsi,
            trend_strength=adx,
            momentum=macd,
            momentum_trend=momentum_trend,
            volume=volume_confirmation,
            price_change=self._price_change(close),
            last_candle=candles[-1],
        )

    def analyze_all(self, snapshots: Iterable[PeriodSnapshot]) -> List[PeriodAnalysis]:
        """Analyze every snapshot, preserving input order."""
        return [self.analyze(snapshot) for snapshot in snapshots]

    def neutral(self, period: str) -> PeriodAnalysis:
        """Neutral analysis for a period without enough data."""
        return PeriodAnalysis.neutral(
            period,
            oscillator=self.default_oscillator,
            trend_strength=self.neutral_trend_strength,
        )

    def classify_trend(self, trend_strength: float) -> TrendStrength:
        """Map a trend-strength reading onto its label."""
        for label in ("VERY_STRONG", "STRONG", "MODERATE", "WEAK"):
            if trend_strength >= self.trend_thresholds[label]:
                return TrendStrength[label]
        return TrendStrength.LATERAL

    def classify_momentum(self, reading: MACDReading) -> MomentumTrend:
        """Map a MACD reading onto a momentum label."""
        histogram = reading.histogram
        if histogram > self.momentum_deadband and reading.macd > reading.signal:
            return MomentumTrend.STRONG_UP
        if histogram > 0:
            return MomentumTrend.UP
        if histogram < -self.momentum_deadband and reading.macd < reading.signal:
            return MomentumTrend.STRONG_DOWN
        if histogram < 0:
            return MomentumTrend.DOWN
        return MomentumTrend.NEUTRAL

    @staticmethod
    def signal_for(momentum_trend: MomentumTrend) -> SignalType:
        """Directional signal implied by a momentum label."""
        if momentum_trend in (MomentumTrend.STRONG_UP, MomentumTrend.UP):
            return SignalType.BUY
        if momentum_trend in (MomentumTrend.STRONG_DOWN, MomentumTrend.DOWN):
            return SignalType.SELL
        return SignalType.HOLD

    def score_strength(self,
                       trend_strength: float,
                       momentum_trend: MomentumTrend,
                       oscillator: float,
                       signal: SignalType,
                       volume: VolumeConfirmation) -> float:
        """
        Composite strength score.

        Args:
            trend_strength: Trend-strength reading
            momentum_trend: Momentum label
            oscillator: Oscillator reading
            signal: Directional signal
            volume: Volume confirmation

        Returns:
            float: Score clamped to [0, 100]
        """
        score = 0.0
        for threshold, points in self.strength_tiers:
            if trend_strength >= threshold:
                score += points
                break

        if momentum_trend in (MomentumTrend.STRONG_UP, MomentumTrend.STRONG_DOWN):
            score += self.strong_momentum_bonus
        elif momentum_trend in (MomentumTrend.UP, MomentumTrend.DOWN):
            score += self.momentum_bonus

        if self.oscillator_lower < oscillator < self.oscillator_upper and signal.is_directional:
            score += self.oscillator_bonus

        if volume.confirmed:
            if volume.strength is VolumeStrength.STRONG:
                score += self.strong_volume_bonus
            else:
                score += self.volume_bonus

        return float(min(max(score, 0.0), 100.0))

    def confirm_volume(self, close: np.ndarray, volume: np.ndarray) -> VolumeConfirmation:
        """
        Check whether recent volume confirms the move.

        Args:
            close: Close prices
            volume: Volumes

        Returns:
            VolumeConfirmation: Confirmation with grade and direction
        """
        lookback = self.volume_lookback
        if len(volume) < lookback:
            return VolumeConfirmation(confirmed=False, reason="insufficient candles")

        recent = volume[-lookback:]
        if np.count_nonzero(recent > 0) < lookback:
            return VolumeConfirmation(confirmed=False, reason="missing volume data")

        average = float(np.mean(recent))
        last = float(recent[-1])
        rising = bool(recent[-1] > recent[-2] > recent[-3])

        moves = np.diff(close[-lookback:])
        direction = SignalType.BUY if np.count_nonzero(moves > 0) > len(moves) / 2 else SignalType.SELL

        if last > average * 1.5 and rising:
            return VolumeConfirmation(True, "volume surge with rising participation", VolumeStrength.STRONG, direction)
        if last > average * 1.2:
            return VolumeConfirmation(True, "volume above average", VolumeStrength.MEDIUM, direction)
        if last > average:
            return VolumeConfirmation(True, "volume slightly above average", VolumeStrength.WEAK, direction)
        return VolumeConfirmation(confirmed=False, reason="volume below average")

    def _price_change(self, close: np.ndarray) -> float:
        lookback = self.price_change_lookback
        if len(close) < lookback:
            return 0.0
        base = close[-lookback]
        if base <= 0:
            return 0.0
        return round(float((close[-1] - base) / base * 100.0), 4)

    @staticmethod
    def _resolve_price(price: Optional[float], close: np.ndarray) -> float:
        if price is not None and np.isfinite(price) and price > 0:
            return float(price)
        return max(float(close[-1]), 0.0)
