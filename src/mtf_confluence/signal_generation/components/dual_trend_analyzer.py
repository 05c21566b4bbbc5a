"""
Dual Trend Analyzer component for the Multi-Timeframe Confluence Engine.

Compares the short-term read (the last close against the previous one) with
the medium-term read (the sign of the MACD histogram) on one period. Agreement
is a low risk convergence; disagreement is a high risk divergence resolved by
whichever side shows more force.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..core import Candle, MACDReading, Severity, SignalType
from .. import indicators


@dataclass(frozen=True)
class DualTrendResult:
    """
    Short-term and medium-term reads of one period.

    Attributes:
        short_signal: Direction of the last close against the previous close
        variation_pct: Percent change between those closes
        confirming_candle_bullish: Whether the last closed candle is green
        medium_signal: Direction of the MACD histogram
        medium_strength: Absolute MACD histogram
        converging: Whether both reads agree
        label: BULLISH/BEARISH CONVERGENCE or DIVERGENCE
        risk: LOW when converging, HIGH otherwise
        recommendation: Direction to follow, None to wait for confirmation
        explanation: Human readable reason for the recommendation
    """
    short_signal: SignalType
    variation_pct: float
    confirming_candle_bullish: bool
    medium_signal: SignalType
    medium_strength: float
    converging: bool
    label: str
    risk: Severity
    recommendation: Optional[SignalType]
    explanation: str
    timestamp: float = field(default_factory=time.time, compare=False)

    @property
    def short_strength(self) -> float:
        return abs(self.variation_pct)


class DualTrendAnalyzer:
    """Reconciles the short-term and medium-term trend of one period."""

    def __init__(self, config: Dict):
        """
        Initialize the dual trend analyzer.

        Args:
            config: Configuration dictionary with dual trend parameters
        """
        self.config = config

        self.macd_fast = config.get("macd_fast", 12)
        self.macd_slow = config.get("macd_slow", 26)
        self.macd_signal = config.get("macd_signal", 9)

        self.macd_dominance_factor = config.get("macd_dominance_factor", 10.0)
        self.price_action_threshold_pct = config.get("price_action_threshold_pct", 0.5)
        self.strong_short_pct = config.get("strong_short_pct", 0.3)
        self.strong_medium_histogram = config.get("strong_medium_histogram", 0.01)

        self.divergence_probability = config.get("divergence_probability", 50.0)
        self.convergence_probability = config.get("convergence_probability", 75.0)
        self.strong_convergence_probability = config.get("strong_convergence_probability", 85.0)

        # Analysis history
        self.trend_history: List[DualTrendResult] = []
        self.max_history_size = config.get("max_history_size", 100)

    def analyze(self, candles: Sequence[Candle],
                macd: Optional[MACDReading] = None) -> Optional[DualTrendResult]:
        """
        Compare the short-term and medium-term trend.

        Args:
            candles: Candles ordered oldest first
            macd: MACD reading to use, computed from the closes when omitted

        Returns:
            Optional[DualTrendResult]: Result, or None with fewer than two
            candles
        """
        if not candles or len(candles) < 2:
            return None

        if macd is None:
            close = indicators.candles_to_arrays(candles)["close"]
            macd = indicators.momentum(close, self.macd_fast, self.macd_slow, self.macd_signal)

        price, previous = candles[-1].close, candles[-2].close
        variation = (price - previous) / previous * 100.0 if previous > 0 else 0.0
        short_signal = SignalType.BUY if price > previous else SignalType.SELL
        medium_signal = SignalType.BUY if macd.histogram > 0 else SignalType.SELL
        medium_strength = abs(macd.histogram)

        converging = short_signal is medium_signal
        if converging:
            label = "BULLISH_CONVERGENCE" if short_signal is SignalType.BUY else "BEARISH_CONVERGENCE"
            recommendation, explanation = short_signal, "Both trends agree"
        else:
            label = "BEARISH_DIVERGENCE" if short_signal is SignalType.BUY else "BULLISH_DIVERGENCE"
            recommendation, explanation = self.resolve_divergence(
                short_signal, variation, medium_signal, medium_strength
            )

        result = DualTrendResult(
            short_signal=short_signal,
            variation_pct=variation,
            confirming_candle_bullish=candles[-2].is_bullish,
            medium_signal=medium_signal,
            medium_strength=medium_strength,
            converging=converging,
            label=label,
            risk=Severity.LOW if converging else Severity.HIGH,
            recommendation=recommendation,
            explanation=explanation,
        )

        self.trend_history.append(result)
        if len(self.trend_history) > self.max_history_size:
            self.trend_history = self.trend_history[-self.max_history_size:]

        return result

    def resolve_divergence(self,
                           short_signal: SignalType,
                           variation_pct: float,
                           medium_signal: SignalType,
                           medium_strength: float) -> Tuple[Optional[SignalType], str]:
        """Pick the side of a divergence that shows more force, if any."""
        if medium_strength > abs(variation_pct) * self.macd_dominance_factor:
            return medium_signal, "MACD stronger than the recent variation"
        if abs(variation_pct) > self.price_action_threshold_pct:
            return short_signal, "Strong recent price action"
        return None, "Trends in conflict without clear force"

    def final_signal(self, result: DualTrendResult) -> Tuple[SignalType, float, str]:
        """
        Signal and probability (0-100) implied by a dual trend result.

        A high risk divergence is always HOLD; a convergence follows the
        short-term signal, with a higher probability when both sides are
        strong.
        """
        if result.risk is Severity.HIGH:
            return SignalType.HOLD, self.divergence_probability, f"{result.label}: {result.explanation}"

        probability = self.convergence_probability
        if (result.short_strength > self.strong_short_pct
                and result.medium_strength > self.strong_medium_histogram):
            probability = self.strong_convergence_probability
        return result.short_signal, probability, f"{result.label}: {result.explanation}"
