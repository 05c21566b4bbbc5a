"""
Market Regime Detector component for the Multi-Timeframe Confluence Engine.

This component runs the regime path for one cycle. It reads MACD structure
from the coarse and fine snapshots, checks entry quality, classifies the
regime, adjusts the dynamic score weights, and runs the exhaustion and
pullback helpers that gate or refine the classification.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

from ..core import Candle, MACDReading, PeriodSnapshot, SignalType
from .. import indicators
from ...analysis.market_regime import (
    Bias,
    DailyContext,
    MarketState,
    RegimeClassifier,
    RegimeResult,
    RegimeSignalType,
    StructuralMomentumState,
)
from .exhaustion_detector import ExhaustionDetector, ExhaustionResult
from .pullback_zone_calculator import PullbackZone, PullbackZoneCalculator
from .signal_validator import EntryQuality, SignalValidator
from ...utils.logging import get_logger

logger = get_logger(__name__)

BIAS_TO_SIGNAL = {
    Bias.BULLISH: SignalType.BUY,
    Bias.BEARISH: SignalType.SELL,
    Bias.NEUTRAL: SignalType.HOLD,
}


@dataclass(frozen=True)
class RegimeAnalysis:
    """
    Full output of the regime path.

    Attributes:
        result: Classified regime with trade gate and confidence
        coarse: Coarse period structure
        fine: Fine period structure
        weights: Dynamic score weights for the composite score band
        exhaustion: Exhaustion check, when the bias is directional
        pullback_zone: Re-entry zone, when the regime is a pullback
        entry_quality: Entry quality check on the fine period
    """
    result: RegimeResult
    coarse: StructuralMomentumState
    fine: StructuralMomentumState
    weights: Dict[str, float]
    exhaustion: Optional[ExhaustionResult] = None
    pullback_zone: Optional[PullbackZone] = None
    entry_quality: Optional[EntryQuality] = None

    @property
    def signal(self) -> SignalType:
        """Directional reading of the final bias."""
        return BIAS_TO_SIGNAL[self.result.final_bias]

    def summary(self) -> Dict[str, Any]:
        """Compact summary of the analysis."""
        return {
            "bias": self.result.final_bias.value,
            "state": self.result.market_state.value,
            "signal_type": self.result.signal_type.value,
            "trade_allowed": self.result.trade_allowed,
            "confidence": self.result.confidence_score,
            "reason": self.result.reason_blocked or "OK to trade",
        }


class MarketRegimeDetector:
    """
    Detects the market regime from a coarse and a fine period.

    This component wraps the RegimeClassifier and keeps a bounded history of
    its results.
    """

    def __init__(self, config: Dict,
                 exhaustion_config: Optional[Dict] = None,
                 pullback_config: Optional[Dict] = None,
                 validator_config: Optional[Dict] = None):
        """
        Initialize the market regime detector.

        Args:
            config: Configuration dictionary with regime parameters
            exhaustion_config: Configuration for the exhaustion detector
            pullback_config: Configuration for the pullback zone calculator
            validator_config: Configuration for the entry quality check
        """
        self.config = config
        self.classifier = RegimeClassifier(config)
        self.exhaustion_detector = ExhaustionDetector(exhaustion_config or {})
        self.pullback_calculator = PullbackZoneCalculator(pullback_config or {})
        self.signal_validator = SignalValidator(validator_config or {})

        self.coarse_period = config.get("coarse_period", "4h")
        self.fine_period = config.get("fine_period", "1h")
        self.oscillator_overbought = config.get("oscillator_overbought", 70.0)
        self.oscillator_oversold = config.get("oscillator_oversold", 30.0)
        self.block_on_exhaustion = config.get("block_on_exhaustion", True)

        self.strong_score_threshold = config.get("strong_score_threshold", 70.0)
        self.weak_score_threshold = config.get("weak_score_threshold", 30.0)
        self.strong_score_weights = config.get("strong_score_weights", [30.0, 25.0, 15.0])
        self.weak_score_weights = config.get("weak_score_weights", [20.0, 30.0, 20.0])
        self.default_weights = config.get("default_weights", [25.0, 20.0, 15.0])

        self.rsi_period = config.get("rsi_period", 14)
        self.adx_period = config.get("adx_period", 14)

        self._current_analysis: Optional[RegimeAnalysis] = None
        self._regime_history: List[RegimeResult] = []
        self.max_history_size = config.get("max_history_size", 100)

    def detect(self,
               coarse: Optional[PeriodSnapshot],
               fine: Optional[PeriodSnapshot],
               daily_context: Optional[DailyContext] = None,
               composite_score: float = 50.0,
               veto: bool = False) -> RegimeAnalysis:
        """
        Run the regime path for one cycle.

        Args:
            coarse: Coarse period snapshot (structure, trend-strength, oscillator)
            fine: Fine period snapshot (momentum, entry quality, pullback zone)
            daily_context: Optional daily context
            composite_score: External composite score (0-100)
            veto: External veto flag

        Returns:
            RegimeAnalysis: Regime classification with auxiliary checks
        """
        coarse_candles = coarse.candles if coarse is not None else ()
        fine_candles = fine.candles if fine is not None else ()

        coarse_arrays = indicators.candles_to_arrays(coarse_candles)
        fine_arrays = indicators.candles_to_arrays(fine_candles)

        coarse_series = indicators.momentum_series(coarse_arrays["close"])
        coarse_macd = coarse_series[-1] if coarse_series else MACDReading()
        fine_macd = indicators.momentum(fine_arrays["close"])

        coarse_state = StructuralMomentumState.from_macd(
            coarse_macd.macd, coarse_macd.signal, coarse_macd.histogram
        )
        fine_state = StructuralMomentumState.from_macd(
            fine_macd.macd, fine_macd.signal, fine_macd.histogram
        )

        trend_strength = indicators.trend_strength(
            coarse_arrays["high"], coarse_arrays["low"], coarse_arrays["close"], self.adx_period
        )
        oscillator = indicators.oscillator(coarse_arrays["close"], self.rsi_period)

        entry_quality = None
        direction = BIAS_TO_SIGNAL[coarse_state.structural_bias]
        if direction.is_directional:
            fine_oscillator = indicators.oscillator(fine_arrays["close"], self.rsi_period)
            entry_quality = self.signal_validator.validate_entry(
                direction, fine_candles, fine_macd.histogram, fine_oscillator
            )

        result = self.classifier.classify(
            coarse_state,
            fine_state,
            trend_strength=trend_strength,
            oscillator=oscillator,
            daily_context=daily_context,
            composite_score=composite_score,
            veto=veto,
            entry_quality=bool(entry_quality and entry_quality.reliable),
        )

        exhaustion = None
        if result.final_bias is not Bias.NEUTRAL:
            exhaustion = self.exhaustion_detector.detect(
                coarse_candles,
                BIAS_TO_SIGNAL[result.final_bias],
                histogram_history=[reading.histogram for reading in coarse_series[-3:]],
                oscillator_extreme=(oscillator > self.oscillator_overbought
                                    or oscillator < self.oscillator_oversold),
            )
            if exhaustion.exhausted and self.block_on_exhaustion and result.trade_allowed:
                logger.info("Trade blocked by exhaustion", reasons=list(exhaustion.reasons))
                result = replace(
                    result,
                    trade_allowed=False,
                    reason_blocked="Exhaustion signs: " + ", ".join(exhaustion.reasons),
                )

        pullback_zone = None
        if result.signal_type is RegimeSignalType.PULLBACK:
            pullback_zone = self.pullback_calculator.calculate_zone(
                fine_candles,
                BIAS_TO_SIGNAL[result.final_bias],
                now=self._last_timestamp(fine_candles),
            )

        analysis = RegimeAnalysis(
            result=result,
            coarse=coarse_state,
            fine=fine_state,
            weights=self.adjust_dynamic_weights(composite_score),
            exhaustion=exhaustion,
            pullback_zone=pullback_zone,
            entry_quality=entry_quality,
        )

        self._current_analysis = analysis
        self._regime_history.append(result)
        if len(self._regime_history) > self.max_history_size:
            self._regime_history.pop(0)

        return analysis

    def adjust_dynamic_weights(self, composite_score: float) -> Dict[str, float]:
        """
        Score weights for the composite score band.

        Args:
            composite_score: External composite score (0-100)

        Returns:
            Dict[str, float]: Weights for structure, momentum and confirmation
        """
        if composite_score > self.strong_score_threshold:
            weights = self.strong_score_weights
        elif composite_score < self.weak_score_threshold:
            weights = self.weak_score_weights
        else:
            weights = self.default_weights

        structure, momentum, confirmation = weights
        return {"structure": structure, "momentum": momentum, "confirmation": confirmation}

    @staticmethod
    def _last_timestamp(candles: Sequence[Candle]) -> Optional[float]:
        if candles and candles[-1].timestamp is not None:
            return candles[-1].timestamp
        return None

    def get_current_analysis(self) -> Optional[RegimeAnalysis]:
        """
        Get the most recent regime analysis.

        Returns:
            RegimeAnalysis: Current analysis or None if nothing was detected yet
        """
        return self._current_analysis

    def get_regime_history(self) -> List[RegimeResult]:
        """
        Get the history of regime results.

        Returns:
            List[RegimeResult]: History of results, oldest first
        """
        return self._regime_history.copy()

    def is_regime_stable(self, periods: int = 3) -> bool:
        """
        Check if the market state has been the same for a number of cycles.

        Args:
            periods: Number of cycles to check

        Returns:
            bool: True if the market state is stable, False otherwise
        """
        if len(self._regime_history) < periods:
            return False

        recent = self._regime_history[-periods:]
        return all(r.market_state is recent[0].market_state for r in recent)

    def get_regime_duration(self) -> int:
        """
        Get the duration of the current market state in cycles.

        Returns:
            int: Number of consecutive cycles with the current state
        """
        if not self._regime_history:
            return 0

        current: MarketState = self._regime_history[-1].market_state
        duration = 0
        for result in reversed(self._regime_history):
            if result.market_state is current:
                duration += 1
            else:
                break

        return duration
