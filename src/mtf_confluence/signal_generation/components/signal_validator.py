"""
Signal Validator component for the Multi-Timeframe Confluence Engine.

This component performs an entry quality check on a directional signal using
the last closed candle, the MACD histogram and the oscillator. The outcome
feeds the regime confidence score.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..core import Candle, SignalType


@dataclass(frozen=True)
class EntryQuality:
    """
    Result of an entry quality check.

    Attributes:
        reliable: Whether the entry looks consistent
        category: Short category label
        recommended_action: What to do with the signal
        reason: Human-readable explanation
    """
    reliable: bool
    category: str
    recommended_action: str
    reason: str


class SignalValidator:
    """Validates entry quality for a directional signal."""

    def __init__(self, config: Dict):
        """
        Initialize the signal validator.

        Args:
            config: Configuration dictionary with validation parameters
        """
        self.config = config

        self.min_candles = config.get("min_candles", 2)
        self.histogram_threshold = config.get("histogram_threshold", 0.1)
        self.oscillator_overbought = config.get("oscillator_overbought", 70.0)
        self.oscillator_oversold = config.get("oscillator_oversold", 30.0)

        # Validation history
        self.validation_history: List[EntryQuality] = []
        self.max_history_size = config.get("max_history_size", 50)

    def validate_entry(self,
                       signal: SignalType,
                       candles: Sequence[Candle],
                       histogram: float,
                       oscillator: float) -> EntryQuality:
        """
        Validate the entry quality of a signal.

        Args:
            signal: Signal to validate
            candles: Candles ordered oldest first; the second to last one is
                treated as the last closed candle
            histogram: Latest MACD histogram
            oscillator: Latest oscillator reading

        Returns:
            EntryQuality: Result of the check
        """
        if not candles or len(candles) < self.min_candles:
            return EntryQuality(False, "INSUFFICIENT_DATA", "WAIT", "Not enough candles")

        closed = candles[-2]
        red = closed.close < closed.open

        if signal is SignalType.BUY and red:
            result = EntryQuality(False, "BULLISH_INCONSISTENCY", "WAIT for confirmation",
                                  "BUY signal on a red candle, possible correction")
        elif signal is SignalType.SELL and not red:
            result = EntryQuality(False, "BEARISH_INCONSISTENCY", "WAIT for confirmation",
                                  "SELL signal on a green candle, possible reversal")
        else:
            result = self._check_momentum(signal, red, histogram, oscillator)

        self.validation_history.append(result)
        if len(self.validation_history) > self.max_history_size:
            self.validation_history.pop(0)

        return result

    def _check_momentum(self, signal: SignalType, red: bool,
                        histogram: float, oscillator: float) -> EntryQuality:
        reason = "Red candle confirms the drop" if red else "Green candle confirms the rise"

        if signal is SignalType.BUY:
            if histogram < self.histogram_threshold and oscillator > self.oscillator_overbought:
                return EntryQuality(False, "ALERT", "WAIT (oscillator overbought)",
                                    "Weak MACD with elevated oscillator")
            if histogram < 0:
                return EntryQuality(False, "ALERT", "SELL or EXIT",
                                    "Negative MACD histogram shows bearish momentum")
        elif signal is SignalType.SELL:
            if histogram > -self.histogram_threshold and oscillator < self.oscillator_oversold:
                return EntryQuality(False, "ALERT", "WAIT (oscillator oversold)",
                                    "Weak MACD with depressed oscillator")
            if histogram > 0:
                return EntryQuality(False, "ALERT", "BUY or EXIT",
                                    "Positive MACD histogram shows bullish momentum")

        return EntryQuality(True, "CONSISTENT", f"{signal.value} normal", reason)

    def get_validation_statistics(self) -> Dict[str, float]:
        """
        Get statistics about recent entry checks.

        Returns:
            Dict[str, float]: Validation statistics
        """
        if not self.validation_history:
            return {}

        total = len(self.validation_history)
        reliable = sum(1 for result in self.validation_history if result.reliable)
        return {
            "total_validations": total,
            "reliable_ratio": reliable / total,
        }
