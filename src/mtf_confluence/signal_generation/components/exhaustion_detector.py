"""
Exhaustion Detector component for the Multi-Timeframe Confluence Engine.

Counts independent signs that a move is running out of steam: fading MACD
histogram, a rejection candle, an oscillator extreme and declining volume.
Two or more signs mark the move as exhausted.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..core import Candle, SignalType


@dataclass(frozen=True)
class ExhaustionResult:
    """Outcome of an exhaustion check."""
    exhausted: bool
    signals: int = 0
    reasons: Tuple[str, ...] = ()
    strength: float = 0.0


@dataclass(frozen=True)
class ExhaustionEvent:
    """Logged exhausted move."""
    direction: SignalType
    signals: int
    reasons: Tuple[str, ...]
    timestamp: float = field(default_factory=time.time)


class ExhaustionDetector:
    """Detects exhaustion of a directional move."""

    def __init__(self, config: Dict):
        """
        Initialize the exhaustion detector.

        Args:
            config: Configuration dictionary with exhaustion parameters
        """
        self.config = config

        self.min_candles = config.get("min_candles", 5)
        self.shadow_body_ratio = config.get("shadow_body_ratio", 1.5)
        self.min_signals = config.get("min_signals", 2)
        self.max_signals = config.get("max_signals", 4)

        # Exhaustion history
        self.exhaustion_history: List[ExhaustionEvent] = []
        self.max_history_size = config.get("max_history_size", 20)

    def detect(self,
               candles: Sequence[Candle],
               direction: SignalType,
               histogram_history: Optional[Sequence[float]] = None,
               oscillator_extreme: bool = False) -> ExhaustionResult:
        """
        Check a move for exhaustion.

        Args:
            candles: Candles ordered oldest first
            direction: Direction of the move being checked
            histogram_history: Recent MACD histogram values, oldest first
            oscillator_extreme: Whether the oscillator is at an extreme,
                computed by the caller

        Returns:
            ExhaustionResult: Exhaustion verdict and the signs found
        """
        if not candles or len(candles) < self.min_candles:
            return ExhaustionResult(exhausted=False)

        reasons = []
        if self.check_momentum_loss(list(histogram_history) if histogram_history is not None else []):
            reasons.append("MACD losing strength")
        if self.check_rejection_candle(candles[-1], direction):
            reasons.append("Rejection candle")
        if oscillator_extreme:
            reasons.append("Oscillator extreme")
        if self.check_volume_decline(candles):
            reasons.append("Volume declining")

        signals = len(reasons)
        exhausted = signals >= self.min_signals

        if exhausted:
            self.exhaustion_history.append(
                ExhaustionEvent(direction=direction, signals=signals, reasons=tuple(reasons))
            )
            if len(self.exhaustion_history) > self.max_history_size:
                self.exhaustion_history = self.exhaustion_history[-self.max_history_size:]

        return ExhaustionResult(
            exhausted=exhausted,
            signals=signals,
            reasons=tuple(reasons),
            strength=signals / self.max_signals,
        )

    @staticmethod
    def check_momentum_loss(histogram_history: Sequence[float]) -> bool:
        """Histogram magnitude strictly shrinking over the last three samples."""
        if len(histogram_history) < 3:
            return False
        latest, previous, earliest = (abs(h) for h in histogram_history[-1:-4:-1])
        return latest < previous < earliest

    def check_rejection_candle(self, candle: Candle, direction: SignalType) -> bool:
        """Long shadow against the direction of the move."""
        body = candle.body
        if body == 0:
            return False

        if direction is SignalType.BUY:
            upper_shadow = candle.high - max(candle.close, candle.open)
            return upper_shadow > body * self.shadow_body_ratio
        if direction is SignalType.SELL:
            lower_shadow = min(candle.close, candle.open) - candle.low
            return lower_shadow > body * self.shadow_body_ratio
        return False

    @staticmethod
    def check_volume_decline(candles: Sequence[Candle]) -> bool:
        """Volume falling three bars running within the last five."""
        if len(candles) < 5:
            return False
        volumes = [c.volume or 0 for c in candles[-5:]]
        if any(v == 0 for v in volumes):
            return False
        return volumes[4] < volumes[3] < volumes[2] < volumes[1]

    def get_recent_exhaustion(self, minutes: float = 30, now: Optional[float] = None) -> List[ExhaustionEvent]:
        """Exhaustion events logged within the last ``minutes``."""
        cutoff = (now if now is not None else time.time()) - minutes * 60
        return [event for event in self.exhaustion_history if event.timestamp > cutoff]
