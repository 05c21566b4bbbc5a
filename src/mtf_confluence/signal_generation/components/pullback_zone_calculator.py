"""
Pullback Zone Calculator component for the Multi-Timeframe Confluence Engine.

After a counter-trend pause inside a trend, this component proposes a price
zone for re-entry sized by the average true range. Zones are timestamped and
kept in a bounded buffer so that stale ones can be filtered or pruned.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..core import Candle, SignalType
from .. import indicators


@dataclass(frozen=True)
class PullbackZone:
    """Re-entry zone for a pullback trade."""
    low: float
    high: float
    zone_type: str
    confidence: float
    created_at: float = field(default_factory=time.time, compare=False)

    def contains(self, price: float) -> bool:
        return self.low <= price <= self.high


class PullbackZoneCalculator:
    """Calculates and tracks pullback zones."""

    PULLBACK_BUY = "PULLBACK_BUY"
    PULLBACK_SELL = "PULLBACK_SELL"

    def __init__(self, config: Dict):
        """
        Initialize the pullback zone calculator.

        Args:
            config: Configuration dictionary with pullback parameters
        """
        self.config = config

        self.lookback = config.get("lookback", 5)
        self.min_counter_candles = config.get("min_counter_candles", 2)
        self.atr_period = config.get("atr_period", 14)
        self.atr_multiplier = config.get("atr_multiplier", 0.5)
        self.default_atr = config.get("default_atr", indicators.DEFAULT_ATR)
        self.confidence_per_candle = config.get("confidence_per_candle", 20.0)
        self.max_confidence = config.get("max_confidence", 80.0)
        self.max_zone_age_seconds = config.get("max_zone_age_seconds", 300.0)

        # Active zones, oldest first
        self.active_zones: List[PullbackZone] = []
        self.max_history_size = config.get("max_history_size", 50)

    def calculate_zone(self,
                       candles: Sequence[Candle],
                       direction: SignalType,
                       atr: Optional[float] = None,
                       atr_multiplier: Optional[float] = None,
                       now: Optional[float] = None) -> Optional[PullbackZone]:
        """
        Calculate a pullback zone for a direction.

        A BUY zone needs at least ``min_counter_candles`` bearish candles in
        the window and a last close above the previous close; SELL mirrors it.

        Args:
            candles: Candles ordered oldest first
            direction: Trend direction to re-enter
            atr: Average true range, computed from the candles when omitted
            atr_multiplier: Zone height in ATRs
            now: Creation timestamp, defaults to the current time

        Returns:
            Optional[PullbackZone]: Zone, or None when no pullback is present
        """
        if not candles or len(candles) < self.lookback:
            return None

        if atr is None:
            atr = self.calculate_dynamic_atr(candles)
        if atr_multiplier is None:
            atr_multiplier = self.atr_multiplier

        recent = list(candles[-self.lookback:])
        window_low = min(c.low for c in recent)
        window_high = max(c.high for c in recent)
        height = atr * atr_multiplier
        created_at = now if now is not None else time.time()

        if direction is SignalType.BUY:
            counter = sum(1 for c in recent if c.is_bearish)
            resuming = recent[-1].close > recent[-2].close
            if counter < self.min_counter_candles or not resuming:
                return None
            zone = PullbackZone(
                low=window_low,
                high=window_low + height,
                zone_type=self.PULLBACK_BUY,
                confidence=min(counter * self.confidence_per_candle, self.max_confidence),
                created_at=created_at,
            )
        elif direction is SignalType.SELL:
            counter = sum(1 for c in recent if c.is_bullish)
            resuming = recent[-1].close < recent[-2].close
            if counter < self.min_counter_candles or not resuming:
                return None
            zone = PullbackZone(
                low=window_high - height,
                high=window_high,
                zone_type=self.PULLBACK_SELL,
                confidence=min(counter * self.confidence_per_candle, self.max_confidence),
                created_at=created_at,
            )
        else:
            return None

        self.active_zones.append(zone)
        if len(self.active_zones) > self.max_history_size:
            self.active_zones = self.active_zones[-self.max_history_size:]
        return zone

    @staticmethod
    def is_price_in_zone(price: float, zone: Optional[PullbackZone]) -> bool:
        """Whether a price lies inside a zone."""
        return zone is not None and zone.contains(price)

    def get_active_zones(self, max_age_seconds: Optional[float] = None,
                         now: Optional[float] = None) -> List[PullbackZone]:
        """Zones created within ``max_age_seconds``."""
        cutoff = self._cutoff(max_age_seconds, now)
        return [zone for zone in self.active_zones if zone.created_at > cutoff]

    def clear_old_zones(self, max_age_seconds: Optional[float] = None,
                        now: Optional[float] = None) -> int:
        """Drop zones older than ``max_age_seconds`` and return how many were removed."""
        cutoff = self._cutoff(max_age_seconds, now)
        kept = [zone for zone in self.active_zones if zone.created_at > cutoff]
        removed = len(self.active_zones) - len(kept)
        self.active_zones = kept
        return removed

    def calculate_dynamic_atr(self, candles: Sequence[Candle]) -> float:
        """Mean true range over the last ``atr_period`` candles."""
        if len(candles) < self.atr_period:
            return self.default_atr
        arrays = indicators.candles_to_arrays(candles)
        return indicators.average_true_range(
            arrays["high"], arrays["low"], arrays["close"], self.atr_period, self.default_atr
        )

    def _cutoff(self, max_age_seconds: Optional[float], now: Optional[float]) -> float:
        if max_age_seconds is None:
            max_age_seconds = self.max_zone_age_seconds
        return (now if now is not None else time.time()) - max_age_seconds
