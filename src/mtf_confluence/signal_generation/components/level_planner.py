"""
Level Planner component for the Multi-Timeframe Confluence Engine.

Derives a support/resistance ladder, a stop-loss and two targets from the
current price and a volatility proxy built from trend-strength and recent
candle ranges.
"""

from typing import Dict, List, Optional

import numpy as np

from ..core import PeriodAnalysis, SignalType, TradeLevels


class LevelPlanner:
    """Plans price levels for a directional signal."""

    def __init__(self, config: Dict):
        """
        Initialize the level planner.

        Args:
            config: Configuration dictionary with level parameters
        """
        self.config = config

        self.price_periods = config.get("price_periods", ["1h", "4h"])
        self.min_volatility = config.get("min_volatility", 0.005)
        self.min_proxy = config.get("min_proxy", 0.01)
        self.default_range_ratio = config.get("default_range_ratio", 0.01)
        self.range_multiplier = config.get("range_multiplier", 2.0)
        self.ladder_multipliers = config.get("ladder_multipliers", [1.0, 1.5, 2.0])
        self.stop_multiplier = config.get("stop_multiplier", 1.5)
        self.price_precision = config.get("price_precision", 2)
        self.min_level = config.get("min_level", 1.0)

    def current_price(self, analyses: List[PeriodAnalysis]) -> float:
        """
        Resolve the reference price.

        Args:
            analyses: Per-period analyses

        Returns:
            float: Price of the first preferred period with a price, else the
            first analysis with a price, else 0.0
        """
        by_period = {analysis.period: analysis for analysis in analyses}
        for period in self.price_periods:
            analysis = by_period.get(period)
            if analysis is not None and analysis.price > 0:
                return analysis.price
        for analysis in analyses:
            if analysis.price > 0:
                return analysis.price
        return 0.0

    def volatility_proxy(self, analyses: List[PeriodAnalysis]) -> float:
        """
        Relative volatility used to space the levels.

        Each last candle range is taken relative to its own period price;
        zero or invalid ranges are skipped.
        """
        strengths = [a.trend_strength for a in analyses if a.trend_strength]
        trend_volatility = np.mean(strengths) / 100.0 if strengths else 0.0
        trend_volatility = max(self.min_volatility, trend_volatility)

        ranges = [
            a.last_candle.range / a.price
            for a in analyses
            if a.last_candle is not None and a.price > 0
        ]
        ranges = [r for r in ranges if np.isfinite(r) and r > 0]
        range_ratio = float(np.mean(ranges)) if ranges else self.default_range_ratio

        return float(max(trend_volatility, range_ratio * self.range_multiplier, self.min_proxy))

    def plan(self, signal: Optional[SignalType], analyses: List[PeriodAnalysis],
             price: Optional[float] = None) -> TradeLevels:
        """
        Plan levels around the current price.

        Args:
            signal: Direction to plan for; None or HOLD plans neutral levels
            analyses: Per-period analyses
            price: Reference price, resolved from the analyses when omitted

        Returns:
            TradeLevels: Levels, each floored at ``min_level``
        """
        if price is None:
            price = self.current_price(analyses)

        if price <= 0:
            return self._neutral_levels(price)

        proxy = self.volatility_proxy(analyses)
        distances = [proxy * price * multiplier for multiplier in self.ladder_multipliers]
        supports = tuple(self._level(price - distance) for distance in distances)
        resistances = tuple(self._level(price + distance) for distance in distances)
        stop_distance = proxy * price * self.stop_multiplier

        if signal is SignalType.BUY:
            stop_loss = self._level(max(supports[1], price - stop_distance))
            targets = (resistances[0], resistances[1])
        elif signal is SignalType.SELL:
            stop_loss = self._level(min(resistances[1], price + stop_distance))
            targets = (supports[0], supports[1])
        else:
            stop_loss = self._level(price)
            targets = (self._level(price), self._level(price))

        return TradeLevels(
            entry=self._level(price),
            supports=supports,
            resistances=resistances,
            stop_loss=stop_loss,
            targets=targets,
            risk_reward_ratio=self._risk_reward(price, stop_loss, targets[0]),
        )

    def _neutral_levels(self, price: float) -> TradeLevels:
        level = self._level(price)
        return TradeLevels(
            entry=level,
            supports=(level, level, level),
            resistances=(level, level, level),
            stop_loss=level,
            targets=(level, level),
        )

    def _level(self, value: float) -> float:
        return max(self.min_level, round(float(value), self.price_precision))

    @staticmethod
    def _risk_reward(price: float, stop_loss: float, target: float) -> Optional[float]:
        risk = abs(price - stop_loss)
        if risk == 0:
            return None
        return round(abs(target - price) / risk, 2)
