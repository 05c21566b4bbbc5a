"""
Hierarchy Builder component for the Multi-Timeframe Confluence Engine.

Projects per-period analyses onto the fixed canonical ordering
(24h, 4h, 1h, 30m, 15m, 5m) and attaches each period's weight.
"""

from typing import Dict, Iterable, List, Optional

from ..core import HierarchyEntry, PeriodAnalysis


class HierarchyBuilder:
    """Builds the weighted period hierarchy, coarsest period first."""

    def __init__(self, config: Dict):
        """
        Initialize the hierarchy builder.

        Args:
            config: Configuration dictionary with period weights and aliases
        """
        self.config = config

        self.period_weights: Dict[str, float] = config.get("period_weights", {
            "24h": 0.35,
            "4h": 0.25,
            "1h": 0.20,
            "30m": 0.10,
            "15m": 0.06,
            "5m": 0.04,
        })
        self.period_aliases: Dict[str, str] = {
            alias.upper(): period for alias, period in config.get("period_aliases", {}).items()
        }

    @property
    def canonical_periods(self) -> List[str]:
        """Canonical period ids, coarsest first."""
        return list(self.period_weights.keys())

    def normalize_period(self, period: str) -> str:
        """Map aliases such as "H4" or "D1" onto canonical ids."""
        if period in self.period_weights:
            return period
        lowered = period.lower()
        if lowered in self.period_weights:
            return lowered
        return self.period_aliases.get(period.upper(), period)

    def weight_for(self, period: str) -> float:
        """Weight of a period, 0.0 when it is not canonical."""
        return self.period_weights.get(self.normalize_period(period), 0.0)

    def build(self, analyses: Iterable[PeriodAnalysis]) -> List[HierarchyEntry]:
        """
        Build hierarchy entries for the canonical periods present.

        Args:
            analyses: Per-period analyses in any order

        Returns:
            List[HierarchyEntry]: Entries in canonical order; missing and
            non-canonical periods are absent
        """
        by_period: Dict[str, PeriodAnalysis] = {}
        for analysis in analyses:
            period = self.normalize_period(analysis.period)
            if period in self.period_weights:
                by_period[period] = analysis

        return [
            HierarchyEntry(
                period=period,
                signal=by_period[period].signal,
                strength=by_period[period].strength,
                weight=self.period_weights[period],
                trend=by_period[period].trend,
                trend_strength=by_period[period].trend_strength,
                oscillator=by_period[period].oscillator,
                price=by_period[period].price,
            )
            for period in self.canonical_periods
            if period in by_period
        ]

    @staticmethod
    def dominant_period(entries: List[HierarchyEntry]) -> Optional[str]:
        """Period with the highest trend-strength; earliest wins ties."""
        if not entries:
            return None
        return max(entries, key=lambda entry: entry.trend_strength).period
