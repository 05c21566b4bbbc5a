"""
Force Aggregator component for the Multi-Timeframe Confluence Engine.

This component combines the hierarchy into a buy force and a sell force
using weighted voting, ignoring periods that are on HOLD.
"""

from typing import Dict, List

from ..core import ForceScore, ForceWinner, HierarchyEntry, SignalType


class ForceAggregator:
    """
    Aggregates weighted directional force across periods.

    Each side's weighted strength is renormalized by the total weight of the
    contributing (non-HOLD) periods, then expressed as that side's share of
    the two, so both forces fall in [0, 100].
    """

    def __init__(self, config: Dict):
        """
        Initialize the force aggregator.

        Args:
            config: Configuration dictionary with aggregation parameters
        """
        self.config = config
        self.precision = config.get("precision", 1)

    def aggregate(self, hierarchy: List[HierarchyEntry]) -> ForceScore:
        """
        Aggregate directional force.

        Args:
            hierarchy: Hierarchy entries

        Returns:
            ForceScore: Buy/sell forces, winner and margin
        """
        votes = self._calculate_weighted_votes(hierarchy)
        contributing_weight = sum(
            entry.weight for entry in hierarchy if entry.signal.is_directional
        )

        if contributing_weight <= 0:
            return ForceScore()

        buy_mean = votes[SignalType.BUY] / contributing_weight
        sell_mean = votes[SignalType.SELL] / contributing_weight
        total = buy_mean + sell_mean
        if total <= 0:
            return ForceScore()

        buy_force = round(buy_mean / total * 100.0, self.precision)
        sell_force = round(sell_mean / total * 100.0, self.precision)

        if buy_force > sell_force:
            winner = ForceWinner.BUY
        elif sell_force > buy_force:
            winner = ForceWinner.SELL
        else:
            winner = ForceWinner.TIE

        return ForceScore(
            buy_force=buy_force,
            sell_force=sell_force,
            winner=winner,
            margin=round(abs(buy_force - sell_force), self.precision),
        )

    @staticmethod
    def _calculate_weighted_votes(hierarchy: List[HierarchyEntry]) -> Dict[SignalType, float]:
        """Sum weight times strength per direction."""
        votes = {SignalType.BUY: 0.0, SignalType.SELL: 0.0}
        for entry in hierarchy:
            if entry.signal.is_directional:
                votes[entry.signal] += entry.weight * entry.strength
        return votes
