"""
Divergence Detector component for the Multi-Timeframe Confluence Engine.

This component flags disagreements between adjacent canonical periods and
grades them by severity. Coarser pairs start at a higher severity and any
pair escalates to HIGH when either side is strongly trending.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from ..core import Divergence, HierarchyEntry, Severity, SignalType


class DivergenceDetector:
    """
    Detects directional divergences between adjacent periods.

    A divergence only fires when both periods are present, both are
    directional and their signals differ.
    """

    DIVERGENCE = "DIVERGENCE"
    STRONG_DIVERGENCE = "STRONG_DIVERGENCE"
    BULLISH_OSCILLATOR_DIVERGENCE = "BULLISH_OSCILLATOR_DIVERGENCE"
    BEARISH_OSCILLATOR_DIVERGENCE = "BEARISH_OSCILLATOR_DIVERGENCE"

    def __init__(self, config: Dict):
        """
        Initialize the divergence detector.

        Args:
            config: Configuration dictionary with period pairs and thresholds
        """
        self.config = config

        self.pairs = config.get("pairs", [
            ["24h", "4h", "HIGH"],
            ["4h", "1h", "MEDIUM"],
            ["1h", "30m", "LOW"],
            ["30m", "15m", "LOW"],
            ["15m", "5m", "LOW"],
        ])
        self.escalation_trend_strength = config.get("escalation_trend_strength", 40.0)

        # Divergence history
        self.divergence_history: List[Divergence] = []
        self.max_history_size = config.get("max_history_size", 500)

    def detect(self, hierarchy: List[HierarchyEntry]) -> List[Divergence]:
        """
        Detect divergences across the configured period pairs.

        Args:
            hierarchy: Hierarchy entries in canonical order

        Returns:
            List[Divergence]: Divergences in pair order
        """
        by_period = {entry.period: entry for entry in hierarchy}
        divergences = []

        for coarse_period, fine_period, base_severity in self.pairs:
            coarse = by_period.get(coarse_period)
            fine = by_period.get(fine_period)
            if coarse is None or fine is None:
                continue

            divergence = self.compare(coarse, fine, Severity[base_severity])
            if divergence is not None:
                divergences.append(divergence)

        self.divergence_history.extend(divergences)
        if len(self.divergence_history) > self.max_history_size:
            self.divergence_history = self.divergence_history[-self.max_history_size:]

        return divergences

    def compare(self, coarse: HierarchyEntry, fine: HierarchyEntry,
                base_severity: Severity) -> Optional[Divergence]:
        """
        Compare one pair of periods.

        Args:
            coarse: The coarser period's entry
            fine: The finer period's entry
            base_severity: Severity assigned to the pair

        Returns:
            Optional[Divergence]: Divergence, or None when the pair agrees or
            either side is HOLD
        """
        if not coarse.signal.is_directional or not fine.signal.is_directional:
            return None
        if coarse.signal is fine.signal:
            return None

        escalated = (coarse.trend_strength > self.escalation_trend_strength
                     or fine.trend_strength > self.escalation_trend_strength)
        severity = Severity.HIGH if escalated else base_severity
        label = self.STRONG_DIVERGENCE if escalated else self.DIVERGENCE

        if (coarse.signal is SignalType.BUY and fine.signal is SignalType.SELL
                and coarse.price > fine.price and coarse.oscillator < fine.oscillator):
            label = self.BULLISH_OSCILLATOR_DIVERGENCE
        elif (coarse.signal is SignalType.SELL and fine.signal is SignalType.BUY
                and coarse.price < fine.price and coarse.oscillator > fine.oscillator):
            label = self.BEARISH_OSCILLATOR_DIVERGENCE

        return Divergence(
            coarse_period=coarse.period,
            fine_period=fine.period,
            coarse_signal=coarse.signal,
            fine_signal=fine.signal,
            severity=severity,
            label=label,
            description=(
                f"{coarse.period} wants {coarse.signal.value} "
                f"but {fine.period} wants {fine.signal.value}"
            ),
        )

    @staticmethod
    def has_high_severity(divergences: List[Divergence]) -> bool:
        """Whether any divergence is HIGH severity."""
        return any(d.severity is Severity.HIGH for d in divergences)

    def get_divergence_statistics(self) -> Dict[str, int]:
        """Count historical divergences by severity."""
        counts: Dict[str, int] = defaultdict(int)
        for divergence in self.divergence_history:
            counts[divergence.severity.value] += 1
        counts["total"] = len(self.divergence_history)
        return dict(counts)
