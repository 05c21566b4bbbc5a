"""
Sequence Detector component for the Multi-Timeframe Confluence Engine.

Finds contiguous runs of canonical periods that all point the same way.
"""

from typing import Dict, List, Sequence

from ..core import AlignedSequence, HierarchyEntry


class SequenceDetector:
    """Detects aligned sequences over sliding windows of the canonical order."""

    def __init__(self, config: Dict, canonical_periods: Sequence[str]):
        """
        Initialize the sequence detector.

        Args:
            config: Configuration dictionary with window sizes
            canonical_periods: Canonical period ids, coarsest first
        """
        self.config = config
        self.window_sizes = config.get("window_sizes", [3, 4, 5])
        self.canonical_periods = list(canonical_periods)

    def detect(self, hierarchy: List[HierarchyEntry]) -> List[AlignedSequence]:
        """
        Detect aligned sequences.

        Every member of a window must be present and share the same
        directional signal. Results are deduplicated and sorted by summed
        strength, strongest first.

        Args:
            hierarchy: Hierarchy entries

        Returns:
            List[AlignedSequence]: Aligned sequences
        """
        by_period = {entry.period: entry for entry in hierarchy}
        sequences: Dict[tuple, AlignedSequence] = {}

        for size in self.window_sizes:
            if size > len(self.canonical_periods):
                continue
            for start in range(len(self.canonical_periods) - size + 1):
                window = tuple(self.canonical_periods[start:start + size])
                if window in sequences:
                    continue

                members = [by_period.get(period) for period in window]
                if any(member is None for member in members):
                    continue

                signal = members[0].signal
                if not signal.is_directional or any(m.signal is not signal for m in members):
                    continue

                sequences[window] = AlignedSequence(
                    periods=window,
                    signal=signal,
                    strength=float(sum(m.strength for m in members)),
                    description=f"{size} aligned periods ({', '.join(window)}) want {signal.value}",
                )

        return sorted(sequences.values(), key=lambda seq: seq.strength, reverse=True)
