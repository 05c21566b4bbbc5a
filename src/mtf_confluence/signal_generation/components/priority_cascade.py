"""
Priority Rule Cascade component for the Multi-Timeframe Confluence Engine.

This component walks an ordered list of named rules and returns the outcome
of the first rule that matches. Each rule is a plain function over a
RuleContext so it can be evaluated and tested on its own.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..core import AlignedSequence, HierarchyEntry, PriorityResult


@dataclass(frozen=True)
class RuleContext:
    """Inputs visible to every priority rule."""
    hierarchy: Dict[str, HierarchyEntry]
    sequences: List[AlignedSequence]


@dataclass(frozen=True)
class PriorityRule:
    """A named rule returning a PriorityResult when it matches."""
    name: str
    evaluate: Callable[[RuleContext], Optional[PriorityResult]]


class PriorityRuleCascade:
    """
    Resolves a single priority signal from the hierarchy and sequences.

    Rules, in order:
        1. a sequence of five or more aligned periods
        2. a sequence of four aligned periods
        3. the coarsest period trending very strongly
        4. the mid-coarse period trending strongly against the finer period
        5. the mid-coarse and finer periods agreeing
        6. the strongest trending directional period
    """

    def __init__(self, config: Dict):
        """
        Initialize the priority rule cascade.

        Args:
            config: Configuration dictionary with periods and thresholds
        """
        self.config = config

        self.coarsest_period = config.get("coarsest_period", "24h")
        self.mid_coarse_period = config.get("mid_coarse_period", "4h")
        self.finer_period = config.get("finer_period", "1h")

        self.coarsest_trend_strength = config.get("coarsest_trend_strength", 50.0)
        self.mid_coarse_trend_strength = config.get("mid_coarse_trend_strength", 40.0)
        self.fallback_trend_strength = config.get("fallback_trend_strength", 30.0)

        self.rules: List[PriorityRule] = [
            PriorityRule("five_period_sequence", self._five_period_sequence),
            PriorityRule("four_period_sequence", self._four_period_sequence),
            PriorityRule("coarsest_dominates", self._coarsest_dominates),
            PriorityRule("mid_coarse_overrides_finer", self._mid_coarse_overrides_finer),
            PriorityRule("mid_coarse_finer_agreement", self._mid_coarse_finer_agreement),
            PriorityRule("strongest_trend_fallback", self._strongest_trend_fallback),
        ]

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def resolve(self, hierarchy: List[HierarchyEntry],
                sequences: List[AlignedSequence]) -> Optional[PriorityResult]:
        """
        Return the outcome of the first matching rule.

        Args:
            hierarchy: Hierarchy entries
            sequences: Aligned sequences, strongest first

        Returns:
            Optional[PriorityResult]: Priority outcome, or None when no rule
            matches
        """
        context = self._context(hierarchy, sequences)
        for rule in self.rules:
            result = rule.evaluate(context)
            if result is not None:
                return result
        return None

    def evaluate_rule(self, name: str, hierarchy: List[HierarchyEntry],
                      sequences: List[AlignedSequence]) -> Optional[PriorityResult]:
        """Evaluate a single rule by name."""
        for rule in self.rules:
            if rule.name == name:
                return rule.evaluate(self._context(hierarchy, sequences))
        raise KeyError(f"Unknown priority rule: {name}")

    @staticmethod
    def _context(hierarchy: List[HierarchyEntry], sequences: List[AlignedSequence]) -> RuleContext:
        return RuleContext(
            hierarchy={entry.period: entry for entry in hierarchy},
            sequences=list(sequences),
        )

    def _sequence_rule(self, context: RuleContext, min_length: int,
                       name: str) -> Optional[PriorityResult]:
        for sequence in context.sequences:
            if len(sequence) >= min_length:
                return PriorityResult(
                    rule=name,
                    signal=sequence.signal,
                    reason=f"Sequence of {len(sequence)} aligned periods: {sequence.description}",
                )
        return None

    def _five_period_sequence(self, context: RuleContext) -> Optional[PriorityResult]:
        return self._sequence_rule(context, 5, "five_period_sequence")

    def _four_period_sequence(self, context: RuleContext) -> Optional[PriorityResult]:
        return self._sequence_rule(context, 4, "four_period_sequence")

    def _coarsest_dominates(self, context: RuleContext) -> Optional[PriorityResult]:
        entry = context.hierarchy.get(self.coarsest_period)
        if entry is None or not entry.signal.is_directional:
            return None
        if entry.trend_strength < self.coarsest_trend_strength:
            return None
        return PriorityResult(
            rule="coarsest_dominates",
            signal=entry.signal,
            reason=(
                f"{entry.period} trend-strength {entry.trend_strength:.1f} "
                f"dominates with {entry.signal.value}"
            ),
        )

    def _mid_coarse_overrides_finer(self, context: RuleContext) -> Optional[PriorityResult]:
        mid = context.hierarchy.get(self.mid_coarse_period)
        finer = context.hierarchy.get(self.finer_period)
        if mid is None or finer is None or not mid.signal.is_directional:
            return None
        if mid.trend_strength < self.mid_coarse_trend_strength or mid.signal is finer.signal:
            return None
        return PriorityResult(
            rule="mid_coarse_overrides_finer",
            signal=mid.signal,
            reason=(
                f"{mid.period} strong trend ({mid.trend_strength:.1f}) "
                f"overrides {finer.period} {finer.signal.value}"
            ),
        )

    def _mid_coarse_finer_agreement(self, context: RuleContext) -> Optional[PriorityResult]:
        mid = context.hierarchy.get(self.mid_coarse_period)
        finer = context.hierarchy.get(self.finer_period)
        if mid is None or finer is None or not mid.signal.is_directional:
            return None
        if mid.signal is not finer.signal:
            return None
        return PriorityResult(
            rule="mid_coarse_finer_agreement",
            signal=mid.signal,
            reason=f"{mid.period} and {finer.period} agree on {mid.signal.value}",
        )

    def _strongest_trend_fallback(self, context: RuleContext) -> Optional[PriorityResult]:
        directional = [e for e in context.hierarchy.values() if e.signal.is_directional]
        if not directional:
            return None
        strongest = max(directional, key=lambda entry: entry.trend_strength)
        if strongest.trend_strength <= self.fallback_trend_strength:
            return None
        return PriorityResult(
            rule="strongest_trend_fallback",
            signal=strongest.signal,
            reason=(
                f"Strongest trend on {strongest.period} "
                f"({strongest.trend_strength:.1f}) wants {strongest.signal.value}"
            ),
        )
