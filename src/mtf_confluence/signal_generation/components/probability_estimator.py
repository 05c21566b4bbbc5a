"""
Probability Estimator component for the Multi-Timeframe Confluence Engine.

The estimate is expressed as the probability of an upward move: values
above 50 favour BUY and values below 50 favour SELL. It starts at 50 and is
nudged by the force margin, the strongest aligned sequence and the priority
signal, then pulled back towards 50 when a high severity divergence exists.

An optional corroboration step applies externally supplied pattern,
wave-count and reliability verdicts in a fixed order.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..core import (
    AlignedSequence,
    Divergence,
    ForceScore,
    ForceWinner,
    PriorityResult,
    Severity,
    SignalType,
)


@dataclass(frozen=True)
class Corroboration:
    """
    Corroborating verdicts produced outside the engine.

    Attributes:
        pattern_confirmed: Swing pattern verdict, None when unavailable
        wave_signal: Direction suggested by a wave count, None when neutral
        wave_confidence: Wave count confidence (0-100)
        combined_signal: Direction suggested by a combined indicator read
        reliable: Whether the entry passed the reliability check
        volatility_pct: Recent volatility in percent
        sensitivity: Market sensitivity multiplier, None for 1.0
        aggressiveness: Aggressiveness multiplier, None for the configured
            asset aggressiveness
    """
    pattern_confirmed: Optional[bool] = None
    wave_signal: Optional[SignalType] = None
    wave_confidence: float = 0.0
    combined_signal: Optional[SignalType] = None
    reliable: bool = True
    volatility_pct: Optional[float] = None
    sensitivity: Optional[float] = None
    aggressiveness: Optional[float] = None


class ProbabilityEstimator:
    """Estimates the bounded probability behind a decision."""

    def __init__(self, config: Dict):
        """
        Initialize the probability estimator.

        Args:
            config: Configuration dictionary with probability parameters
        """
        self.config = config

        self.base_probability = config.get("base_probability", 50.0)
        self.max_force_bonus = config.get("max_force_bonus", 20.0)
        self.max_sequence_bonus = config.get("max_sequence_bonus", 25.0)
        self.sequence_divisor = config.get("sequence_divisor", 4.0)
        self.priority_bonus = config.get("priority_bonus", 10.0)
        self.divergence_penalty = config.get("divergence_penalty", 5.0)
        self.max_divergence_penalty = config.get("max_divergence_penalty", 15.0)
        self.min_probability = config.get("min_probability", 10.0)
        self.max_probability = config.get("max_probability", 90.0)

        self.pattern_bonus = config.get("pattern_bonus", 7.0)
        self.pattern_penalty = config.get("pattern_penalty", 5.0)
        self.wave_bonus = config.get("wave_bonus", 8.0)
        self.wave_penalty = config.get("wave_penalty", 4.0)
        self.wave_override_margin = config.get("wave_override_margin", 10.0)
        self.convergence_bonus = config.get("convergence_bonus", 10.0)
        self.unreliable_factor = config.get("unreliable_factor", 0.7)
        self.aggressiveness = config.get("aggressiveness", 1.0)
        self.volatility_high_pct = config.get("volatility_high_pct", 2.0)
        self.volatility_low_pct = config.get("volatility_low_pct", 0.3)
        self.high_volatility_factor = config.get("high_volatility_factor", 0.92)
        self.low_volatility_factor = config.get("low_volatility_factor", 1.1)
        self.corroboration_bounds = config.get("corroboration_bounds", [30.0, 88.0])
        self.mode_bounds = config.get("mode_bounds", [35.0, 88.0])

        self.trading_mode = config.get("trading_mode", "STANDARD").upper()
        self.conservative_min_probability = config.get("conservative_min_probability", 55.0)
        self.conservative_floor = config.get("conservative_floor", 35.0)
        self.aggressive_multiplier = config.get("aggressive_multiplier", 1.12)
        self.aggressive_cap = config.get("aggressive_cap", 85.0)

    def estimate(self,
                 force: ForceScore,
                 sequences: List[AlignedSequence],
                 priority: Optional[PriorityResult],
                 divergences: List[Divergence]) -> float:
        """
        Estimate the decision probability.

        Args:
            force: Force aggregation result
            sequences: Aligned sequences, strongest first
            priority: Priority cascade outcome
            divergences: Detected divergences

        Returns:
            float: Rounded probability clamped to [min_probability, max_probability]
        """
        probability = self.base_probability

        if force.winner is not ForceWinner.TIE:
            bonus = min(self.max_force_bonus, force.margin)
            probability += bonus if force.winner is ForceWinner.BUY else -bonus

        if sequences:
            strongest = max(sequences, key=lambda seq: seq.strength)
            bonus = min(self.max_sequence_bonus, strongest.strength / self.sequence_divisor)
            probability += self._signed(strongest.signal, bonus)

        if priority is not None:
            probability += self._signed(priority.signal, self.priority_bonus)

        if any(d.severity is Severity.HIGH for d in divergences):
            reduction = min(self.max_divergence_penalty, self.divergence_penalty * len(divergences))
            if probability > self.base_probability:
                probability = max(self.base_probability, probability - reduction)
            elif probability < self.base_probability:
                probability = min(self.base_probability, probability + reduction)

        return self.clamp(self.round_half_up(probability))

    def corroborate(self, signal: SignalType, probability: float,
                    corroboration: Corroboration) -> Tuple[SignalType, float, List[str]]:
        """
        Apply corroborating verdicts to a decision.

        The adjustments act on the conviction in the signal's own direction
        and run in a fixed order: pattern, wave count, convergence,
        reliability, sensitivity and aggressiveness, volatility, trading mode.

        Args:
            signal: Current final signal
            probability: Current probability of an upward move
            corroboration: Externally supplied verdicts

        Returns:
            Tuple[SignalType, float, List[str]]: (signal, probability, notes)
        """
        if not signal.is_directional:
            return signal, probability, []

        notes = []
        adjusted_signal = signal
        conviction = probability if signal is SignalType.BUY else 100.0 - probability

        if corroboration.pattern_confirmed is True:
            conviction += self.pattern_bonus
            notes.append("Confirmed by swing pattern")
        elif corroboration.pattern_confirmed is False:
            conviction -= self.pattern_penalty
            notes.append("Swing pattern does not confirm")

        wave_confirms = corroboration.wave_signal is signal
        if wave_confirms:
            conviction += self.wave_bonus
            notes.append("Confirmed by wave count")
        elif corroboration.wave_signal is not None and corroboration.wave_signal.is_directional:
            if corroboration.wave_confidence > conviction + self.wave_override_margin:
                adjusted_signal = corroboration.wave_signal
                conviction = corroboration.wave_confidence
                notes.append("Wave count overrides direction")
            else:
                conviction -= self.wave_penalty
                notes.append("Wave count suggests a different direction")

        converging = [
            corroboration.combined_signal is signal,
            wave_confirms or corroboration.wave_signal is adjusted_signal,
        ]
        if all(converging):
            conviction += self.convergence_bonus
            notes.append("High convergence between methods")

        if not corroboration.reliable:
            conviction *= self.unreliable_factor
            notes.append("Low reliability")

        sensitivity = 1.0 if corroboration.sensitivity is None else corroboration.sensitivity
        aggressiveness = self.aggressiveness if corroboration.aggressiveness is None else corroboration.aggressiveness
        conviction *= min(1.5, max(0.8, sensitivity))
        conviction *= min(1.5, max(0.8, aggressiveness))

        volatility = corroboration.volatility_pct
        if volatility is not None and volatility > self.volatility_high_pct:
            conviction *= self.high_volatility_factor
            notes.append("High volatility")
        elif volatility is not None and volatility < self.volatility_low_pct:
            conviction *= self.low_volatility_factor
            notes.append("Low volatility")

        low, high = self.corroboration_bounds
        conviction = min(max(conviction, low), high)
        conviction = self.apply_trading_mode(conviction)
        low, high = self.mode_bounds
        conviction = min(max(conviction, low), high)

        adjusted = conviction if adjusted_signal is SignalType.BUY else 100.0 - conviction
        return adjusted_signal, self.clamp(self.round_half_up(adjusted)), notes

    def apply_trading_mode(self, conviction: float) -> float:
        """Apply the configured trading mode filter to a conviction."""
        if self.trading_mode == "CONSERVATIVE":
            return conviction if conviction >= self.conservative_min_probability else self.conservative_floor
        if self.trading_mode == "AGGRESSIVE":
            return min(self.aggressive_cap, conviction * self.aggressive_multiplier)
        return conviction

    def clamp(self, probability: float) -> float:
        return float(min(max(probability, self.min_probability), self.max_probability))

    @staticmethod
    def round_half_up(probability: float) -> int:
        """Round to the nearest integer with halves going up (72.5 -> 73, 27.5 -> 28)."""
        return math.floor(probability + 0.5)

    @staticmethod
    def _signed(signal: SignalType, amount: float) -> float:
        if signal is SignalType.BUY:
            return amount
        if signal is SignalType.SELL:
            return -amount
        return 0.0
