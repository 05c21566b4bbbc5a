"""
Main Signal Generator class for the Multi-Timeframe Confluence Engine.

This class orchestrates all components to fuse per-period analyses into one
Decision, and optionally runs the regime path on the coarse and fine periods
in the same cycle.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import time

from .core import (
    ConfidenceLabel,
    Decision,
    Divergence,
    ForceScore,
    HierarchyEntry,
    PeriodAnalysis,
    PeriodSnapshot,
    PriorityResult,
    AlignedSequence,
    Severity,
    SignalType,
    TradeLevels,
)
from .components import (
    PeriodAnalyzer,
    HierarchyBuilder,
    DivergenceDetector,
    SequenceDetector,
    ForceAggregator,
    PriorityRuleCascade,
    ProbabilityEstimator,
    Corroboration,
    LevelPlanner,
    DualTrendAnalyzer,
    MarketWeightsAnalyzer,
    MarketRegimeDetector,
    RegimeAnalysis,
)
from ..analysis.market_regime import DailyContext
from ..config.settings import settings
from ..config.signal_generation import signal_generation_config
from ..utils.logging import decision_context, get_logger

logger = get_logger(__name__)

Snapshots = Union[Mapping[str, PeriodSnapshot], Iterable[PeriodSnapshot]]


@dataclass(frozen=True)
class CycleResult:
    """Decision, regime analysis and applied corroboration of one cycle."""
    decision: Decision
    regime: Optional[RegimeAnalysis] = None
    corroboration: Optional[Corroboration] = None


class MultiTimeframeSignalGenerator:
    """
    Main decision engine that orchestrates all components.

    A cycle runs: per-period analysis, hierarchy, divergences, aligned
    sequences, force aggregation, priority cascade, probability, final
    signal resolution and level planning.
    """

    def __init__(self, config: Dict):
        """
        Initialize the signal generator.

        Args:
            config: Configuration dictionary with all parameters, as produced
                by ``SignalGenerationConfig.to_dict()``
        """
        self.config = config
        self.symbol = config.get("symbol")

        # Initialize components
        self.period_analyzer = PeriodAnalyzer(config.get("period_analyzer", {}))
        self.hierarchy_builder = HierarchyBuilder(config.get("hierarchy", {}))
        self.divergence_detector = DivergenceDetector(config.get("divergence_detector", {}))
        self.sequence_detector = SequenceDetector(
            config.get("sequence_detector", {}), self.hierarchy_builder.canonical_periods
        )
        self.force_aggregator = ForceAggregator(config.get("force_aggregator", {}))
        self.priority_cascade = PriorityRuleCascade(config.get("priority_cascade", {}))
        self.probability_estimator = ProbabilityEstimator(config.get("probability_estimator", {}))
        self.level_planner = LevelPlanner(config.get("level_planner", {}))
        self.dual_trend_analyzer = DualTrendAnalyzer(config.get("dual_trend", {}))
        self.market_weights_analyzer = MarketWeightsAnalyzer(config.get("market_weights", {}))
        self.market_regime_detector = MarketRegimeDetector(
            config.get("market_regime", {}),
            exhaustion_config=config.get("exhaustion_detector", {}),
            pullback_config=config.get("pullback_zone", {}),
            validator_config=config.get("signal_validator", {}),
        )

        decision_config = config.get("decision", {})
        self.force_margin_threshold = decision_config.get("force_margin_threshold", 10.0)
        self.confidence_bands = decision_config.get("confidence_bands", {
            "VERY_HIGH": 80.0,
            "HIGH": 70.0,
            "MODERATE": 60.0,
            "LOW": 50.0,
        })
        self.buy_action_bands = decision_config.get("buy_action_bands", [75.0, 65.0, 55.0])
        self.sell_action_bands = decision_config.get("sell_action_bands", [25.0, 35.0, 45.0])
        self.alert_periods = decision_config.get("alert_periods", ["1h", "4h"])
        self.probability_alert_high = decision_config.get("probability_alert_high", 85.0)
        self.probability_alert_low = decision_config.get("probability_alert_low", 15.0)
        self.oscillator_alert_high = decision_config.get("oscillator_alert_high", 75.0)
        self.oscillator_alert_low = decision_config.get("oscillator_alert_low", 25.0)
        self.trend_strength_alert = decision_config.get("trend_strength_alert", 60.0)
        self.min_stop_distance_pct = decision_config.get("min_stop_distance_pct", 1.0)
        self.corroboration_period = decision_config.get("corroboration_period", "5m")

        # Decision history
        self.decision_history: List[Decision] = []
        self.max_history_size = config.get("max_history_size", 100)

        # Performance tracking
        self.performance_metrics = {
            "total_decisions": 0,
            "directional_decisions": 0,
            "error_decisions": 0,
            "avg_generation_time": 0.0,
        }

    @classmethod
    def from_settings(cls, symbol: Optional[str] = None) -> 'MultiTimeframeSignalGenerator':
        """
        Build a generator from the global configuration and engine settings.

        Args:
            symbol: Trading symbol whose asset profile tunes the thresholds

        Returns:
            MultiTimeframeSignalGenerator: Configured generator
        """
        engine = settings.engine
        config = signal_generation_config.for_symbol(symbol or engine.DEFAULT_SYMBOL).to_dict()
        config["max_history_size"] = engine.SIGNAL_HISTORY_SIZE
        config["market_regime"]["max_history_size"] = engine.REGIME_HISTORY_SIZE
        config["probability_estimator"]["trading_mode"] = engine.TRADING_MODE
        config["symbol"] = symbol or engine.DEFAULT_SYMBOL
        return cls(config)

    def run_cycle(self,
                  snapshots: Snapshots,
                  daily_context: Optional[DailyContext] = None,
                  veto: bool = False,
                  composite_score: float = 50.0,
                  corroboration: Optional[Corroboration] = None,
                  run_regime: bool = True,
                  corroborate: bool = False) -> CycleResult:
        """
        Run one full cycle: the decision path and the regime path.

        Args:
            snapshots: Period snapshots, as a mapping or an iterable
            daily_context: Optional daily context for the regime path
            veto: External veto flag for the regime path
            composite_score: External composite score (0-100)
            corroboration: Optional corroborating verdicts for the probability
            run_regime: Whether to run the regime path
            corroborate: Whether to complete the corroboration with the dual
                trend and market weights reads of the reference period

        Returns:
            CycleResult: Decision, regime analysis and applied corroboration
        """
        normalized = self._normalize(snapshots)
        if corroborate and normalized:
            corroboration = self.build_corroboration(self.reference_snapshot(normalized), corroboration)
        decision = self.generate_decision(normalized, corroboration)

        regime = None
        if run_regime:
            by_period = {snapshot.period: snapshot for snapshot in normalized}
            detector = self.market_regime_detector
            regime = detector.detect(
                by_period.get(detector.coarse_period),
                by_period.get(detector.fine_period),
                daily_context=daily_context,
                composite_score=composite_score,
                veto=veto,
            )

        return CycleResult(decision=decision, regime=regime, corroboration=corroboration)

    def reference_snapshot(self, snapshots: List[PeriodSnapshot]) -> Optional[PeriodSnapshot]:
        """
        Snapshot that feeds the built-in corroboration.

        The configured corroboration period when present, else the finest
        canonical period given, else the last snapshot.
        """
        if not snapshots:
            return None
        by_period = {snapshot.period: snapshot for snapshot in snapshots}
        if self.corroboration_period in by_period:
            return by_period[self.corroboration_period]
        for period in reversed(self.hierarchy_builder.canonical_periods):
            if period in by_period:
                return by_period[period]
        return snapshots[-1]

    def build_corroboration(self, snapshot: Optional[PeriodSnapshot],
                            base: Optional[Corroboration] = None) -> Corroboration:
        """
        Complete a corroboration with the dual trend and market weights reads.

        Only unset fields are filled: the combined signal from a directional
        dual trend verdict, sensitivity and aggressiveness from the market
        weights, and volatility when the weights were actually computed.

        Args:
            snapshot: Reference period snapshot
            base: Externally supplied verdicts to complete

        Returns:
            Corroboration: Completed corroboration
        """
        base = base or Corroboration()
        candles = snapshot.candles if snapshot is not None else ()
        updates: Dict[str, Any] = {}

        if base.combined_signal is None:
            dual = self.dual_trend_analyzer.analyze(candles)
            if dual is not None:
                signal, _, reason = self.dual_trend_analyzer.final_signal(dual)
                if signal.is_directional:
                    updates["combined_signal"] = signal
                logger.debug("Dual trend read", signal=signal.value, reason=reason)

        if base.sensitivity is None or base.aggressiveness is None or base.volatility_pct is None:
            weights = self.market_weights_analyzer.analyze(candles)
            if base.sensitivity is None:
                updates["sensitivity"] = weights.sensitivity
            if base.aggressiveness is None:
                updates["aggressiveness"] = weights.aggressiveness
            if base.volatility_pct is None and not weights.from_defaults:
                updates["volatility_pct"] = weights.volatility_pct

        return replace(base, **updates)

    def generate_decision(self, snapshots: Snapshots,
                          corroboration: Optional[Corroboration] = None) -> Decision:
        """
        Generate a trading decision from period snapshots.

        Args:
            snapshots: Period snapshots, as a mapping or an iterable
            corroboration: Optional corroborating verdicts for the probability

        Returns:
            Decision: Final decision; on empty input or failure a HOLD
            decision with ``error`` set
        """
        start_time = time.time()

        with decision_context(self.performance_metrics["total_decisions"] + 1, self.symbol):
            try:
                normalized = self._normalize(snapshots)
                if not normalized:
                    decision = self._error_decision("No period snapshots provided")
                else:
                    decision = self._decide(normalized, corroboration)
            except Exception as e:
                logger.exception("Decision cycle failed", error=str(e))
                decision = self._error_decision(f"Error generating decision: {str(e)}")

        self._store_decision(decision)
        self._update_performance_metrics(time.time() - start_time, decision)
        return decision

    def _decide(self, snapshots: List[PeriodSnapshot],
                corroboration: Optional[Corroboration]) -> Decision:
        steps = []

        # 1. Analyze each period
        analyses = self.period_analyzer.analyze_all(snapshots)
        steps.append(f"Analyzed {len(analyses)} periods: {', '.join(a.period for a in analyses)}")

        # 2. Build the weighted hierarchy
        hierarchy = self.hierarchy_builder.build(analyses)
        dominant = self.hierarchy_builder.dominant_period(hierarchy)
        steps.append(f"Hierarchy built with {len(hierarchy)} canonical periods")

        # 3. Detect divergences and aligned sequences
        divergences = self.divergence_detector.detect(hierarchy)
        steps.append(f"Detected {len(divergences)} divergences")
        sequences = self.sequence_detector.detect(hierarchy)
        steps.append(f"Detected {len(sequences)} aligned sequences")

        # 4. Aggregate force
        force = self.force_aggregator.aggregate(hierarchy)
        steps.append(
            f"Force BUY {force.buy_force} vs SELL {force.sell_force}, winner {force.winner.value}"
        )

        # 5. Resolve the priority signal
        priority = self.priority_cascade.resolve(hierarchy, sequences)
        steps.append(
            f"Priority rule {priority.rule} gave {priority.signal.value}" if priority
            else "No priority rule matched"
        )

        # 6. Estimate probability
        probability = self.probability_estimator.estimate(force, sequences, priority, divergences)
        steps.append(f"Probability estimated at {probability:.0f}")

        # 7. Resolve the final signal
        final_signal = self.resolve_final_signal(priority, force, sequences)
        steps.append(f"Final signal {final_signal.value}")

        notes: List[str] = []
        if corroboration is not None:
            final_signal, probability, notes = self.probability_estimator.corroborate(
                final_signal, probability, corroboration
            )
            steps.append(f"Corroboration adjusted probability to {probability:.0f}")

        # 8. Plan levels
        price = self.level_planner.current_price(analyses)
        levels = self.level_planner.plan(priority.signal if priority else None, analyses, price)
        steps.append(f"Levels planned around {price}")

        confidence = self.confidence_label(probability)
        decision = Decision(
            final_signal=final_signal,
            probability=probability,
            confidence=confidence,
            action=self.action_for(final_signal, probability),
            levels=levels,
            price=price,
            alerts=tuple(self._build_alerts(analyses, hierarchy, divergences, sequences,
                                            probability, price, levels)),
            rationale=tuple(self._build_rationale(analyses, hierarchy, dominant, force, sequences,
                                                  divergences, priority, probability, confidence,
                                                  levels) + notes),
            steps=tuple(steps),
            dominant_period=dominant,
            priority=priority,
            force=force,
            analyses=tuple(analyses),
            hierarchy=tuple(hierarchy),
            divergences=tuple(divergences),
            sequences=tuple(sequences),
        )

        logger.debug(
            "Decision generated",
            signal=final_signal.value,
            probability=probability,
            rule=priority.rule if priority else None,
        )
        return decision

    def resolve_final_signal(self,
                             priority: Optional[PriorityResult],
                             force: ForceScore,
                             sequences: List[AlignedSequence]) -> SignalType:
        """
        Resolve the final signal.

        Priority signal first, then the force winner when its margin is wide
        enough, then the strongest aligned sequence, else HOLD.
        """
        if priority is not None:
            return priority.signal
        if force.winning_signal.is_directional and force.margin > self.force_margin_threshold:
            return force.winning_signal
        if sequences:
            return sequences[0].signal
        return SignalType.HOLD

    def confidence_label(self, probability: float) -> ConfidenceLabel:
        """Band a probability into a confidence label."""
        for label in ("VERY_HIGH", "HIGH", "MODERATE", "LOW"):
            if probability >= self.confidence_bands[label]:
                return ConfidenceLabel[label]
        return ConfidenceLabel.VERY_LOW

    def action_for(self, signal: SignalType, probability: float) -> str:
        """Recommended action text for a signal and probability."""
        if signal is SignalType.BUY:
            strong, moderate, weak = self.buy_action_bands
            if probability >= strong:
                return "Strong BUY: enter now"
            if probability >= moderate:
                return "BUY on dips"
            if probability >= weak:
                return "Wait for BUY confirmation"
            return "Hold: BUY signal too weak"

        if signal is SignalType.SELL:
            strong, moderate, weak = self.sell_action_bands
            if probability <= strong:
                return "Strong SELL: enter now"
            if probability <= moderate:
                return "SELL on rallies"
            if probability <= weak:
                return "Wait for SELL confirmation"
            return "Hold: SELL signal too weak"

        return "Stay out: no clear direction"

    def _build_alerts(self,
                      analyses: List[PeriodAnalysis],
                      hierarchy: List[HierarchyEntry],
                      divergences: List[Divergence],
                      sequences: List[AlignedSequence],
                      probability: float,
                      price: float,
                      levels: TradeLevels) -> List[str]:
        alerts = []

        high = next((d for d in divergences if d.severity is Severity.HIGH), None)
        if high is not None:
            alerts.append(f"High severity divergence: {high.description}")

        if len(sequences) >= 2:
            alerts.append(f"{len(sequences)} aligned sequences reinforce the signal")

        if probability > self.probability_alert_high:
            alerts.append(f"Very high BUY probability ({probability:.0f}%)")
        elif probability < self.probability_alert_low:
            alerts.append(f"Very high SELL probability ({100 - probability:.0f}%)")

        by_period = {analysis.period: analysis for analysis in analyses}
        for period in self.alert_periods:
            analysis = by_period.get(period)
            if analysis is None:
                continue
            if analysis.oscillator > self.oscillator_alert_high:
                alerts.append(f"{period} oscillator overbought ({analysis.oscillator:.1f})")
            elif analysis.oscillator < self.oscillator_alert_low:
                alerts.append(f"{period} oscillator oversold ({analysis.oscillator:.1f})")

        for entry in hierarchy:
            if entry.trend_strength > self.trend_strength_alert:
                alerts.append(f"{entry.period} extreme trend-strength ({entry.trend_strength:.1f})")

        if price > 0 and levels.stop_loss != levels.entry:
            distance_pct = abs(price - levels.stop_loss) / price * 100.0
            if distance_pct < self.min_stop_distance_pct:
                alerts.append(f"Stop-loss very close to price ({distance_pct:.2f}%)")

        for period in self.alert_periods:
            analysis = by_period.get(period)
            if analysis is not None and not analysis.volume.confirmed:
                alerts.append(f"{period} volume not confirmed")

        return alerts

    @staticmethod
    def _build_rationale(analyses: List[PeriodAnalysis],
                         hierarchy: List[HierarchyEntry],
                         dominant: Optional[str],
                         force: ForceScore,
                         sequences: List[AlignedSequence],
                         divergences: List[Divergence],
                         priority: Optional[PriorityResult],
                         probability: float,
                         confidence: ConfidenceLabel,
                         levels: TradeLevels) -> List[str]:
        lines = [f"Periods analyzed: {len(analyses)} ({', '.join(a.period for a in analyses)})"]

        if dominant is not None:
            dominant_entry = next(e for e in hierarchy if e.period == dominant)
            lines.append(
                f"Dominant period: {dominant} (trend-strength {dominant_entry.trend_strength:.1f})"
            )

        lines.append(
            f"Force: BUY {force.buy_force} vs SELL {force.sell_force} ({force.winner.value})"
        )
        lines.append(f"Aligned sequences: {len(sequences)}")
        lines.append(f"Divergences: {len(divergences)}")
        lines.append(f"Priority: {priority.reason}" if priority else "Priority: no rule matched")
        lines.append(f"Probability: {probability:.0f}% ({confidence.value})")
        lines.append(f"Stop-loss: {levels.stop_loss}")
        lines.append(f"Targets: {levels.targets[0]}, {levels.targets[1]}")
        return lines

    def _error_decision(self, message: str) -> Decision:
        """HOLD decision carrying an error message."""
        logger.warning("Returning error decision", error=message)
        base = self.probability_estimator.base_probability
        return Decision(
            final_signal=SignalType.HOLD,
            probability=base,
            confidence=self.confidence_label(base),
            action=self.action_for(SignalType.HOLD, base),
            levels=self.level_planner.plan(None, [], 0.0),
            rationale=(message,),
            error=message,
        )

    def _normalize(self, snapshots: Snapshots) -> List[PeriodSnapshot]:
        """Flatten the input and map period aliases onto canonical ids."""
        if snapshots is None:
            return []
        if isinstance(snapshots, Mapping):
            items = [
                snapshot if snapshot.period == period else replace(snapshot, period=period)
                for period, snapshot in snapshots.items()
            ]
        else:
            items = list(snapshots)

        normalized = []
        for snapshot in items:
            period = self.hierarchy_builder.normalize_period(snapshot.period)
            normalized.append(snapshot if period == snapshot.period else replace(snapshot, period=period))
        return normalized

    def _store_decision(self, decision: Decision):
        """Store decision in history."""
        self.decision_history.append(decision)

        # Keep history size manageable
        if len(self.decision_history) > self.max_history_size:
            self.decision_history.pop(0)

    def _update_performance_metrics(self, generation_time: float, decision: Decision):
        """Update performance metrics."""
        self.performance_metrics["total_decisions"] += 1

        if decision.final_signal.is_directional:
            self.performance_metrics["directional_decisions"] += 1
        if decision.error:
            self.performance_metrics["error_decisions"] += 1

        total = self.performance_metrics["total_decisions"]
        current_avg = self.performance_metrics["avg_generation_time"]
        self.performance_metrics["avg_generation_time"] = (
            (current_avg * (total - 1) + generation_time) / total
        )

    def get_recent_decisions(self, limit: int = 10) -> List[Decision]:
        """Get recent decisions from history."""
        return self.decision_history[-limit:] if self.decision_history else []

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Get current performance metrics."""
        metrics = self.performance_metrics.copy()

        if metrics["total_decisions"] > 0:
            metrics["directional_rate"] = metrics["directional_decisions"] / metrics["total_decisions"]
        else:
            metrics["directional_rate"] = 0.0

        metrics.update({
            "divergence_stats": self.divergence_detector.get_divergence_statistics(),
            "validation_stats": self.market_regime_detector.signal_validator.get_validation_statistics(),
            "regime_duration": self.market_regime_detector.get_regime_duration(),
            "market_conditions": self.market_weights_analyzer.get_condition_distribution(),
        })

        return metrics

    def reset_metrics(self):
        """Reset performance metrics."""
        self.performance_metrics = {
            "total_decisions": 0,
            "directional_decisions": 0,
            "error_decisions": 0,
            "avg_generation_time": 0.0,
        }
