"""
Configuration for the Multi-Timeframe Confluence Engine.

This module provides configuration classes for every component of the
decision pipeline and the regime path. Each class can be overridden through
environment variables using its prefix.
"""

from typing import Any, Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .asset_profiles import get_asset_profile


class PeriodAnalyzerConfig(BaseSettings):
    """Configuration for the per-period analyzer."""
    model_config = SettingsConfigDict(env_prefix='MTF_ANALYZER_')

    min_candles: int = 20
    rsi_period: int = 14
    adx_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    momentum_deadband: float = 0.001

    # Trend label thresholds, checked from strongest to weakest
    trend_thresholds: Dict[str, float] = {
        "VERY_STRONG": 50.0,
        "STRONG": 40.0,
        "MODERATE": 25.0,
        "WEAK": 20.0,
    }

    # (minimum trend-strength, points) checked in order
    strength_tiers: List[List[float]] = [[50.0, 50.0], [40.0, 40.0], [30.0, 30.0], [25.0, 20.0], [20.0, 10.0]]
    strong_momentum_bonus: float = 30.0
    momentum_bonus: float = 20.0
    oscillator_bonus: float = 10.0
    oscillator_lower: float = 30.0
    oscillator_upper: float = 70.0
    strong_volume_bonus: float = 15.0
    volume_bonus: float = 5.0

    volume_lookback: int = 5
    price_change_lookback: int = 10

    # Substituted when an indicator cannot be computed
    default_oscillator: float = 50.0
    default_trend_strength: float = 25.0
    # Trend-strength reported by the neutral analysis
    neutral_trend_strength: float = 20.0


class HierarchyConfig(BaseSettings):
    """Configuration for the canonical period hierarchy."""
    model_config = SettingsConfigDict(env_prefix='MTF_HIERARCHY_')

    # Canonical order, coarsest first
    period_weights: Dict[str, float] = {
        "24h": 0.35,
        "4h": 0.25,
        "1h": 0.20,
        "30m": 0.10,
        "15m": 0.06,
        "5m": 0.04,
    }

    period_aliases: Dict[str, str] = {
        "D1": "24h",
        "H24": "24h",
        "1D": "24h",
        "H4": "4h",
        "H1": "1h",
        "M30": "30m",
        "M15": "15m",
        "M5": "5m",
    }


class DivergenceDetectorConfig(BaseSettings):
    """Configuration for divergence detection between adjacent periods."""
    model_config = SettingsConfigDict(env_prefix='MTF_DIVERGENCE_')

    # [coarse period, fine period, base severity]
    pairs: List[List[str]] = [
        ["24h", "4h", "HIGH"],
        ["4h", "1h", "MEDIUM"],
        ["1h", "30m", "LOW"],
        ["30m", "15m", "LOW"],
        ["15m", "5m", "LOW"],
    ]
    escalation_trend_strength: float = 40.0


class SequenceDetectorConfig(BaseSettings):
    """Configuration for aligned sequence detection."""
    model_config = SettingsConfigDict(env_prefix='MTF_SEQUENCE_')

    window_sizes: List[int] = [3, 4, 5]


class PriorityCascadeConfig(BaseSettings):
    """Configuration for the priority rule cascade."""
    model_config = SettingsConfigDict(env_prefix='MTF_PRIORITY_')

    coarsest_period: str = "24h"
    mid_coarse_period: str = "4h"
    finer_period: str = "1h"

    coarsest_trend_strength: float = 50.0
    mid_coarse_trend_strength: float = 40.0
    fallback_trend_strength: float = 30.0


class ProbabilityEstimatorConfig(BaseSettings):
    """Configuration for the probability estimator and corroboration adjuster."""
    model_config = SettingsConfigDict(env_prefix='MTF_PROBABILITY_')

    base_probability: float = 50.0
    max_force_bonus: float = 20.0
    max_sequence_bonus: float = 25.0
    sequence_divisor: float = 4.0
    priority_bonus: float = 10.0
    divergence_penalty: float = 5.0
    max_divergence_penalty: float = 15.0
    min_probability: float = 10.0
    max_probability: float = 90.0

    # Corroboration nudges, applied in this order
    pattern_bonus: float = 7.0
    pattern_penalty: float = 5.0
    wave_bonus: float = 8.0
    wave_penalty: float = 4.0
    wave_override_margin: float = 10.0
    convergence_bonus: float = 10.0
    unreliable_factor: float = 0.7
    aggressiveness: float = 1.0
    volatility_high_pct: float = 2.0
    volatility_low_pct: float = 0.3
    high_volatility_factor: float = 0.92
    low_volatility_factor: float = 1.1
    corroboration_bounds: List[float] = [30.0, 88.0]
    mode_bounds: List[float] = [35.0, 88.0]

    # Trading mode filter: CONSERVATIVE, STANDARD or AGGRESSIVE
    trading_mode: str = "STANDARD"
    conservative_min_probability: float = 55.0
    conservative_floor: float = 35.0
    aggressive_multiplier: float = 1.12
    aggressive_cap: float = 85.0


class LevelPlannerConfig(BaseSettings):
    """Configuration for support/resistance and stop planning."""
    model_config = SettingsConfigDict(env_prefix='MTF_LEVELS_')

    price_periods: List[str] = ["1h", "4h"]
    min_volatility: float = 0.005
    min_proxy: float = 0.01
    default_range_ratio: float = 0.01
    range_multiplier: float = 2.0
    ladder_multipliers: List[float] = [1.0, 1.5, 2.0]
    stop_multiplier: float = 1.5
    price_precision: int = 2
    min_level: float = 1.0


class DualTrendConfig(BaseSettings):
    """Configuration for the short-term versus medium-term trend check."""
    model_config = SettingsConfigDict(env_prefix='MTF_DUAL_TREND_')

    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9

    # Divergence resolution
    macd_dominance_factor: float = 10.0
    price_action_threshold_pct: float = 0.5

    strong_short_pct: float = 0.3
    strong_medium_histogram: float = 0.01
    divergence_probability: float = 50.0
    convergence_probability: float = 75.0
    strong_convergence_probability: float = 85.0

    max_history_size: int = 100


class MarketWeightsConfig(BaseSettings):
    """Configuration for the market condition weights."""
    model_config = SettingsConfigDict(env_prefix='MTF_WEIGHTS_')

    min_candles: int = 50
    default_sensitivity: float = 1.3
    default_aggressiveness: float = 1.2

    volatility_lookback: int = 10
    momentum_lookback: int = 5
    consolidation_lookback: int = 20
    tight_range_ratio: float = 0.005
    narrow_range_ratio: float = 0.01

    consolidation_threshold: float = 0.7
    high_volatility_pct: float = 2.0
    momentum_threshold: float = 2.0
    trend_threshold: float = 0.3
    volatile_pct: float = 1.0

    strong_trend_label: float = 0.3
    moderate_trend_label: float = 0.15
    high_volatility_label: float = 1.5
    medium_volatility_label: float = 0.5

    # [trend_strength, indicators, periods, sensitivity, aggressiveness]
    condition_adjustments: Dict[str, List[float]] = {
        "CONSOLIDATION": [0.6, 0.8, 1.0, 1.1, 0.8],
        "HIGH_VOLATILITY": [1.0, 1.0, 0.9, 1.0, 0.9],
        "UPTREND": [1.2, 1.3, 1.2, 1.3, 1.3],
        "DOWNTREND": [1.2, 1.3, 1.2, 1.3, 1.3],
        "STRONG_UP_MOMENTUM": [1.0, 1.5, 1.1, 1.5, 1.7],
        "STRONG_DOWN_MOMENTUM": [1.0, 1.5, 1.1, 1.5, 1.7],
        "VOLATILE": [0.9, 1.1, 1.0, 1.1, 1.0],
        "NEUTRAL": [0.8, 1.1, 1.1, 1.1, 1.1],
    }

    max_history_size: int = 100


class DecisionConfig(BaseSettings):
    """Configuration for final signal resolution, labels and alerts."""
    model_config = SettingsConfigDict(env_prefix='MTF_DECISION_')

    force_margin_threshold: float = 10.0

    confidence_bands: Dict[str, float] = {
        "VERY_HIGH": 80.0,
        "HIGH": 70.0,
        "MODERATE": 60.0,
        "LOW": 50.0,
    }

    # Probability bands for the action text
    buy_action_bands: List[float] = [75.0, 65.0, 55.0]
    sell_action_bands: List[float] = [25.0, 35.0, 45.0]

    alert_periods: List[str] = ["1h", "4h"]
    probability_alert_high: float = 85.0
    probability_alert_low: float = 15.0
    oscillator_alert_high: float = 75.0
    oscillator_alert_low: float = 25.0
    trend_strength_alert: float = 60.0
    min_stop_distance_pct: float = 1.0

    # Period whose candles feed the built-in corroboration, else the finest given
    corroboration_period: str = "5m"


class SignalValidatorConfig(BaseSettings):
    """Configuration for the entry quality check."""
    model_config = SettingsConfigDict(env_prefix='MTF_VALIDATOR_')

    min_candles: int = 2
    histogram_threshold: float = 0.1
    oscillator_overbought: float = 70.0
    oscillator_oversold: float = 30.0
    max_history_size: int = 50


class ExhaustionDetectorConfig(BaseSettings):
    """Configuration for exhaustion detection."""
    model_config = SettingsConfigDict(env_prefix='MTF_EXHAUSTION_')

    min_candles: int = 5
    shadow_body_ratio: float = 1.5
    min_signals: int = 2
    max_signals: int = 4
    max_history_size: int = 20


class PullbackZoneConfig(BaseSettings):
    """Configuration for pullback zone calculation."""
    model_config = SettingsConfigDict(env_prefix='MTF_PULLBACK_')

    lookback: int = 5
    min_counter_candles: int = 2
    atr_period: int = 14
    atr_multiplier: float = 0.5
    default_atr: float = 0.001
    confidence_per_candle: float = 20.0
    max_confidence: float = 80.0
    max_zone_age_seconds: float = 300.0
    max_history_size: int = 50


class MarketRegimeConfig(BaseSettings):
    """Configuration for the regime classifier and its orchestrator."""
    model_config = SettingsConfigDict(env_prefix='MTF_REGIME_')

    coarse_period: str = "4h"
    fine_period: str = "1h"

    trend_threshold: float = 25.0
    range_threshold: float = 20.0
    oscillator_overbought: float = 70.0
    oscillator_oversold: float = 30.0
    daily_min_score: float = 60.0

    base_confidence: Dict[str, float] = {
        "STRONG_BULL_TREND": 40.0,
        "STRONG_BEAR_TREND": 40.0,
        "BULLISH_CORRECTION": 25.0,
        "BEARISH_CORRECTION": 25.0,
        "TRANSITION": 10.0,
        "RANGE": 15.0,
        "EXHAUSTION": 0.0,
    }
    aligned_bonus: float = 30.0
    correction_bonus: float = 20.0
    correction_min_strength: float = 0.0005
    confirmation_bonus: float = 20.0
    quality_bonus: float = 15.0
    exhaustion_factor: float = 0.7

    block_on_exhaustion: bool = True
    max_history_size: int = 100

    # Score weights by composite score band: [structure, momentum, confirmation]
    strong_score_threshold: float = 70.0
    weak_score_threshold: float = 30.0
    strong_score_weights: List[float] = [30.0, 25.0, 15.0]
    weak_score_weights: List[float] = [20.0, 30.0, 20.0]
    default_weights: List[float] = [25.0, 20.0, 15.0]


class SignalGenerationConfig(BaseSettings):
    """Main configuration for the confluence engine."""
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # Component configurations
    period_analyzer: PeriodAnalyzerConfig = PeriodAnalyzerConfig()
    hierarchy: HierarchyConfig = HierarchyConfig()
    divergence_detector: DivergenceDetectorConfig = DivergenceDetectorConfig()
    sequence_detector: SequenceDetectorConfig = SequenceDetectorConfig()
    priority_cascade: PriorityCascadeConfig = PriorityCascadeConfig()
    probability_estimator: ProbabilityEstimatorConfig = ProbabilityEstimatorConfig()
    level_planner: LevelPlannerConfig = LevelPlannerConfig()
    dual_trend: DualTrendConfig = DualTrendConfig()
    market_weights: MarketWeightsConfig = MarketWeightsConfig()
    decision: DecisionConfig = DecisionConfig()
    signal_validator: SignalValidatorConfig = SignalValidatorConfig()
    exhaustion_detector: ExhaustionDetectorConfig = ExhaustionDetectorConfig()
    pullback_zone: PullbackZoneConfig = PullbackZoneConfig()
    market_regime: MarketRegimeConfig = MarketRegimeConfig()

    # General settings
    max_history_size: int = 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "period_analyzer": self.period_analyzer.model_dump(),
            "hierarchy": self.hierarchy.model_dump(),
            "divergence_detector": self.divergence_detector.model_dump(),
            "sequence_detector": self.sequence_detector.model_dump(),
            "priority_cascade": self.priority_cascade.model_dump(),
            "probability_estimator": self.probability_estimator.model_dump(),
            "level_planner": self.level_planner.model_dump(),
            "dual_trend": self.dual_trend.model_dump(),
            "market_weights": self.market_weights.model_dump(),
            "decision": self.decision.model_dump(),
            "signal_validator": self.signal_validator.model_dump(),
            "exhaustion_detector": self.exhaustion_detector.model_dump(),
            "pullback_zone": self.pullback_zone.model_dump(),
            "market_regime": self.market_regime.model_dump(),
            "max_history_size": self.max_history_size,
        }

    def for_symbol(self, symbol: Optional[str]) -> 'SignalGenerationConfig':
        """
        Return a copy tuned with the asset profile of a symbol.

        Args:
            symbol: Trading symbol used to detect the asset class

        Returns:
            SignalGenerationConfig: New configuration with profile overrides
        """
        profile = get_asset_profile(symbol)
        decision = self.decision.model_copy(update={
            "oscillator_alert_high": profile.oscillator_extreme_overbought,
            "oscillator_alert_low": profile.oscillator_extreme_oversold,
        })
        probability = self.probability_estimator.model_copy(update={
            "conservative_min_probability": profile.min_probability,
            "aggressiveness": profile.aggressiveness,
            "volatility_high_pct": profile.volatility_high_pct,
            "volatility_low_pct": profile.volatility_low_pct,
        })
        return self.model_copy(update={"decision": decision, "probability_estimator": probability})


# Global configuration instance
signal_generation_config = SignalGenerationConfig()
