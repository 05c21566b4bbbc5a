"""
Market regime classification from MACD structure and momentum.

A coarse period's MACD line/signal position gives the structural bias and a
finer period's histogram gives the momentum bias. The classifier maps this
pair, together with the coarse trend-strength and oscillator readings, onto
one of eight market states and decides whether trading is allowed.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional


class Bias(Enum):
    """Directional bias."""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class MarketState(Enum):
    """Enumeration of market states."""
    STRONG_BULL_TREND = "STRONG_BULL_TREND"
    STRONG_BEAR_TREND = "STRONG_BEAR_TREND"
    BULLISH_CORRECTION = "BULLISH_CORRECTION"
    BEARISH_CORRECTION = "BEARISH_CORRECTION"
    TRANSITION = "TRANSITION"
    RANGE = "RANGE"
    EXHAUSTION = "EXHAUSTION"
    NO_TRADE = "NO_TRADE"


class RegimeSignalType(Enum):
    """Kind of trade a market state supports."""
    TREND_CONTINUATION = "TREND_CONTINUATION"
    PULLBACK = "PULLBACK"
    TRANSITION = "TRANSITION"
    RANGE_BREAKOUT = "RANGE_BREAKOUT"
    NONE = "NONE"


@dataclass(frozen=True)
class StructuralMomentumState:
    """
    Structural and momentum bias read from one period's MACD.

    Attributes:
        structural_bias: BULLISH when MACD and signal lines are both above
            zero, BEARISH when both are below, else NEUTRAL
        momentum_bias: Sign of the histogram
        is_correction: Structural and momentum biases are opposite
        structural_strength: Absolute MACD line value
        momentum_strength: Absolute histogram value
    """
    structural_bias: Bias = Bias.NEUTRAL
    momentum_bias: Bias = Bias.NEUTRAL
    is_correction: bool = False
    structural_strength: float = 0.0
    momentum_strength: float = 0.0

    @classmethod
    def from_macd(cls, macd_line: float, signal_line: float, histogram: float) -> 'StructuralMomentumState':
        """Derive the state from MACD line, signal line and histogram."""
        if macd_line > 0 and signal_line > 0:
            structural = Bias.BULLISH
        elif macd_line < 0 and signal_line < 0:
            structural = Bias.BEARISH
        else:
            structural = Bias.NEUTRAL

        if histogram > 0:
            momentum = Bias.BULLISH
        elif histogram < 0:
            momentum = Bias.BEARISH
        else:
            momentum = Bias.NEUTRAL

        is_correction = (
            (structural is Bias.BULLISH and momentum is Bias.BEARISH)
            or (structural is Bias.BEARISH and momentum is Bias.BULLISH)
        )

        return cls(
            structural_bias=structural,
            momentum_bias=momentum,
            is_correction=is_correction,
            structural_strength=abs(macd_line),
            momentum_strength=abs(histogram),
        )

    def describe(self) -> str:
        """Short human readable description."""
        text = f"Structure {self.structural_bias.value}, momentum {self.momentum_bias.value}"
        if self.is_correction:
            text += " (correction)"
        return text


@dataclass(frozen=True)
class DailyContext:
    """Optional higher-timeframe context that can veto or tighten trading."""
    bias: Bias = Bias.NEUTRAL
    block_all_trades: bool = False


@dataclass(frozen=True)
class RegimeResult:
    """Outcome of a regime classification."""
    market_state: MarketState
    signal_type: RegimeSignalType = RegimeSignalType.NONE
    trade_allowed: bool = False
    reason_blocked: str = ""
    confidence_score: float = 0.0
    final_bias: Bias = Bias.NEUTRAL
    fine_confirmation: str = ""
    entry_quality: bool = False

    def to_dict(self) -> Dict[str, object]:
        """Convert result to dictionary."""
        return {
            "market_state": self.market_state.value,
            "signal_type": self.signal_type.value,
            "trade_allowed": self.trade_allowed,
            "reason_blocked": self.reason_blocked,
            "confidence_score": self.confidence_score,
            "final_bias": self.final_bias.value,
            "fine_confirmation": self.fine_confirmation,
            "entry_quality": self.entry_quality,
        }


class ConfidenceScorer:
    """Scores confidence (0-100) in a classified market state."""

    def __init__(self, config: Dict):
        """
        Initialize the confidence scorer.

        Args:
            config: Configuration dictionary with scoring parameters
        """
        self.config = config

        self.base_confidence = config.get("base_confidence", {
            "STRONG_BULL_TREND": 40.0,
            "STRONG_BEAR_TREND": 40.0,
            "BULLISH_CORRECTION": 25.0,
            "BEARISH_CORRECTION": 25.0,
            "TRANSITION": 10.0,
            "RANGE": 15.0,
            "EXHAUSTION": 0.0,
        })
        self.aligned_bonus = config.get("aligned_bonus", 30.0)
        self.correction_bonus = config.get("correction_bonus", 20.0)
        self.correction_min_strength = config.get("correction_min_strength", 0.0005)
        self.confirmation_bonus = config.get("confirmation_bonus", 20.0)
        self.quality_bonus = config.get("quality_bonus", 15.0)
        self.exhaustion_factor = config.get("exhaustion_factor", 0.7)

    def score(self,
              market_state: MarketState,
              coarse: StructuralMomentumState,
              fine: StructuralMomentumState,
              fine_confirmation: str = "",
              entry_quality: bool = False) -> float:
        """
        Score a market state.

        Args:
            market_state: Classified market state
            coarse: Coarse period structure
            fine: Fine period structure
            fine_confirmation: Confirmation label from the classifier
            entry_quality: Whether the entry quality check passed

        Returns:
            float: Confidence clamped to [0, 100]
        """
        if market_state is MarketState.NO_TRADE:
            return 0.0

        score = self.base_confidence.get(market_state.value, 0.0)

        if coarse.structural_bias is not Bias.NEUTRAL and fine.momentum_bias is not Bias.NEUTRAL:
            if coarse.structural_bias is fine.momentum_bias:
                score += self.aligned_bonus
            elif coarse.is_correction and coarse.structural_strength > self.correction_min_strength:
                score += self.correction_bonus

        if "CONFIRMED" in fine_confirmation:
            score += self.confirmation_bonus
        if entry_quality:
            score += self.quality_bonus

        if market_state is MarketState.EXHAUSTION:
            score *= self.exhaustion_factor

        return float(min(max(score, 0.0), 100.0))


class RegimeClassifier:
    """
    Classifies the market regime with an ordered list of checks.

    Checks, first match wins:
        1. external veto
        2. bearish structure with trend and room to fall
        3. bullish structure with trend and room to rise
        4. structure and momentum in conflict while trending
        5. low trend-strength range
        6. oscillator extreme
        7. no clear structure
    """

    NO_CLEAR_STRUCTURE = "No clear market structure"
    VETOED = "All trades blocked by higher timeframe veto"

    def __init__(self, config: Dict):
        """
        Initialize the regime classifier.

        Args:
            config: Configuration dictionary with regime thresholds
        """
        self.config = config

        self.trend_threshold = config.get("trend_threshold", 25.0)
        self.range_threshold = config.get("range_threshold", 20.0)
        self.oscillator_overbought = config.get("oscillator_overbought", 70.0)
        self.oscillator_oversold = config.get("oscillator_oversold", 30.0)
        self.daily_min_score = config.get("daily_min_score", 60.0)

        self.confidence_scorer = ConfidenceScorer(config)

    def classify(self,
                 coarse: StructuralMomentumState,
                 fine: StructuralMomentumState,
                 trend_strength: float = 25.0,
                 oscillator: float = 50.0,
                 daily_context: Optional[DailyContext] = None,
                 composite_score: float = 50.0,
                 veto: bool = False,
                 entry_quality: bool = False) -> RegimeResult:
        """
        Classify the market regime.

        Args:
            coarse: Structure of the coarse period
            fine: Structure of the fine period
            trend_strength: Coarse trend-strength reading
            oscillator: Coarse oscillator reading
            daily_context: Optional daily context
            composite_score: External composite score (0-100)
            veto: External veto flag
            entry_quality: Whether the entry quality check passed

        Returns:
            RegimeResult: Market state, trade gate and confidence
        """
        if veto or (daily_context is not None and daily_context.block_all_trades):
            return RegimeResult(
                market_state=MarketState.NO_TRADE,
                reason_blocked=self.VETOED,
                entry_quality=entry_quality,
            )

        result = self._resolve_state(coarse, fine, trend_strength, oscillator)

        result = self._apply_vetoes(result, coarse, fine, daily_context, composite_score)

        confidence = self.confidence_scorer.score(
            result.market_state, coarse, fine, result.fine_confirmation, entry_quality
        )
        return replace(result, confidence_score=confidence, entry_quality=entry_quality)

    def _resolve_state(self,
                       coarse: StructuralMomentumState,
                       fine: StructuralMomentumState,
                       trend_strength: float,
                       oscillator: float) -> RegimeResult:
        trending = trend_strength > self.trend_threshold
        overbought = oscillator > self.oscillator_overbought
        oversold = oscillator < self.oscillator_oversold
        momentum = fine.momentum_bias

        if (coarse.structural_bias is Bias.BEARISH and trending and not oversold
                and momentum is not Bias.NEUTRAL):
            if momentum is Bias.BULLISH:
                return RegimeResult(
                    market_state=MarketState.BEARISH_CORRECTION,
                    signal_type=RegimeSignalType.PULLBACK,
                    trade_allowed=True,
                    final_bias=Bias.BEARISH,
                    fine_confirmation="BEARISH_CORRECTION",
                )
            return RegimeResult(
                market_state=MarketState.STRONG_BEAR_TREND,
                signal_type=RegimeSignalType.TREND_CONTINUATION,
                trade_allowed=True,
                final_bias=Bias.BEARISH,
                fine_confirmation="BEARISH_CONFIRMED",
            )

        if (coarse.structural_bias is Bias.BULLISH and trending and not overbought
                and momentum is not Bias.NEUTRAL):
            if momentum is Bias.BEARISH:
                return RegimeResult(
                    market_state=MarketState.BULLISH_CORRECTION,
                    signal_type=RegimeSignalType.PULLBACK,
                    trade_allowed=True,
                    final_bias=Bias.BULLISH,
                    fine_confirmation="BULLISH_CORRECTION",
                )
            return RegimeResult(
                market_state=MarketState.STRONG_BULL_TREND,
                signal_type=RegimeSignalType.TREND_CONTINUATION,
                trade_allowed=True,
                final_bias=Bias.BULLISH,
                fine_confirmation="BULLISH_CONFIRMED",
            )

        if coarse.is_correction and trending:
            return RegimeResult(
                market_state=MarketState.TRANSITION,
                signal_type=RegimeSignalType.TRANSITION,
                reason_blocked="Market in transition (structure vs momentum)",
                fine_confirmation="TRANSITION",
            )

        if trend_strength < self.range_threshold:
            return RegimeResult(
                market_state=MarketState.RANGE,
                signal_type=RegimeSignalType.RANGE_BREAKOUT,
                reason_blocked="Range - low trend-strength",
                fine_confirmation="RANGE",
            )

        if overbought or oversold:
            return RegimeResult(
                market_state=MarketState.EXHAUSTION,
                reason_blocked="Exhaustion detected (oscillator extreme)",
                fine_confirmation="EXHAUSTION",
            )

        return RegimeResult(
            market_state=MarketState.NO_TRADE,
            reason_blocked=self.NO_CLEAR_STRUCTURE,
            fine_confirmation="UNCLEAR",
        )

    def _apply_vetoes(self,
                      result: RegimeResult,
                      coarse: StructuralMomentumState,
                      fine: StructuralMomentumState,
                      daily_context: Optional[DailyContext],
                      composite_score: float) -> RegimeResult:
        if result.signal_type is RegimeSignalType.TREND_CONTINUATION:
            if coarse.structural_bias is Bias.BEARISH and fine.momentum_bias is Bias.BULLISH:
                result = replace(result, trade_allowed=False,
                                 reason_blocked="Bullish momentum under bearish structure: pullback only")
            elif coarse.structural_bias is Bias.BULLISH and fine.momentum_bias is Bias.BEARISH:
                result = replace(result, trade_allowed=False,
                                 reason_blocked="Bearish momentum under bullish structure: pullback only")

        if (daily_context is not None and daily_context.bias is Bias.NEUTRAL
                and result.trade_allowed and composite_score < self.daily_min_score):
            result = replace(result, trade_allowed=False,
                             reason_blocked=f"Daily context neutral - score below {self.daily_min_score:g}")

        return result
