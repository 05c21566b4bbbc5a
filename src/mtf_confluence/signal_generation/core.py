"""
Core data structures for the Multi-Timeframe Confluence Engine.

This module defines the enums and dataclasses that flow between the
pipeline components: per-period snapshots and analyses, the weighted
hierarchy, divergences, aligned sequences, force scores, priority results,
trade levels and the final Decision.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd


class SignalType(Enum):
    """Directional signal. CALL and PUT are aliases of BUY and SELL."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    CALL = "BUY"
    PUT = "SELL"

    @property
    def is_directional(self) -> bool:
        return self is not SignalType.HOLD


class TrendStrength(Enum):
    """Trend label derived from the trend-strength indicator."""
    LATERAL = "LATERAL"
    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"
    VERY_STRONG = "VERY_STRONG"


class MomentumTrend(Enum):
    """Momentum label derived from the MACD histogram."""
    STRONG_UP = "STRONG_UP"
    UP = "UP"
    NEUTRAL = "NEUTRAL"
    DOWN = "DOWN"
    STRONG_DOWN = "STRONG_DOWN"


class Severity(Enum):
    """Severity of a divergence between adjacent periods."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VolumeStrength(Enum):
    """Grade of a volume confirmation."""
    STRONG = "STRONG"
    MEDIUM = "MEDIUM"
    WEAK = "WEAK"


class ForceWinner(Enum):
    """Winner of the weighted force aggregation."""
    BUY = "BUY"
    SELL = "SELL"
    TIE = "TIE"


class ConfidenceLabel(Enum):
    """Human readable band for a decision probability."""
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"
    VERY_LOW = "VERY_LOW"


def _to_float(value: Any) -> float:
    """Coerce numeric strings and numbers to float; anything else becomes NaN."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar."""
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timestamp: Optional[float] = None

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Candle':
        """Create a candle from a mapping with open/high/low/close/volume keys."""
        timestamp = data.get("timestamp")
        return cls(
            open=_to_float(data.get("open", 0.0)),
            high=_to_float(data.get("high", 0.0)),
            low=_to_float(data.get("low", 0.0)),
            close=_to_float(data.get("close", 0.0)),
            volume=_to_float(data.get("volume", 0.0)),
            timestamp=None if timestamp is None else _to_float(timestamp),
        )


@dataclass(frozen=True)
class PeriodSnapshot:
    """
    Immutable input for one period: the current price and its candle history.

    Attributes:
        period: Period identifier (e.g. "4h")
        price: Current price for the period
        candles: Candles ordered oldest first
    """
    period: str
    price: float
    candles: Tuple[Candle, ...] = ()

    @classmethod
    def from_candles(cls, period: str, candles: Iterable[Any], price: Optional[float] = None) -> 'PeriodSnapshot':
        """Build a snapshot from Candle objects or candle mappings."""
        built = tuple(c if isinstance(c, Candle) else Candle.from_dict(c) for c in candles)
        if price is None:
            price = built[-1].close if built else 0.0
        return cls(period=period, price=_to_float(price), candles=built)

    @classmethod
    def from_dataframe(cls, period: str, df: pd.DataFrame, price: Optional[float] = None) -> 'PeriodSnapshot':
        """
        Build a snapshot from an OHLCV DataFrame.

        Args:
            period: Period identifier
            df: DataFrame with open/high/low/close and optional volume columns
            price: Current price, defaults to the last close

        Returns:
            PeriodSnapshot: Snapshot with one candle per row
        """
        if df.empty:
            return cls(period=period, price=price or 0.0)

        volume = df["volume"] if "volume" in df.columns else pd.Series(0.0, index=df.index)
        if isinstance(df.index, pd.DatetimeIndex):
            timestamps = [ts.timestamp() for ts in df.index]
        else:
            timestamps = [None] * len(df)

        candles = tuple(
            Candle(open=float(o), high=float(h), low=float(l), close=float(c),
                   volume=float(v), timestamp=ts)
            for o, h, l, c, v, ts in zip(df["open"], df["high"], df["low"], df["close"], volume, timestamps)
        )
        return cls.from_candles(period, candles, price)


@dataclass(frozen=True)
class MACDReading:
    """Latest MACD line, signal line and histogram."""
    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class VolumeConfirmation:
    """Outcome of the volume confirmation check for a period."""
    confirmed: bool
    reason: str
    strength: Optional[VolumeStrength] = None
    direction: Optional[SignalType] = None


@dataclass(frozen=True)
class PeriodAnalysis:
    """
    Result of analyzing a single period.

    Attributes:
        period: Period identifier
        price: Current price for the period
        signal: Directional signal suggested by momentum
        strength: Composite strength score (0-100)
        trend: Trend label from the trend-strength indicator
        oscillator: Oscillator reading (0-100)
        trend_strength: Trend-strength reading (0-100)
        momentum: Latest MACD reading
        momentum_trend: Momentum label
        volume: Volume confirmation
        price_change: Percent change over the recent closes
        last_candle: Most recent candle, if any
    """
    period: str
    price: float
    signal: SignalType
    strength: float
    trend: TrendStrength
    oscillator: float
    trend_strength: float
    momentum: MACDReading = field(default_factory=MACDReading)
    momentum_trend: MomentumTrend = MomentumTrend.NEUTRAL
    volume: VolumeConfirmation = field(
        default_factory=lambda: VolumeConfirmation(confirmed=False, reason="no data")
    )
    price_change: float = 0.0
    last_candle: Optional[Candle] = None

    def __post_init__(self):
        """Validate analysis data after initialization."""
        if not 0.0 <= self.strength <= 100.0:
            raise ValueError("Strength must be between 0 and 100")
        if not 0.0 <= self.oscillator <= 100.0:
            raise ValueError("Oscillator must be between 0 and 100")
        if self.price < 0:
            raise ValueError("Price must be non-negative")

    @classmethod
    def neutral(cls, period: str, oscillator: float = 50.0, trend_strength: float = 20.0) -> 'PeriodAnalysis':
        """Neutral analysis used when a period has too little data."""
        return cls(
            period=period,
            price=0.0,
            signal=SignalType.HOLD,
            strength=0.0,
            trend=TrendStrength.LATERAL,
            oscillator=oscillator,
            trend_strength=trend_strength,
            volume=VolumeConfirmation(confirmed=False, reason="insufficient data"),
        )


@dataclass(frozen=True)
class HierarchyEntry:
    """A canonical period's analysis with its fixed weight."""
    period: str
    signal: SignalType
    strength: float
    weight: float
    trend: TrendStrength
    trend_strength: float
    oscillator: float
    price: float = 0.0


@dataclass(frozen=True)
class Divergence:
    """Disagreement between two adjacent canonical periods."""
    coarse_period: str
    fine_period: str
    coarse_signal: SignalType
    fine_signal: SignalType
    severity: Severity
    label: str
    description: str


@dataclass(frozen=True)
class AlignedSequence:
    """Contiguous run of canonical periods sharing one directional signal."""
    periods: Tuple[str, ...]
    signal: SignalType
    strength: float
    description: str

    def __len__(self) -> int:
        return len(self.periods)


@dataclass(frozen=True)
class ForceScore:
    """Weighted directional force across the hierarchy."""
    buy_force: float = 0.0
    sell_force: float = 0.0
    winner: ForceWinner = ForceWinner.TIE
    margin: float = 0.0

    @property
    def winning_signal(self) -> SignalType:
        if self.winner is ForceWinner.BUY:
            return SignalType.BUY
        if self.winner is ForceWinner.SELL:
            return SignalType.SELL
        return SignalType.HOLD


@dataclass(frozen=True)
class PriorityResult:
    """Outcome of the first matching priority rule."""
    rule: str
    signal: SignalType
    reason: str


@dataclass(frozen=True)
class TradeLevels:
    """Entry, support/resistance ladder, stop-loss and targets."""
    entry: float
    supports: Tuple[float, float, float]
    resistances: Tuple[float, float, float]
    stop_loss: float
    targets: Tuple[float, float]
    risk_reward_ratio: Optional[float] = None


@dataclass(frozen=True)
class Decision:
    """
    Final output of one engine cycle.

    Equality ignores the timestamp so that identical inputs compare equal.
    """
    final_signal: SignalType
    probability: float
    confidence: ConfidenceLabel
    action: str
    levels: TradeLevels
    price: float = 0.0
    alerts: Tuple[str, ...] = ()
    rationale: Tuple[str, ...] = ()
    steps: Tuple[str, ...] = ()
    dominant_period: Optional[str] = None
    priority: Optional[PriorityResult] = None
    force: ForceScore = field(default_factory=ForceScore)
    analyses: Tuple[PeriodAnalysis, ...] = ()
    hierarchy: Tuple[HierarchyEntry, ...] = ()
    divergences: Tuple[Divergence, ...] = ()
    sequences: Tuple[AlignedSequence, ...] = ()
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    def __post_init__(self):
        """Validate decision data after initialization."""
        if not 10.0 <= self.probability <= 90.0:
            raise ValueError("Probability must be between 10 and 90")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the decision to a JSON friendly dictionary."""
        return to_jsonable(asdict(self))


def to_jsonable(value: Any) -> Any:
    """Convert dataclass dumps (enums, datetimes, tuples) to JSON friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
