"""
Per-asset-class tuning profiles.

Symbols are mapped to an asset class by prefix/substring and each class
carries its own oscillator extremes, probability floor, aggressiveness and
volatility band. Profiles are applied on top of the default component
configuration by ``SignalGenerationConfig.for_symbol``.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


class AssetClass(str, Enum):
    """Supported asset classes."""
    COMMODITY = "commodity"
    INDEX = "index"
    VOLATILITY_INDEX = "volatility_index"
    CRYPTO = "crypto"


class AssetProfile(BaseModel):
    """Tuning values for one asset class."""
    name: str
    oscillator_extreme_oversold: float
    oscillator_extreme_overbought: float
    min_probability: float
    aggressiveness: float
    volatility_low_pct: float
    volatility_high_pct: float


ASSET_PROFILES: Dict[AssetClass, AssetProfile] = {
    AssetClass.COMMODITY: AssetProfile(
        name="Commodity",
        oscillator_extreme_oversold=12.0,
        oscillator_extreme_overbought=88.0,
        min_probability=55.0,
        aggressiveness=1.2,
        volatility_low_pct=0.03,
        volatility_high_pct=2.0,
    ),
    AssetClass.INDEX: AssetProfile(
        name="Index",
        oscillator_extreme_oversold=15.0,
        oscillator_extreme_overbought=90.0,
        min_probability=50.0,
        aggressiveness=1.0,
        volatility_low_pct=0.15,
        volatility_high_pct=2.5,
    ),
    AssetClass.VOLATILITY_INDEX: AssetProfile(
        name="Volatility Index",
        oscillator_extreme_oversold=20.0,
        oscillator_extreme_overbought=85.0,
        min_probability=48.0,
        aggressiveness=1.5,
        volatility_low_pct=0.01,
        volatility_high_pct=1.0,
    ),
    AssetClass.CRYPTO: AssetProfile(
        name="Crypto",
        oscillator_extreme_oversold=18.0,
        oscillator_extreme_overbought=82.0,
        min_probability=52.0,
        aggressiveness=1.3,
        volatility_low_pct=0.05,
        volatility_high_pct=3.0,
    ),
}


def detect_asset_class(symbol: Optional[str]) -> AssetClass:
    """
    Detect the asset class of a trading symbol.

    Args:
        symbol: Trading symbol (e.g. "R_75", "XAUUSD", "CRYBTCUSD")

    Returns:
        AssetClass: Detected class, INDEX when nothing matches
    """
    if not symbol:
        return AssetClass.INDEX

    symbol = symbol.upper()
    if symbol.startswith("R_"):
        return AssetClass.VOLATILITY_INDEX
    if any(code in symbol for code in ("XAU", "XAG", "OIL")):
        return AssetClass.COMMODITY
    if "CRY" in symbol:
        return AssetClass.CRYPTO
    return AssetClass.INDEX


def get_asset_profile(symbol: Optional[str]) -> AssetProfile:
    """Return the tuning profile for a symbol."""
    return ASSET_PROFILES[detect_asset_class(symbol)]
