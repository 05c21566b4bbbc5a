"""
Multi-Timeframe Confluence Engine.

Fuses per-period technical analyses into a single trading decision and
classifies the market regime from a coarse and a fine period.
"""

__version__ = "1.0.0"
