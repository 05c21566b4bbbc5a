"""
Command-line interface modules for the Multi-Timeframe Confluence Engine.
"""

from .formatter import OutputFormatter

__all__ = ["OutputFormatter"]
