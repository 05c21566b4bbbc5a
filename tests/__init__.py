"""
Multi-Timeframe Confluence Engine Test Suite

This package contains all tests for the engine, organized by category:
- unit: Unit tests for individual components
- integration: Integration tests for full decision and regime cycles
"""

__version__ = "1.0.0"
