"""
Configuration for the Multi-Timeframe Confluence Engine.
"""
