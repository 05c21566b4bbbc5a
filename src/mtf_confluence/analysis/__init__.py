"""
Market regime types and classification rules.
"""
