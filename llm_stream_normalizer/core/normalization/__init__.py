"""Normalization layer for standardizing backend usage reports.

This layer handles:
- Usage data normalization
- Cost calculation from model pricing
"""

from .usage import calculate_usage_cost, normalize_usage

__all__ = ["calculate_usage_cost", "normalize_usage"]
