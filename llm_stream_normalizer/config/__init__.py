"""Configuration for the stream normalizer."""

from .settings import ModelPricing, StreamSettings, UsagePolicy, load_settings

__all__ = ["ModelPricing", "StreamSettings", "UsagePolicy", "load_settings"]
