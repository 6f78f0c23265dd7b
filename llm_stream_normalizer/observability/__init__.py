"""Observability layer: structured logging for stream normalization."""

from .logging import ProviderLogger

__all__ = ["ProviderLogger"]
