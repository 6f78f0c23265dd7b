"""Anthropic backend: chunk normalizer and SDK transport."""

from .normalizer import AnthropicChunkNormalizer
from .streaming import stream_messages

__all__ = ["AnthropicChunkNormalizer", "stream_messages"]
