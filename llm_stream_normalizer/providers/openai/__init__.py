"""OpenAI-compatible backend: chunk normalizer and SDK transport."""

from .normalizer import OpenAIChunkNormalizer
from .streaming import stream_chat_completions

__all__ = ["OpenAIChunkNormalizer", "stream_chat_completions"]
