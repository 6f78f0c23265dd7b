"""
Backend Normalizers Layer

Each backend contributes one chunk normalizer that converts its native
streaming format into the shared ``ProviderEvent`` sequence. Normalizers are
looked up by provider name when a request is set up.
"""

from typing import Callable, Dict, List

from .base import (
    ChunkNormalizer,
    MalformedChunkError,
    ProviderError,
    StreamCancelledError,
    StreamTimeoutError,
    new_accumulator,
)
from .errors import ErrorMapper
from .openai.normalizer import OpenAIChunkNormalizer
from .anthropic.normalizer import AnthropicChunkNormalizer

NormalizerFactory = Callable[[], ChunkNormalizer]

_REGISTRY: Dict[str, NormalizerFactory] = {
    "openai": lambda: OpenAIChunkNormalizer("openai"),
    "anthropic": AnthropicChunkNormalizer,
}

# OpenAI-compatible backends, some of which inline tool-call sentinels
_ALIASES: Dict[str, str] = {
    "kimi": "openai",
    "moonshot": "openai",
    "openrouter": "openai",
    "copilot": "openai",
    "azure": "openai",
    "claude": "anthropic",
}


def register_normalizer(name: str, factory: NormalizerFactory) -> None:
    """Register (or replace) the normalizer factory for ``name``."""
    _REGISTRY[name.lower()] = factory


def available_normalizers() -> List[str]:
    return sorted(set(_REGISTRY) | set(_ALIASES))


def get_normalizer(provider: str) -> ChunkNormalizer:
    """
    Create the normalizer for a provider name or alias.

    Aliases of the OpenAI-compatible format keep their own name so that
    events and logs are stamped with the actual backend.

    Raises:
        ValueError: If no normalizer is registered for ``provider``
    """
    name = provider.lower()
    if name in _REGISTRY:
        return _REGISTRY[name]()

    target = _ALIASES.get(name)
    if target == "openai":
        return OpenAIChunkNormalizer(name)
    if target is not None:
        return _REGISTRY[target]()

    raise ValueError(f"No stream normalizer registered for provider '{provider}'. "
                     f"Available: {', '.join(available_normalizers())}")


__all__ = [
    "ChunkNormalizer",
    "ErrorMapper",
    "MalformedChunkError",
    "ProviderError",
    "StreamCancelledError",
    "StreamTimeoutError",
    "OpenAIChunkNormalizer",
    "AnthropicChunkNormalizer",
    "available_normalizers",
    "get_normalizer",
    "new_accumulator",
    "register_normalizer",
]
