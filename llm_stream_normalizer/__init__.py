"""
LLM Stream Normalizer - backend-agnostic events from streamed LLM responses.

This package converts the incremental response formats of several
conversational-AI backends into one event sequence:
- OpenAI-compatible Chat Completions (including backends that inline
  tool-call sections between sentinel markers)
- Anthropic Messages

Features:
- Sentinel-safe content deltas across arbitrary chunk boundaries
- Structured tool-call start/delta/end events
- Usage and cost tracking persisted to a session ledger
- Bounded, cancellable per-request stream workers
"""

__version__ = "0.1.0"

from .config import ModelPricing, StreamSettings, UsagePolicy, load_settings
from .models import EventType, ProviderEvent, Session, SessionUsage, TokenUsage
from .providers import (
    ChunkNormalizer,
    MalformedChunkError,
    ProviderError,
    get_normalizer,
    register_normalizer,
)
from .session import (
    InMemorySessionLedger,
    LedgerError,
    LedgerReadError,
    LedgerWriteError,
    SessionLedger,
    SessionNotFoundError,
    SQLiteSessionLedger,
)
from .streaming import StreamAccumulator, StreamState, UsageTracker, TOOL_BEGIN, TOOL_END
from .streaming.runner import StreamRunner

__all__ = [
    # Stream worker
    "StreamRunner",

    # Normalizers
    "ChunkNormalizer",
    "get_normalizer",
    "register_normalizer",

    # Streaming core
    "StreamAccumulator",
    "StreamState",
    "UsageTracker",
    "TOOL_BEGIN",
    "TOOL_END",

    # Models
    "EventType",
    "ProviderEvent",
    "TokenUsage",
    "Session",
    "SessionUsage",

    # Session ledger
    "SessionLedger",
    "InMemorySessionLedger",
    "SQLiteSessionLedger",

    # Errors
    "ProviderError",
    "MalformedChunkError",
    "SessionNotFoundError",
    "LedgerError",
    "LedgerReadError",
    "LedgerWriteError",

    # Configuration
    "ModelPricing",
    "StreamSettings",
    "UsagePolicy",
    "load_settings",
]
