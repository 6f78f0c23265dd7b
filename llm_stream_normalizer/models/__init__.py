"""Data models for the stream normalizer."""

from .events import EventType, ProviderEvent, TokenUsage, TERMINAL_EVENT_TYPES
from .session import Session, SessionUsage

__all__ = [
    # Event models
    "EventType",
    "ProviderEvent",
    "TokenUsage",
    "TERMINAL_EVENT_TYPES",

    # Session models
    "Session",
    "SessionUsage"
]
