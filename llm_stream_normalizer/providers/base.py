"""
Base Chunk Normalizer Interface

This module defines the interface every backend normalizer implements, and
the exceptions shared by all of them.

A normalizer is responsible for:
- Reading one native chunk of its backend's streaming format
- Driving the request's ``StreamAccumulator`` with content text
- Emitting tool-call events from structured tool-call fields
- Reporting usage snapshots

A normalizer should NOT contain:
- Per-request state (that lives in ``StreamState``)
- Network I/O (that is the transport's job)
- Ledger writes (that is the usage tracker's job)
"""

from typing import Any, List, Optional, Protocol, runtime_checkable

from ..config.settings import UsagePolicy
from ..models.events import ProviderEvent
from ..streaming.accumulator import StreamAccumulator, StreamState


@runtime_checkable
class ChunkNormalizer(Protocol):
    """
    Converts one backend's native chunks into ``ProviderEvent`` instances.

    Implementations are stateless; every call receives the accumulator that
    wraps the request's ``StreamState``.
    """

    provider: str
    usage_policy: UsagePolicy

    def normalize_chunk(self, native: Any, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        """
        Consume one native chunk.

        Args:
            native: Chunk exactly as delivered by the transport (SDK object or dict)
            accumulator: Accumulator bound to this request's state

        Returns:
            Zero or more events, in order

        Raises:
            MalformedChunkError: If the chunk cannot be parsed
        """
        ...

    def finish(self, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        """Flush buffered content, close open tool calls and emit the ``finish`` event."""
        ...


def new_accumulator(normalizer: ChunkNormalizer) -> StreamAccumulator:
    """Create fresh per-request state for ``normalizer``."""
    return StreamAccumulator(StreamState(provider=normalizer.provider))


def finish_stream(accumulator: StreamAccumulator) -> List[ProviderEvent]:
    """End-of-stream sequence shared by all backends.

    Releases held-back content, closes tool calls the backend never closed,
    and emits the ``finish`` event with the last reported usage.
    """
    state = accumulator.state
    events = accumulator.flush()
    events.extend(accumulator.end_open_tool_calls())
    events.append(ProviderEvent.finish(
        finish_reason=state.finish_reason,
        usage=state.last_usage,
        provider=state.provider
    ))
    return events


class ProviderError(Exception):
    """
    Base exception for backend-related errors.

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = False  # Default, should be set by error mapper
        self.original_error: Optional[Exception] = None


class MalformedChunkError(ProviderError):
    """A native chunk could not be parsed; the stream cannot continue."""

    def __init__(self, message: str, provider: str, chunk: Any = None):
        super().__init__(message, provider)
        self.chunk = chunk


class StreamCancelledError(ProviderError):
    """The consumer cancelled the stream before it completed."""


class StreamTimeoutError(ProviderError):
    """No chunk arrived within the configured read timeout."""

    def __init__(self, message: str, provider: str, timeout: float):
        super().__init__(message, provider)
        self.timeout = timeout
        self.is_retryable = True
