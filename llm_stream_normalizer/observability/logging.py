"""
Structured logging utility for stream normalizers.

Provides a consistent logging interface for every backend, with standard
fields like provider, model, request_id and session_id.
"""

import logging
from typing import Optional

from ..models.events import TokenUsage


class ProviderLogger:
    """Structured logger for one backend."""

    def __init__(self, provider_name: str):
        """
        Initialize logger for a specific provider.

        Args:
            provider_name: Name of the provider (e.g., "openai", "anthropic")
        """
        self.provider = provider_name
        self.logger = logging.getLogger(f"llm_stream_normalizer.providers.{provider_name}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with structured fields."""
        fields = [f"provider={self.provider}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, request_id: Optional[str] = None, **kwargs):
        self.logger.debug(self._format_message(message, request_id=request_id, **kwargs))

    def info(self, message: str, request_id: Optional[str] = None, **kwargs):
        self.logger.info(self._format_message(message, request_id=request_id, **kwargs))

    def warning(self, message: str, request_id: Optional[str] = None, **kwargs):
        self.logger.warning(self._format_message(message, request_id=request_id, **kwargs))

    def error(self, message: str, request_id: Optional[str] = None,
              error: Optional[Exception] = None, **kwargs):
        """Log error message with structured fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.error(self._format_message(message, request_id=request_id, **kwargs))

    def log_usage(self, usage: TokenUsage, request_id: Optional[str] = None,
                  session_id: Optional[str] = None):
        """Log token usage information."""
        self.info(
            "Token usage",
            request_id=request_id,
            session_id=session_id,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            cost=usage.cost,
            cache_read_tokens=usage.cache_read_tokens or None,
            cache_creation_tokens=usage.cache_creation_tokens or None
        )

    def log_streaming_metrics(self, chunks: int, events: int, duration: float,
                              request_id: Optional[str] = None):
        """Log streaming performance metrics."""
        chunks_per_second = chunks / duration if duration > 0 else 0

        self.debug(
            "Streaming metrics",
            request_id=request_id,
            chunks=chunks,
            events=events,
            duration_ms=int(duration * 1000),
            chunks_per_second=int(chunks_per_second)
        )
