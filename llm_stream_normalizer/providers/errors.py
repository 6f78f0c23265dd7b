"""
Error mapping utilities for stream normalizers.

Converts transport and SDK exceptions into ``ProviderError`` instances and
into the terminal ``error`` event of a stream.
"""

from typing import Optional
import asyncio

import httpx

from .base import ProviderError
from ..models.events import ProviderEvent


RATE_LIMIT_PHRASES = ('rate limit', 'too many requests', 'quota exceeded', 'too_many_requests')


class ErrorMapper:
    """Maps backend-specific errors to standardized ProviderError."""

    # Common HTTP status codes that indicate retryable errors
    RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Determine if an error is retryable.

        Args:
            error: The exception to check

        Returns:
            bool: True if the error is retryable
        """
        if isinstance(error, ProviderError):
            return error.is_retryable

        status_code = getattr(error, 'status_code', None)
        if status_code is not None and status_code in ErrorMapper.RETRYABLE_STATUS_CODES:
            return True

        if isinstance(error, (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError)):
            return True
        if isinstance(error, (asyncio.TimeoutError, ConnectionError)):
            return True

        error_msg = str(error).lower()
        return any(phrase in error_msg for phrase in RATE_LIMIT_PHRASES)

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """
        Extract retry-after value from error if available.

        Args:
            error: The exception to check

        Returns:
            Optional[float]: Seconds to wait before retry, or None
        """
        response = getattr(error, 'response', None)
        headers = getattr(response, 'headers', None)
        if headers is not None:
            retry_after = headers.get('Retry-After')
            if retry_after:
                try:
                    return float(retry_after)
                except ValueError:
                    pass

        return getattr(error, 'retry_after', None)

    @staticmethod
    def map_error(error: Exception, provider: str) -> ProviderError:
        """
        Wrap an arbitrary exception into a ProviderError.

        ProviderErrors are returned unchanged.

        Args:
            error: The exception raised by the transport or SDK
            provider: Provider name

        Returns:
            ProviderError with retry metadata
        """
        if isinstance(error, ProviderError):
            return error

        message = getattr(error, 'message', None) or str(error) or type(error).__name__
        provider_error = ProviderError(
            message=f"{provider} stream error: {message}",
            provider=provider,
            status_code=getattr(error, 'status_code', None),
            retry_after=ErrorMapper.get_retry_after(error)
        )
        provider_error.is_retryable = ErrorMapper.is_retryable(error)
        provider_error.original_error = error
        return provider_error

    @staticmethod
    def to_event(error: Exception, provider: str) -> ProviderEvent:
        """Build the terminal ``error`` event for ``error``."""
        mapped = ErrorMapper.map_error(error, provider)
        return ProviderEvent.error_event(
            mapped,
            is_retryable=mapped.is_retryable,
            provider=provider,
            metadata={
                'status_code': mapped.status_code,
                'retry_after': mapped.retry_after,
                'original_error_type': type(mapped.original_error).__name__ if mapped.original_error else None,
            }
        )
