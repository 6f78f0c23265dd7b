"""Normalizer for Anthropic Messages streaming events."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from anthropic.types import RawMessageStreamEvent
from pydantic import TypeAdapter, ValidationError

from ..base import MalformedChunkError, ProviderError, finish_stream
from ...config.settings import UsagePolicy
from ...core.normalization.usage import normalize_usage
from ...models.events import ProviderEvent, TokenUsage
from ...streaming.accumulator import StreamAccumulator

_EVENT_ADAPTER = TypeAdapter(RawMessageStreamEvent)

# SSE error types the API documents as transient
RETRYABLE_ERROR_TYPES = {"overloaded_error", "api_error", "rate_limit_error"}


def _merge_usage(previous: TokenUsage, raw: Dict[str, Any]) -> TokenUsage:
    """Overlay the counters present in a ``message_delta`` usage block."""
    update = normalize_usage(raw, "anthropic")
    merged = TokenUsage(
        prompt_tokens=previous.prompt_tokens,
        completion_tokens=previous.completion_tokens,
        cost=previous.cost,
        cache_read_tokens=previous.cache_read_tokens,
        cache_creation_tokens=previous.cache_creation_tokens,
    )
    if raw.get("input_tokens") is not None:
        merged.prompt_tokens = update.prompt_tokens
    if raw.get("output_tokens") is not None:
        merged.completion_tokens = update.completion_tokens
    if raw.get("cache_read_input_tokens") is not None:
        merged.cache_read_tokens = update.cache_read_tokens
    if raw.get("cache_creation_input_tokens") is not None:
        merged.cache_creation_tokens = update.cache_creation_tokens
    return merged


class AnthropicChunkNormalizer:
    """
    Turns ``RawMessageStreamEvent`` payloads into ``ProviderEvent`` instances.

    Tool calls arrive as ``tool_use`` content blocks; the content block index
    is used as the tool-call index. Usage is cumulative: ``message_start``
    carries the input tokens, each ``message_delta`` the output tokens so far.
    """

    provider = "anthropic"
    usage_policy = UsagePolicy.OVERWRITE

    def _decode(self, native: Any) -> Any:
        if isinstance(native, (bytes, bytearray)):
            native = native.decode("utf-8", errors="replace")
        if isinstance(native, str):
            try:
                native = json.loads(native)
            except json.JSONDecodeError as e:
                raise MalformedChunkError(f"Event is not valid JSON: {e}", self.provider, native) from e
        return native

    def parse_event(self, native: Any) -> Any:
        native = self._decode(native)
        try:
            return _EVENT_ADAPTER.validate_python(native)
        except ValidationError as e:
            raise MalformedChunkError(
                f"Unexpected message stream event shape: {e.error_count()} validation error(s)",
                self.provider,
                native
            ) from e

    def _raise_stream_error(self, payload: Dict[str, Any]) -> None:
        error = payload.get("error") or {}
        error_type = error.get("type", "unknown_error")
        provider_error = ProviderError(
            f"Anthropic stream error: {error_type}: {error.get('message', '')}".rstrip(": "),
            self.provider
        )
        provider_error.is_retryable = error_type in RETRYABLE_ERROR_TYPES
        raise provider_error

    def normalize_chunk(self, native: Any, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        # ping and error are SSE-level events outside the message event union
        native = self._decode(native)
        if isinstance(native, dict):
            if native.get("type") == "ping":
                return []
            if native.get("type") == "error":
                self._raise_stream_error(native)

        event = self.parse_event(native)
        state = accumulator.state
        state.chunk_count += 1
        events: List[ProviderEvent] = []

        if event.type == "message_start":
            usage = normalize_usage(event.message.usage.model_dump(), "anthropic")
            state.last_usage = usage
            events.append(ProviderEvent.usage_event(usage, provider=self.provider))

        elif event.type == "content_block_start":
            block = event.content_block
            if block.type == "tool_use":
                events.extend(accumulator.start_tool_call(
                    event.index, tool_call_id=block.id, tool_name=block.name
                ))
                if block.input:
                    events.extend(accumulator.append_tool_arguments(event.index, json.dumps(block.input)))
            elif block.type == "text" and block.text:
                events.extend(accumulator.feed(block.text))

        elif event.type == "content_block_delta":
            delta = event.delta
            if delta.type == "text_delta":
                events.extend(accumulator.feed(delta.text))
            elif delta.type == "input_json_delta":
                events.extend(accumulator.append_tool_arguments(event.index, delta.partial_json))

        elif event.type == "content_block_stop":
            events.extend(accumulator.end_tool_call(event.index))

        elif event.type == "message_delta":
            if event.delta.stop_reason:
                state.finish_reason = event.delta.stop_reason
            if event.usage is not None:
                raw = event.usage.model_dump()
                usage = _merge_usage(state.last_usage or TokenUsage(), raw)
                state.last_usage = usage
                events.append(ProviderEvent.usage_event(usage, provider=self.provider))

        return events

    def finish(self, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        return finish_stream(accumulator)
