"""Normalizer for OpenAI-compatible Chat Completions streaming chunks.

Moonshot/Kimi style backends speak this format too, and sometimes inline the
tool-call section into ``delta.content`` between sentinel markers instead of
(or in addition to) sending ``delta.tool_calls``.
"""

from __future__ import annotations

import json
from typing import Any, List

from openai.types.chat import ChatCompletionChunk
from pydantic import ValidationError

from ..base import MalformedChunkError, finish_stream
from ...config.settings import UsagePolicy
from ...core.normalization.usage import normalize_usage
from ...models.events import ProviderEvent
from ...streaming.accumulator import StreamAccumulator


class OpenAIChunkNormalizer:
    """Turns ``ChatCompletionChunk`` payloads into ``ProviderEvent`` instances."""

    usage_policy = UsagePolicy.OVERWRITE

    def __init__(self, provider: str = "openai"):
        self.provider = provider

    def parse_chunk(self, native: Any) -> ChatCompletionChunk:
        """Validate a native chunk (SDK object, dict or raw JSON text)."""
        if isinstance(native, (bytes, bytearray)):
            native = native.decode("utf-8", errors="replace")
        if isinstance(native, str):
            try:
                native = json.loads(native)
            except json.JSONDecodeError as e:
                raise MalformedChunkError(f"Chunk is not valid JSON: {e}", self.provider, native) from e
        try:
            return ChatCompletionChunk.model_validate(native)
        except ValidationError as e:
            raise MalformedChunkError(
                f"Unexpected chat completion chunk shape: {e.error_count()} validation error(s)",
                self.provider,
                native
            ) from e

    def normalize_chunk(self, native: Any, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        chunk = self.parse_chunk(native)
        state = accumulator.state
        state.chunk_count += 1
        events: List[ProviderEvent] = []

        for choice in chunk.choices:
            delta = choice.delta
            if delta is not None:
                if delta.content:
                    events.extend(accumulator.feed(delta.content))

                for tool_call in delta.tool_calls or []:
                    function = tool_call.function
                    if tool_call.id or (function is not None and function.name):
                        events.extend(accumulator.start_tool_call(
                            tool_call.index,
                            tool_call_id=tool_call.id,
                            tool_name=function.name if function is not None else None
                        ))
                    if function is not None and function.arguments:
                        events.extend(accumulator.append_tool_arguments(
                            tool_call.index, function.arguments, tool_call_id=tool_call.id
                        ))

            if choice.finish_reason:
                state.finish_reason = choice.finish_reason
                events.extend(accumulator.end_open_tool_calls())

        if chunk.usage is not None:
            usage = normalize_usage(chunk.usage.model_dump(), "openai")
            state.last_usage = usage
            events.append(ProviderEvent.usage_event(usage, provider=self.provider))

        return events

    def finish(self, accumulator: StreamAccumulator) -> List[ProviderEvent]:
        return finish_stream(accumulator)
