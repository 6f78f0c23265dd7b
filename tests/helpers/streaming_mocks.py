"""Helper functions for building native stream chunks and mock transports."""

import asyncio
from typing import Any, AsyncGenerator, Dict, Iterable, List, Optional

import httpx


def openai_chunk(content: Optional[str] = None, *, tool_calls: Optional[List[Dict[str, Any]]] = None,
                 finish_reason: Optional[str] = None, usage: Optional[Dict[str, Any]] = None,
                 model: str = "kimi-k2") -> Dict[str, Any]:
    """Build one Chat Completions stream chunk as a plain dict."""
    delta: Dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls

    chunk: Dict[str, Any] = {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": model,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    if usage is not None:
        chunk["usage"] = usage
    return chunk


def openai_usage_chunk(prompt_tokens: int, completion_tokens: int,
                       cost: Optional[float] = None) -> Dict[str, Any]:
    """Usage-only chunk as sent with ``stream_options.include_usage``."""
    usage: Dict[str, Any] = {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
    if cost is not None:
        usage["cost"] = cost
    chunk = openai_chunk(usage=usage)
    chunk["choices"] = []
    return chunk


def openai_tool_call(index: int, *, tool_call_id: Optional[str] = None, name: Optional[str] = None,
                     arguments: Optional[str] = None) -> Dict[str, Any]:
    function: Dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    tool_call: Dict[str, Any] = {"index": index, "function": function}
    if tool_call_id is not None:
        tool_call["id"] = tool_call_id
        tool_call["type"] = "function"
    return tool_call


def anthropic_message_start(input_tokens: int = 10, output_tokens: int = 1,
                            cache_read_input_tokens: int = 0,
                            cache_creation_input_tokens: int = 0) -> Dict[str, Any]:
    usage = {"input_tokens": input_tokens, "output_tokens": output_tokens}
    if cache_read_input_tokens:
        usage["cache_read_input_tokens"] = cache_read_input_tokens
    if cache_creation_input_tokens:
        usage["cache_creation_input_tokens"] = cache_creation_input_tokens
    return {
        "type": "message_start",
        "message": {
            "id": "msg_test",
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": "claude-3-5-haiku-latest",
            "stop_reason": None,
            "stop_sequence": None,
            "usage": usage,
        },
    }


def anthropic_text_block_start(index: int = 0) -> Dict[str, Any]:
    return {"type": "content_block_start", "index": index,
            "content_block": {"type": "text", "text": ""}}


def anthropic_text_delta(text: str, index: int = 0) -> Dict[str, Any]:
    return {"type": "content_block_delta", "index": index,
            "delta": {"type": "text_delta", "text": text}}


def anthropic_tool_use_start(index: int, tool_id: str, name: str) -> Dict[str, Any]:
    return {"type": "content_block_start", "index": index,
            "content_block": {"type": "tool_use", "id": tool_id, "name": name, "input": {}}}


def anthropic_json_delta(partial_json: str, index: int) -> Dict[str, Any]:
    return {"type": "content_block_delta", "index": index,
            "delta": {"type": "input_json_delta", "partial_json": partial_json}}


def anthropic_block_stop(index: int = 0) -> Dict[str, Any]:
    return {"type": "content_block_stop", "index": index}


def anthropic_message_delta(stop_reason: str = "end_turn", output_tokens: int = 5) -> Dict[str, Any]:
    return {
        "type": "message_delta",
        "delta": {"stop_reason": stop_reason, "stop_sequence": None},
        "usage": {"output_tokens": output_tokens},
    }


def anthropic_message_stop() -> Dict[str, Any]:
    return {"type": "message_stop"}


async def create_stream(chunks: Iterable[Any], delay: float = 0.0) -> AsyncGenerator[Any, None]:
    """Yield ``chunks`` as an async transport stream."""
    for chunk in chunks:
        if delay:
            await asyncio.sleep(delay)
        yield chunk


async def create_interrupted_stream(chunks: Iterable[Any],
                                    error: Optional[Exception] = None) -> AsyncGenerator[Any, None]:
    """Yield ``chunks`` and then fail like a dropped connection."""
    for chunk in chunks:
        yield chunk
    raise error or httpx.ConnectError("Connection reset by peer")


async def create_stalled_stream(chunks: Iterable[Any], stall: float = 10.0) -> AsyncGenerator[Any, None]:
    """Yield ``chunks`` and then hang, to exercise read timeouts."""
    for chunk in chunks:
        yield chunk
    await asyncio.sleep(stall)


class TrackingStream:
    """Async iterator that records how far it was consumed and whether it was closed."""

    def __init__(self, chunks: Iterable[Any]):
        self._chunks = list(chunks)
        self.consumed = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.consumed >= len(self._chunks):
            raise StopAsyncIteration
        chunk = self._chunks[self.consumed]
        self.consumed += 1
        return chunk

    async def aclose(self):
        self.closed = True
