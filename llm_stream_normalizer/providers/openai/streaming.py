from __future__ import annotations

from typing import Any, AsyncGenerator, Dict


async def stream_chat_completions(
    client: Any,
    payload: Dict[str, Any],
) -> AsyncGenerator[Any, None]:
    """Open a Chat Completions stream and yield the raw chunks.

    ``client`` is an ``openai.AsyncOpenAI`` (or any OpenAI-compatible client
    pointed at another base URL). Usage reporting is requested in-stream.
    """
    params = dict(payload)
    params["stream"] = True
    stream_options = dict(params.get("stream_options") or {})
    stream_options.setdefault("include_usage", True)
    params["stream_options"] = stream_options

    stream = await client.chat.completions.create(**params)
    async for chunk in stream:
        yield chunk
