from __future__ import annotations

from typing import Any, AsyncGenerator, Dict


async def stream_messages(
    client: Any,
    params: Dict[str, Any],
) -> AsyncGenerator[Any, None]:
    """Open an ``anthropic.AsyncAnthropic`` messages stream and yield raw events."""
    stream = await client.messages.create(**{**params, "stream": True})
    async for event in stream:
        yield event
