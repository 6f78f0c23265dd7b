"""
Example: Normalized streaming with usage persistence

Streams a completion from an OpenAI-compatible backend, prints the
normalized events, and stores token usage and cost on a session.

Requires OPENAI_API_KEY (and OPENAI_BASE_URL for non-OpenAI backends).
"""

import asyncio
import os

from dotenv import load_dotenv
from openai import AsyncOpenAI

from llm_stream_normalizer import (
    EventType,
    InMemorySessionLedger,
    StreamRunner,
    get_normalizer,
    load_settings,
)
from llm_stream_normalizer.providers.openai import stream_chat_completions


async def example_stream_with_usage():
    """Stream one answer and persist its usage."""
    print("=== Normalized Streaming with Usage ===\n")

    client = AsyncOpenAI(base_url=os.getenv("OPENAI_BASE_URL"))
    model = os.getenv("EXAMPLE_MODEL", "gpt-4o-mini")
    ledger = InMemorySessionLedger()
    await ledger.create("example-session", title="Streaming example")

    runner = StreamRunner(
        get_normalizer(os.getenv("EXAMPLE_PROVIDER", "openai")),
        stream_chat_completions(client, {
            "model": model,
            "messages": [{"role": "user", "content": "Write a haiku about Python programming"}],
        }),
        ledger=ledger,
        session_id="example-session",
        settings=load_settings(),
        model=model,
    )

    async for event in runner.events():
        if event.type == EventType.CONTENT_DELTA:
            print(event.content, end="", flush=True)
        elif event.type == EventType.TOOL_CALL_START:
            print(f"\n[tool call {event.tool_name} started]")
        elif event.type == EventType.ERROR:
            print(f"\nError: {event.error}")

    session = await ledger.get("example-session")
    print("\n\nUsage information:")
    print(f"  Prompt tokens: {session.prompt_tokens}")
    print(f"  Completion tokens: {session.completion_tokens}")
    print(f"  Cost: ${session.cost:.6f}")


async def example_cancellation():
    """Cancel a stream after the first few content events."""
    print("\n=== Cancelling a Stream ===\n")

    client = AsyncOpenAI(base_url=os.getenv("OPENAI_BASE_URL"))
    model = os.getenv("EXAMPLE_MODEL", "gpt-4o-mini")
    runner = StreamRunner(
        get_normalizer("openai"),
        stream_chat_completions(client, {
            "model": model,
            "messages": [{"role": "user", "content": "Count from 1 to 100"}],
        }),
        model=model,
    )

    received = 0
    async for event in runner.events():
        if event.type == EventType.CONTENT_DELTA:
            print(event.content, end="", flush=True)
            received += 1
            if received == 5:
                runner.cancel()
        elif event.type == EventType.ERROR:
            print(f"\nStream ended: {event.error_type}")


async def main():
    await example_stream_with_usage()
    await example_cancellation()


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
