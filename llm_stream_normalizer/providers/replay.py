"""Replay transport for recorded streams.

A recording is a JSON Lines file with one native chunk per line. Server-sent
event framing (``data: {...}``) is tolerated, and the OpenAI ``[DONE]``
sentinel ends the stream.
"""

from pathlib import Path
from typing import Any, AsyncGenerator, Iterable, Union
import json
import logging

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def _parse_line(line: str) -> Any:
    if line.startswith("data:"):
        line = line[len("data:"):].strip()
    if line == DONE_SENTINEL:
        return None
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        # Left for the normalizer to reject as a malformed chunk
        return line


async def iter_chunks(lines: Iterable[str]) -> AsyncGenerator[Any, None]:
    """Yield decoded chunks from an iterable of recorded lines."""
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith(("event:", ":")):
            continue
        chunk = _parse_line(line)
        if chunk is None:
            return
        yield chunk


async def read_jsonl_chunks(path: Union[str, Path]) -> AsyncGenerator[Any, None]:
    """Yield the chunks stored in a recorded stream file."""
    path = Path(path)
    logger.debug(f"Replaying recorded stream from {path}")
    with path.open("r", encoding="utf-8") as fh:
        async for chunk in iter_chunks(fh):
            yield chunk
