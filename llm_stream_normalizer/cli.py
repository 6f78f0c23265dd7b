"""CLI entry point for LLM Stream Normalizer."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .config import load_settings
from .models.events import EventType, ProviderEvent
from .providers import available_normalizers, get_normalizer
from .providers.replay import read_jsonl_chunks
from .session import SQLiteSessionLedger, SessionNotFoundError
from .streaming.runner import StreamRunner


def format_event(event: ProviderEvent) -> str:
    """One-line human readable rendering of an event."""
    if event.type == EventType.CONTENT_DELTA:
        return f"content_delta {event.content!r}"
    if event.type == EventType.TOOL_CALL_START:
        return f"tool_call_start index={event.tool_call_index} id={event.tool_call_id} name={event.tool_name}"
    if event.type == EventType.TOOL_CALL_DELTA:
        return f"tool_call_delta index={event.tool_call_index} {event.arguments_fragment!r}"
    if event.type == EventType.TOOL_CALL_END:
        return f"tool_call_end index={event.tool_call_index} id={event.tool_call_id}"
    if event.type in (EventType.USAGE, EventType.FINISH):
        usage = event.usage
        usage_text = ""
        if usage is not None:
            usage_text = (f" prompt_tokens={usage.prompt_tokens} "
                          f"completion_tokens={usage.completion_tokens} cost={usage.cost}")
        reason = f" reason={event.finish_reason}" if event.type == EventType.FINISH else ""
        return f"{event.type.value}{reason}{usage_text}"
    return f"error {event.error_type}: {event.error} retryable={event.is_retryable}"


def event_to_json(event: ProviderEvent) -> str:
    payload = {
        "type": event.type.value,
        "content": event.content or None,
        "tool_call_id": event.tool_call_id,
        "tool_call_index": event.tool_call_index,
        "tool_name": event.tool_name,
        "arguments_fragment": event.arguments_fragment or None,
        "usage": event.usage.to_dict() if event.usage else None,
        "finish_reason": event.finish_reason,
        "error": str(event.error) if event.error else None,
    }
    return json.dumps({k: v for k, v in payload.items() if v is not None})


async def replay(provider: str, path: str, model: Optional[str] = None,
                 session_db: Optional[str] = None, session_id: Optional[str] = None,
                 as_json: bool = False) -> int:
    """Replay a recorded stream and print its events."""
    settings = load_settings()
    ledger = SQLiteSessionLedger(session_db) if session_db else None

    try:
        if ledger is not None and session_id:
            try:
                await ledger.get(session_id)
            except SessionNotFoundError:
                await ledger.create(session_id, title=f"replay of {path}")

        runner = StreamRunner(
            get_normalizer(provider),
            read_jsonl_chunks(path),
            ledger=ledger if session_id else None,
            session_id=session_id,
            settings=settings,
            model=model,
        )
        exit_code = 0
        async for event in runner.events():
            print(event_to_json(event) if as_json else format_event(event))
            if event.type == EventType.ERROR:
                exit_code = 1
        return exit_code
    finally:
        if ledger is not None:
            ledger.close()


async def list_sessions(session_db: str) -> int:
    """List top-level sessions, newest first."""
    ledger = SQLiteSessionLedger(session_db)
    try:
        sessions = await ledger.list()
    finally:
        ledger.close()

    print("Sessions:")
    print("-" * 50)
    for session in sessions:
        print(f"{session.id} {session.title}")
        print(f"   prompt_tokens={session.prompt_tokens} completion_tokens={session.completion_tokens} "
              f"cost=${session.cost:.6f}")
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="LLM Stream Normalizer CLI")
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    replay_parser = subparsers.add_parser('replay', help='Normalize a recorded stream (JSON Lines)')
    replay_parser.add_argument('provider', help=f"Backend format ({', '.join(available_normalizers())})")
    replay_parser.add_argument('path', help='Recorded stream, one native chunk per line')
    replay_parser.add_argument('--model', help='Model name, used for pricing lookup')
    replay_parser.add_argument('--session-db', help='SQLite session ledger to persist usage into')
    replay_parser.add_argument('--session-id', help='Session to charge the usage to')
    replay_parser.add_argument('--json', action='store_true', help='Print events as JSON lines')

    sessions_parser = subparsers.add_parser('sessions', help='List sessions in a ledger')
    sessions_parser.add_argument('--session-db', required=True, help='SQLite session ledger')

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    if args.command == 'replay':
        sys.exit(asyncio.run(replay(
            args.provider,
            args.path,
            model=args.model,
            session_db=args.session_db,
            session_id=args.session_id,
            as_json=args.json
        )))
    elif args.command == 'sessions':
        sys.exit(asyncio.run(list_sessions(args.session_db)))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
