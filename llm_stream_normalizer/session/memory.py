"""In-process session ledger."""

import asyncio
import itertools
import time
from typing import Dict, List, Optional

from .ledger import LedgerWriteError, SessionNotFoundError
from ..models.session import Session


class InMemorySessionLedger:
    """
    Session ledger kept in a dict, for tests and single-process use.

    All mutations happen under one ``asyncio.Lock`` so concurrent stream
    workers see atomic updates.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._order: Dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = asyncio.Lock()
        self.update_calls = 0

    async def create(
        self,
        session_id: str,
        title: str,
        *,
        parent_session_id: Optional[str] = None,
        message_count: int = 0,
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        cost: float = 0.0,
    ) -> Session:
        async with self._lock:
            if session_id in self._sessions:
                raise LedgerWriteError(f"Session already exists: {session_id}")
            session = Session(
                id=session_id,
                parent_session_id=parent_session_id,
                title=title,
                message_count=message_count,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                cost=cost,
            )
            self._sessions[session_id] = session
            self._order[session_id] = next(self._counter)
            return session.model_copy()

    async def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.model_copy()

    async def update(
        self,
        session_id: str,
        *,
        title: str,
        prompt_tokens: int,
        completion_tokens: int,
        summary_message_id: Optional[str],
        cost: float,
        todos: Optional[str],
    ) -> Session:
        async with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise SessionNotFoundError(session_id)
            self.update_calls += 1
            updated = current.model_copy(update={
                "title": title,
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "summary_message_id": summary_message_id,
                "cost": cost,
                "todos": todos,
                "updated_at": int(time.time()),
            })
            self._sessions[session_id] = updated
            return updated.model_copy()

    async def list(self) -> List[Session]:
        top_level = [s for s in self._sessions.values() if s.parent_session_id is None]
        # created_at has one-second resolution; insertion order breaks ties
        top_level.sort(key=lambda s: (s.created_at, self._order[s.id]), reverse=True)
        return [s.model_copy() for s in top_level]

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            del self._sessions[session_id]
            del self._order[session_id]
