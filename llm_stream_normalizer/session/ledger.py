"""
Session ledger interface.

The ledger is the durable store of session metadata, token usage and cost.
The streaming layer only needs a narrow slice of it; implementations are
responsible for making each ``update`` atomic.
"""

from typing import List, Optional, Protocol, runtime_checkable

from ..models.session import Session


class LedgerError(Exception):
    """Base exception for session ledger failures."""


class SessionNotFoundError(LedgerError):
    """No session exists with the requested id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class LedgerReadError(LedgerError):
    """Reading from the ledger failed."""


class LedgerWriteError(LedgerError):
    """A write to the ledger failed; the caller may retry it."""


@runtime_checkable
class SessionLedger(Protocol):
    """Async create/read/update/list/delete access to session records."""

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
        ...

    async def get(self, session_id: str) -> Session:
        """Raises SessionNotFoundError when missing."""
        ...

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
        ...

    async def list(self) -> List[Session]:
        """Top-level sessions (no parent), most recently created first."""
        ...

    async def delete(self, session_id: str) -> None:
        """Raises SessionNotFoundError when missing."""
        ...
