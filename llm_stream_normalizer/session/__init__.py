"""Session ledger: interface, in-memory and SQLite implementations."""

from .ledger import (
    LedgerError,
    LedgerReadError,
    LedgerWriteError,
    SessionLedger,
    SessionNotFoundError,
)
from .memory import InMemorySessionLedger
from .sqlite import SQLiteSessionLedger

__all__ = [
    "LedgerError",
    "LedgerReadError",
    "LedgerWriteError",
    "SessionLedger",
    "SessionNotFoundError",
    "InMemorySessionLedger",
    "SQLiteSessionLedger",
]
