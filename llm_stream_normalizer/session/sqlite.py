"""SQLiteSessionLedger: persistent session ledger using stdlib sqlite3."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from .ledger import LedgerReadError, LedgerWriteError, SessionNotFoundError
from ..models.session import Session

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    parent_session_id TEXT,
    title TEXT NOT NULL,
    message_count INTEGER NOT NULL DEFAULT 0 CHECK (message_count >= 0),
    prompt_tokens INTEGER NOT NULL DEFAULT 0 CHECK (prompt_tokens >= 0),
    completion_tokens INTEGER NOT NULL DEFAULT 0 CHECK (completion_tokens >= 0),
    cost REAL NOT NULL DEFAULT 0.0 CHECK (cost >= 0.0),
    updated_at INTEGER NOT NULL,
    created_at INTEGER NOT NULL,
    summary_message_id TEXT,
    todos TEXT
);

CREATE INDEX IF NOT EXISTS idx_sessions_created_at ON sessions(created_at);
"""

SESSION_COLUMNS = (
    "id, parent_session_id, title, message_count, prompt_tokens, completion_tokens, "
    "cost, updated_at, created_at, summary_message_id, todos"
)


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        parent_session_id=row["parent_session_id"],
        title=row["title"],
        message_count=row["message_count"],
        prompt_tokens=row["prompt_tokens"],
        completion_tokens=row["completion_tokens"],
        cost=row["cost"],
        summary_message_id=row["summary_message_id"],
        todos=row["todos"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SQLiteSessionLedger:
    """Session ledger backed by a single SQLite database file.

    Statements are short and local, so they run inline on the event loop.
    A thread lock serializes access to the shared connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(SCHEMA_SQL)
        conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _fetch(self, session_id: str) -> Session:
        try:
            row = self._get_conn().execute(
                f"SELECT {SESSION_COLUMNS} FROM sessions WHERE id = ? LIMIT 1",
                (session_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise LedgerReadError(f"Failed to read session {session_id}: {e}") from e
        if row is None:
            raise SessionNotFoundError(session_id)
        return _row_to_session(row)

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
        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute(
                    """INSERT INTO sessions (
                        id, parent_session_id, title, message_count, prompt_tokens,
                        completion_tokens, cost, summary_message_id, updated_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, NULL, strftime('%s', 'now'), strftime('%s', 'now'))""",
                    (session_id, parent_session_id, title, message_count,
                     prompt_tokens, completion_tokens, cost),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise LedgerWriteError(f"Failed to create session {session_id}: {e}") from e
            return self._fetch(session_id)

    async def get(self, session_id: str) -> Session:
        with self._lock:
            return self._fetch(session_id)

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
        with self._lock:
            conn = self._get_conn()
            try:
                cursor = conn.execute(
                    """UPDATE sessions
                    SET title = ?, prompt_tokens = ?, completion_tokens = ?,
                        summary_message_id = ?, cost = ?, todos = ?,
                        updated_at = strftime('%s', 'now')
                    WHERE id = ?""",
                    (title, prompt_tokens, completion_tokens, summary_message_id,
                     cost, todos, session_id),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise LedgerWriteError(f"Failed to update session {session_id}: {e}") from e
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session_id)
            return self._fetch(session_id)

    async def list(self) -> List[Session]:
        with self._lock:
            try:
                rows = self._get_conn().execute(
                    f"""SELECT {SESSION_COLUMNS} FROM sessions
                    WHERE parent_session_id IS NULL
                    ORDER BY created_at DESC, rowid DESC"""
                ).fetchall()
            except sqlite3.Error as e:
                raise LedgerReadError(f"Failed to list sessions: {e}") from e
            return [_row_to_session(row) for row in rows]

    async def delete(self, session_id: str) -> None:
        with self._lock:
            conn = self._get_conn()
            try:
                cursor = conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise LedgerWriteError(f"Failed to delete session {session_id}: {e}") from e
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session_id)
