from pydantic import BaseModel, Field
from typing import Optional
import time


def _now() -> int:
    return int(time.time())


class Session(BaseModel):
    """Durable session record kept by a session ledger.

    ``todos`` is an opaque JSON blob and ``summary_message_id`` a nullable
    back-reference; both are owned by callers above the streaming layer.
    """
    id: str
    parent_session_id: Optional[str] = None
    title: str = ""
    message_count: int = Field(default=0, ge=0)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    summary_message_id: Optional[str] = None
    todos: Optional[str] = None
    created_at: int = Field(default_factory=_now)
    updated_at: int = Field(default_factory=_now)


class SessionUsage(BaseModel):
    """Usage totals written back to a session at stream completion."""
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    summary_message_id: Optional[str] = None
