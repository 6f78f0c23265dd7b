"""Event models for normalized streaming responses.

Every backend chunk format is reduced to a sequence of ``ProviderEvent``
instances. A well-formed sequence is terminated by exactly one ``finish`` or
``error`` event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import time


class EventType(str, Enum):
    """Kinds of normalized stream events."""
    CONTENT_DELTA = "content_delta"
    TOOL_CALL_START = "tool_call_start"
    TOOL_CALL_DELTA = "tool_call_delta"
    TOOL_CALL_END = "tool_call_end"
    USAGE = "usage"
    FINISH = "finish"
    ERROR = "error"


TERMINAL_EVENT_TYPES = frozenset({EventType.FINISH, EventType.ERROR})


@dataclass
class TokenUsage:
    """Token and cost snapshot reported by a backend.

    ``cost`` is ``None`` when the backend did not report one; callers may
    fill it in from model pricing.
    """
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: Optional[float] = None
    cache_read_tokens: int = 0
    cache_creation_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        if self.cost is None and other.cost is None:
            cost = None
        else:
            cost = (self.cost or 0.0) + (other.cost or 0.0)
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            cost=cost,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
            cache_creation_tokens=self.cache_creation_tokens + other.cache_creation_tokens,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the standard usage dict shape used in logs."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "cost": self.cost,
            "cache_info": {
                "cache_read_input_tokens": self.cache_read_tokens,
                "cache_creation_input_tokens": self.cache_creation_tokens,
            },
        }


@dataclass
class ProviderEvent:
    """One unit of normalized stream output.

    Attributes:
        type: Kind of event
        content: Visible text, only for ``content_delta``
        tool_call_id: Backend id of the tool call a ``tool_call_*`` event belongs to
        tool_call_index: Position of the tool call within the response
        tool_name: Function name, carried on ``tool_call_start``
        arguments_fragment: Raw argument text, only for ``tool_call_delta``
        usage: Usage snapshot on ``usage``/``finish`` events
        finish_reason: Backend stop reason on ``finish``
        error: Diagnostic exception on ``error``
        is_retryable: Whether the failure was transient
    """
    type: EventType
    content: str = ""
    tool_call_id: Optional[str] = None
    tool_call_index: Optional[int] = None
    tool_name: Optional[str] = None
    arguments_fragment: str = ""
    usage: Optional[TokenUsage] = None
    finish_reason: Optional[str] = None
    error: Optional[Exception] = None
    error_type: str = ""
    is_retryable: bool = False
    provider: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.error_type and self.error:
            self.error_type = type(self.error).__name__

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENT_TYPES

    @classmethod
    def content_delta(cls, content: str, **kwargs) -> "ProviderEvent":
        return cls(type=EventType.CONTENT_DELTA, content=content, **kwargs)

    @classmethod
    def tool_call_start(cls, index: int, tool_call_id: Optional[str] = None,
                        tool_name: Optional[str] = None, **kwargs) -> "ProviderEvent":
        return cls(
            type=EventType.TOOL_CALL_START,
            tool_call_index=index,
            tool_call_id=tool_call_id,
            tool_name=tool_name,
            **kwargs
        )

    @classmethod
    def tool_call_delta(cls, index: int, fragment: str,
                        tool_call_id: Optional[str] = None, **kwargs) -> "ProviderEvent":
        return cls(
            type=EventType.TOOL_CALL_DELTA,
            tool_call_index=index,
            tool_call_id=tool_call_id,
            arguments_fragment=fragment,
            **kwargs
        )

    @classmethod
    def tool_call_end(cls, index: int, tool_call_id: Optional[str] = None, **kwargs) -> "ProviderEvent":
        return cls(
            type=EventType.TOOL_CALL_END,
            tool_call_index=index,
            tool_call_id=tool_call_id,
            **kwargs
        )

    @classmethod
    def usage_event(cls, usage: TokenUsage, **kwargs) -> "ProviderEvent":
        return cls(type=EventType.USAGE, usage=usage, **kwargs)

    @classmethod
    def finish(cls, finish_reason: Optional[str] = None,
               usage: Optional[TokenUsage] = None, **kwargs) -> "ProviderEvent":
        return cls(type=EventType.FINISH, finish_reason=finish_reason, usage=usage, **kwargs)

    @classmethod
    def error_event(cls, error: Exception, is_retryable: bool = False, **kwargs) -> "ProviderEvent":
        return cls(type=EventType.ERROR, error=error, is_retryable=is_retryable, **kwargs)
