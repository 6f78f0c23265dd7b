"""
Per-request stream accumulator.

Turns content fragments with arbitrary alignment into sentinel-free
``content_delta`` events, and keeps the argument buffers of structured tool
calls. One ``StreamState`` belongs to exactly one in-flight request.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from .markers import TOOL_BEGIN, TOOL_END, find_first_marker, partial_marker_suffix
from ..models.events import ProviderEvent, TokenUsage

logger = logging.getLogger(__name__)


@dataclass
class StreamState:
    """
    Mutable state of one streaming request.

    Attributes:
        provider: Backend name stamped onto emitted events
        pending_tail: Content not yet known to be free of a split marker
        in_tool_section: True between a begin marker and its end marker
        tool_call_buffers: Accumulated argument text per tool-call index
        tool_call_ids: Backend ids per tool-call index
        open_tool_calls: Indices started but not yet ended, in start order
        finish_reason: Last stop reason reported by the backend
        last_usage: Most recent usage snapshot seen by the normalizer
        chunk_count: Native chunks consumed so far
    """
    provider: str = ""
    pending_tail: str = ""
    in_tool_section: bool = False
    tool_call_buffers: Dict[int, str] = field(default_factory=dict)
    tool_call_ids: Dict[int, Optional[str]] = field(default_factory=dict)
    open_tool_calls: List[int] = field(default_factory=list)
    finish_reason: Optional[str] = None
    last_usage: Optional[TokenUsage] = None
    chunk_count: int = 0


class StreamAccumulator:
    """Buffers partial markers and tool-call fragments across chunk boundaries."""

    def __init__(self, state: StreamState, begin_marker: str = TOOL_BEGIN,
                 end_marker: str = TOOL_END):
        self.state = state
        self.begin_marker = begin_marker
        self.end_marker = end_marker
        self._markers = (begin_marker, end_marker)

    def _content(self, text: str, events: List[ProviderEvent]) -> None:
        if text and not self.state.in_tool_section:
            events.append(ProviderEvent.content_delta(text, provider=self.state.provider))

    def feed(self, fragment: str) -> List[ProviderEvent]:
        """
        Consume one content fragment.

        Args:
            fragment: Raw text exactly as the backend delivered it

        Returns:
            Content events that are known to be free of marker text
        """
        if not fragment:
            return []

        state = self.state
        buffer = state.pending_tail + fragment
        events: List[ProviderEvent] = []
        pos = 0

        while True:
            match = find_first_marker(buffer, self._markers, pos)
            if match is None:
                break

            self._content(buffer[pos:match.start], events)
            if match.marker == self.begin_marker:
                if not state.in_tool_section:
                    logger.debug("Entering tool call section")
                state.in_tool_section = True
            elif state.in_tool_section:
                logger.debug("Leaving tool call section")
                state.in_tool_section = False
            else:
                logger.debug("Dropping end marker outside of a tool call section")
            pos = match.end

        rest = buffer[pos:]
        held = partial_marker_suffix(rest, self._markers)
        self._content(rest[:len(rest) - held], events)
        state.pending_tail = rest[len(rest) - held:]
        return events

    def flush(self) -> List[ProviderEvent]:
        """Release whatever is still held back at end of stream."""
        state = self.state
        tail = state.pending_tail
        state.pending_tail = ""

        if state.in_tool_section:
            logger.warning(
                f"Stream ended inside an unterminated tool call section "
                f"(provider={state.provider}, discarded_chars={len(tail)})"
            )
            return []

        events: List[ProviderEvent] = []
        self._content(tail, events)
        return events

    def start_tool_call(self, index: int, tool_call_id: Optional[str] = None,
                        tool_name: Optional[str] = None) -> List[ProviderEvent]:
        """Open a structured tool call; repeated starts for an open index are ignored."""
        state = self.state
        if index in state.open_tool_calls:
            if tool_call_id and not state.tool_call_ids.get(index):
                state.tool_call_ids[index] = tool_call_id
            return []

        state.open_tool_calls.append(index)
        state.tool_call_buffers[index] = ""
        state.tool_call_ids[index] = tool_call_id
        return [ProviderEvent.tool_call_start(
            index, tool_call_id=tool_call_id, tool_name=tool_name, provider=state.provider
        )]

    def append_tool_arguments(self, index: int, fragment: str,
                              tool_call_id: Optional[str] = None) -> List[ProviderEvent]:
        """Append raw argument text to a tool call, opening it if needed."""
        if not fragment:
            return []

        events: List[ProviderEvent] = []
        if index not in self.state.open_tool_calls:
            events.extend(self.start_tool_call(index, tool_call_id))

        state = self.state
        state.tool_call_buffers[index] = state.tool_call_buffers.get(index, "") + fragment
        events.append(ProviderEvent.tool_call_delta(
            index, fragment, tool_call_id=state.tool_call_ids.get(index), provider=state.provider
        ))
        return events

    def end_tool_call(self, index: int) -> List[ProviderEvent]:
        state = self.state
        if index not in state.open_tool_calls:
            return []
        state.open_tool_calls.remove(index)
        return [ProviderEvent.tool_call_end(
            index, tool_call_id=state.tool_call_ids.get(index), provider=state.provider
        )]

    def end_open_tool_calls(self) -> List[ProviderEvent]:
        events: List[ProviderEvent] = []
        for index in list(self.state.open_tool_calls):
            events.extend(self.end_tool_call(index))
        return events

    def arguments_for(self, index: int) -> str:
        return self.state.tool_call_buffers.get(index, "")
