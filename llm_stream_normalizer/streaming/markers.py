"""
Sentinel marker scanning.

Some OpenAI-compatible backends inline their tool-call section in the text
stream, bracketed by fixed literal markers. The functions here are pure and
keep no state; buffering across chunk boundaries is the accumulator's job.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence


TOOL_BEGIN = "<|tool_calls_section_begin|>"
TOOL_END = "<|tool_calls_section_end|>"

DEFAULT_MARKERS = (TOOL_BEGIN, TOOL_END)


@dataclass(frozen=True)
class MarkerMatch:
    """A single marker occurrence; offsets index into the scanned string."""
    marker: str
    start: int
    end: int

    def byte_offset(self, text: str) -> int:
        """UTF-8 byte offset of the match start within ``text``."""
        return len(text[:self.start].encode("utf-8"))


@dataclass(frozen=True)
class MarkerScan:
    """Result of scanning a fragment for markers."""
    matches: tuple

    @property
    def found(self) -> bool:
        return bool(self.matches)

    def offsets(self, marker: str) -> List[int]:
        return [m.start for m in self.matches if m.marker == marker]


def contains_marker(text: str, marker: str) -> bool:
    """True iff ``marker`` occurs verbatim in ``text``."""
    return bool(marker) and marker in text


def contains_any_marker(text: str, markers: Sequence[str] = DEFAULT_MARKERS) -> bool:
    return any(contains_marker(text, marker) for marker in markers)


def scan_markers(text: str, markers: Sequence[str] = DEFAULT_MARKERS) -> MarkerScan:
    """
    Find every occurrence of every marker in ``text``.

    Args:
        text: Fragment to scan
        markers: Literal markers to look for

    Returns:
        MarkerScan with matches ordered by start offset
    """
    matches = []
    for marker in markers:
        if not marker:
            continue
        pos = text.find(marker)
        while pos != -1:
            matches.append(MarkerMatch(marker, pos, pos + len(marker)))
            pos = text.find(marker, pos + len(marker))
    matches.sort(key=lambda m: (m.start, -len(m.marker)))
    return MarkerScan(tuple(matches))


def find_first_marker(text: str, markers: Sequence[str] = DEFAULT_MARKERS,
                      start: int = 0) -> Optional[MarkerMatch]:
    """Return the earliest marker occurrence at or after ``start``."""
    best = None
    for marker in markers:
        if not marker:
            continue
        pos = text.find(marker, start)
        if pos == -1:
            continue
        if best is None or pos < best.start or (pos == best.start and len(marker) > len(best.marker)):
            best = MarkerMatch(marker, pos, pos + len(marker))
    return best


def partial_marker_suffix(text: str, markers: Sequence[str] = DEFAULT_MARKERS) -> int:
    """
    Length of the longest suffix of ``text`` that is a proper prefix of a marker.

    Such a suffix could still grow into a full marker when the next chunk
    arrives, so it must not be released as visible text yet.
    """
    longest = 0
    for marker in markers:
        limit = min(len(marker) - 1, len(text))
        for size in range(limit, longest, -1):
            if text.endswith(marker[:size]):
                longest = size
                break
    return longest
