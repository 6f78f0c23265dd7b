"""Streaming layer for normalizing incremental backend responses.

This layer handles:
- Sentinel marker scanning
- Buffering of content and tool-call fragments across chunk boundaries
- Usage tracking and persistence at stream completion

The stream worker lives in ``streaming.runner``; it depends on the
providers layer and is exported from the package root.
"""

from .accumulator import StreamAccumulator, StreamState
from .markers import (
    DEFAULT_MARKERS,
    TOOL_BEGIN,
    TOOL_END,
    MarkerMatch,
    MarkerScan,
    contains_any_marker,
    contains_marker,
    find_first_marker,
    partial_marker_suffix,
    scan_markers,
)
from .usage_tracker import UsageTracker

__all__ = [
    "StreamAccumulator",
    "StreamState",
    "UsageTracker",
    "DEFAULT_MARKERS",
    "TOOL_BEGIN",
    "TOOL_END",
    "MarkerMatch",
    "MarkerScan",
    "contains_any_marker",
    "contains_marker",
    "find_first_marker",
    "partial_marker_suffix",
    "scan_markers",
]
