"""Provider-agnostic core logic.

- normalization: usage normalization and cost calculation
"""

__all__ = []
