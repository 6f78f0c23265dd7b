"""
Usage normalization module.

Backends name their token counters differently and some of them report a
cost directly. These helpers turn any of those shapes into a ``TokenUsage``.
"""

from typing import Any, Dict, Optional

from ...models.events import TokenUsage


def _as_dict(usage_data: Any) -> Dict[str, Any]:
    if usage_data is None:
        return {}
    if isinstance(usage_data, dict):
        return usage_data
    if hasattr(usage_data, "model_dump"):
        return usage_data.model_dump()
    return dict(getattr(usage_data, "__dict__", {}))


def _int(value: Any) -> int:
    # Backends and mocks sometimes send None for counters they don't track
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def normalize_usage(usage_data: Any, provider: str) -> TokenUsage:
    """
    Normalize raw usage data into a ``TokenUsage``.

    Args:
        usage_data: Usage dict or SDK usage object from the backend
        provider: Provider name for provider-specific field mapping

    Returns:
        TokenUsage with missing counters set to zero
    """
    data = _as_dict(usage_data)
    usage = TokenUsage()
    if not data:
        return usage

    if provider == "anthropic":
        usage.prompt_tokens = _int(data.get("input_tokens"))
        usage.completion_tokens = _int(data.get("output_tokens"))
        usage.cache_read_tokens = _int(data.get("cache_read_input_tokens"))
        usage.cache_creation_tokens = _int(data.get("cache_creation_input_tokens"))
    else:
        usage.prompt_tokens = _int(_first(data, "prompt_tokens", "input_tokens", "prompt_token_count"))
        usage.completion_tokens = _int(_first(data, "completion_tokens", "output_tokens", "generated_tokens"))

        details = data.get("prompt_tokens_details")
        if isinstance(details, dict):
            usage.cache_read_tokens = _int(details.get("cached_tokens"))
        if data.get("cached_tokens") is not None:
            usage.cache_read_tokens = _int(data["cached_tokens"])

    # OpenRouter-style backends report the billed amount alongside the counters
    cost = data.get("cost")
    if cost is not None:
        try:
            usage.cost = float(cost)
        except (TypeError, ValueError):
            usage.cost = None

    return usage


def calculate_usage_cost(
    usage: TokenUsage,
    input_cost_per_1k: float,
    output_cost_per_1k: float,
    cached_cost_per_1k: Optional[float] = None,
    cache_creation_cost_per_1k: Optional[float] = None,
    cache_included_in_prompt: bool = True
) -> float:
    """
    Calculate the cost of usage based on token counts and pricing.

    OpenAI-style backends count cached tokens inside ``prompt_tokens``;
    Anthropic reports cache reads and cache writes next to ``input_tokens``.
    ``cache_included_in_prompt`` selects between the two.

    Args:
        usage: Normalized usage
        input_cost_per_1k: Cost per 1K input tokens
        output_cost_per_1k: Cost per 1K output tokens
        cached_cost_per_1k: Cost per 1K cached input tokens (optional)
        cache_creation_cost_per_1k: Cost per 1K tokens written to the cache (optional)
        cache_included_in_prompt: Whether cache counters are part of ``prompt_tokens``

    Returns:
        Total cost in USD, never negative
    """
    input_cost = (usage.prompt_tokens / 1000) * input_cost_per_1k
    output_cost = (usage.completion_tokens / 1000) * output_cost_per_1k
    cached_rate = input_cost_per_1k if cached_cost_per_1k is None else cached_cost_per_1k

    if cache_included_in_prompt:
        # Cached tokens are charged at the cached rate instead of the input rate
        cached = min(usage.cache_read_tokens, usage.prompt_tokens) / 1000
        cache_savings = cached * (input_cost_per_1k - cached_rate)
        return max(input_cost + output_cost - cache_savings, 0.0)

    creation_rate = input_cost_per_1k if cache_creation_cost_per_1k is None else cache_creation_cost_per_1k
    cache_cost = (usage.cache_read_tokens / 1000) * cached_rate
    cache_cost += (usage.cache_creation_tokens / 1000) * creation_rate
    return input_cost + output_cost + cache_cost
