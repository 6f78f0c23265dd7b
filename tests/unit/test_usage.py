"""Unit tests for usage normalization and cost calculation."""

import pytest
from unittest.mock import Mock

from llm_stream_normalizer.core.normalization.usage import calculate_usage_cost, normalize_usage
from llm_stream_normalizer.models.events import TokenUsage


class TestNormalizeUsage:

    def test_openai_fields(self):
        usage = normalize_usage({"prompt_tokens": 120, "completion_tokens": 45, "total_tokens": 165}, "openai")
        assert usage.prompt_tokens == 120
        assert usage.completion_tokens == 45
        assert usage.total_tokens == 165
        assert usage.cost is None

    def test_reported_cost(self):
        usage = normalize_usage({"prompt_tokens": 1, "completion_tokens": 2, "cost": "0.0031"}, "openrouter")
        assert usage.cost == pytest.approx(0.0031)

    def test_invalid_cost_is_ignored(self):
        usage = normalize_usage({"prompt_tokens": 1, "cost": "n/a"}, "openai")
        assert usage.cost is None

    def test_anthropic_fields(self):
        usage = normalize_usage({
            "input_tokens": 30,
            "output_tokens": 12,
            "cache_read_input_tokens": 8,
            "cache_creation_input_tokens": 4,
        }, "anthropic")
        assert (usage.prompt_tokens, usage.completion_tokens) == (30, 12)
        assert usage.cache_read_tokens == 8
        assert usage.cache_creation_tokens == 4

    def test_openai_cached_tokens(self):
        usage = normalize_usage({
            "prompt_tokens": 100,
            "completion_tokens": 5,
            "prompt_tokens_details": {"cached_tokens": 60},
        }, "openai")
        assert usage.cache_read_tokens == 60

    def test_none_counters(self):
        usage = normalize_usage({"prompt_tokens": None, "completion_tokens": None}, "openai")
        assert (usage.prompt_tokens, usage.completion_tokens) == (0, 0)

    def test_empty_usage(self):
        assert normalize_usage(None, "openai") == TokenUsage()
        assert normalize_usage({}, "anthropic") == TokenUsage()

    def test_object_with_model_dump(self):
        raw = Mock()
        raw.model_dump.return_value = {"input_tokens": 3, "output_tokens": 4}
        usage = normalize_usage(raw, "anthropic")
        assert (usage.prompt_tokens, usage.completion_tokens) == (3, 4)


class TestCalculateUsageCost:

    def test_basic_cost(self):
        usage = TokenUsage(prompt_tokens=1000, completion_tokens=500)
        assert calculate_usage_cost(usage, 0.001, 0.002) == pytest.approx(0.002)

    def test_cached_tokens_charged_at_cached_rate(self):
        usage = TokenUsage(prompt_tokens=1000, completion_tokens=0, cache_read_tokens=500)
        # 500 full-price input tokens plus 500 cached ones
        assert calculate_usage_cost(usage, 0.002, 0.0, 0.0005) == pytest.approx(0.00125)

    def test_cached_rate_ignored_without_cached_tokens(self):
        usage = TokenUsage(prompt_tokens=1000, completion_tokens=1000)
        assert calculate_usage_cost(usage, 0.001, 0.001, 0.0001) == pytest.approx(0.002)

    def test_cached_tokens_never_exceed_prompt(self):
        usage = TokenUsage(prompt_tokens=100, completion_tokens=0, cache_read_tokens=500)
        cost = calculate_usage_cost(usage, 0.002, 0.0, 0.0005)
        assert cost == pytest.approx(0.00005)

    def test_anthropic_cache_counters_are_billed_separately(self):
        usage = TokenUsage(prompt_tokens=10, completion_tokens=5,
                           cache_read_tokens=10000, cache_creation_tokens=200)
        cost = calculate_usage_cost(usage, 0.003, 0.015, 0.0003, 0.00375,
                                    cache_included_in_prompt=False)
        # 0.00003 input + 0.000075 output + 0.003 cache reads + 0.00075 cache writes
        assert cost == pytest.approx(0.003855)

    def test_anthropic_cache_rates_default_to_input_rate(self):
        usage = TokenUsage(prompt_tokens=1000, completion_tokens=0,
                           cache_read_tokens=1000, cache_creation_tokens=1000)
        cost = calculate_usage_cost(usage, 0.001, 0.0, cache_included_in_prompt=False)
        assert cost == pytest.approx(0.003)


class TestTokenUsage:

    def test_addition(self):
        total = TokenUsage(10, 5, cost=0.1) + TokenUsage(3, 2)
        assert (total.prompt_tokens, total.completion_tokens) == (13, 7)
        assert total.cost == pytest.approx(0.1)

    def test_addition_without_costs(self):
        assert (TokenUsage(1, 1) + TokenUsage(1, 1)).cost is None

    def test_to_dict(self):
        data = TokenUsage(10, 5, cost=0.01, cache_read_tokens=2).to_dict()
        assert data["total_tokens"] == 15
        assert data["cost"] == 0.01
        assert data["cache_info"]["cache_read_input_tokens"] == 2
