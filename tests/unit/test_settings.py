"""Unit tests for settings loading."""

import json

import pytest
from pydantic import ValidationError

from llm_stream_normalizer.config import ModelPricing, StreamSettings, UsagePolicy, load_settings
from llm_stream_normalizer.config.constants import (
    DEFAULT_QUEUE_SIZE,
    DEFAULT_READ_TIMEOUT,
    PRICING_OVERRIDE_EXAMPLE,
    PRICING_OVERRIDES_ENV_VAR,
    QUEUE_SIZE_ENV_VAR,
    READ_TIMEOUT_ENV_VAR,
    USAGE_POLICY_OVERRIDES_ENV_VAR,
)


class TestStreamSettings:

    def test_defaults(self):
        settings = StreamSettings()
        assert settings.queue_size == DEFAULT_QUEUE_SIZE
        assert settings.read_timeout == DEFAULT_READ_TIMEOUT
        assert settings.usage_policy_overrides == {}
        assert settings.pricing == {}

    def test_queue_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            StreamSettings(queue_size=0)

    def test_usage_policy_override(self):
        settings = StreamSettings(usage_policy_overrides={"kimi": UsagePolicy.SUM})
        assert settings.usage_policy_for("KIMI", UsagePolicy.OVERWRITE) == UsagePolicy.SUM
        assert settings.usage_policy_for("openai", UsagePolicy.OVERWRITE) == UsagePolicy.OVERWRITE

    def test_pricing_lookup(self):
        pricing = ModelPricing(input_cost_per_1k_tokens=0.1, output_cost_per_1k_tokens=0.2)
        settings = StreamSettings(pricing={"m": pricing})
        assert settings.pricing_for("m") == pricing
        assert settings.pricing_for("other") is None
        assert settings.pricing_for(None) is None

    def test_negative_pricing_rejected(self):
        with pytest.raises(ValidationError):
            ModelPricing(input_cost_per_1k_tokens=-1, output_cost_per_1k_tokens=0)


class TestLoadSettings:

    def test_defaults_without_environment(self):
        assert load_settings() == StreamSettings()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv(QUEUE_SIZE_ENV_VAR, "4")
        monkeypatch.setenv(READ_TIMEOUT_ENV_VAR, "2.5")
        monkeypatch.setenv(USAGE_POLICY_OVERRIDES_ENV_VAR, json.dumps({"Kimi": "sum"}))
        monkeypatch.setenv(PRICING_OVERRIDES_ENV_VAR, PRICING_OVERRIDE_EXAMPLE)

        settings = load_settings()
        assert settings.queue_size == 4
        assert settings.read_timeout == 2.5
        assert settings.usage_policy_for("kimi", UsagePolicy.OVERWRITE) == UsagePolicy.SUM
        assert settings.pricing_for("kimi-k2").output_cost_per_1k_tokens == 0.0025
        assert settings.pricing_for("claude-3-5-haiku-latest").cached_input_cost_per_1k_tokens == 0.00008

    def test_zero_timeout_disables(self, monkeypatch):
        monkeypatch.setenv(READ_TIMEOUT_ENV_VAR, "0")
        assert load_settings().read_timeout is None

    def test_invalid_json_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv(PRICING_OVERRIDES_ENV_VAR, "{not json")
        assert load_settings().pricing == {}
        assert PRICING_OVERRIDES_ENV_VAR in caplog.text

    def test_non_object_json_ignored(self, monkeypatch):
        monkeypatch.setenv(USAGE_POLICY_OVERRIDES_ENV_VAR, "[1, 2]")
        assert load_settings().usage_policy_overrides == {}

    def test_invalid_values_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv(QUEUE_SIZE_ENV_VAR, "-3")
        monkeypatch.setenv(USAGE_POLICY_OVERRIDES_ENV_VAR, json.dumps({"kimi": "sometimes"}))
        assert load_settings() == StreamSettings()

    def test_invalid_value_keeps_other_overrides(self, monkeypatch, caplog):
        monkeypatch.setenv(QUEUE_SIZE_ENV_VAR, "-3")
        monkeypatch.setenv(READ_TIMEOUT_ENV_VAR, "12")
        monkeypatch.setenv(PRICING_OVERRIDES_ENV_VAR, PRICING_OVERRIDE_EXAMPLE)

        loaded = load_settings()
        assert loaded.queue_size == DEFAULT_QUEUE_SIZE
        assert loaded.read_timeout == 12.0
        assert set(loaded.pricing) == set(json.loads(PRICING_OVERRIDE_EXAMPLE))
        assert "Invalid queue_size" in caplog.text

    def test_invalid_timeout_ignored(self, monkeypatch):
        monkeypatch.setenv(READ_TIMEOUT_ENV_VAR, "soon")
        assert load_settings().read_timeout == DEFAULT_READ_TIMEOUT
