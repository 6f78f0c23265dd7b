"""
Configuration constants.

Environment variable names and defaults read by ``config.settings``.
"""

# Bounded queue between a stream worker and its consumer
QUEUE_SIZE_ENV_VAR = "LLM_STREAM_QUEUE_SIZE"
DEFAULT_QUEUE_SIZE = 64

# Seconds to wait for the next native chunk; 0 disables the timeout
READ_TIMEOUT_ENV_VAR = "LLM_STREAM_READ_TIMEOUT"
DEFAULT_READ_TIMEOUT = 60.0

# JSON object mapping provider name to "overwrite" or "sum"
USAGE_POLICY_OVERRIDES_ENV_VAR = "LLM_STREAM_USAGE_POLICY_OVERRIDES"

# JSON object mapping model id to per-1k pricing, used when a backend omits cost
PRICING_OVERRIDES_ENV_VAR = "LLM_STREAM_PRICING_OVERRIDES_JSON"

PRICING_OVERRIDE_EXAMPLE = """
{
  "kimi-k2": {
    "input_cost_per_1k_tokens": 0.0006,
    "output_cost_per_1k_tokens": 0.0025
  },
  "claude-3-5-haiku-latest": {
    "input_cost_per_1k_tokens": 0.0008,
    "output_cost_per_1k_tokens": 0.004,
    "cached_input_cost_per_1k_tokens": 0.00008,
    "cache_creation_input_cost_per_1k_tokens": 0.001
  }
}
"""
