"""Runtime settings for stream normalization, loaded from the environment."""

import json
import logging
import os
from enum import Enum
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    DEFAULT_QUEUE_SIZE,
    DEFAULT_READ_TIMEOUT,
    PRICING_OVERRIDES_ENV_VAR,
    QUEUE_SIZE_ENV_VAR,
    READ_TIMEOUT_ENV_VAR,
    USAGE_POLICY_OVERRIDES_ENV_VAR,
)

logger = logging.getLogger(__name__)


class UsagePolicy(str, Enum):
    """How successive usage reports within one stream combine."""
    OVERWRITE = "overwrite"  # each report is cumulative, keep the latest
    SUM = "sum"              # each report is an increment


class ModelPricing(BaseModel):
    """Per-1k token pricing for a model."""
    input_cost_per_1k_tokens: float = Field(..., ge=0.0)
    output_cost_per_1k_tokens: float = Field(..., ge=0.0)
    cached_input_cost_per_1k_tokens: Optional[float] = Field(None, ge=0.0)
    cache_creation_input_cost_per_1k_tokens: Optional[float] = Field(None, ge=0.0)


class StreamSettings(BaseModel):
    """Settings shared by every stream worker."""
    queue_size: int = Field(default=DEFAULT_QUEUE_SIZE, ge=1)
    read_timeout: Optional[float] = Field(default=DEFAULT_READ_TIMEOUT, gt=0.0)
    usage_policy_overrides: Dict[str, UsagePolicy] = Field(default_factory=dict)
    pricing: Dict[str, ModelPricing] = Field(default_factory=dict)

    def usage_policy_for(self, provider: str, default: UsagePolicy) -> UsagePolicy:
        return self.usage_policy_overrides.get(provider.lower(), default)

    def pricing_for(self, model: Optional[str]) -> Optional[ModelPricing]:
        if not model:
            return None
        return self.pricing.get(model)


def _load_json_env(name: str) -> Dict:
    raw = os.getenv(name)
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {name}: {e}")
        return {}
    if not isinstance(value, dict):
        logger.error(f"{name} must be a JSON object, got {type(value).__name__}")
        return {}
    return value


def load_settings() -> StreamSettings:
    """
    Build settings from environment variables (and a ``.env`` file if present).

    Each invalid value is logged and replaced by its default.

    Returns:
        StreamSettings
    """
    load_dotenv()

    values: Dict = {}

    queue_size = os.getenv(QUEUE_SIZE_ENV_VAR)
    if queue_size:
        values["queue_size"] = queue_size

    read_timeout = os.getenv(READ_TIMEOUT_ENV_VAR)
    if read_timeout:
        try:
            values["read_timeout"] = float(read_timeout) or None
        except ValueError:
            logger.error(f"Invalid {READ_TIMEOUT_ENV_VAR}: {read_timeout!r}")

    policies = _load_json_env(USAGE_POLICY_OVERRIDES_ENV_VAR)
    if policies:
        values["usage_policy_overrides"] = {k.lower(): v for k, v in policies.items()}

    pricing = _load_json_env(PRICING_OVERRIDES_ENV_VAR)
    if pricing:
        values["pricing"] = pricing
        logger.info(f"Loaded pricing overrides for {len(pricing)} models from environment")

    # Each field is checked on its own so one bad variable keeps the rest
    valid: Dict = {}
    for name, value in values.items():
        try:
            StreamSettings(**{name: value})
        except ValidationError as e:
            logger.error(f"Invalid {name} in environment, using default: {e}")
            continue
        valid[name] = value

    return StreamSettings(**valid)
