"""Shared pytest fixtures for LLM Stream Normalizer tests."""

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file for tests
load_dotenv()

from llm_stream_normalizer.config import ModelPricing, StreamSettings
from llm_stream_normalizer.providers import get_normalizer, new_accumulator
from llm_stream_normalizer.session import InMemorySessionLedger, SQLiteSessionLedger
from llm_stream_normalizer.config.constants import (
    PRICING_OVERRIDES_ENV_VAR,
    QUEUE_SIZE_ENV_VAR,
    READ_TIMEOUT_ENV_VAR,
    USAGE_POLICY_OVERRIDES_ENV_VAR,
)


@pytest.fixture(autouse=True)
def clean_stream_env(monkeypatch):
    """Keep a developer's .env from leaking into settings under test."""
    for name in (QUEUE_SIZE_ENV_VAR, READ_TIMEOUT_ENV_VAR,
                 USAGE_POLICY_OVERRIDES_ENV_VAR, PRICING_OVERRIDES_ENV_VAR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    """Settings with a short read timeout so stalled tests fail fast."""
    return StreamSettings(queue_size=8, read_timeout=2.0)


@pytest.fixture
def priced_settings():
    return StreamSettings(
        queue_size=8,
        read_timeout=2.0,
        pricing={
            "kimi-k2": ModelPricing(
                input_cost_per_1k_tokens=0.001,
                output_cost_per_1k_tokens=0.002,
            )
        },
    )


@pytest.fixture
def openai_normalizer():
    return get_normalizer("openai")


@pytest.fixture
def kimi_normalizer():
    return get_normalizer("kimi")


@pytest.fixture
def anthropic_normalizer():
    return get_normalizer("anthropic")


@pytest.fixture
def accumulator(kimi_normalizer):
    """Fresh per-request accumulator for the OpenAI-compatible format."""
    return new_accumulator(kimi_normalizer)


@pytest.fixture
def memory_ledger():
    return InMemorySessionLedger()


@pytest_asyncio.fixture
async def session_ledger(memory_ledger):
    """In-memory ledger with one empty session ``s1``."""
    await memory_ledger.create("s1", title="test session")
    return memory_ledger


@pytest.fixture
def sqlite_ledger(tmp_path):
    ledger = SQLiteSessionLedger(tmp_path / "sessions.db")
    yield ledger
    ledger.close()


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests across transports, runner and ledger")
    config.addinivalue_line("markers", "slow: tests that take noticeably longer to run")
