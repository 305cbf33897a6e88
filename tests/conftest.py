"""Shared pytest fixtures for Relay LLM SDK tests."""

from dataclasses import replace
from typing import Dict
from unittest.mock import AsyncMock, Mock

import pytest

from relay_llm_sdk.config.keys import StaticKeyStore
from relay_llm_sdk.config.providers import get_profile
from relay_llm_sdk.models.conversation_types import Turn, TurnRole
from relay_llm_sdk.models.generation import ProviderConfig, ProviderType, ToolSpec
from relay_llm_sdk.providers.adapter import ProviderAdapter
from relay_llm_sdk.reliability.backoff import RateLimitBackoff
from tests.helpers.streaming_mocks import create_openai_stream


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: end-to-end tests over mocked vendors")
    config.addinivalue_line("markers", "slow: tests that sleep or poll")


@pytest.fixture
def static_keys() -> StaticKeyStore:
    """Key store with every provider key configured."""
    keys: Dict[str, str] = {
        "OPENAI_API_KEY": "test-openai-key",
        "AZURE_OPENAI_API_KEY": "test-azure-key",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
        "GEMINI_API_KEY": "test-gemini-key",
        "MISTRAL_API_KEY": "test-mistral-key",
        "GROQCLOUD_API_KEY": "test-groq-key",
        "CEREBRAS_API_KEY": "test-cerebras-key",
        "DEEPSEEK_API_KEY": "test-deepseek-key",
        "XAI_API_KEY": "test-xai-key",
        "OPENROUTER_API_KEY": "test-openrouter-key",
        "NOVITA_API_KEY": "test-novita-key",
        "GHLF_API_KEY": "test-glhf-key",
        "QWEN_API_KEY": "test-qwen-key",
        "MERCURY_API_KEY": "test-mercury-key",
        "HYPERBOLIC_API_KEY": "test-hyperbolic-key",
        "HUGGINGFACE_API_KEY": "test-hf-key",
        "REPLICATE_API_KEY": "test-replicate-key",
    }
    return StaticKeyStore(keys)


@pytest.fixture
def sample_turns():
    """Three-turn conversation."""
    return [
        Turn(role=TurnRole.USER, content="Hi there"),
        Turn(role=TurnRole.ASSISTANT, content="Hello! How can I help?"),
        Turn(role=TurnRole.USER, content="Collect some wood"),
    ]


@pytest.fixture
def sample_tools():
    """Two tool definitions."""
    return [
        ToolSpec(
            name="collect_blocks",
            description="Collect blocks of a type",
            parameters={
                "type": "object",
                "properties": {"type": {"type": "string"}, "num": {"type": "integer"}},
                "required": ["type", "num"],
            },
        ),
        ToolSpec(name="stop", description="Stop all actions"),
    ]


@pytest.fixture
def no_sleep_backoff():
    """Backoff whose sleeps return immediately and whose jitter is zero."""
    sleep = AsyncMock()
    backoff = RateLimitBackoff(sleep=sleep, rng=lambda low, high: 0.0)
    backoff.sleep_mock = sleep
    return backoff


@pytest.fixture
def make_adapter(no_sleep_backoff):
    """Build a ProviderAdapter around any transport with profile overrides."""

    def _make(transport, provider=ProviderType.OLLAMA, model=None, **profile_overrides):
        profile = replace(get_profile(provider), **profile_overrides)
        config = ProviderConfig(provider=provider, model=model)
        return ProviderAdapter(config, profile, transport, backoff=no_sleep_backoff)

    return _make


@pytest.fixture
def mock_openai_client():
    """Mock AsyncOpenAI client answering with plain text."""
    client = Mock()

    completion = Mock()
    message = Mock(content="Test response", tool_calls=None)
    completion.choices = [Mock(message=message, finish_reason="stop")]

    async def create_completion(**kwargs):
        if kwargs.get("stream"):
            return create_openai_stream(["Test", " response", " streaming"])
        return completion

    client.chat.completions.create = AsyncMock(side_effect=create_completion)

    response = Mock(output_text="Responses API reply", status="completed", output=[])
    client.responses.create = AsyncMock(return_value=response)

    embedding = Mock(data=[Mock(embedding=[0.1, 0.2, 0.3])])
    client.embeddings.create = AsyncMock(return_value=embedding)

    return client


@pytest.fixture
def mock_anthropic_client():
    """Mock AsyncAnthropic client answering with one text block."""
    client = Mock()
    message = Mock()
    message.content = [Mock(type="text", text="Test response")]
    message.stop_reason = "end_turn"
    client.messages.create = AsyncMock(return_value=message)
    return client
