"""Unit tests for key stores, provider profiles and adapter construction."""

import json
from dataclasses import FrozenInstanceError

import pytest

from relay_llm_sdk.config.keys import EnvKeyStore, MissingKeyError, StaticKeyStore
from relay_llm_sdk.config.providers import PROVIDER_PROFILES, TransportKind, get_profile
from relay_llm_sdk.core.normalization.messages import AlternationPolicy
from relay_llm_sdk.models.generation import ProviderType
from relay_llm_sdk.providers.anthropic import AnthropicTransport
from relay_llm_sdk.providers.factory import create_adapter, resolve_api_key, resolve_model_spec
from relay_llm_sdk.providers.ollama import OllamaTransport
from relay_llm_sdk.providers.openai import OpenAITransport
from relay_llm_sdk.providers.replicate import ReplicateTransport


class TestKeyStores:
    """Test credential lookup."""

    def test_static_store(self):
        keys = StaticKeyStore({"A": "1", "B": ""})

        assert keys.get_key("A") == "1"
        assert keys.has_key("A")
        assert not keys.has_key("B")
        with pytest.raises(MissingKeyError) as exc_info:
            keys.get_key("B")
        assert "B" in str(exc_info.value)

    def test_env_store_reads_environment(self, monkeypatch):
        monkeypatch.delenv("RELAY_KEYS_FILE", raising=False)
        monkeypatch.setenv("RELAY_TEST_KEY", "from-env")

        keys = EnvKeyStore(load_env=False)
        assert keys.get_key("RELAY_TEST_KEY") == "from-env"

    def test_keys_file_wins_over_environment(self, monkeypatch, tmp_path):
        path = tmp_path / "keys.json"
        path.write_text(json.dumps({"RELAY_TEST_KEY": "from-file", "EMPTY_KEY": ""}))
        monkeypatch.setenv("RELAY_TEST_KEY", "from-env")
        monkeypatch.delenv("EMPTY_KEY", raising=False)

        keys = EnvKeyStore(keys_file=path, load_env=False)

        assert keys.get_key("RELAY_TEST_KEY") == "from-file"
        assert not keys.has_key("EMPTY_KEY")

    def test_keys_file_from_env_var(self, monkeypatch, tmp_path):
        path = tmp_path / "keys.json"
        path.write_text(json.dumps({"RELAY_FILE_ONLY": "secret"}))
        monkeypatch.setenv("RELAY_KEYS_FILE", str(path))

        assert EnvKeyStore(load_env=False).get_key("RELAY_FILE_ONLY") == "secret"

    def test_missing_keys_file_is_ignored(self, monkeypatch, tmp_path):
        monkeypatch.delenv("RELAY_NOT_SET", raising=False)
        keys = EnvKeyStore(keys_file=tmp_path / "absent.json", load_env=False)

        with pytest.raises(MissingKeyError):
            keys.get_key("RELAY_NOT_SET")

    def test_keys_file_must_be_object(self, tmp_path):
        path = tmp_path / "keys.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError):
            EnvKeyStore(keys_file=path, load_env=False)


class TestProfiles:
    """Test the provider profile table."""

    def test_every_provider_has_profile(self):
        assert set(PROVIDER_PROFILES) == set(ProviderType)

    def test_lookup_by_name(self):
        assert get_profile("anthropic").transport == TransportKind.ANTHROPIC

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_profile("nonexistent")

    def test_profiles_are_frozen(self):
        with pytest.raises(FrozenInstanceError):
            get_profile(ProviderType.OPENAI).supports_tools = False

    def test_capabilities(self):
        assert not get_profile(ProviderType.GOOGLE).supports_tools
        assert not get_profile(ProviderType.HYPERBOLIC).supports_vision
        assert get_profile(ProviderType.REPLICATE).stream_text
        assert get_profile(ProviderType.HUGGINGFACE).retry_on_fault
        assert get_profile(ProviderType.OPENAI).use_responses_api

    def test_chat_backoff_is_opt_in(self):
        assert not any(profile.backoff_on_rate_limit for profile in PROVIDER_PROFILES.values())


class TestModelSpec:
    """Test provider/model spec parsing."""

    def test_provider_prefix(self):
        assert resolve_model_spec("anthropic/claude-3-5-haiku") == (ProviderType.ANTHROPIC, "claude-3-5-haiku")

    def test_only_first_segment_is_provider(self):
        assert resolve_model_spec("openrouter/openai/gpt-4o") == (ProviderType.OPENROUTER, "openai/gpt-4o")

    def test_bare_provider(self):
        assert resolve_model_spec("ollama") == (ProviderType.OLLAMA, None)

    def test_bare_model_hint(self):
        assert resolve_model_spec("claude-sonnet-4") == (ProviderType.ANTHROPIC, "claude-sonnet-4")
        assert resolve_model_spec("gpt-4o-mini") == (ProviderType.OPENAI, "gpt-4o-mini")

    def test_unknown(self):
        with pytest.raises(ValueError):
            resolve_model_spec("mystery-model")
        with pytest.raises(ValueError):
            resolve_model_spec("")


class TestCreateAdapter:
    """Test adapter construction."""

    def test_openai(self, static_keys):
        adapter = create_adapter("openai", model="gpt-4o", keys=static_keys)

        assert isinstance(adapter.transport, OpenAITransport)
        assert adapter.transport.use_responses_api
        assert adapter.model == "gpt-4o"
        assert adapter.provider == "openai"

    def test_custom_url_disables_responses_api(self, static_keys):
        adapter = create_adapter(ProviderType.OPENAI, url="http://localhost:8080/v1", keys=static_keys)
        assert not adapter.transport.use_responses_api

    def test_spec_string(self, static_keys):
        adapter = create_adapter("openrouter/anthropic/claude-3.5-sonnet", keys=static_keys)

        assert adapter.provider == "openrouter"
        assert adapter.model == "anthropic/claude-3.5-sonnet"

    def test_transport_kinds(self, static_keys):
        assert isinstance(create_adapter("anthropic", keys=static_keys).transport, AnthropicTransport)
        assert isinstance(create_adapter("ollama", keys=static_keys).transport, OllamaTransport)
        assert isinstance(create_adapter("replicate", keys=static_keys).transport, ReplicateTransport)

    def test_keyless_provider(self):
        adapter = create_adapter("vllm", keys=StaticKeyStore())
        assert isinstance(adapter.transport, OpenAITransport)

    def test_missing_key(self):
        with pytest.raises(MissingKeyError):
            create_adapter("anthropic", keys=StaticKeyStore())

    def test_azure_key_fallback(self):
        profile = get_profile(ProviderType.AZURE)
        assert resolve_api_key(profile, StaticKeyStore({"OPENAI_API_KEY": "shared"})) == "shared"

    def test_azure_requires_api_version(self, static_keys):
        with pytest.raises(ValueError):
            create_adapter("azure", url="https://x.openai.azure.com", keys=static_keys)

    def test_azure_api_version_not_sent_as_param(self, static_keys):
        adapter = create_adapter("azure", url="https://x.openai.azure.com",
                                 params={"api_version": "2024-06-01", "temperature": 0.1},
                                 keys=static_keys)
        assert adapter.params == {"temperature": 0.1}

    def test_strict_alternation_override(self, static_keys):
        adapter = create_adapter("deepseek", strict_alternation=True, keys=static_keys)
        assert adapter.formatter.alternation == AlternationPolicy.STRICT

        adapter = create_adapter("deepseek", keys=static_keys)
        assert adapter.formatter.alternation == AlternationPolicy.RELAXED

    def test_text_only_formatter_without_vision(self, static_keys):
        assert create_adapter("hyperbolic", keys=static_keys).formatter.text_only

    def test_unknown_provider(self, static_keys):
        with pytest.raises(ValueError):
            create_adapter("not-a-provider", keys=static_keys)
