"""
Adapter construction.

Credentials are resolved once here, from an injected ``KeyStore``; nothing
downstream reads the environment.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Tuple, Union

from ..config.keys import EnvKeyStore, KeyStore, MissingKeyError
from ..config.providers import AdapterProfile, TransportKind, get_profile
from ..models.generation import ProviderConfig, ProviderType
from .adapter import ProviderAdapter
from .anthropic.transport import AnthropicTransport
from .base import ProviderTransport
from .ollama.transport import OllamaTransport
from .openai.transport import OpenAITransport
from .replicate.transport import ReplicateTransport

logger = logging.getLogger(__name__)

# Bare model names without a provider prefix, matched by substring
MODEL_NAME_HINTS = (
    ("claude", ProviderType.ANTHROPIC),
    ("gemini", ProviderType.GOOGLE),
    ("grok", ProviderType.XAI),
    ("mistral", ProviderType.MISTRAL),
    ("deepseek", ProviderType.DEEPSEEK),
    ("qwen", ProviderType.QWEN),
    ("gpt", ProviderType.OPENAI),
)


def resolve_model_spec(spec: str) -> Tuple[ProviderType, Optional[str]]:
    """
    Split ``"provider/model"`` into its parts.

    Only the first segment is the provider, so ``"openrouter/openai/gpt-4o"``
    yields ``(OPENROUTER, "openai/gpt-4o")``. A bare provider name yields no
    model; a bare model name is matched against well-known families.

    Raises:
        ValueError: The provider can not be determined
    """
    if not spec:
        raise ValueError("Model spec must be a non-empty string")
    prefix, _, rest = spec.partition("/")
    try:
        return ProviderType(prefix.lower()), rest or None
    except ValueError:
        pass
    lowered = spec.lower()
    for hint, provider in MODEL_NAME_HINTS:
        if hint in lowered:
            return provider, spec
    raise ValueError(f"Unknown provider for model spec: {spec}")


def resolve_api_key(profile: AdapterProfile, keys: KeyStore) -> Optional[str]:
    if profile.key_name is None:
        return None
    for name in (profile.key_name, *profile.fallback_key_names):
        if keys.has_key(name):
            return keys.get_key(name)
    raise MissingKeyError(profile.key_name)


def build_transport(profile: AdapterProfile, config: ProviderConfig, keys: KeyStore,
                    api_version: Optional[str] = None, timeout: float = 60.0) -> ProviderTransport:
    """Instantiate the transport for a profile's wire family."""
    api_key = resolve_api_key(profile, keys)
    base_url = config.base_url or profile.base_url

    if profile.transport == TransportKind.OPENAI:
        organization = None
        if profile.provider == ProviderType.OPENAI and keys.has_key("OPENAI_ORG_ID"):
            organization = keys.get_key("OPENAI_ORG_ID")
        return OpenAITransport(
            provider=profile.provider.value,
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            api_version=api_version,
            # Custom OpenAI-compatible endpoints rarely implement /responses
            use_responses_api=profile.use_responses_api and not config.base_url,
            timeout=timeout,
        )
    if profile.transport == TransportKind.ANTHROPIC:
        return AnthropicTransport(api_key=api_key, base_url=config.base_url, timeout=timeout)
    if profile.transport == TransportKind.OLLAMA:
        return OllamaTransport(base_url=base_url, timeout=max(timeout, 120.0))
    if profile.transport == TransportKind.REPLICATE:
        if config.base_url:
            logger.warning("Replicate API does not support custom URLs. Ignoring provided URL.")
        return ReplicateTransport(api_key=api_key, base_url=profile.base_url, timeout=max(timeout, 120.0))
    raise ValueError(f"Unknown transport: {profile.transport}")


def create_adapter(
    provider: Union[ProviderType, str],
    model: Optional[str] = None,
    url: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
    keys: Optional[KeyStore] = None,
    embedding_model: Optional[str] = None,
    strict_alternation: Optional[bool] = None,
    timeout: float = 60.0,
) -> ProviderAdapter:
    """
    Build a ready-to-use adapter.

    Args:
        provider: Provider type, name, or a ``"provider/model"`` spec
        model: Chat model; the profile default when omitted
        url: Custom endpoint; the profile default when omitted
        params: Extra request parameters (Azure also takes ``api_version`` here)
        keys: Credential source; ``EnvKeyStore()`` when omitted
        embedding_model: Embedding model; the profile default when omitted
        strict_alternation: Override the profile's role-alternation policy
        timeout: Per-request network timeout in seconds

    Raises:
        ValueError: Unknown provider, or Azure without ``api_version``
        MissingKeyError: The provider's API key is not configured
    """
    if isinstance(provider, str) and not isinstance(provider, ProviderType):
        try:
            provider = ProviderType(provider.lower())
        except ValueError:
            provider, spec_model = resolve_model_spec(provider)
            model = model or spec_model

    profile = get_profile(provider)
    if strict_alternation is not None:
        profile = replace(profile, strict_alternation=strict_alternation)

    request_params = dict(params or {})
    api_version = request_params.pop("api_version", None) if profile.provider == ProviderType.AZURE else None

    config = ProviderConfig(
        provider=profile.provider,
        model=model,
        base_url=url,
        embedding_model=embedding_model,
        params=request_params,
    )
    transport = build_transport(profile, config, keys or EnvKeyStore(), api_version=api_version, timeout=timeout)
    return ProviderAdapter(config, profile, transport)
