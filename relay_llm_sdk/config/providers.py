# Provider profiles: one variant per backend, expressed as configuration flags
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..models.generation import ProviderType
from .constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_STOP_SEQUENCE,
    EMBED_MAX_CHARS,
    SEPARATOR_REPLACEMENT,
    SEPARATOR_TOKEN,
)


class TransportKind(str, Enum):
    """Wire family used to reach a backend."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    REPLICATE = "replicate"


class OrphanClosePolicy(str, Enum):
    """What to do with a closing reasoning marker whose opener was cut off."""
    RECONSTRUCT = "reconstruct"
    RETRY = "retry"


@dataclass(frozen=True)
class AdapterProfile:
    """
    Per-backend behavior flags.

    Adapters differ only through these values; there are no per-provider
    method overrides.
    """
    provider: ProviderType
    transport: TransportKind = TransportKind.OPENAI
    key_name: Optional[str] = None
    fallback_key_names: Tuple[str, ...] = ()
    base_url: Optional[str] = None
    default_model: str = "gpt-4o-mini"
    default_embedding_model: Optional[str] = None
    default_params: Dict[str, Any] = field(default_factory=dict)

    # Request shaping
    strict_alternation: bool = False
    default_stop: Optional[str] = DEFAULT_STOP_SEQUENCE
    supports_stop: bool = True
    supports_tools: bool = True
    tool_choice: Optional[str] = None
    supports_vision: bool = True
    supports_embeddings: bool = False
    embed_max_chars: Optional[int] = None
    use_responses_api: bool = False
    stream_text: bool = False

    # Failure handling
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_partial_thinking: bool = True
    orphan_close: OrphanClosePolicy = OrphanClosePolicy.RECONSTRUCT
    retry_on_fault: bool = False
    shrink_on_overflow: bool = True
    overflow_on_length_finish: bool = True
    backoff_on_rate_limit: bool = False
    token_replacements: Tuple[Tuple[str, str], ...] = ()


_SEPARATOR = ((SEPARATOR_TOKEN, SEPARATOR_REPLACEMENT),)


def _openai_compatible(provider: ProviderType, **overrides) -> AdapterProfile:
    """Build a profile for a backend reached through the OpenAI wire format."""
    return replace(AdapterProfile(provider=provider, transport=TransportKind.OPENAI), **overrides)


PROVIDER_PROFILES: Dict[ProviderType, AdapterProfile] = {
    ProviderType.OPENAI: _openai_compatible(
        ProviderType.OPENAI,
        key_name="OPENAI_API_KEY",
        default_model="gpt-4o-mini",
        default_embedding_model="text-embedding-3-small",
        tool_choice="required",
        supports_embeddings=True,
        embed_max_chars=EMBED_MAX_CHARS,
        use_responses_api=True,
    ),
    ProviderType.AZURE: _openai_compatible(
        ProviderType.AZURE,
        key_name="AZURE_OPENAI_API_KEY",
        fallback_key_names=("OPENAI_API_KEY",),
        default_model="gpt-4o-mini",
        default_embedding_model="text-embedding-3-small",
        default_stop=None,
        tool_choice="required",
        supports_embeddings=True,
        embed_max_chars=EMBED_MAX_CHARS,
    ),
    ProviderType.ANTHROPIC: AdapterProfile(
        provider=ProviderType.ANTHROPIC,
        transport=TransportKind.ANTHROPIC,
        key_name="ANTHROPIC_API_KEY",
        default_model="claude-sonnet-4-20250514",
        supports_stop=False,
        overflow_on_length_finish=False,
    ),
    ProviderType.GOOGLE: _openai_compatible(
        ProviderType.GOOGLE,
        key_name="GEMINI_API_KEY",
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        default_model="gemini-2.5-flash",
        default_embedding_model="gemini-embedding-001",
        supports_stop=False,
        supports_tools=False,
        supports_embeddings=True,
    ),
    ProviderType.MISTRAL: _openai_compatible(
        ProviderType.MISTRAL,
        key_name="MISTRAL_API_KEY",
        base_url="https://api.mistral.ai/v1",
        default_model="mistral-large-latest",
        default_embedding_model="mistral-embed",
        supports_stop=False,
        tool_choice="any",
        supports_embeddings=True,
    ),
    ProviderType.GROQ: _openai_compatible(
        ProviderType.GROQ,
        key_name="GROQCLOUD_API_KEY",
        base_url="https://api.groq.com/openai/v1",
        default_model="qwen/qwen3-32b",
        default_params={"max_completion_tokens": 4000},
        default_stop=None,
        tool_choice="required",
    ),
    ProviderType.CEREBRAS: _openai_compatible(
        ProviderType.CEREBRAS,
        key_name="CEREBRAS_API_KEY",
        base_url="https://api.cerebras.ai/v1",
        default_model="gpt-oss-120b",
        supports_stop=False,
    ),
    ProviderType.DEEPSEEK: _openai_compatible(
        ProviderType.DEEPSEEK,
        key_name="DEEPSEEK_API_KEY",
        base_url="https://api.deepseek.com",
        default_model="deepseek-chat",
    ),
    ProviderType.XAI: _openai_compatible(
        ProviderType.XAI,
        key_name="XAI_API_KEY",
        base_url="https://api.x.ai/v1",
        default_model="grok-3-mini",
        supports_stop=False,
        token_replacements=_SEPARATOR,
    ),
    ProviderType.OPENROUTER: _openai_compatible(
        ProviderType.OPENROUTER,
        key_name="OPENROUTER_API_KEY",
        base_url="https://openrouter.ai/api/v1",
        default_model="openai/gpt-4o-mini",
    ),
    ProviderType.NOVITA: _openai_compatible(
        ProviderType.NOVITA,
        key_name="NOVITA_API_KEY",
        base_url="https://api.novita.ai/v3/openai",
        default_model="meta-llama/llama-3.1-8b-instruct",
    ),
    ProviderType.GLHF: _openai_compatible(
        ProviderType.GLHF,
        key_name="GHLF_API_KEY",
        base_url="https://glhf.chat/api/openai/v1",
        default_model="hf:meta-llama/Llama-3.3-70B-Instruct",
        token_replacements=_SEPARATOR,
    ),
    ProviderType.QWEN: _openai_compatible(
        ProviderType.QWEN,
        key_name="QWEN_API_KEY",
        base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
        default_model="qwen-plus",
        default_embedding_model="text-embedding-v3",
        supports_embeddings=True,
    ),
    ProviderType.VLLM: _openai_compatible(
        ProviderType.VLLM,
        base_url="http://0.0.0.0:8000/v1",
        default_model="Qwen/Qwen2.5-7B-Instruct",
    ),
    ProviderType.MERCURY: _openai_compatible(
        ProviderType.MERCURY,
        key_name="MERCURY_API_KEY",
        base_url="https://api.inceptionlabs.ai/v1",
        default_model="mercury-coder-small",
    ),
    ProviderType.HYPERBOLIC: _openai_compatible(
        ProviderType.HYPERBOLIC,
        key_name="HYPERBOLIC_API_KEY",
        base_url="https://api.hyperbolic.xyz/v1",
        default_model="deepseek-ai/DeepSeek-V3",
        default_params={"max_tokens": 8192, "temperature": 0.7, "top_p": 0.9},
        supports_stop=False,
        tool_choice="required",
        supports_vision=False,
        token_replacements=_SEPARATOR,
    ),
    ProviderType.HUGGINGFACE: _openai_compatible(
        ProviderType.HUGGINGFACE,
        key_name="HUGGINGFACE_API_KEY",
        base_url="https://router.huggingface.co/v1",
        default_model="openai/gpt-oss-120b",
        supports_stop=False,
        tool_choice="auto",
        supports_vision=False,
        retry_on_fault=True,
    ),
    ProviderType.OLLAMA: AdapterProfile(
        provider=ProviderType.OLLAMA,
        transport=TransportKind.OLLAMA,
        base_url="http://127.0.0.1:11434",
        default_model="sweaterdog/andy-4:micro-q8_0",
        default_embedding_model="embeddinggemma",
        supports_stop=False,
        supports_embeddings=True,
    ),
    ProviderType.REPLICATE: AdapterProfile(
        provider=ProviderType.REPLICATE,
        transport=TransportKind.REPLICATE,
        key_name="REPLICATE_API_KEY",
        base_url="https://api.replicate.com/v1",
        default_model="meta/meta-llama-3-70b-instruct",
        default_embedding_model=(
            "mark3labs/embeddings-gte-base:"
            "d619cff29338b9a37c3d06605042e1ff0594a8c3eff0175fd6967f5643fc4d47"
        ),
        tool_choice="auto",
        supports_vision=False,
        supports_embeddings=True,
        stream_text=True,
        overflow_on_length_finish=False,
    ),
}


def get_profile(provider: ProviderType) -> AdapterProfile:
    """Look up the profile for a backend."""
    try:
        return PROVIDER_PROFILES[ProviderType(provider)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown provider: {provider}") from None
