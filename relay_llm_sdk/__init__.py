"""
Relay LLM SDK - resilient request normalization across LLM providers.

One adapter contract over many backends:
- OpenAI and OpenAI-compatible APIs (Azure, DeepSeek, xAI, Groq, Mistral,
  Gemini, OpenRouter, and others)
- Anthropic (Claude models)
- Ollama (local models)
- Replicate

Features:
- Message formatting with system-turn and role-alternation policies
- Context-overflow shrink-and-retry and bounded output-defect retries
- Reasoning-block ("<think>") sanitizing
- Canonical tool-call envelope across providers
- Rate-limit backoff with jitter, per-call deadlines
"""

__version__ = "0.1.0"

from .config.constants import (
    DEFAULT_STOP_SEQUENCE,
    FALLBACK_DISCONNECTED,
    FALLBACK_THOUGHT_TOO_HARD,
    FALLBACK_VISION_UNSUPPORTED,
)
from .config.keys import EnvKeyStore, KeyStore, MissingKeyError, StaticKeyStore
from .core.normalization import is_tool_call_envelope, parse_tool_call_envelope
from .models.conversation_types import ImagePart, TextPart, Turn, TurnRole
from .models.generation import ProviderConfig, ProviderType, ToolCallEnvelope, ToolSpec
from .providers.adapter import ProviderAdapter
from .providers.base import (
    ContextLengthExceeded,
    DeadlineExceeded,
    MaxRetriesExceeded,
    ProviderError,
    ProviderFault,
    RateLimited,
    TransientOutputDefect,
    Unsupported,
)
from .providers.factory import create_adapter, resolve_model_spec
from .reliability.deadline import Deadline

__all__ = [
    # Entry points
    "create_adapter",
    "resolve_model_spec",
    "ProviderAdapter",
    "Deadline",

    # Keys
    "KeyStore",
    "EnvKeyStore",
    "StaticKeyStore",
    "MissingKeyError",

    # Models
    "Turn",
    "TurnRole",
    "TextPart",
    "ImagePart",
    "ToolSpec",
    "ToolCallEnvelope",
    "ProviderType",
    "ProviderConfig",
    "is_tool_call_envelope",
    "parse_tool_call_envelope",

    # Errors
    "ProviderError",
    "ContextLengthExceeded",
    "RateLimited",
    "MaxRetriesExceeded",
    "TransientOutputDefect",
    "ProviderFault",
    "DeadlineExceeded",
    "Unsupported",

    # Constants
    "DEFAULT_STOP_SEQUENCE",
    "FALLBACK_DISCONNECTED",
    "FALLBACK_THOUGHT_TOO_HARD",
    "FALLBACK_VISION_UNSUPPORTED",
]
