"""Data models for the relay LLM SDK."""

from .generation import (
    ProviderType,
    ProviderConfig,
    ToolSpec,
    ToolCallFunction,
    ToolCallResult,
    ToolCallEnvelope,
    coerce_tools,
)
from .conversation_types import Turn, TurnRole, TextPart, ImagePart, coerce_turns

__all__ = [
    # Generation models
    "ProviderType",
    "ProviderConfig",
    "ToolSpec",
    "ToolCallFunction",
    "ToolCallResult",
    "ToolCallEnvelope",
    "coerce_tools",

    # Conversation models
    "Turn",
    "TurnRole",
    "TextPart",
    "ImagePart",
    "coerce_turns",
]
