"""Normalization layer for standardizing provider inputs and outputs.

This layer handles:
- Message formatting (system turn, role alternation, text-only fallback)
- Reasoning-block sanitizing
- Tool-call envelope normalization
"""

from .messages import (
    AlternationPolicy,
    MessageFormatter,
    append_image_turn,
    split_system,
    strict_alternation,
    to_single_prompt,
)
from .thinking import SanitizeResult, ThinkingSanitizer
from .tool_calls import (
    ToolCallNormalizer,
    is_tool_call_envelope,
    parse_tool_call_envelope,
    to_plain_dict,
)

__all__ = [
    "AlternationPolicy",
    "MessageFormatter",
    "append_image_turn",
    "split_system",
    "strict_alternation",
    "to_single_prompt",
    "SanitizeResult",
    "ThinkingSanitizer",
    "ToolCallNormalizer",
    "is_tool_call_envelope",
    "parse_tool_call_envelope",
    "to_plain_dict",
]
