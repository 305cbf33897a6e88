from __future__ import annotations

from typing import Any

from ..base import NativeResponse, ProviderFault

# Anthropic stop reasons mapped onto the OpenAI vocabulary the adapter checks
_STOP_REASONS = {
    "max_tokens": "length",
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
}


def parse_message(message: Any, provider: str = "anthropic") -> NativeResponse:
    """Extract tool_use blocks or the first text block from a Messages response."""
    blocks = getattr(message, "content", None) or []
    tool_calls = [block for block in blocks if getattr(block, "type", None) == "tool_use"]
    finish_reason = _STOP_REASONS.get(getattr(message, "stop_reason", None))

    if tool_calls:
        return NativeResponse(tool_calls=tool_calls, finish_reason=finish_reason)

    for block in blocks:
        if getattr(block, "type", None) == "text":
            return NativeResponse(text=block.text, finish_reason=finish_reason)

    raise ProviderFault("No text content found in the response", provider=provider)
