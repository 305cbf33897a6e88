from __future__ import annotations

from typing import Any, List, Optional

from ...streaming.accumulator import truncate_at_stop
from ..base import NativeResponse, ProviderFault


def parse_chat_completion(completion: Any, provider: str) -> NativeResponse:
    """Extract text, tool calls and finish reason from a chat completion.

    Raises ``ProviderFault`` when the completion carries no choices.
    """
    choices = getattr(completion, "choices", None)
    if not choices:
        raise ProviderFault("No response received.", provider=provider)

    choice = choices[0]
    message = getattr(choice, "message", None)
    if message is None:
        raise ProviderFault("Completion choice has no message", provider=provider)

    return NativeResponse(
        text=getattr(message, "content", None),
        tool_calls=list(getattr(message, "tool_calls", None) or []),
        finish_reason=getattr(choice, "finish_reason", None),
    )


def extract_text_from_responses_api(response: Any) -> str:
    """Extract text from a Responses API response object.

    Tries output_text first, falls back to the first message content item.
    Returns empty string if nothing is found.
    """
    if getattr(response, "output_text", None):
        return response.output_text
    for item in getattr(response, "output", None) or []:
        for part in getattr(item, "content", None) or []:
            text = getattr(part, "text", None)
            if text is not None:
                return text
    return ""


def extract_function_calls(response: Any) -> List[Any]:
    return [item for item in getattr(response, "output", None) or []
            if getattr(item, "type", None) == "function_call"]


def parse_responses_api(response: Any, stop: Optional[List[str]] = None) -> NativeResponse:
    """Parse a Responses API result, truncating text at the stop sequence."""
    status = getattr(response, "status", None)
    details = getattr(response, "incomplete_details", None)
    finish_reason = None
    if status == "incomplete" and getattr(details, "reason", None) == "max_output_tokens":
        finish_reason = "length"

    return NativeResponse(
        text=truncate_at_stop(extract_text_from_responses_api(response), stop),
        tool_calls=extract_function_calls(response),
        finish_reason=finish_reason,
    )


def parse_embedding(response: Any, provider: str) -> List[float]:
    data = getattr(response, "data", None)
    if not data:
        raise ProviderFault("Embedding response contained no data", provider=provider)
    return list(data[0].embedding)
