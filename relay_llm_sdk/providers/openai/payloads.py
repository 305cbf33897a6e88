from typing import Any, Dict, List, Optional

from ...models.conversation_types import ImagePart, TextPart, Turn
from ..base import NativeRequest

# Chat Completions parameters that the Responses API names differently
RESPONSES_PARAM_RENAMES = {
    "max_tokens": "max_output_tokens",
    "max_completion_tokens": "max_output_tokens",
}
# Chat-only parameters the Responses API rejects
RESPONSES_DROPPED_PARAMS = {"stop", "n", "frequency_penalty", "presence_penalty", "logprobs"}


def chat_message(turn: Turn) -> Dict[str, Any]:
    """Render one turn as a Chat Completions message."""
    if isinstance(turn.content, str):
        return {"role": turn.role, "content": turn.content}
    parts: List[Dict[str, Any]] = []
    for part in turn.content:
        if isinstance(part, TextPart):
            parts.append({"type": "text", "text": part.text})
        elif isinstance(part, ImagePart):
            parts.append({"type": "image_url", "image_url": {"url": part.data_url()}})
    return {"role": turn.role, "content": parts}


def responses_input_item(turn: Turn, suffix: str = "") -> Dict[str, Any]:
    """
    Render one turn as a Responses API input item.

    ``suffix`` (the stop sequence) is appended to the text so the model
    learns to emit it at the end of its own turn.
    """
    if isinstance(turn.content, str):
        return {"role": turn.role, "content": turn.content + suffix}
    parts: List[Dict[str, Any]] = []
    for part in turn.content:
        if isinstance(part, TextPart):
            parts.append({"type": "input_text", "text": part.text})
        elif isinstance(part, ImagePart):
            parts.append({"type": "input_image", "image_url": part.data_url()})
    if suffix:
        parts.append({"type": "input_text", "text": suffix})
    return {"role": turn.role, "content": parts}


def build_chat_payload(request: NativeRequest) -> Dict[str, Any]:
    """
    Build a Chat Completions payload.

    Tools and stop sequences are mutually exclusive here: when tools are
    present the adapter has already cleared ``request.stop``.
    """
    payload: Dict[str, Any] = {
        "model": request.model,
        "messages": [chat_message(turn) for turn in request.turns],
    }
    payload.update(request.params)

    if request.tools:
        payload["tools"] = [tool.to_openai() for tool in request.tools]
        if request.tool_choice:
            payload["tool_choice"] = request.tool_choice
    elif request.stop:
        payload["stop"] = list(request.stop)

    return payload


def build_responses_payload(request: NativeRequest, instructions: Optional[str],
                            turns: List[Turn]) -> Dict[str, Any]:
    """
    Build a Responses API payload.

    The system message travels as ``instructions``. The Responses API has no
    stop parameter, so the first stop sequence is appended to every input
    message and the output is truncated at it by the parser.
    """
    suffix = request.stop[0] if request.stop else ""
    payload: Dict[str, Any] = {
        "model": request.model,
        "input": [responses_input_item(turn, suffix) for turn in turns],
    }
    if instructions:
        payload["instructions"] = instructions

    for key, value in request.params.items():
        if key in RESPONSES_DROPPED_PARAMS:
            continue
        payload[RESPONSES_PARAM_RENAMES.get(key, key)] = value

    return payload
