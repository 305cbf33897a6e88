from typing import Any, Dict, List, Optional

from ...config.constants import ANTHROPIC_DEFAULT_MAX_TOKENS, ANTHROPIC_THINKING_HEADROOM
from ...models.conversation_types import ImagePart, TextPart, Turn, TurnRole
from ..base import NativeRequest


def resolve_max_tokens(params: Dict[str, Any]) -> int:
    """``max_tokens`` is mandatory for Messages; derive it from the thinking budget when unset."""
    if params.get("max_tokens"):
        return params["max_tokens"]
    thinking = params.get("thinking")
    if isinstance(thinking, dict) and thinking.get("budget_tokens"):
        return thinking["budget_tokens"] + ANTHROPIC_THINKING_HEADROOM
    return ANTHROPIC_DEFAULT_MAX_TOKENS


def anthropic_message(turn: Turn) -> Dict[str, Any]:
    """Render one non-system turn as a Messages API message."""
    # Mid-conversation system turns are not allowed by the Messages API
    role = TurnRole.USER.value if turn.role == TurnRole.SYSTEM.value else turn.role
    if isinstance(turn.content, str):
        return {"role": role, "content": turn.content}
    blocks: List[Dict[str, Any]] = []
    for part in turn.content:
        if isinstance(part, TextPart):
            blocks.append({"type": "text", "text": part.text})
        elif isinstance(part, ImagePart):
            blocks.append({
                "type": "image",
                "source": {"type": "base64", "media_type": part.mime_type, "data": part.data},
            })
    return {"role": role, "content": blocks}


def build_messages_payload(request: NativeRequest, system: Optional[str],
                           turns: List[Turn]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "model": request.model,
        "messages": [anthropic_message(turn) for turn in turns],
    }
    if system:
        payload["system"] = system
    payload.update(request.params)
    payload["max_tokens"] = resolve_max_tokens(request.params)

    if request.tools:
        payload["tools"] = [tool.to_anthropic() for tool in request.tools]
        if request.tool_choice:
            payload["tool_choice"] = {"type": request.tool_choice}
    elif request.stop:
        payload["stop_sequences"] = list(request.stop)

    return payload
