"""
Tool-call normalization module.

Providers report tool invocations in different shapes:

- OpenAI chat completions: ``{id, type, function: {name, arguments}}``
  with arguments already JSON-encoded
- OpenAI Responses API: ``{type: "function_call", call_id, name, arguments}``
- Anthropic ``tool_use`` blocks and Ollama: ``{id?, name, input}`` with
  structured arguments

All of them become one ``ToolCallEnvelope`` serialized to a string, so the
adapter's single string return channel carries either prose or tool calls.
When a response carries both, tool calls win and the prose is discarded.
"""

import json
import time
from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ...config.constants import TOOL_CALL_MARKER
from ...models.generation import ToolCallEnvelope, ToolCallFunction, ToolCallResult
from ...providers.base import ProviderFault


def to_plain_dict(value: Any) -> Dict[str, Any]:
    """Best-effort conversion of SDK objects into plain dictionaries."""
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        if isinstance(dumped, dict):
            return dumped
    if hasattr(value, "to_dict"):
        dumped = value.to_dict()
        if isinstance(dumped, dict):
            return dumped
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if hasattr(value, "__dict__"):
        return dict(value.__dict__)
    return {}


def _encode_arguments(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments or "{}"
    return json.dumps(arguments)


class ToolCallNormalizer:
    """Converts provider-native tool calls into the canonical envelope."""

    def __init__(self, clock: Callable[[], float] = time.time, provider: str = "unknown"):
        self._clock = clock
        self.provider = provider

    def normalize_calls(self, native_calls: Iterable[Any]) -> List[ToolCallResult]:
        """
        Normalize native calls, preserving order.

        Calls without an id get ``call_<epoch-ms>_<index>``.

        Raises:
            ProviderFault: A call carries no function name
        """
        timestamp = int(self._clock() * 1000)
        results = []
        for index, native in enumerate(native_calls):
            call = to_plain_dict(native)
            function = call.get("function")
            if function is not None and not isinstance(function, str):
                function = to_plain_dict(function)
                name = function.get("name")
                arguments = function.get("arguments")
            else:
                name = call.get("name")
                arguments = call["input"] if "input" in call else call.get("arguments")

            if not name:
                raise ProviderFault(f"Tool call at index {index} has no function name",
                                    provider=self.provider)

            # Responses API items carry both; call_id is the one echoed back
            call_id = call.get("call_id") or call.get("id") or f"call_{timestamp}_{index}"
            results.append(ToolCallResult(
                id=str(call_id),
                function=ToolCallFunction(name=name, arguments=_encode_arguments(arguments)),
            ))
        return results

    def normalize(self, native_calls: Iterable[Any]) -> str:
        """Serialize native tool calls as the canonical envelope string."""
        return ToolCallEnvelope(tool_calls=self.normalize_calls(native_calls)).to_json()


def parse_tool_call_envelope(text: Optional[str]) -> Optional[ToolCallEnvelope]:
    """
    Parse ``text`` as a tool-call envelope.

    Returns None when ``text`` is ordinary prose, so callers can check this
    before treating a reply as chat text. A reply that carries the marker but
    not the envelope shape is prose too.
    """
    if not text or not text.lstrip().startswith("{"):
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or data.get(TOOL_CALL_MARKER) is not True:
        return None
    try:
        return ToolCallEnvelope.model_validate(data)
    except ValidationError:
        return None


def is_tool_call_envelope(text: Optional[str]) -> bool:
    return parse_tool_call_envelope(text) is not None
