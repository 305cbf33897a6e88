from typing import Any, Dict, List, Optional, Tuple

from ...core.normalization.messages import split_system, to_single_prompt
from ..base import NativeRequest


def split_model_ref(model: str) -> Tuple[str, Optional[str]]:
    """``owner/name:version`` -> (``owner/name``, ``version``)."""
    name, _, version = model.partition(":")
    return name, version or None


def prediction_body(model: str, inputs: Dict[str, Any], stream: bool = False) -> Tuple[str, Dict[str, Any]]:
    """Endpoint path and body for creating a prediction."""
    name, version = split_model_ref(model)
    body: Dict[str, Any] = {"input": inputs}
    if stream:
        body["stream"] = True
    if version:
        body["version"] = version
        return "/predictions", body
    return f"/models/{name}/predictions", body


def prompt_input(request: NativeRequest) -> Dict[str, Any]:
    """Completion-style input: one rendered prompt plus ``system_prompt``."""
    system, turns = split_system(request.turns)
    stop = request.stop[0] if request.stop else ""
    inputs: Dict[str, Any] = {"prompt": to_single_prompt(turns, stop)}
    if system:
        inputs["system_prompt"] = system
    inputs.update(request.params)
    return inputs


def messages_input(request: NativeRequest) -> Dict[str, Any]:
    """Chat-style input used for native tool calling."""
    messages: List[Dict[str, Any]] = [{"role": t.role, "content": t.text()} for t in request.turns]
    inputs: Dict[str, Any] = {"messages": messages}
    if request.tools:
        inputs["tools"] = [tool.to_openai() for tool in request.tools]
        if request.tool_choice:
            inputs["tool_choice"] = request.tool_choice
    inputs.update(request.params)
    return inputs
