from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..config.constants import TOOL_CALL_MARKER


class ProviderType(str, Enum):
    """Supported LLM backends."""
    OPENAI = "openai"
    AZURE = "azure"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    MISTRAL = "mistral"
    GROQ = "groq"
    CEREBRAS = "cerebras"
    DEEPSEEK = "deepseek"
    XAI = "xai"
    OPENROUTER = "openrouter"
    NOVITA = "novita"
    GLHF = "glhf"
    QWEN = "qwen"
    VLLM = "vllm"
    MERCURY = "mercury"
    HYPERBOLIC = "hyperbolic"
    HUGGINGFACE = "huggingface"
    OLLAMA = "ollama"
    REPLICATE = "replicate"


class ProviderConfig(BaseModel):
    """
    Static, read-only configuration for one adapter instance.

    Resolved once by the caller's config loader and passed into the adapter
    constructor. Nothing in the request path mutates it.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    provider: ProviderType
    model: Optional[str] = Field(None, description="Chat model identifier; profile default when unset")
    base_url: Optional[str] = Field(None, description="Custom endpoint; profile default when unset")
    embedding_model: Optional[str] = Field(None, description="Embedding model identifier")
    params: Dict[str, Any] = Field(default_factory=dict, description="Extra provider request parameters")


class ToolSpec(BaseModel):
    """Vendor-agnostic description of a caller-supplied function."""
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


def coerce_tools(tools: Optional[Iterable[Union[ToolSpec, Dict[str, Any]]]]) -> Optional[List[ToolSpec]]:
    """
    Normalize caller tool definitions to ``ToolSpec``.

    Accepts ``ToolSpec`` objects, flat ``{"name", "description", "parameters"}``
    dicts, or OpenAI-style ``{"type": "function", "function": {...}}`` dicts.
    Returns None for a missing or empty list so callers can test truthiness.
    """
    if not tools:
        return None
    specs = []
    for tool in tools:
        if isinstance(tool, ToolSpec):
            specs.append(tool)
        elif isinstance(tool, dict) and isinstance(tool.get("function"), dict):
            specs.append(ToolSpec.model_validate(tool["function"]))
        elif isinstance(tool, dict):
            specs.append(ToolSpec.model_validate(tool))
        else:
            raise ValueError(f"Invalid tool format: {type(tool)} - {tool}")
    return specs or None


class ToolCallFunction(BaseModel):
    name: str
    arguments: str = Field("{}", description="JSON-encoded arguments")


class ToolCallResult(BaseModel):
    """One canonical tool invocation request."""
    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction


class ToolCallEnvelope(BaseModel):
    """
    Canonical tool-call envelope.

    Serialized into the same string channel as plain text replies; the
    ``_native_tool_calls`` key is the discriminator callers check first.
    """

    model_config = ConfigDict(populate_by_name=True)

    native_tool_calls: bool = Field(True, alias=TOOL_CALL_MARKER)
    tool_calls: List[ToolCallResult] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
