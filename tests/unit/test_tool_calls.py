"""Unit tests for tool-call normalization."""

import json
from dataclasses import dataclass
from types import SimpleNamespace

import pytest

from relay_llm_sdk.core.normalization.tool_calls import (
    ToolCallNormalizer,
    is_tool_call_envelope,
    parse_tool_call_envelope,
    to_plain_dict,
)
from relay_llm_sdk.models.generation import ToolSpec, coerce_tools
from relay_llm_sdk.providers.base import ProviderFault


@dataclass
class AnthropicLikeBlock:
    id: str
    name: str
    input: dict
    type: str = "tool_use"


class TestToolCallNormalizer:
    """Test conversion of native tool calls into the envelope."""

    @pytest.fixture
    def normalizer(self):
        return ToolCallNormalizer(clock=lambda: 1700000000.0, provider="ollama")

    def test_openai_chat_shape(self, normalizer):
        native = [{
            "id": "call_abc",
            "type": "function",
            "function": {"name": "collect_blocks", "arguments": '{"type": "oak_log", "num": 3}'},
        }]
        calls = normalizer.normalize_calls(native)

        assert calls[0].id == "call_abc"
        assert calls[0].type == "function"
        assert calls[0].function.name == "collect_blocks"
        assert json.loads(calls[0].function.arguments) == {"type": "oak_log", "num": 3}

    def test_anthropic_shape_encodes_input(self, normalizer):
        calls = normalizer.normalize_calls([AnthropicLikeBlock("toolu_1", "stop", {"now": True})])

        assert calls[0].id == "toolu_1"
        assert calls[0].function.arguments == '{"now": true}'

    def test_responses_shape_prefers_call_id(self, normalizer):
        native = SimpleNamespace(type="function_call", id="fc_1", call_id="call_9",
                                 name="stop", arguments="{}")
        calls = normalizer.normalize_calls([native])

        assert calls[0].id == "call_9"
        assert calls[0].function.name == "stop"

    def test_missing_id_is_generated(self, normalizer):
        calls = normalizer.normalize_calls([
            {"name": "a", "input": {}},
            {"name": "b", "arguments": None},
        ])

        assert calls[0].id == "call_1700000000000_0"
        assert calls[1].id == "call_1700000000000_1"
        assert calls[1].function.arguments == "{}"

    def test_missing_name_is_fault(self, normalizer):
        with pytest.raises(ProviderFault) as exc_info:
            normalizer.normalize_calls([{"id": "x", "arguments": "{}"}])
        assert exc_info.value.provider == "ollama"

    def test_envelope_preserves_order(self, normalizer):
        envelope = normalizer.normalize([
            {"id": "1", "function": {"name": "first", "arguments": "{}"}},
            {"id": "2", "function": {"name": "second", "arguments": "{}"}},
        ])
        data = json.loads(envelope)

        assert data["_native_tool_calls"] is True
        assert [c["function"]["name"] for c in data["tool_calls"]] == ["first", "second"]
        assert [c["id"] for c in data["tool_calls"]] == ["1", "2"]


class TestEnvelopeParsing:
    """Test envelope discrimination."""

    def test_prose_is_not_envelope(self):
        assert parse_tool_call_envelope("Hello there") is None
        assert parse_tool_call_envelope("") is None
        assert parse_tool_call_envelope(None) is None
        assert not is_tool_call_envelope('{"tool_calls": []}')
        assert not is_tool_call_envelope("{not json")

    def test_marker_with_wrong_shape_is_prose(self):
        assert parse_tool_call_envelope('{"_native_tool_calls": true, "tool_calls": [{"id": 1}]}') is None
        assert not is_tool_call_envelope('{"_native_tool_calls": true, "tool_calls": "none"}')

    def test_parses_envelope(self):
        text = ToolCallNormalizer().normalize([{"id": "1", "name": "stop", "input": {}}])
        envelope = parse_tool_call_envelope(text)

        assert envelope is not None
        assert envelope.tool_calls[0].function.name == "stop"
        assert is_tool_call_envelope(text)


class TestPlainDict:
    """Test SDK object conversion."""

    def test_model_dump(self):
        spec = ToolSpec(name="stop")
        assert to_plain_dict(spec)["name"] == "stop"

    def test_attribute_object(self):
        assert to_plain_dict(SimpleNamespace(name="x")) == {"name": "x"}

    def test_unknown_value(self):
        assert to_plain_dict(42) == {}


class TestToolSpecs:
    """Test tool definition coercion."""

    def test_accepts_openai_and_flat_dicts(self):
        specs = coerce_tools([
            {"type": "function", "function": {"name": "a", "description": "A"}},
            {"name": "b", "parameters": {"type": "object", "properties": {}}},
        ])
        assert [s.name for s in specs] == ["a", "b"]

    def test_empty_list_is_none(self):
        assert coerce_tools([]) is None
        assert coerce_tools(None) is None

    def test_vendor_shapes(self):
        spec = ToolSpec(name="stop", description="Stop")
        assert spec.to_openai()["function"]["name"] == "stop"
        assert spec.to_anthropic()["input_schema"] == {"type": "object", "properties": {}}
