"""Tests for vendor response → unified response transformers."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict

import pytest

from llm_unified.exceptions import UnknownProviderError
from llm_unified.models import (
    Provider,
    StopReason,
    TextContent,
    ThinkingContent,
    ToolUseContent,
)
from llm_unified.transformers import (
    AnthropicResponseTransformer,
    GoogleResponseTransformer,
    OpenAIResponseTransformer,
    from_vendor_response,
)


def anthropic_message(**overrides: Any) -> Dict[str, Any]:
    message = {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-5",
        "content": [
            {"type": "thinking", "thinking": "Let me add.", "signature": "sig"},
            {"type": "text", "text": "Calling the tool."},
            {"type": "tool_use", "id": "toolu_1", "name": "calculate", "input": {"a": 5, "b": 3}},
        ],
        "stop_reason": "tool_use",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 4, "cache_read_input_tokens": 2},
    }
    message.update(overrides)
    return message


def openai_completion(**message_fields: Any) -> Dict[str, Any]:
    message = {"role": "assistant", "content": "Hello"}
    message.update(message_fields)
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o",
        "system_fingerprint": "fp_1",
        "choices": [
            {
                "index": 0,
                "message": message,
                "finish_reason": "tool_calls" if "tool_calls" in message_fields else "stop",
            }
        ],
        "usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
    }


def gemini_response(parts: Any, finish_reason: str = "STOP") -> Dict[str, Any]:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": parts}, "finishReason": finish_reason}
        ],
        "modelVersion": "gemini-2.5-flash",
        "responseId": "resp-1",
        "usageMetadata": {
            "promptTokenCount": 5,
            "candidatesTokenCount": 2,
            "totalTokenCount": 7,
        },
    }


class TestAnthropicResponse:
    transformer = AnthropicResponseTransformer()

    def test_blocks_and_metadata(self) -> None:
        raw = anthropic_message()
        response = self.transformer.transform(raw)

        assert response.id == "msg_1"
        assert response.model == "claude-sonnet-4-5"
        assert response.provider is Provider.ANTHROPIC
        assert response.stop_reason is StopReason.TOOL_USE
        assert response.content == [
            ThinkingContent(thinking="Let me add.", signature="sig"),
            TextContent(text="Calling the tool."),
            ToolUseContent(id="toolu_1", name="calculate", input={"a": 5, "b": 3}),
        ]
        assert response.original is raw

    def test_usage(self) -> None:
        usage = self.transformer.transform(anthropic_message()).usage
        assert usage is not None
        assert (usage.input_tokens, usage.output_tokens, usage.total_tokens) == (10, 4, 14)
        assert usage.anthropic is not None
        assert usage.anthropic["cache_read_input_tokens"] == 2

    @pytest.mark.parametrize(
        "vendor, unified",
        [
            ("end_turn", StopReason.END_TURN),
            ("max_tokens", StopReason.MAX_TOKENS),
            ("stop_sequence", StopReason.STOP_SEQUENCE),
            ("refusal", StopReason.CONTENT_FILTER),
            ("something_new", StopReason.END_TURN),
            (None, StopReason.END_TURN),
        ],
    )
    def test_stop_reasons(self, vendor: Any, unified: StopReason) -> None:
        response = self.transformer.transform(anthropic_message(stop_reason=vendor))
        assert response.stop_reason is unified

    def test_unknown_block_skipped(self) -> None:
        raw = anthropic_message(
            content=[{"type": "server_tool_use", "id": "x"}, {"type": "text", "text": "ok"}]
        )
        assert self.transformer.transform(raw).content == [TextContent(text="ok")]

    def test_adjacent_text_merged_and_thinking_kept_apart(self) -> None:
        raw = anthropic_message(
            content=[
                {"type": "thinking", "thinking": "First.", "signature": "s1"},
                {"type": "thinking", "thinking": "Second.", "signature": "s2"},
                {"type": "text", "text": "Part one. "},
                {"type": "text", "text": ""},
                {"type": "text", "text": "Part two."},
            ]
        )
        assert self.transformer.transform(raw).content == [
            ThinkingContent(thinking="First.", signature="s1"),
            ThinkingContent(thinking="Second.", signature="s2"),
            TextContent(text="Part one. Part two."),
        ]

    def test_sdk_object_with_model_dump(self) -> None:
        raw = anthropic_message()
        sdk_object = SimpleNamespace(model_dump=lambda mode="json": raw)
        response = self.transformer.transform(sdk_object)

        assert response.text == "Calling the tool."
        assert response.original is sdk_object


class TestOpenAIResponse:
    transformer = OpenAIResponseTransformer()

    def test_text_response(self) -> None:
        response = self.transformer.transform(openai_completion())

        assert response.text == "Hello"
        assert response.stop_reason is StopReason.END_TURN
        assert response.openai is not None
        assert response.openai["system_fingerprint"] == "fp_1"
        assert response.usage is not None
        assert response.usage.total_tokens == 10

    def test_tool_calls_parsed(self) -> None:
        raw = openai_completion(
            content=None,
            tool_calls=[
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "calculate", "arguments": '{"a": 5, "b": 3}'},
                }
            ],
        )
        response = self.transformer.transform(raw)

        assert response.stop_reason is StopReason.TOOL_USE
        assert response.content == [
            ToolUseContent(id="call_1", name="calculate", input={"a": 5, "b": 3})
        ]

    @pytest.mark.parametrize("arguments", ["{not json", "[1, 2]", ""])
    def test_bad_arguments_become_empty_object(self, arguments: str) -> None:
        raw = openai_completion(
            content=None,
            tool_calls=[
                {"id": "c", "type": "function", "function": {"name": "f", "arguments": arguments}}
            ],
        )
        assert self.transformer.transform(raw).tool_uses[0].input == {}

    def test_reasoning_content(self) -> None:
        response = self.transformer.transform(openai_completion(reasoning_content="think"))
        assert response.content[0] == ThinkingContent(thinking="think")

    def test_length_finish_reason(self) -> None:
        raw = openai_completion()
        raw["choices"][0]["finish_reason"] = "length"
        assert self.transformer.transform(raw).stop_reason is StopReason.MAX_TOKENS


class TestGoogleResponse:
    transformer = GoogleResponseTransformer()

    def test_text_and_thought(self) -> None:
        response = self.transformer.transform(
            gemini_response([{"text": "plan", "thought": True}, {"text": "Hi"}])
        )

        assert response.content == [ThinkingContent(thinking="plan"), TextContent(text="Hi")]
        assert response.id == "resp-1"
        assert response.model == "gemini-2.5-flash"
        assert response.usage is not None
        assert response.usage.input_tokens == 5

    def test_function_call_promotes_stop_reason(self) -> None:
        response = self.transformer.transform(
            gemini_response([{"functionCall": {"name": "calculate", "args": {"a": 1}}}])
        )

        assert response.stop_reason is StopReason.TOOL_USE
        call = response.tool_uses[0]
        assert call.name == "calculate"
        assert call.input == {"a": 1}
        assert call.id.startswith("call_calculate_")

    def test_function_call_id_kept_when_present(self) -> None:
        response = self.transformer.transform(
            gemini_response([{"functionCall": {"id": "fc-1", "name": "f", "args": {}}}])
        )
        assert response.tool_uses[0].id == "fc-1"

    def test_safety_finish_reason(self) -> None:
        response = self.transformer.transform(gemini_response([], "SAFETY"))
        assert response.stop_reason is StopReason.CONTENT_FILTER
        assert response.content == []

    def test_no_candidates(self) -> None:
        response = self.transformer.transform({"candidates": []})
        assert response.content == []
        assert response.stop_reason is StopReason.END_TURN


class TestDispatch:
    def test_from_vendor_response(self) -> None:
        response = from_vendor_response(openai_completion(), "openai")
        assert response.provider is Provider.OPENAI

    def test_unknown_provider(self) -> None:
        with pytest.raises(UnknownProviderError):
            from_vendor_response({}, "bedrock")
