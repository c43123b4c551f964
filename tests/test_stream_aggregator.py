"""Tests for StreamAggregator across the three vendor stream formats."""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List

import pytest

from conftest import text_response
from llm_unified.exceptions import ProviderError, StreamCancelledError
from llm_unified.models import (
    Provider,
    StopReason,
    TextContent,
    ThinkingContent,
    ToolUseContent,
)
from llm_unified.streaming import CancellationToken, StreamAggregator, aggregate_stream
from llm_unified.streaming.events import (
    AnthropicContentBlockDelta,
    MessageCompleteEvent,
    OpenAIChunk,
    parse_stream_event,
)
from llm_unified.transformers import (
    AnthropicResponseTransformer,
    GoogleResponseTransformer,
    OpenAIResponseTransformer,
)


def anthropic_tool_stream(*fragments: str) -> List[Dict[str, Any]]:
    events: List[Dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {
                "id": "msg_1",
                "type": "message",
                "role": "assistant",
                "model": "claude-sonnet-4-5",
                "content": [],
                "usage": {"input_tokens": 12, "output_tokens": 1},
            },
        },
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Let me "}},
        {"type": "ping"},
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "check."}},
        {"type": "content_block_stop", "index": 0},
        {
            "type": "content_block_start",
            "index": 1,
            "content_block": {"type": "tool_use", "id": "toolu_1", "name": "calculate", "input": {}},
        },
    ]
    events.extend(
        {
            "type": "content_block_delta",
            "index": 1,
            "delta": {"type": "input_json_delta", "partial_json": fragment},
        }
        for fragment in fragments
    )
    events.extend(
        [
            {"type": "content_block_stop", "index": 1},
            {
                "type": "message_delta",
                "delta": {"stop_reason": "tool_use", "stop_sequence": None},
                "usage": {"output_tokens": 20},
            },
            {"type": "message_stop"},
        ]
    )
    return events


def openai_chunk(delta: Dict[str, Any], finish_reason: Any = None, **extra: Any) -> Dict[str, Any]:
    chunk = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1,
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    chunk.update(extra)
    return chunk


async def _iterate(events: List[Any]) -> AsyncIterator[Any]:
    for event in events:
        yield event


class TestParseStreamEvent:
    def test_anthropic_typed(self) -> None:
        event = parse_stream_event(
            "anthropic",
            {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "x"}},
        )
        assert isinstance(event, AnthropicContentBlockDelta)
        assert event.index == 2

    def test_unknown_anthropic_event_ignored(self) -> None:
        assert parse_stream_event("anthropic", {"type": "brand_new_event"}) is None

    def test_openai_chunk(self) -> None:
        assert isinstance(parse_stream_event(Provider.OPENAI, openai_chunk({})), OpenAIChunk)


class TestAnthropicStream:
    def test_text_and_tool_call(self) -> None:
        response = StreamAggregator("anthropic").aggregate_events(
            anthropic_tool_stream('{"a": ', "5, ", '"b": 3}')
        )

        assert response.provider is Provider.ANTHROPIC
        assert response.id == "msg_1"
        assert response.stop_reason is StopReason.TOOL_USE
        assert response.content == [
            TextContent(text="Let me check."),
            ToolUseContent(id="toolu_1", name="calculate", input={"a": 5, "b": 3}),
        ]
        assert response.usage is not None
        assert response.usage.input_tokens == 12
        assert response.usage.output_tokens == 20
        assert response.original is None

    def test_missing_leading_brace_repaired(self) -> None:
        response = StreamAggregator("anthropic").aggregate_events(
            anthropic_tool_stream('"a": 1, ', '"b": 2}')
        )
        assert response.tool_uses[0].input == {"a": 1, "b": 2}

    def test_unparseable_arguments_leave_input_unset(self) -> None:
        response = StreamAggregator("anthropic").aggregate_events(
            anthropic_tool_stream('{"a": ', "oops")
        )
        assert response.tool_uses[0].input is None

    def test_thinking_with_signature(self) -> None:
        events = [
            {"type": "message_start", "message": {"id": "m", "model": "c"}},
            {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking", "thinking": ""}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", "thinking": "hmm"}},
            {"type": "content_block_delta", "index": 0, "delta": {"type": "signature_delta", "signature": "sig"}},
            {"type": "message_delta", "delta": {"stop_reason": "end_turn"}},
        ]
        response = StreamAggregator("anthropic").aggregate_events(events)
        assert response.content == [ThinkingContent(thinking="hmm", signature="sig")]

    def test_error_event_raises(self) -> None:
        aggregator = StreamAggregator("anthropic")
        with pytest.raises(ProviderError, match="overloaded_error"):
            aggregator.feed({"type": "error", "error": {"type": "overloaded_error", "message": "busy"}})

    def test_matches_non_streaming_transform(self) -> None:
        streamed = StreamAggregator("anthropic").aggregate_events(
            anthropic_tool_stream('{"a": 5, "b": 3}')
        )
        direct = AnthropicResponseTransformer().transform(
            {
                "id": "msg_1",
                "model": "claude-sonnet-4-5",
                "content": [
                    {"type": "text", "text": "Let me check."},
                    {"type": "tool_use", "id": "toolu_1", "name": "calculate", "input": {"a": 5, "b": 3}},
                ],
                "stop_reason": "tool_use",
            }
        )
        assert streamed.content == direct.content
        assert streamed.stop_reason == direct.stop_reason

    def test_empty_text_block_matches_non_streaming(self) -> None:
        events = [
            e
            for e in anthropic_tool_stream('{"a": 5}')
            if e.get("delta", {}).get("type") != "text_delta"
        ]
        streamed = StreamAggregator("anthropic").aggregate_events(events)
        direct = AnthropicResponseTransformer().transform(
            {
                "content": [
                    {"type": "text", "text": ""},
                    {"type": "tool_use", "id": "toolu_1", "name": "calculate", "input": {"a": 5}},
                ],
                "stop_reason": "tool_use",
            }
        )
        assert direct.content == [ToolUseContent(id="toolu_1", name="calculate", input={"a": 5})]
        assert streamed.content == direct.content


class TestOpenAIStream:
    def test_interleaved_tool_calls_keyed_by_index(self) -> None:
        events = [
            openai_chunk({"role": "assistant", "content": "Sure"}),
            openai_chunk(
                {
                    "tool_calls": [
                        {"index": 0, "id": "call_a", "function": {"name": "f", "arguments": '{"x"'}},
                        {"index": 1, "id": "call_b", "function": {"name": "g", "arguments": ""}},
                    ]
                }
            ),
            openai_chunk({"tool_calls": [{"index": 1, "function": {"arguments": '{"y": 2}'}}]}),
            openai_chunk({"tool_calls": [{"index": 0, "function": {"arguments": ": 1}"}}]}),
            openai_chunk({}, finish_reason="tool_calls"),
            openai_chunk({}, choices=[], usage={"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": 10}),
            "[DONE]",
        ]
        response = StreamAggregator("openai").aggregate_events(events)

        assert response.stop_reason is StopReason.TOOL_USE
        assert response.content == [
            TextContent(text="Sure"),
            ToolUseContent(id="call_a", name="f", input={"x": 1}),
            ToolUseContent(id="call_b", name="g", input={"y": 2}),
        ]
        assert response.usage is not None
        assert response.usage.total_tokens == 10
        assert response.openai is not None
        assert response.openai["object"] == "chat.completion.chunk"

    def test_text_only_matches_non_streaming(self) -> None:
        streamed = StreamAggregator("openai").aggregate_events(
            [
                openai_chunk({"content": "Hel"}),
                openai_chunk({"content": "lo"}),
                openai_chunk({}, finish_reason="stop"),
            ]
        )
        direct = OpenAIResponseTransformer().transform(
            {"choices": [{"message": {"content": "Hello"}, "finish_reason": "stop"}]}
        )
        assert streamed.content == direct.content
        assert streamed.stop_reason == direct.stop_reason

    def test_unexpected_string_rejected(self) -> None:
        with pytest.raises(TypeError):
            StreamAggregator("openai").feed("data: nonsense")


class TestGoogleStream:
    def test_text_chunks_and_function_call(self) -> None:
        events = [
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "Let me "}]}}]},
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "see."}]}}]},
            {
                "candidates": [
                    {
                        "content": {"role": "model", "parts": [{"functionCall": {"name": "calc", "args": {"a": 1}}}]},
                        "finishReason": "STOP",
                    }
                ],
                "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 5, "totalTokenCount": 8},
                "modelVersion": "gemini-2.5-flash",
            },
        ]
        response = StreamAggregator("google").aggregate_events(events)

        assert response.provider is Provider.GOOGLE
        assert response.stop_reason is StopReason.TOOL_USE
        assert response.text == "Let me see."
        assert response.tool_uses[0].input == {"a": 1}
        assert response.model == "gemini-2.5-flash"
        assert response.google == {"modelVersion": "gemini-2.5-flash", "finishReason": "STOP"}

    @pytest.mark.parametrize(
        "chunks",
        [
            [[{"text": "Step one."}, {"text": "Step two."}]],
            [[{"text": "Step one."}], [{"text": "Step two."}]],
            [[{"text": "Step "}], [{"text": "one."}, {"text": "Step two."}]],
        ],
    )
    def test_matches_non_streaming_transform(self, chunks: List[List[Dict[str, Any]]]) -> None:
        thought = {"text": "Plan.", "thought": True}
        events = [
            {"candidates": [{"content": {"role": "model", "parts": parts}}]}
            for parts in [[thought], *chunks]
        ]
        events[-1]["candidates"][0]["finishReason"] = "STOP"
        streamed = StreamAggregator("google").aggregate_events(events)
        direct = GoogleResponseTransformer().transform(
            {
                "candidates": [
                    {
                        "content": {
                            "role": "model",
                            "parts": [thought, {"text": "Step one."}, {"text": "Step two."}],
                        },
                        "finishReason": "STOP",
                    }
                ]
            }
        )

        assert direct.content == [
            ThinkingContent(thinking="Plan."),
            TextContent(text="Step one.Step two."),
        ]
        assert streamed.content == direct.content
        assert streamed.stop_reason == direct.stop_reason


class TestAsyncAggregation:
    async def test_aggregate_stream(self) -> None:
        response = await aggregate_stream(
            _iterate(anthropic_tool_stream('{"a": 1, "b": 1}')), provider="anthropic"
        )
        assert response.tool_uses[0].input == {"a": 1, "b": 1}

    async def test_message_complete_event_passes_through(self) -> None:
        complete = text_response("done")
        response = await StreamAggregator().aggregate(
            _iterate([MessageCompleteEvent(response=complete)])
        )
        assert response is complete

    async def test_cancellation_stops_consumption(self) -> None:
        token = CancellationToken()
        consumed: List[Any] = []

        async def producer() -> AsyncIterator[Any]:
            for event in anthropic_tool_stream('{"a": 1}'):
                consumed.append(event)
                if len(consumed) == 3:
                    token.cancel("user pressed stop")
                yield event

        with pytest.raises(StreamCancelledError, match="user pressed stop"):
            await StreamAggregator("anthropic").aggregate(producer(), token)
        assert len(consumed) == 3

    async def test_raw_dict_needs_provider(self) -> None:
        with pytest.raises(TypeError):
            await StreamAggregator().aggregate(_iterate([{"type": "ping"}]))
