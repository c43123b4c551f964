from .aggregator import StreamAggregator, aggregate_stream
from .cancellation import CancellationToken
from .events import (
    DONE_SENTINEL,
    AnthropicContentBlockDelta,
    AnthropicContentBlockStart,
    AnthropicContentBlockStop,
    AnthropicMessageDelta,
    AnthropicMessageStart,
    AnthropicMessageStop,
    GoogleChunk,
    MessageCompleteEvent,
    OpenAIChunk,
    StreamEvent,
    parse_stream_event,
)

__all__ = [
    "StreamAggregator",
    "aggregate_stream",
    "CancellationToken",
    "DONE_SENTINEL",
    "AnthropicMessageStart",
    "AnthropicContentBlockStart",
    "AnthropicContentBlockDelta",
    "AnthropicContentBlockStop",
    "AnthropicMessageDelta",
    "AnthropicMessageStop",
    "OpenAIChunk",
    "GoogleChunk",
    "MessageCompleteEvent",
    "StreamEvent",
    "parse_stream_event",
]
