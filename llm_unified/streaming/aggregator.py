"""Fold a vendor event stream into one :class:`UnifiedResponse`.

The aggregator is a single-pass left fold: events are applied in arrival
order, content blocks are only ever appended to, and nothing is reordered.
State carried across the fold:

* an index-addressed list of in-progress content blocks;
* per Anthropic ``tool_use`` block, a buffer of partial JSON fragments;
* for OpenAI, a map from ``tool_calls[].index`` to the slot that call
  occupies in the block list, so fragments of one call are concatenated no
  matter how chunks interleave.

Tool argument buffers are parsed once, in :meth:`StreamAggregator.finish`.
A buffer that cannot be parsed leaves ``input`` unset instead of failing
the response.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    AsyncIterable,
    Dict,
    Iterable,
    List,
    Optional,
    Union,
)

from ..exceptions import ProviderError, StreamCancelledError
from ..models import (
    Provider,
    StopReason,
    TextContent,
    ThinkingContent,
    ToolUseContent,
    UnifiedResponse,
    UnifiedUsage,
)
from ..transformers._common import (
    ANTHROPIC_STOP_REASONS,
    GOOGLE_FINISH_REASONS,
    OPENAI_FINISH_REASONS,
    map_stop_reason,
    normalize_content,
    repair_and_parse,
)
from ..transformers.response import (
    AnthropicResponseTransformer,
    GoogleResponseTransformer,
    OpenAIResponseTransformer,
    generate_call_id,
)
from .cancellation import CancellationToken
from .events import (
    DONE_SENTINEL,
    AnthropicContentBlockDelta,
    AnthropicContentBlockStart,
    AnthropicContentBlockStop,
    AnthropicMessageDelta,
    AnthropicMessageStart,
    AnthropicMessageStop,
    AnthropicPing,
    AnthropicStreamError,
    GoogleChunk,
    MessageCompleteEvent,
    OpenAIChunk,
    StreamEvent,
    parse_stream_event,
)

logger = logging.getLogger(__name__)

RawEvent = Union[StreamEvent, Dict[str, Any], str]


class StreamAggregator:
    """Accumulates stream events; call :meth:`finish` for the response.

    Args:
        provider: Needed only when events are fed as raw ``dict`` payloads.
    """

    def __init__(self, provider: Optional[Union[Provider, str]] = None) -> None:
        self._raw_provider = Provider(provider) if provider is not None else None
        self._provider: Optional[Provider] = None
        self._id: Optional[str] = None
        self._model: Optional[str] = None
        self._stop_reason: Optional[StopReason] = None
        self._usage: Optional[UnifiedUsage] = None
        self._side: Dict[str, Any] = {}
        self._blocks: List[Optional[Dict[str, Any]]] = []
        self._openai_slots: Dict[int, int] = {}
        self._complete: Optional[UnifiedResponse] = None
        self.event_count = 0

    # ------------------------------------------------------------------
    # Fold step
    # ------------------------------------------------------------------

    def feed(self, event: RawEvent) -> None:
        if isinstance(event, str):
            if event.strip() == DONE_SENTINEL:
                return
            raise TypeError(f"Unexpected string stream event: {event!r}")
        if isinstance(event, dict):
            if self._raw_provider is None:
                raise TypeError("Raw dict events need StreamAggregator(provider=...)")
            parsed = parse_stream_event(self._raw_provider, event)
            if parsed is None:
                return
            event = parsed

        self.event_count += 1
        match event:
            case AnthropicMessageStart(message=message):
                self._on_message_start(message)
            case AnthropicContentBlockStart(index=index, content_block=block):
                self._on_block_start(index, block)
            case AnthropicContentBlockDelta(index=index, delta=delta):
                self._on_block_delta(index, delta)
            case AnthropicMessageDelta(delta=delta, usage=usage):
                self._on_message_delta(delta, usage)
            case AnthropicContentBlockStop() | AnthropicMessageStop() | AnthropicPing():
                pass
            case AnthropicStreamError(error=error):
                raise ProviderError(
                    f"Anthropic stream error: {error.get('type', 'error')}: {error.get('message', '')}"
                )
            case OpenAIChunk():
                self._on_openai_chunk(event)
            case GoogleChunk():
                self._on_google_chunk(event)
            case MessageCompleteEvent(response=response):
                self._complete = response
            case _:
                logger.debug("Ignoring stream event of type %s", type(event).__name__)

    # ------------------------------------------------------------------
    # Anthropic
    # ------------------------------------------------------------------

    def _on_message_start(self, message: Dict[str, Any]) -> None:
        self._provider = Provider.ANTHROPIC
        self._id = message.get("id")
        self._model = message.get("model")
        self._side = {"type": message.get("type") or "message", "stop_sequence": None}
        self._usage = AnthropicResponseTransformer.decode_usage(message.get("usage"))

    def _on_block_start(self, index: int, block: Dict[str, Any]) -> None:
        block_type = block.get("type")
        if block_type == "text":
            slot: Dict[str, Any] = {"type": "text", "text": block.get("text") or ""}
        elif block_type == "thinking":
            slot = {
                "type": "thinking",
                "thinking": block.get("thinking") or "",
                "signature": block.get("signature") or "",
            }
        elif block_type == "tool_use":
            slot = {
                "type": "tool_use",
                "id": block.get("id") or "",
                "name": block.get("name") or "",
                "input": block.get("input") or {},
                "buffer": "",
            }
        else:
            logger.debug("Skipping stream content block of type %r", block_type)
            return
        self._set_slot(index, slot)

    def _on_block_delta(self, index: int, delta: Dict[str, Any]) -> None:
        slot = self._blocks[index] if 0 <= index < len(self._blocks) else None
        if slot is None:
            logger.debug("Delta for unknown content block index %d", index)
            return
        delta_type = delta.get("type")
        if delta_type == "text_delta" and slot["type"] == "text":
            slot["text"] += delta.get("text") or ""
        elif delta_type == "thinking_delta" and slot["type"] == "thinking":
            slot["thinking"] += delta.get("thinking") or ""
        elif delta_type == "signature_delta" and slot["type"] == "thinking":
            slot["signature"] += delta.get("signature") or ""
        elif delta_type == "input_json_delta" and slot["type"] == "tool_use":
            slot["buffer"] += delta.get("partial_json") or ""

    def _on_message_delta(
        self, delta: Dict[str, Any], usage: Optional[Dict[str, Any]]
    ) -> None:
        if delta.get("stop_reason"):
            self._stop_reason = map_stop_reason(ANTHROPIC_STOP_REASONS, delta["stop_reason"])
        if "stop_sequence" in delta:
            self._side["stop_sequence"] = delta.get("stop_sequence")
        if not usage:
            return
        if self._usage is None:
            self._usage = AnthropicResponseTransformer.decode_usage(usage)
            return
        input_tokens = usage.get("input_tokens") or self._usage.input_tokens
        output_tokens = usage.get("output_tokens", self._usage.output_tokens) or 0
        self._usage = self._usage.model_copy(
            update={
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            }
        )

    # ------------------------------------------------------------------
    # OpenAI
    # ------------------------------------------------------------------

    def _on_openai_chunk(self, chunk: OpenAIChunk) -> None:
        self._provider = Provider.OPENAI
        self._side = {
            "object": chunk.object,
            "created": chunk.created,
            "system_fingerprint": chunk.system_fingerprint,
        }
        if not self._id and chunk.id:
            self._id = chunk.id
        if not self._model and chunk.model:
            self._model = chunk.model
        if chunk.usage:
            self._usage = OpenAIResponseTransformer.decode_usage(chunk.usage)

        if not chunk.choices:
            return
        choice = chunk.choices[0]
        if choice.get("finish_reason"):
            self._stop_reason = map_stop_reason(OPENAI_FINISH_REASONS, choice["finish_reason"])
        delta = choice.get("delta") or {}
        if delta.get("reasoning_content"):
            self._append_thinking(delta["reasoning_content"])
        if delta.get("content"):
            self._append_text(delta["content"])
        for position, tc in enumerate(delta.get("tool_calls") or []):
            self._on_openai_tool_delta(tc.get("index", position), tc)

    def _on_openai_tool_delta(self, index: int, tc: Dict[str, Any]) -> None:
        func = tc.get("function") or {}
        slot_index = self._openai_slots.get(index)
        slot = self._blocks[slot_index] if slot_index is not None else None
        if slot is None:
            slot = {
                "type": "tool_use",
                "id": tc.get("id") or "",
                "name": func.get("name") or "",
                "input": {},
                "buffer": "",
            }
            self._blocks.append(slot)
            self._openai_slots[index] = len(self._blocks) - 1
        if tc.get("id") and not slot["id"]:
            slot["id"] = tc["id"]
        if func.get("name") and not slot["name"]:
            slot["name"] = func["name"]
        slot["buffer"] += func.get("arguments") or ""

    # ------------------------------------------------------------------
    # Google
    # ------------------------------------------------------------------

    def _on_google_chunk(self, chunk: GoogleChunk) -> None:
        self._provider = Provider.GOOGLE
        if chunk.modelVersion:
            self._model = self._model or chunk.modelVersion
            self._side["modelVersion"] = chunk.modelVersion
        if chunk.responseId and not self._id:
            self._id = chunk.responseId
        if chunk.usageMetadata:
            self._usage = GoogleResponseTransformer.decode_usage(chunk.usageMetadata)

        if not chunk.candidates:
            return
        candidate = chunk.candidates[0]
        if candidate.get("finishReason"):
            self._side["finishReason"] = candidate["finishReason"]
            self._stop_reason = map_stop_reason(GOOGLE_FINISH_REASONS, candidate["finishReason"])
        for part in (candidate.get("content") or {}).get("parts") or []:
            if "functionCall" in part:
                call = part["functionCall"] or {}
                name = call.get("name") or ""
                self._blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.get("id") or generate_call_id(name),
                        "name": name,
                        "input": call.get("args") or {},
                        "buffer": "",
                    }
                )
            elif "text" in part:
                if part.get("thought"):
                    self._append_thinking(part["text"] or "", part.get("thoughtSignature"))
                else:
                    self._append_text(part["text"] or "")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_slot(self, index: int, slot: Dict[str, Any]) -> None:
        while len(self._blocks) <= index:
            self._blocks.append(None)
        self._blocks[index] = slot

    def _last_slot(self) -> Optional[Dict[str, Any]]:
        return self._blocks[-1] if self._blocks else None

    def _append_text(self, text: str) -> None:
        last = self._last_slot()
        if last is not None and last["type"] == "text":
            last["text"] += text
        else:
            self._blocks.append({"type": "text", "text": text})

    def _append_thinking(self, thinking: str, signature: Optional[str] = None) -> None:
        last = self._last_slot()
        if last is not None and last["type"] == "thinking":
            last["thinking"] += thinking
            if signature:
                last["signature"] += signature
        else:
            self._blocks.append(
                {"type": "thinking", "thinking": thinking, "signature": signature or ""}
            )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def finish(self) -> UnifiedResponse:
        """Build the aggregated response from the events seen so far."""
        if self._complete is not None:
            return self._complete

        content: List[Any] = []
        for slot in self._blocks:
            if slot is None:
                continue
            if slot["type"] == "text":
                content.append(TextContent(text=slot["text"]))
            elif slot["type"] == "thinking":
                content.append(
                    ThinkingContent(thinking=slot["thinking"], signature=slot["signature"])
                )
            elif slot["type"] == "tool_use":
                tool_input: Optional[Dict[str, Any]] = slot["input"]
                if slot["buffer"]:
                    tool_input = repair_and_parse(slot["buffer"])
                content.append(ToolUseContent(id=slot["id"], name=slot["name"], input=tool_input))
        content = normalize_content(
            content, merge_thinking=self._provider != Provider.ANTHROPIC
        )

        stop_reason = self._stop_reason or StopReason.END_TURN
        if (
            self._provider == Provider.GOOGLE
            and stop_reason == StopReason.END_TURN
            and any(isinstance(c, ToolUseContent) for c in content)
        ):
            stop_reason = StopReason.TOOL_USE

        side_channels: Dict[str, Any] = {}
        if self._provider == Provider.ANTHROPIC:
            side_channels["anthropic"] = dict(self._side)
        elif self._provider == Provider.OPENAI:
            side_channels["openai"] = dict(self._side)
        elif self._provider == Provider.GOOGLE:
            side_channels["google"] = {
                "modelVersion": self._side.get("modelVersion"),
                "finishReason": self._side.get("finishReason"),
            }

        return UnifiedResponse(
            id=self._id,
            model=self._model,
            content=content,
            stop_reason=stop_reason,
            usage=self._usage,
            provider=self._provider,
            **side_channels,
        )

    # ------------------------------------------------------------------
    # One-shot forms
    # ------------------------------------------------------------------

    async def aggregate(
        self,
        events: AsyncIterable[RawEvent],
        cancel_token: Optional[CancellationToken] = None,
    ) -> UnifiedResponse:
        """Consume an async event stream and return the folded response.

        Raises :class:`StreamCancelledError` if *cancel_token* fires first.
        """
        try:
            async for event in events:
                if cancel_token is not None and cancel_token.cancelled:
                    raise StreamCancelledError(cancel_token.reason or "Stream cancelled")
                self.feed(event)
        finally:
            # Release the producer's transport loop on every exit path.
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
        if cancel_token is not None and cancel_token.cancelled:
            raise StreamCancelledError(cancel_token.reason or "Stream cancelled")
        return self.finish()

    def aggregate_events(self, events: Iterable[RawEvent]) -> UnifiedResponse:
        for event in events:
            self.feed(event)
        return self.finish()


async def aggregate_stream(
    events: AsyncIterable[RawEvent],
    *,
    provider: Optional[Union[Provider, str]] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> UnifiedResponse:
    """Aggregate *events* with a fresh :class:`StreamAggregator`."""
    return await StreamAggregator(provider).aggregate(events, cancel_token)
