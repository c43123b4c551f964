"""Vendor response → unified response transformers.

Every transformer keeps the payload it was given as ``_original`` and tags
the result with its provider, which is what lets
:mod:`llm_unified.transformers.reverse` hand the exact payload back later.
"""

from __future__ import annotations

import abc
import json
import logging
from typing import Any, ClassVar, Dict, List, Optional
from uuid import uuid4

from ..models import (
    Provider,
    StopReason,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    UnifiedResponse,
    UnifiedUsage,
)
from ._common import (
    ANTHROPIC_STOP_REASONS,
    GOOGLE_FINISH_REASONS,
    OPENAI_FINISH_REASONS,
    map_stop_reason,
    normalize_content,
    parse_json_arguments,
    to_payload,
)

logger = logging.getLogger(__name__)


class ResponseTransformer(abc.ABC):
    """Converts one vendor's response body into a :class:`UnifiedResponse`."""

    provider: ClassVar[Provider]

    @abc.abstractmethod
    def transform(self, response: Any) -> UnifiedResponse: ...


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        # Anthropic tool_result content may be a list of text blocks
        texts = [b.get("text", "") for b in value if isinstance(b, dict)]
        return "".join(texts)
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def generate_call_id(name: str) -> str:
    """Call IDs for vendors that do not issue them."""
    return f"call_{name}_{uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class AnthropicResponseTransformer(ResponseTransformer):
    provider = Provider.ANTHROPIC

    def transform(self, response: Any) -> UnifiedResponse:
        data = to_payload(response)

        content: List[Any] = []
        for index, block in enumerate(data.get("content") or []):
            decoded = self.decode_block(block)
            if decoded is None:
                logger.warning(
                    "Skipping unknown Anthropic content block type %r at index %d",
                    block.get("type"),
                    index,
                )
                continue
            content.append(decoded)

        return UnifiedResponse(
            id=data.get("id"),
            model=data.get("model"),
            content=normalize_content(content),
            stop_reason=map_stop_reason(ANTHROPIC_STOP_REASONS, data.get("stop_reason")),
            usage=self.decode_usage(data.get("usage")),
            provider=self.provider,
            anthropic={
                "stop_sequence": data.get("stop_sequence"),
                "type": data.get("type"),
            },
            original=response,
        )

    @staticmethod
    def decode_block(block: Dict[str, Any]) -> Optional[Any]:
        block_type = block.get("type")
        if block_type == "text":
            return TextContent(text=block.get("text") or "")
        if block_type == "thinking":
            return ThinkingContent(
                thinking=block.get("thinking") or "",
                signature=block.get("signature") or "",
            )
        if block_type == "tool_use":
            return ToolUseContent(
                id=block.get("id") or "",
                name=block.get("name") or "",
                input=block.get("input") or {},
            )
        if block_type == "tool_result":
            return ToolResultContent(
                tool_use_id=block.get("tool_use_id") or "",
                content=_stringify(block.get("content", "")),
                is_error=block.get("is_error"),
            )
        return None

    @staticmethod
    def decode_usage(usage: Optional[Dict[str, Any]]) -> Optional[UnifiedUsage]:
        if not usage:
            return None
        input_tokens = usage.get("input_tokens") or 0
        output_tokens = usage.get("output_tokens") or 0
        return UnifiedUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            anthropic={
                "cache_creation_input_tokens": usage.get("cache_creation_input_tokens"),
                "cache_read_input_tokens": usage.get("cache_read_input_tokens"),
            },
        )


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


class OpenAIResponseTransformer(ResponseTransformer):
    provider = Provider.OPENAI

    def transform(self, response: Any) -> UnifiedResponse:
        data = to_payload(response)
        choices = data.get("choices") or []
        choice = choices[0] if choices else {}
        # Full responses carry ``message``; single stream chunks carry ``delta``.
        message = choice.get("message") or choice.get("delta") or {}

        return UnifiedResponse(
            id=data.get("id"),
            model=data.get("model"),
            content=normalize_content(self.decode_message(message), merge_thinking=True),
            stop_reason=map_stop_reason(OPENAI_FINISH_REASONS, choice.get("finish_reason")),
            usage=self.decode_usage(data.get("usage")),
            provider=self.provider,
            openai={
                "object": data.get("object"),
                "created": data.get("created"),
                "system_fingerprint": data.get("system_fingerprint"),
            },
            original=response,
        )

    @staticmethod
    def decode_message(message: Dict[str, Any]) -> List[Any]:
        content: List[Any] = []
        if message.get("reasoning_content"):
            content.append(ThinkingContent(thinking=message["reasoning_content"]))
        if message.get("content"):
            content.append(TextContent(text=message["content"]))
        for tc in message.get("tool_calls") or []:
            func = tc.get("function") or {}
            content.append(
                ToolUseContent(
                    id=tc.get("id") or "",
                    name=func.get("name") or "",
                    input=parse_json_arguments(func.get("arguments")),
                )
            )
        return content

    @staticmethod
    def decode_usage(usage: Optional[Dict[str, Any]]) -> Optional[UnifiedUsage]:
        if not usage:
            return None
        return UnifiedUsage(
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
            total_tokens=usage.get("total_tokens"),
            openai={
                "prompt_tokens_details": usage.get("prompt_tokens_details"),
                "completion_tokens_details": usage.get("completion_tokens_details"),
            },
        )


# ---------------------------------------------------------------------------
# Google Gemini
# ---------------------------------------------------------------------------


class GoogleResponseTransformer(ResponseTransformer):
    provider = Provider.GOOGLE

    def transform(self, response: Any) -> UnifiedResponse:
        data = to_payload(response)
        candidates = data.get("candidates") or []
        candidate = candidates[0] if candidates else {}
        parts = (candidate.get("content") or {}).get("parts") or []

        content = normalize_content(self.decode_parts(parts), merge_thinking=True)
        finish_reason = candidate.get("finishReason")
        stop_reason = map_stop_reason(GOOGLE_FINISH_REASONS, finish_reason)
        # Gemini reports STOP for turns that end in function calls.
        if stop_reason == StopReason.END_TURN and any(
            isinstance(c, ToolUseContent) for c in content
        ):
            stop_reason = StopReason.TOOL_USE

        return UnifiedResponse(
            id=data.get("responseId"),
            model=data.get("modelVersion"),
            content=content,
            stop_reason=stop_reason,
            usage=self.decode_usage(data.get("usageMetadata")),
            provider=self.provider,
            google={
                "modelVersion": data.get("modelVersion"),
                "finishReason": finish_reason,
            },
            original=response,
        )

    @staticmethod
    def decode_parts(parts: List[Dict[str, Any]]) -> List[Any]:
        content: List[Any] = []
        for part in parts:
            if "functionCall" in part:
                call = part["functionCall"] or {}
                name = call.get("name") or ""
                content.append(
                    ToolUseContent(
                        id=call.get("id") or generate_call_id(name),
                        name=name,
                        input=call.get("args") or {},
                    )
                )
            elif "functionResponse" in part:
                resp = part["functionResponse"] or {}
                payload = resp.get("response") or {}
                content.append(
                    ToolResultContent(
                        tool_use_id=resp.get("id") or resp.get("name") or "",
                        tool_name=resp.get("name"),
                        content=_stringify(payload.get("content", payload)),
                        is_error=False,
                    )
                )
            elif "text" in part:
                if part.get("thought"):
                    content.append(
                        ThinkingContent(
                            thinking=part["text"] or "",
                            signature=part.get("thoughtSignature") or "",
                        )
                    )
                else:
                    content.append(TextContent(text=part["text"] or ""))
        return content

    @staticmethod
    def decode_usage(metadata: Optional[Dict[str, Any]]) -> Optional[UnifiedUsage]:
        if not metadata:
            return None
        return UnifiedUsage(
            input_tokens=metadata.get("promptTokenCount") or 0,
            output_tokens=metadata.get("candidatesTokenCount") or 0,
            total_tokens=metadata.get("totalTokenCount"),
            google={
                "trafficType": metadata.get("trafficType"),
                "promptTokensDetails": metadata.get("promptTokensDetails"),
                "candidatesTokensDetails": metadata.get("candidatesTokensDetails"),
                "thoughtsTokenCount": metadata.get("thoughtsTokenCount"),
            },
        )
