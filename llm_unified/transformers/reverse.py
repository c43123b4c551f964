"""Unified response → vendor response, biased towards lossless output.

Decision rule:

1. a retained ``_original`` payload is returned as is;
2. otherwise the provider tag selects a reconstruction path that inverts
   the matching response transformer, restoring vendor-only fields from the
   side channels;
3. with neither, :class:`~llm_unified.exceptions.UnknownProviderError` is
   raised because the target format cannot be known.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from mcp import types as mcp_types

from ..exceptions import UnknownProviderError
from ..models import (
    Provider,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    UnifiedResponse,
    UnifiedUsage,
)
from ._common import (
    ANTHROPIC_STOP_REASONS_REVERSE,
    GOOGLE_FINISH_REASONS_REVERSE,
    OPENAI_FINISH_REASONS_REVERSE,
    drop_none,
)

logger = logging.getLogger(__name__)


class ReverseTransformer:
    """Rebuilds the vendor payload a unified response came from."""

    def __init__(self) -> None:
        self._builders: Dict[Provider, Callable[[UnifiedResponse], Dict[str, Any]]] = {
            Provider.ANTHROPIC: self.to_anthropic,
            Provider.OPENAI: self.to_openai,
            Provider.GOOGLE: self.to_google,
            Provider.MCP: self.to_mcp,
        }

    def to_original(self, response: UnifiedResponse) -> Any:
        if response.original is not None:
            return response.original
        if response.provider is None:
            raise UnknownProviderError(
                "Cannot reverse-transform a response without _original or a provider tag."
            )
        builder = self._builders.get(response.provider)
        if builder is None:
            raise UnknownProviderError(f"No reconstruction path for provider: {response.provider}")
        logger.debug("Reconstructing %s payload for response %s", response.provider.value, response.id)
        return builder(response)

    # ------------------------------------------------------------------
    # Anthropic
    # ------------------------------------------------------------------

    @staticmethod
    def to_anthropic(response: UnifiedResponse) -> Dict[str, Any]:
        side = response.anthropic or {}
        content: List[Dict[str, Any]] = []
        for block in response.content:
            match block:
                case TextContent(text=text):
                    content.append({"type": "text", "text": text})
                case ThinkingContent(thinking=thinking, signature=signature):
                    content.append(
                        {"type": "thinking", "thinking": thinking, "signature": signature}
                    )
                case ToolUseContent(id=call_id, name=name, input=args):
                    content.append(
                        {"type": "tool_use", "id": call_id, "name": name, "input": args or {}}
                    )
                case ToolResultContent():
                    content.append(
                        drop_none(
                            {
                                "type": "tool_result",
                                "tool_use_id": block.tool_use_id,
                                "content": block.content,
                                "is_error": block.is_error,
                            }
                        )
                    )

        payload: Dict[str, Any] = {
            "id": response.id,
            "type": side.get("type") or "message",
            "role": "assistant",
            "model": response.model,
            "content": content,
            "stop_reason": ANTHROPIC_STOP_REASONS_REVERSE[response.stop_reason],
            "stop_sequence": side.get("stop_sequence"),
        }
        if response.usage is not None:
            usage: Dict[str, Any] = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
            usage.update(drop_none(response.usage.anthropic or {}))
            payload["usage"] = usage
        return payload

    # ------------------------------------------------------------------
    # OpenAI
    # ------------------------------------------------------------------

    @staticmethod
    def to_openai(response: UnifiedResponse) -> Dict[str, Any]:
        side = response.openai or {}
        text = "".join(b.text for b in response.content if isinstance(b, TextContent))
        reasoning = "".join(
            b.thinking for b in response.content if isinstance(b, ThinkingContent)
        )
        message: Dict[str, Any] = {"role": "assistant", "content": text or None}
        if reasoning:
            message["reasoning_content"] = reasoning
        tool_calls = [
            {
                "id": b.id,
                "type": "function",
                "function": {"name": b.name, "arguments": json.dumps(b.input or {})},
            }
            for b in response.tool_uses
        ]
        if tool_calls:
            message["tool_calls"] = tool_calls

        payload: Dict[str, Any] = {
            "id": response.id,
            "object": side.get("object") or "chat.completion",
            "created": side.get("created") or int(time.time()),
            "model": response.model,
            "system_fingerprint": side.get("system_fingerprint"),
            "choices": [
                {
                    "index": 0,
                    "message": message,
                    "finish_reason": OPENAI_FINISH_REASONS_REVERSE[response.stop_reason],
                }
            ],
        }
        if response.usage is not None:
            usage: Dict[str, Any] = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": _total(response.usage),
            }
            usage.update(drop_none(response.usage.openai or {}))
            payload["usage"] = usage
        return payload

    # ------------------------------------------------------------------
    # Google
    # ------------------------------------------------------------------

    @staticmethod
    def to_google(response: UnifiedResponse) -> Dict[str, Any]:
        side = response.google or {}
        parts: List[Dict[str, Any]] = []
        for block in response.content:
            match block:
                case TextContent(text=text):
                    parts.append({"text": text})
                case ThinkingContent(thinking=thinking, signature=signature):
                    part: Dict[str, Any] = {"text": thinking, "thought": True}
                    if signature:
                        part["thoughtSignature"] = signature
                    parts.append(part)
                case ToolUseContent(name=name, input=args):
                    parts.append({"functionCall": {"name": name, "args": args or {}}})
                case ToolResultContent():
                    parts.append(
                        {
                            "functionResponse": {
                                "name": block.tool_name or block.tool_use_id,
                                "response": {"content": block.content},
                            }
                        }
                    )

        finish_reason = side.get("finishReason") or GOOGLE_FINISH_REASONS_REVERSE[
            response.stop_reason
        ]
        payload: Dict[str, Any] = {
            "candidates": [
                {
                    "content": {"role": "model", "parts": parts},
                    "finishReason": finish_reason,
                    "index": 0,
                }
            ],
            "modelVersion": side.get("modelVersion") or response.model,
        }
        if response.id:
            payload["responseId"] = response.id
        if response.usage is not None:
            metadata: Dict[str, Any] = {
                "promptTokenCount": response.usage.input_tokens,
                "candidatesTokenCount": response.usage.output_tokens,
                "totalTokenCount": _total(response.usage),
            }
            metadata.update(drop_none(response.usage.google or {}))
            payload["usageMetadata"] = metadata
        return payload

    # ------------------------------------------------------------------
    # MCP
    # ------------------------------------------------------------------

    @staticmethod
    def to_mcp(response: UnifiedResponse) -> Dict[str, Any]:
        results = [b for b in response.content if isinstance(b, ToolResultContent)]
        first: Optional[ToolResultContent] = results[0] if results else None
        result = mcp_types.CallToolResult(
            content=[mcp_types.TextContent(type="text", text=first.content if first else "")],
            isError=bool(first.is_error) if first else False,
        )
        return {
            "jsonrpc": "2.0",
            "id": first.tool_use_id if first else response.id,
            "result": result.model_dump(mode="json", by_alias=True, exclude_none=True),
        }


def _total(usage: UnifiedUsage) -> int:
    if usage.total_tokens is not None:
        return usage.total_tokens
    return usage.input_tokens + usage.output_tokens


_default = ReverseTransformer()


def to_original(response: UnifiedResponse) -> Any:
    """Module-level shortcut for :meth:`ReverseTransformer.to_original`."""
    return _default.to_original(response)
