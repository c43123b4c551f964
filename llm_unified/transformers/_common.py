"""Shared tables and JSON helpers for the vendor transformers."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import StopReason, TextContent, ThinkingContent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stop reason tables (vendor → unified)
# ---------------------------------------------------------------------------

ANTHROPIC_STOP_REASONS: Dict[str, StopReason] = {
    "end_turn": StopReason.END_TURN,
    "tool_use": StopReason.TOOL_USE,
    "max_tokens": StopReason.MAX_TOKENS,
    "stop_sequence": StopReason.STOP_SEQUENCE,
    "content_filter": StopReason.CONTENT_FILTER,
    "refusal": StopReason.CONTENT_FILTER,
}

OPENAI_FINISH_REASONS: Dict[str, StopReason] = {
    "stop": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "length": StopReason.MAX_TOKENS,
    "content_filter": StopReason.CONTENT_FILTER,
}

GOOGLE_FINISH_REASONS: Dict[str, StopReason] = {
    "STOP": StopReason.END_TURN,
    "MAX_TOKENS": StopReason.MAX_TOKENS,
    "SAFETY": StopReason.CONTENT_FILTER,
    "RECITATION": StopReason.CONTENT_FILTER,
    "BLOCKLIST": StopReason.CONTENT_FILTER,
    "PROHIBITED_CONTENT": StopReason.CONTENT_FILTER,
    "SPII": StopReason.CONTENT_FILTER,
    "MALFORMED_FUNCTION_CALL": StopReason.ERROR,
}

# Reverse direction (unified → vendor) used when no original payload exists.
ANTHROPIC_STOP_REASONS_REVERSE: Dict[StopReason, str] = {
    StopReason.END_TURN: "end_turn",
    StopReason.TOOL_USE: "tool_use",
    StopReason.MAX_TOKENS: "max_tokens",
    StopReason.STOP_SEQUENCE: "stop_sequence",
    StopReason.CONTENT_FILTER: "refusal",
    StopReason.ERROR: "end_turn",
}

OPENAI_FINISH_REASONS_REVERSE: Dict[StopReason, str] = {
    StopReason.END_TURN: "stop",
    StopReason.TOOL_USE: "tool_calls",
    StopReason.MAX_TOKENS: "length",
    StopReason.STOP_SEQUENCE: "stop",
    StopReason.CONTENT_FILTER: "content_filter",
    StopReason.ERROR: "stop",
}

GOOGLE_FINISH_REASONS_REVERSE: Dict[StopReason, str] = {
    StopReason.END_TURN: "STOP",
    StopReason.TOOL_USE: "STOP",
    StopReason.MAX_TOKENS: "MAX_TOKENS",
    StopReason.STOP_SEQUENCE: "STOP",
    StopReason.CONTENT_FILTER: "SAFETY",
    StopReason.ERROR: "OTHER",
}


def map_stop_reason(table: Mapping[str, StopReason], reason: Optional[str]) -> StopReason:
    """Look up *reason* in *table*, falling back to ``end_turn``."""
    if reason is None:
        return StopReason.END_TURN
    mapped = table.get(reason)
    if mapped is None:
        logger.debug("Unmapped stop reason %r, using end_turn", reason)
        return StopReason.END_TURN
    return mapped


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


def parse_json_arguments(raw: Any) -> Dict[str, Any]:
    """Parse string-encoded tool arguments, degrading to ``{}`` on bad input."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Could not parse tool arguments as JSON: %r", raw)
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Tool arguments are not a JSON object: %r", raw)
        return {}
    return parsed


def repair_and_parse(buffer: str) -> Optional[Dict[str, Any]]:
    """Parse an incrementally assembled argument buffer.

    Some vendors drop the leading ``{`` from the first fragment; a buffer
    that ends with ``}`` but does not start with ``{`` gets one prepended.
    Returns ``None`` when the buffer still does not parse to an object.
    """
    text = buffer.strip()
    if not text:
        return {}
    if not text.startswith("{") and text.endswith("}"):
        text = "{" + text
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Discarding unparseable streamed tool arguments: %r", buffer)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def to_payload(obj: Any) -> Dict[str, Any]:
    """Return a plain dict for an SDK object or mapping."""
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError(f"Cannot read vendor payload of type {type(obj).__name__}")


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Content normalisation
# ---------------------------------------------------------------------------


def normalize_content(blocks: Sequence[Any], *, merge_thinking: bool = False) -> List[Any]:
    """Canonical block list shared by the direct and streaming paths.

    Empty text blocks and thinking blocks with neither text nor signature
    are dropped, and each run of adjacent text blocks becomes one block.
    With *merge_thinking*, adjacent thinking blocks are joined as well
    (text and signature concatenated); Anthropic keeps them apart because
    each carries its own signature.
    """
    content: List[Any] = []
    for block in blocks:
        if isinstance(block, TextContent):
            if not block.text:
                continue
            if content and isinstance(content[-1], TextContent):
                content[-1] = TextContent(text=content[-1].text + block.text)
                continue
        elif isinstance(block, ThinkingContent):
            if not block.thinking and not block.signature:
                continue
            if merge_thinking and content and isinstance(content[-1], ThinkingContent):
                previous = content[-1]
                content[-1] = ThinkingContent(
                    thinking=previous.thinking + block.thinking,
                    signature=previous.signature + block.signature,
                )
                continue
        content.append(block)
    return content
