"""Unified request → vendor request transformers.

Each transformer derives a fresh vendor payload (plain ``dict``) from a
:class:`~llm_unified.models.UnifiedRequest`; the request itself is never
modified.  Content that a vendor cannot encode raises
:class:`~llm_unified.exceptions.UnsupportedContentError` before any network
call is attempted.
"""

from __future__ import annotations

import abc
import json
import logging
from typing import Any, ClassVar, Dict, List, Optional

from ..exceptions import UnsupportedContentError
from ..models import (
    ImageContent,
    Provider,
    Role,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    UnifiedRequest,
    UnifiedTool,
)

logger = logging.getLogger(__name__)

# Default max_tokens for Anthropic (required parameter)
DEFAULT_ANTHROPIC_MAX_TOKENS = 4096


class RequestTransformer(abc.ABC):
    """Converts a unified request into one vendor's request body."""

    provider: ClassVar[Provider]

    @abc.abstractmethod
    def transform(self, request: UnifiedRequest) -> Dict[str, Any]: ...

    def _unsupported(self, block: Any) -> UnsupportedContentError:
        return UnsupportedContentError(
            getattr(block, "type", type(block).__name__), self.provider.value
        )


# ---------------------------------------------------------------------------
# Anthropic Messages API
# ---------------------------------------------------------------------------


class AnthropicRequestTransformer(RequestTransformer):
    provider = Provider.ANTHROPIC

    def __init__(self, default_max_tokens: int = DEFAULT_ANTHROPIC_MAX_TOKENS) -> None:
        self.default_max_tokens = default_max_tokens

    def transform(self, request: UnifiedRequest) -> Dict[str, Any]:
        model = request.require_model()

        system_parts: List[str] = [request.system] if request.system else []
        messages: List[Dict[str, Any]] = []
        for msg in request.messages:
            if msg.role == Role.SYSTEM:
                system_parts.append(msg.text())
                continue
            # Tool results must be user messages with tool_result content
            role = "assistant" if msg.role == Role.ASSISTANT else "user"
            blocks = [self._encode_block(b) for b in msg.blocks()]
            messages.append({"role": role, "content": blocks})

        payload: Dict[str, Any] = {
            "model": model,
            "messages": self._merge_consecutive(messages),
            "max_tokens": request.max_tokens or self.default_max_tokens,
        }
        if system_parts:
            payload["system"] = "\n\n".join(p for p in system_parts if p)
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.top_k is not None:
            payload["top_k"] = request.top_k
        if request.stop_sequences:
            payload["stop_sequences"] = list(request.stop_sequences)
        if request.tools:
            payload["tools"] = [self.encode_tool(t) for t in request.tools]
        if request.stream:
            payload["stream"] = True
        return payload

    def _encode_block(self, block: Any) -> Dict[str, Any]:
        match block:
            case TextContent(text=text):
                return {"type": "text", "text": text}
            case ThinkingContent(thinking=thinking, signature=signature):
                return {"type": "thinking", "thinking": thinking, "signature": signature}
            case ToolUseContent(id=call_id, name=name, input=args):
                return {"type": "tool_use", "id": call_id, "name": name, "input": args or {}}
            case ToolResultContent():
                encoded: Dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": block.tool_use_id,
                    "content": block.content,
                }
                if block.is_error is not None:
                    encoded["is_error"] = block.is_error
                return encoded
            case _:
                raise self._unsupported(block)

    @staticmethod
    def encode_tool(tool: UnifiedTool) -> Dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.parameters,
        }

    @staticmethod
    def _merge_consecutive(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Merge consecutive messages with the same role.

        Anthropic requires alternating user/assistant messages.
        """
        merged: List[Dict[str, Any]] = []
        for msg in messages:
            if merged and merged[-1]["role"] == msg["role"]:
                merged[-1] = {
                    "role": msg["role"],
                    "content": merged[-1]["content"] + msg["content"],
                }
            else:
                merged.append(msg)
        return merged


# ---------------------------------------------------------------------------
# OpenAI Chat Completions
# ---------------------------------------------------------------------------


class OpenAIRequestTransformer(RequestTransformer):
    provider = Provider.OPENAI

    def transform(self, request: UnifiedRequest) -> Dict[str, Any]:
        model = request.require_model()

        messages: List[Dict[str, Any]] = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        for msg in request.messages:
            messages.extend(self._encode_message(msg.role, msg.content))

        payload: Dict[str, Any] = {"model": model, "messages": messages}
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.stop_sequences:
            payload["stop"] = list(request.stop_sequences)
        if request.tools:
            payload["tools"] = [self.encode_tool(t) for t in request.tools]
        if request.stream:
            payload["stream"] = True
        return payload

    def _encode_message(self, role: Role, content: Any) -> List[Dict[str, Any]]:
        if role == Role.SYSTEM:
            text = content if isinstance(content, str) else "".join(
                b.text for b in content if isinstance(b, TextContent)
            )
            return [{"role": "system", "content": text}]
        if isinstance(content, str):
            native_role = "assistant" if role == Role.ASSISTANT else "user"
            return [{"role": native_role, "content": content}]

        tool_messages: List[Dict[str, Any]] = []
        parts: List[Dict[str, Any]] = []
        tool_calls: List[Dict[str, Any]] = []
        reasoning: List[str] = []

        for block in content:
            match block:
                case TextContent(text=text):
                    parts.append({"type": "text", "text": text})
                case ImageContent(source=source):
                    url = source.data
                    if source.type == "base64":
                        url = f"data:{source.media_type or 'image/png'};base64,{source.data}"
                    parts.append({"type": "image_url", "image_url": {"url": url}})
                case ThinkingContent(thinking=thinking) if role == Role.ASSISTANT:
                    reasoning.append(thinking)
                case ToolUseContent(id=call_id, name=name, input=args):
                    tool_calls.append(
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {
                                "name": name,
                                "arguments": json.dumps(args or {}),
                            },
                        }
                    )
                case ToolResultContent(tool_use_id=call_id, content=result):
                    tool_messages.append(
                        {"role": "tool", "tool_call_id": call_id, "content": result}
                    )
                case _:
                    raise self._unsupported(block)

        if role == Role.ASSISTANT:
            if not parts and not tool_calls and not reasoning:
                return tool_messages
            text = "".join(p["text"] for p in parts if p["type"] == "text")
            message: Dict[str, Any] = {"role": "assistant", "content": text or None}
            if tool_calls:
                message["tool_calls"] = tool_calls
            if reasoning:
                message["reasoning_content"] = "".join(reasoning)
            return tool_messages + [message]

        # Tool messages must directly follow the assistant turn that asked
        # for them, so they go before any user text in the same message.
        if not parts:
            return tool_messages
        if all(p["type"] == "text" for p in parts):
            user_content: Any = "".join(p["text"] for p in parts)
        else:
            user_content = parts
        return tool_messages + [{"role": "user", "content": user_content}]

    @staticmethod
    def encode_tool(tool: UnifiedTool) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }


# ---------------------------------------------------------------------------
# Google Gemini (generateContent)
# ---------------------------------------------------------------------------

_GOOGLE_ROLES: Dict[Role, str] = {
    Role.USER: "user",
    Role.ASSISTANT: "model",
    Role.TOOL: "function",
}


class GoogleRequestTransformer(RequestTransformer):
    provider = Provider.GOOGLE

    def transform(self, request: UnifiedRequest) -> Dict[str, Any]:
        model = request.require_model()

        system_parts: List[str] = [request.system] if request.system else []
        tool_names: Dict[str, str] = {}
        contents: List[Dict[str, Any]] = []
        for msg in request.messages:
            if msg.role == Role.SYSTEM:
                system_parts.append(msg.text())
                continue
            parts = [self._encode_block(b, tool_names) for b in msg.blocks()]
            contents.append({"role": _GOOGLE_ROLES[msg.role], "parts": parts})

        payload: Dict[str, Any] = {"model": model, "contents": contents}
        if system_parts:
            payload["systemInstruction"] = {
                "parts": [{"text": "\n\n".join(p for p in system_parts if p)}]
            }
        if request.tools:
            payload["tools"] = [
                {"functionDeclarations": [self.encode_tool(t) for t in request.tools]}
            ]
        generation_config = self._generation_config(request)
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    def _encode_block(self, block: Any, tool_names: Dict[str, str]) -> Dict[str, Any]:
        match block:
            case TextContent(text=text):
                return {"text": text}
            case ToolUseContent(id=call_id, name=name, input=args):
                tool_names[call_id] = name
                return {"functionCall": {"name": name, "args": args or {}}}
            case ToolResultContent():
                name = block.tool_name or tool_names.get(block.tool_use_id, block.tool_use_id)
                return {
                    "functionResponse": {
                        "name": name,
                        "response": {"content": block.content},
                    }
                }
            case ImageContent(source=source) if source.type == "base64":
                return {
                    "inlineData": {
                        "mimeType": source.media_type or "image/png",
                        "data": source.data,
                    }
                }
            case ImageContent(source=source):
                file_data: Dict[str, Any] = {"fileUri": source.data}
                if source.media_type:
                    file_data["mimeType"] = source.media_type
                return {"fileData": file_data}
            case _:
                raise self._unsupported(block)

    @staticmethod
    def _generation_config(request: UnifiedRequest) -> Optional[Dict[str, Any]]:
        config: Dict[str, Any] = {}
        if request.max_tokens is not None:
            config["maxOutputTokens"] = request.max_tokens
        if request.temperature is not None:
            config["temperature"] = request.temperature
        if request.top_p is not None:
            config["topP"] = request.top_p
        if request.top_k is not None:
            config["topK"] = request.top_k
        if request.stop_sequences:
            config["stopSequences"] = list(request.stop_sequences)
        return config or None

    @staticmethod
    def encode_tool(tool: UnifiedTool) -> Dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        }
