# llm_unified/builders.py
"""Fluent construction of requests and the messages the tool loop appends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from .exceptions import InvalidRequestError
from .models import (
    Provider,
    Role,
    TextContent,
    ToolResultContent,
    UnifiedContent,
    UnifiedMessage,
    UnifiedRequest,
    UnifiedTool,
)

if TYPE_CHECKING:
    from .tools.models import ToolResult

ContentInput = Union[str, Sequence[UnifiedContent]]


def _as_blocks(content: ContentInput) -> List[UnifiedContent]:
    if isinstance(content, str):
        return [TextContent(text=content)]
    return list(content)


def user_message(content: ContentInput) -> UnifiedMessage:
    return UnifiedMessage(role=Role.USER, content=_as_blocks(content))


def assistant_message(content: ContentInput) -> UnifiedMessage:
    return UnifiedMessage(role=Role.ASSISTANT, content=_as_blocks(content))


def system_message(text: str) -> UnifiedMessage:
    return UnifiedMessage(role=Role.SYSTEM, content=text)


def tool_results_message(results: Sequence["ToolResult"]) -> UnifiedMessage:
    """User-role message carrying one ``tool_result`` block per result, in order."""
    blocks: List[ToolResultContent] = [r.to_content() for r in results]
    return UnifiedMessage(role=Role.USER, content=blocks)


def append_tool_results(
    messages: Sequence[UnifiedMessage],
    assistant_content: Sequence[UnifiedContent],
    results: Sequence["ToolResult"],
) -> List[UnifiedMessage]:
    """Return *messages* followed by the assistant turn and its tool results.

    The input sequence is not modified.
    """
    return [
        *messages,
        UnifiedMessage(role=Role.ASSISTANT, content=list(assistant_content)),
        tool_results_message(results),
    ]


class UnifiedRequestBuilder:
    """
    Chainable builder for :class:`UnifiedRequest`.

    Example::

        request = (
            UnifiedRequestBuilder()
            .model("claude-sonnet-4-5")
            .system("You are terse.")
            .user("2+3?")
            .tools(registry)
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: Dict[str, Any] = {"stream": False}
        self._messages: List[UnifiedMessage] = []

    @classmethod
    def create(cls) -> "UnifiedRequestBuilder":
        return cls()

    def provider(self, provider: Union[Provider, str]) -> "UnifiedRequestBuilder":
        self._fields["provider"] = Provider(provider)
        return self

    def model(self, model: str) -> "UnifiedRequestBuilder":
        self._fields["model"] = model
        return self

    def system(self, prompt: str) -> "UnifiedRequestBuilder":
        self._fields["system"] = prompt
        return self

    def user(self, content: ContentInput) -> "UnifiedRequestBuilder":
        self._messages.append(user_message(content))
        return self

    def assistant(self, content: ContentInput) -> "UnifiedRequestBuilder":
        self._messages.append(assistant_message(content))
        return self

    def message(self, message: UnifiedMessage) -> "UnifiedRequestBuilder":
        self._messages.append(message)
        return self

    def messages(self, messages: Sequence[UnifiedMessage]) -> "UnifiedRequestBuilder":
        self._messages.extend(messages)
        return self

    def tools(self, tools: Any) -> "UnifiedRequestBuilder":
        """Accepts a list of :class:`UnifiedTool` or a tool registry."""
        if hasattr(tools, "definitions"):
            self._fields["tools"] = tools.definitions()
        else:
            self._fields["tools"] = list(tools)
        return self

    def max_tokens(self, tokens: int) -> "UnifiedRequestBuilder":
        self._fields["max_tokens"] = tokens
        return self

    def temperature(self, temperature: float) -> "UnifiedRequestBuilder":
        self._fields["temperature"] = temperature
        return self

    def top_p(self, top_p: float) -> "UnifiedRequestBuilder":
        self._fields["top_p"] = top_p
        return self

    def top_k(self, top_k: int) -> "UnifiedRequestBuilder":
        self._fields["top_k"] = top_k
        return self

    def stop_sequences(self, sequences: Sequence[str]) -> "UnifiedRequestBuilder":
        self._fields["stop_sequences"] = list(sequences)
        return self

    def stream(self, enabled: bool = True) -> "UnifiedRequestBuilder":
        self._fields["stream"] = enabled
        return self

    def build(self) -> UnifiedRequest:
        if not self._fields.get("model"):
            raise InvalidRequestError("Model is required")
        if not self._messages:
            raise InvalidRequestError("At least one message is required")
        return UnifiedRequest(messages=list(self._messages), **self._fields)


def tool(
    name: str,
    description: str = "",
    properties: Optional[Dict[str, Any]] = None,
    required: Optional[List[str]] = None,
) -> UnifiedTool:
    """Shorthand for a :class:`UnifiedTool` with an ``object`` schema."""
    parameters: Dict[str, Any] = {"type": "object", "properties": dict(properties or {})}
    if required:
        parameters["required"] = list(required)
    return UnifiedTool(name=name, description=description, parameters=parameters)
