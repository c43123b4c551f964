"""Vendor-neutral intermediate representation (IR).

Every request, response and content block that crosses a provider boundary
is expressed with the models in this module.  The models are frozen: a
transformer or the tool loop derives a new value with ``model_copy`` instead
of mutating one in place.

Provider-specific side channels (``_anthropic``, ``_openai``, ``_google``)
and the raw vendor payload (``_original``) exist only so a response can be
turned back into its vendor format without loss.  Nothing in the forward
direction depends on them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidRequestError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class StopReason(str, Enum):
    """Normalised terminal state of a model response."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"


class Provider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    MCP = "mcp"


class _IRModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class TextContent(_IRModel):
    type: Literal["text"] = "text"
    text: str


class ThinkingContent(_IRModel):
    """Reasoning trace; ``signature`` is an opaque provenance token."""

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str = ""


class ToolUseContent(_IRModel):
    """A model-issued request to invoke a tool.

    ``input`` is ``None`` only when a streamed argument buffer could not be
    parsed as JSON.
    """

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Optional[Dict[str, Any]] = Field(default_factory=dict)


class ToolResultContent(_IRModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    tool_name: Optional[str] = None
    content: str = ""
    is_error: Optional[bool] = None


class ImageSource(_IRModel):
    type: str = "base64"  # "base64" or "url"
    media_type: Optional[str] = None
    data: str


class ImageContent(_IRModel):
    type: Literal["image"] = "image"
    source: ImageSource


UnifiedContent = Annotated[
    Union[TextContent, ThinkingContent, ToolUseContent, ToolResultContent, ImageContent],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Messages, tools, usage
# ---------------------------------------------------------------------------


class UnifiedMessage(_IRModel):
    role: Role
    content: Union[str, List[UnifiedContent]]

    def blocks(self) -> List[Any]:
        """Return the content as a list of blocks (strings become text)."""
        if isinstance(self.content, str):
            return [TextContent(text=self.content)]
        return list(self.content)

    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(b.text for b in self.content if isinstance(b, TextContent))


class UnifiedTool(_IRModel):
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class UnifiedUsage(_IRModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: Optional[int] = None
    anthropic: Optional[Dict[str, Any]] = Field(default=None, alias="_anthropic")
    openai: Optional[Dict[str, Any]] = Field(default=None, alias="_openai")
    google: Optional[Dict[str, Any]] = Field(default=None, alias="_google")


# ---------------------------------------------------------------------------
# Request / response
# ---------------------------------------------------------------------------


class UnifiedRequest(_IRModel):
    model: Optional[str] = None
    system: Optional[str] = None
    messages: List[UnifiedMessage] = Field(min_length=1)
    tools: Optional[List[UnifiedTool]] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    stream: bool = False
    provider: Optional[Provider] = Field(default=None, alias="_provider")

    def require_model(self) -> str:
        if not self.model:
            raise InvalidRequestError("Request has no model; set one before dispatch.")
        return self.model

    def with_messages(self, messages: List[UnifiedMessage]) -> "UnifiedRequest":
        return self.model_copy(update={"messages": list(messages)})


class UnifiedResponse(_IRModel):
    role: Role = Role.ASSISTANT
    content: List[UnifiedContent] = Field(default_factory=list)
    stop_reason: StopReason = StopReason.END_TURN
    usage: Optional[UnifiedUsage] = None
    model: Optional[str] = None
    id: Optional[str] = None
    provider: Optional[Provider] = Field(default=None, alias="_provider")
    anthropic: Optional[Dict[str, Any]] = Field(default=None, alias="_anthropic")
    openai: Optional[Dict[str, Any]] = Field(default=None, alias="_openai")
    google: Optional[Dict[str, Any]] = Field(default=None, alias="_google")
    original: Any = Field(default=None, alias="_original")

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextContent))

    @property
    def tool_uses(self) -> List[ToolUseContent]:
        return [b for b in self.content if isinstance(b, ToolUseContent)]

    @property
    def has_tool_calls(self) -> bool:
        return self.stop_reason == StopReason.TOOL_USE and bool(self.tool_uses)
