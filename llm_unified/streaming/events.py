"""Typed vendor stream events.

Adapters convert each SDK chunk to a plain ``dict`` (``model_dump``) and
validate it into one of the models below with :func:`parse_stream_event`.
The aggregator dispatches on these types with a ``match`` statement.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..exceptions import UnknownProviderError
from ..models import Provider, UnifiedResponse

logger = logging.getLogger(__name__)

# OpenAI terminates SSE streams with this sentinel.
DONE_SENTINEL = "[DONE]"


class _StreamEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")


# ---------------------------------------------------------------------------
# Anthropic (named events)
# ---------------------------------------------------------------------------


class AnthropicMessageStart(_StreamEvent):
    type: Literal["message_start"] = "message_start"
    message: Dict[str, Any]


class AnthropicContentBlockStart(_StreamEvent):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: Dict[str, Any]


class AnthropicContentBlockDelta(_StreamEvent):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: Dict[str, Any]


class AnthropicContentBlockStop(_StreamEvent):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class AnthropicMessageDelta(_StreamEvent):
    type: Literal["message_delta"] = "message_delta"
    delta: Dict[str, Any] = Field(default_factory=dict)
    usage: Optional[Dict[str, Any]] = None


class AnthropicMessageStop(_StreamEvent):
    type: Literal["message_stop"] = "message_stop"


class AnthropicPing(_StreamEvent):
    type: Literal["ping"] = "ping"


class AnthropicStreamError(_StreamEvent):
    type: Literal["error"] = "error"
    error: Dict[str, Any] = Field(default_factory=dict)


AnthropicStreamEvent = Annotated[
    Union[
        AnthropicMessageStart,
        AnthropicContentBlockStart,
        AnthropicContentBlockDelta,
        AnthropicContentBlockStop,
        AnthropicMessageDelta,
        AnthropicMessageStop,
        AnthropicPing,
        AnthropicStreamError,
    ],
    Field(discriminator="type"),
]

_anthropic_adapter: TypeAdapter[Any] = TypeAdapter(AnthropicStreamEvent)


# ---------------------------------------------------------------------------
# OpenAI (choice delta chunks)
# ---------------------------------------------------------------------------


class OpenAIChunk(_StreamEvent):
    id: Optional[str] = None
    model: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    system_fingerprint: Optional[str] = None
    choices: List[Dict[str, Any]] = Field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Google (candidate/parts chunks)
# ---------------------------------------------------------------------------


class GoogleChunk(_StreamEvent):
    candidates: List[Dict[str, Any]] = Field(default_factory=list)
    usageMetadata: Optional[Dict[str, Any]] = None
    modelVersion: Optional[str] = None
    responseId: Optional[str] = None


# ---------------------------------------------------------------------------
# Provider-neutral
# ---------------------------------------------------------------------------


class MessageCompleteEvent(_StreamEvent):
    """Carries a response that was produced in one piece."""

    type: Literal["message_complete"] = "message_complete"
    response: UnifiedResponse


StreamEvent = Union[
    AnthropicMessageStart,
    AnthropicContentBlockStart,
    AnthropicContentBlockDelta,
    AnthropicContentBlockStop,
    AnthropicMessageDelta,
    AnthropicMessageStop,
    AnthropicPing,
    AnthropicStreamError,
    OpenAIChunk,
    GoogleChunk,
    MessageCompleteEvent,
]


def parse_stream_event(
    provider: Union[Provider, str], payload: Dict[str, Any]
) -> Optional[StreamEvent]:
    """Validate a raw vendor chunk into a typed event.

    Returns ``None`` for Anthropic event types this module does not know,
    so newer server events do not break older clients.
    """
    provider = Provider(provider)
    if provider == Provider.ANTHROPIC:
        try:
            return _anthropic_adapter.validate_python(payload)
        except ValidationError:
            logger.debug("Ignoring unrecognised Anthropic stream event: %s", payload.get("type"))
            return None
    if provider == Provider.OPENAI:
        return OpenAIChunk.model_validate(payload)
    if provider == Provider.GOOGLE:
        return GoogleChunk.model_validate(payload)
    raise UnknownProviderError(f"No stream event format for provider: {provider.value}")
