"""Adapter that routes tool calls to an MCP tool server instead of a model."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

from ..exceptions import InvalidRequestError, McpError
from ..models import Provider, UnifiedRequest, UnifiedResponse
from ..providers._base import BaseAdapter
from ..providers._registry import register_adapter
from ..streaming.cancellation import CancellationToken
from ..streaming.events import MessageCompleteEvent, StreamEvent
from ..tools.registry import ToolRegistry
from ..tools.scope import ToolScope
from .server import McpToolServer
from .transformer import tool_call_response_to_unified, unified_request_to_tool_call
from .types import JSONRPCError

logger = logging.getLogger(__name__)


@register_adapter(Provider.MCP)
class McpAdapter(BaseAdapter):
    """Executes the request's pending tool call through :class:`McpToolServer`.

    ``chat`` answers with a single ``tool_result`` block; it never calls a
    model.  The adapter has no credentials and is always available.
    """

    provider = Provider.MCP

    def __init__(
        self,
        server: Optional[McpToolServer] = None,
        *,
        registry: Optional[ToolRegistry] = None,
        scope: Optional[ToolScope] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.server = server or McpToolServer(registry or ToolRegistry())
        self.scope = scope

    def is_available(self) -> bool:
        return True

    async def chat(self, request: UnifiedRequest) -> UnifiedResponse:
        call = unified_request_to_tool_call(request)
        if call is None:
            raise InvalidRequestError("Invalid request: no tool call found")

        logger.debug("MCP tools/call %s (%s)", call.params["name"], call.id)
        reply = await self.server.handle(call, scope=self.scope)
        if isinstance(reply, JSONRPCError):
            raise McpError(reply.error.code, reply.error.message)

        return tool_call_response_to_unified(
            reply, tool_use_id=str(call.id), tool_name=call.params["name"]
        )

    async def stream(
        self,
        request: UnifiedRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamEvent]:
        response = await self.chat(request)
        if cancel_token is not None and cancel_token.cancelled:
            return
        yield MessageCompleteEvent(response=response)
