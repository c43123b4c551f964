"""Conversions between the IR and MCP ``tools/call`` messages."""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from ..models import (
    Provider,
    StopReason,
    ToolResultContent,
    ToolUseContent,
    UnifiedRequest,
    UnifiedResponse,
    UnifiedTool,
)
from .types import (
    JSONRPC_VERSION,
    CallToolRequestParams,
    CallToolResult,
    JSONRPCRequest,
    JSONRPCResponse,
    TextContent,
    Tool,
    dump_model,
    to_wire,
)


def unified_request_to_tool_call(request: UnifiedRequest) -> Optional[JSONRPCRequest]:
    """``tools/call`` for the last tool-use block of the final message.

    Returns ``None`` when the final message carries no tool call.
    """
    last = request.messages[-1]
    if isinstance(last.content, str):
        return None
    tool_uses = [b for b in last.content if isinstance(b, ToolUseContent)]
    if not tool_uses:
        return None
    tool_use = tool_uses[-1]
    params = CallToolRequestParams(name=tool_use.name, arguments=dict(tool_use.input or {}))
    return JSONRPCRequest(
        jsonrpc=JSONRPC_VERSION,
        id=tool_use.id,
        method="tools/call",
        params=dump_model(params),
    )


def first_text(result: CallToolResult) -> Optional[str]:
    return next((c.text for c in result.content if isinstance(c, TextContent)), None)


def tool_call_response_to_unified(
    response: Union[JSONRPCResponse, Dict[str, Any]],
    tool_use_id: str,
    tool_name: Optional[str] = None,
) -> UnifiedResponse:
    """Wrap a successful ``tools/call`` reply as one ``tool_result`` block."""
    if not isinstance(response, JSONRPCResponse):
        response = JSONRPCResponse.model_validate(response)
    result = CallToolResult.model_validate(response.result)

    if result.isError:
        block = ToolResultContent(
            tool_use_id=tool_use_id,
            tool_name=tool_name,
            content=first_text(result) or "Unknown error",
            is_error=True,
        )
    else:
        block = ToolResultContent(
            tool_use_id=tool_use_id, tool_name=tool_name, content=first_text(result) or ""
        )

    return UnifiedResponse(
        id=str(response.id),
        content=[block],
        stop_reason=StopReason.END_TURN,
        provider=Provider.MCP,
        original=to_wire(response),
    )


def unified_tool_to_mcp(tool: UnifiedTool) -> Tool:
    return Tool(name=tool.name, description=tool.description, inputSchema=tool.parameters)


def mcp_tool_to_unified(tool: Union[Tool, Dict[str, Any]]) -> UnifiedTool:
    if not isinstance(tool, Tool):
        tool = Tool.model_validate(tool)
    return UnifiedTool(
        name=tool.name, description=tool.description or "", parameters=tool.inputSchema
    )
