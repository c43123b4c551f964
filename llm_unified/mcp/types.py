"""JSON-RPC envelopes and MCP tool types, taken from the ``mcp`` SDK.

Only what the SDK does not define lives here: the tool-not-found error
code, an error envelope that allows ``id: null``, and the wire helpers.
"""

from __future__ import annotations

from typing import Any, Dict, Union

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallToolRequestParams,
    CallToolResult,
    ErrorData,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    TextContent,
    Tool,
)

JSONRPC_VERSION = "2.0"

# Server-defined code for tools/call on a name the registry does not hold.
TOOL_NOT_FOUND = -32001

RequestId = Union[str, int, None]


class JsonRpcErrorReply(JSONRPCError):
    """:class:`JSONRPCError` whose ``id`` may be null.

    JSON-RPC 2.0 answers a message whose id could not be read with
    ``"id": null``; the SDK model requires a string or integer.
    """

    id: RequestId = None


McpReply = Union[JSONRPCResponse, JsonRpcErrorReply]


def error_reply(
    request_id: RequestId, code: int, message: str, data: Any = None
) -> JsonRpcErrorReply:
    return JsonRpcErrorReply(
        jsonrpc=JSONRPC_VERSION,
        id=request_id,
        error=ErrorData(code=code, message=message, data=data),
    )


def dump_model(model: Any) -> Dict[str, Any]:
    """JSON form of an SDK model with unset optional fields dropped."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_wire(message: Union[JSONRPCRequest, JSONRPCResponse, JSONRPCError]) -> Dict[str, Any]:
    """Plain JSON-RPC dict for *message*; ``id`` is always present."""
    wire = dump_model(message)
    wire.setdefault("id", None)
    return wire


__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "TOOL_NOT_FOUND",
    "CallToolRequestParams",
    "CallToolResult",
    "ErrorData",
    "JSONRPCError",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JsonRpcErrorReply",
    "ListToolsResult",
    "McpReply",
    "RequestId",
    "TextContent",
    "Tool",
    "dump_model",
    "error_reply",
    "to_wire",
]
