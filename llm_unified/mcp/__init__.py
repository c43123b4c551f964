from .adapter import McpAdapter
from .server import McpToolServer
from .transformer import (
    first_text,
    mcp_tool_to_unified,
    tool_call_response_to_unified,
    unified_request_to_tool_call,
    unified_tool_to_mcp,
)
from .types import (
    TOOL_NOT_FOUND,
    JsonRpcErrorReply,
    McpReply,
    error_reply,
    to_wire,
)

__all__ = [
    "McpAdapter",
    "McpToolServer",
    "JsonRpcErrorReply",
    "McpReply",
    "TOOL_NOT_FOUND",
    "error_reply",
    "first_text",
    "mcp_tool_to_unified",
    "to_wire",
    "tool_call_response_to_unified",
    "unified_request_to_tool_call",
    "unified_tool_to_mcp",
]
