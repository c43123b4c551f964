# llm_unified/mcp/server.py
import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from ..exceptions import ToolArgumentError, ToolNotFoundError
from ..tools.executor import ToolExecutor, serialize_result
from ..tools.registry import ToolRegistry
from ..tools.scope import ToolScope
from .transformer import unified_tool_to_mcp
from .types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    TOOL_NOT_FOUND,
    CallToolRequestParams,
    CallToolResult,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    McpReply,
    RequestId,
    TextContent,
    dump_model,
    error_reply,
    to_wire,
)

module_logger = logging.getLogger(__name__)


def _request_id(payload: Dict[str, Any]) -> RequestId:
    value = payload.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return value


class McpToolServer:
    """
    Answers MCP ``tools/list`` and ``tools/call`` requests from a registry.

    Every failure is reported as a JSON-RPC error object; :meth:`handle`
    itself does not raise for bad input or failing tools.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executor: Optional[ToolExecutor] = None,
    ) -> None:
        self.registry = registry
        self.executor = executor or ToolExecutor(registry)

    async def handle(
        self,
        request: Union[JSONRPCRequest, Dict[str, Any]],
        *,
        scope: Optional[ToolScope] = None,
    ) -> McpReply:
        if not isinstance(request, JSONRPCRequest):
            request_id = _request_id(request)
            if request.get("jsonrpc") != JSONRPC_VERSION:
                return error_reply(
                    request_id, INVALID_REQUEST, 'Invalid Request: jsonrpc must be "2.0"'
                )
            try:
                request = JSONRPCRequest.model_validate(request)
            except ValidationError as e:
                return error_reply(
                    request_id, INVALID_REQUEST, f"Invalid Request: {e.errors()[0]['msg']}"
                )

        module_logger.debug(f"MCP request {request.id}: {request.method}")
        if request.method == "tools/list":
            tools = [unified_tool_to_mcp(t) for t in self.registry.definitions()]
            return JSONRPCResponse(
                jsonrpc=JSONRPC_VERSION,
                id=request.id,
                result=dump_model(ListToolsResult(tools=tools)),
            )
        if request.method == "tools/call":
            return await self._call_tool(request, scope)
        return error_reply(request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}")

    async def _call_tool(
        self, request: JSONRPCRequest, scope: Optional[ToolScope]
    ) -> McpReply:
        try:
            params = CallToolRequestParams.model_validate(request.params or {})
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            return error_reply(
                request.id, INVALID_PARAMS, f"Invalid params: {location}: {error['msg']}"
            )
        name = params.name

        try:
            value = await self.executor.invoke(
                name, params.arguments or {}, scope=scope if scope is not None else ToolScope()
            )
        except ToolNotFoundError:
            return error_reply(request.id, TOOL_NOT_FOUND, f"Tool {name} not found")
        except ToolArgumentError as e:
            return error_reply(request.id, INVALID_PARAMS, str(e))
        except Exception as e:
            module_logger.exception(f"MCP tool '{name}' failed")
            return error_reply(request.id, INTERNAL_ERROR, str(e))

        result = CallToolResult(
            content=[TextContent(type="text", text=serialize_result(value))],
            isError=False,
        )
        return JSONRPCResponse(jsonrpc=JSONRPC_VERSION, id=request.id, result=dump_model(result))

    async def handle_json(self, text: Union[str, bytes]) -> str:
        """Handle one raw JSON-RPC message and return the raw JSON reply."""
        try:
            payload = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            reply: McpReply = error_reply(None, PARSE_ERROR, f"Parse error: {e}")
        else:
            if isinstance(payload, dict):
                reply = await self.handle(payload)
            else:
                reply = error_reply(None, INVALID_REQUEST, "Request must be a JSON object")
        return json.dumps(to_wire(reply), ensure_ascii=False)
