# examples/mcp_stdio_server.py
"""Serve a class-based tool over MCP, one JSON-RPC message per line on stdin.

Try it with:

    echo '{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}' | python examples/mcp_stdio_server.py
"""

import asyncio
import logging
import sys
from typing import Any, Dict

from llm_unified.mcp import McpToolServer
from llm_unified.tools import BaseTool, ToolRegistry

module_logger = logging.getLogger(__name__)


class SecretDataTool(BaseTool):
    """Looks up mock secrets by ID."""

    NAME: str = "get_secret_data"
    DESCRIPTION: str = "Retrieves secret data based on a provided data ID."
    PARAMETERS: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "data_id": {
                "type": "string",
                "description": "The unique identifier for the secret data (e.g., 'access_code').",
            }
        },
        "required": ["data_id"],
    }

    MOCK_PASSWORD: str = "classy_secret_789"

    def __init__(self, config_value: str = "default"):
        self._config = config_value
        module_logger.info(f"SecretDataTool instance created with config: '{self._config}'")

    def execute(self, data_id: str) -> Dict[str, Any]:
        if data_id == "access_code":
            return {"secret": self.MOCK_PASSWORD, "retrieved_id": data_id, "config_used": self._config}
        return {"error": "Secret not found for this ID", "retrieved_id": data_id}


async def serve(server: McpToolServer) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        if not line.strip():
            continue
        sys.stdout.write(await server.handle_json(line) + "\n")
        sys.stdout.flush()


def main() -> None:
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    registry = ToolRegistry()
    registry.register_tool_class(SecretDataTool, config={"config_value": "stdio"})
    asyncio.run(serve(McpToolServer(registry)))


if __name__ == "__main__":
    main()
