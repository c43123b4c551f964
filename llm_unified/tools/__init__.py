# llm_unified/tools/__init__.py
from ._schema_gen import generate_schema_from_function
from .base_tool import BaseTool
from .executor import ToolExecutor, serialize_result
from .loop import DEFAULT_MAX_ITERATIONS, LoopRefresh, ToolCallLoop
from .models import ToolHooks, ToolParameter, ToolRegistration, ToolResult
from .registry import ToolRegistry
from .scope import ToolScope

__all__ = [
    "BaseTool",
    "DEFAULT_MAX_ITERATIONS",
    "LoopRefresh",
    "ToolCallLoop",
    "ToolExecutor",
    "ToolHooks",
    "ToolParameter",
    "ToolRegistration",
    "ToolRegistry",
    "ToolResult",
    "ToolScope",
    "generate_schema_from_function",
    "serialize_result",
]
