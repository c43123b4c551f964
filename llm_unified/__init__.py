# llm_unified/__init__.py
import logging
import os

from dotenv import load_dotenv

# Library logging stays silent unless the application configures handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Make API keys from a .env in the working directory visible to the adapters
try:
    dotenv_path = os.path.join(os.getcwd(), ".env")
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path=dotenv_path)
except Exception as e:
    logging.getLogger(__name__).warning(f"Could not load .env file: {e}")


from .builders import UnifiedRequestBuilder, append_tool_results  # noqa: E402
from .client import LLMClient  # noqa: E402
from .exceptions import (  # noqa: E402
    ConfigurationError,
    InvalidRequestError,
    LLMUnifiedError,
    MaxIterationsExceededError,
    McpError,
    ProviderError,
    ProviderUnavailableError,
    StreamCancelledError,
    ToolArgumentError,
    ToolError,
    ToolNotFoundError,
    UnknownProviderError,
    UnsupportedContentError,
    UnsupportedFeatureError,
)
from .mcp import McpAdapter, McpToolServer  # noqa: E402
from .models import (  # noqa: E402
    ImageContent,
    ImageSource,
    Provider,
    Role,
    StopReason,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    UnifiedMessage,
    UnifiedRequest,
    UnifiedResponse,
    UnifiedTool,
    UnifiedUsage,
)
from .providers import (  # noqa: E402
    AnthropicAdapter,
    BaseAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    create_adapter,
)
from .streaming import CancellationToken, StreamAggregator  # noqa: E402
from .tools import (  # noqa: E402
    BaseTool,
    LoopRefresh,
    ToolCallLoop,
    ToolExecutor,
    ToolHooks,
    ToolRegistry,
    ToolResult,
    ToolScope,
)
from .transformers import (  # noqa: E402
    from_vendor_response,
    to_original,
    to_vendor_request,
)

__all__ = [
    "LLMClient",
    "UnifiedRequestBuilder",
    "append_tool_results",
    # IR
    "Role",
    "StopReason",
    "Provider",
    "TextContent",
    "ThinkingContent",
    "ToolUseContent",
    "ToolResultContent",
    "ImageSource",
    "ImageContent",
    "UnifiedMessage",
    "UnifiedTool",
    "UnifiedUsage",
    "UnifiedRequest",
    "UnifiedResponse",
    # Adapters
    "BaseAdapter",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "GeminiAdapter",
    "McpAdapter",
    "McpToolServer",
    "create_adapter",
    # Transformers and streaming
    "to_vendor_request",
    "from_vendor_response",
    "to_original",
    "StreamAggregator",
    "CancellationToken",
    # Tools
    "BaseTool",
    "ToolRegistry",
    "ToolExecutor",
    "ToolCallLoop",
    "ToolScope",
    "ToolHooks",
    "ToolResult",
    "LoopRefresh",
    # Errors
    "LLMUnifiedError",
    "ConfigurationError",
    "UnknownProviderError",
    "ProviderUnavailableError",
    "InvalidRequestError",
    "ProviderError",
    "McpError",
    "UnsupportedFeatureError",
    "UnsupportedContentError",
    "ToolError",
    "ToolNotFoundError",
    "ToolArgumentError",
    "MaxIterationsExceededError",
    "StreamCancelledError",
]

try:
    from importlib.metadata import version

    __version__ = version("llm-unified-core")
except Exception:
    __version__ = "0.0.0-unknown"
