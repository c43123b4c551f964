# llm_unified/exceptions.py
from typing import Optional


class LLMUnifiedError(Exception):
    """Base exception class for the llm_unified library."""

    pass


class ConfigurationError(LLMUnifiedError):
    """Exception raised for configuration errors (e.g., missing API key)."""

    pass


class UnknownProviderError(ConfigurationError):
    """Raised when no adapter or reconstruction path exists for a provider."""

    pass


class ProviderUnavailableError(ConfigurationError):
    """Raised when an adapter is registered but not configured."""

    pass


class InvalidRequestError(LLMUnifiedError):
    """Raised when a request cannot be dispatched (no model, no messages)."""

    pass


class ProviderError(LLMUnifiedError):
    """Exception raised for errors originating from a provider."""

    pass


class McpError(ProviderError):
    """A tool server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"MCP Error {code}: {message}")
        self.code = code
        self.error_message = message


class UnsupportedFeatureError(LLMUnifiedError):
    """Exception raised when a provider does not support a requested feature."""

    pass


class UnsupportedContentError(UnsupportedFeatureError):
    """A content block has no encoding in the target vendor format."""

    def __init__(self, content_type: str, provider: Optional[str] = None) -> None:
        super().__init__(f"Unsupported content type: {content_type}")
        self.content_type = content_type
        self.provider = provider


class ToolError(LLMUnifiedError):
    """Exception raised for errors during tool execution."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when a tool name is not present in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' not found.")
        self.tool_name = name


class ToolArgumentError(ToolError):
    """Raised when tool arguments are missing or fail validation."""

    pass


class MaxIterationsExceededError(LLMUnifiedError):
    """The tool call loop hit its iteration bound without a final answer."""

    def __init__(self, max_iterations: int) -> None:
        super().__init__(f"Tool loop exceeded max iterations ({max_iterations})")
        self.max_iterations = max_iterations


class StreamCancelledError(LLMUnifiedError):
    """A stream was cancelled before it produced a complete response."""

    pass
