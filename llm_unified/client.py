# llm_unified/client.py
import logging
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
    Union,
)

from .exceptions import ProviderUnavailableError, UnknownProviderError
from .mcp.adapter import McpAdapter
from .models import Provider, UnifiedRequest, UnifiedResponse, UnifiedTool
from .providers import BaseAdapter, create_adapter, registered_providers
from .providers._registry import bare_model_name, resolve_provider_key
from .streaming.cancellation import CancellationToken
from .streaming.events import StreamEvent
from .tools.executor import ToolExecutor
from .tools.loop import DEFAULT_MAX_ITERATIONS, RefreshHook, ToolCallLoop
from .tools.models import ToolHooks, ToolRegistration
from .tools.registry import ToolRegistry
from .tools.scope import ToolScope

module_logger = logging.getLogger(__name__)

ProviderLike = Union[Provider, str]


class LLMClient:
    """
    High-level entry point: one request shape, any registered provider.

    Holds one adapter per provider tag and a :class:`ToolRegistry`.  Each call
    picks an adapter (explicit argument, then the request's provider hint,
    then the model name prefix, then ``default_provider``) and fails before
    building any vendor payload when that adapter is missing or not
    configured.
    """

    def __init__(
        self,
        adapters: Optional[Iterable[BaseAdapter]] = None,
        tools: Optional[ToolRegistry] = None,
        default_provider: ProviderLike = Provider.ANTHROPIC,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self.tools = tools if tools is not None else ToolRegistry()
        self.default_provider = Provider(default_provider)
        self.max_iterations = max_iterations
        self.adapters: Dict[Provider, BaseAdapter] = {}
        for adapter in adapters or ():
            self.register_adapter(adapter)

    @classmethod
    def from_env(
        cls,
        tools: Optional[ToolRegistry] = None,
        default_provider: ProviderLike = Provider.ANTHROPIC,
        **adapter_kwargs: Any,
    ) -> "LLMClient":
        """Build a client with every registered adapter configured from the environment.

        Adapters whose API key is missing are still registered but report
        unavailable, so selecting them raises
        :class:`~llm_unified.exceptions.ProviderUnavailableError`.  The MCP
        adapter is wired to the client's own tool registry.
        """
        client = cls(tools=tools, default_provider=default_provider)
        for provider in registered_providers():
            if provider == Provider.MCP:
                client.register_adapter(McpAdapter(registry=client.tools))
            else:
                client.register_adapter(create_adapter(provider, **adapter_kwargs))
        module_logger.info(
            f"LLMClient configured; available providers: "
            f"{[p.value for p in client.available_providers()]}"
        )
        return client

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------

    def register_adapter(self, adapter: BaseAdapter) -> None:
        if adapter.provider in self.adapters:
            module_logger.warning(
                f"Adapter for '{adapter.provider.value}' already registered. Overwriting."
            )
        self.adapters[adapter.provider] = adapter
        module_logger.info(f"Registered adapter {type(adapter).__name__}")

    def available_providers(self) -> List[Provider]:
        return [p for p, a in self.adapters.items() if a.is_available()]

    def get_adapter(self, provider: ProviderLike) -> BaseAdapter:
        try:
            key = Provider(provider)
        except ValueError:
            raise UnknownProviderError(f"Unknown provider: '{provider}'") from None
        adapter = self.adapters.get(key)
        if adapter is None:
            raise UnknownProviderError(
                f"No adapter registered for provider '{key.value}'. "
                f"Registered: {[p.value for p in self.adapters]}"
            )
        if not adapter.is_available():
            raise ProviderUnavailableError(
                f"Provider '{key.value}' is not configured (missing API key?)."
            )
        return adapter

    def select_provider(
        self, request: UnifiedRequest, provider: Optional[ProviderLike] = None
    ) -> Provider:
        if provider is not None:
            return Provider(provider)
        if request.provider is not None:
            return request.provider
        inferred = resolve_provider_key(request.model)
        if inferred is not None:
            return inferred
        return self.default_provider

    def _prepare(
        self, request: UnifiedRequest, provider: Optional[ProviderLike]
    ) -> Tuple[BaseAdapter, UnifiedRequest]:
        key = self.select_provider(request, provider)
        adapter = self.get_adapter(key)
        if request.model and "/" in request.model:
            request = request.model_copy(update={"model": bare_model_name(request.model)})
        module_logger.debug(f"Dispatching to {key.value} (model={request.model})")
        return adapter, request

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def register_tool(
        self,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> ToolRegistration:
        """Registers a Python function as a tool with the client's registry."""
        return self.tools.register(
            function, name=name, description=description, parameters=parameters
        )

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def chat(
        self, request: UnifiedRequest, provider: Optional[ProviderLike] = None
    ) -> UnifiedResponse:
        adapter, request = self._prepare(request, provider)
        return await adapter.chat(request)

    async def chat_with_tools(
        self,
        request: UnifiedRequest,
        provider: Optional[ProviderLike] = None,
        *,
        tools: Optional[List[UnifiedTool]] = None,
        scope: Optional[ToolScope] = None,
        max_iterations: Optional[int] = None,
        hooks: Optional[ToolHooks] = None,
        on_tool_call: Optional[Callable[..., Any]] = None,
        on_tool_result: Optional[Callable[..., Any]] = None,
        refresh: Optional[RefreshHook] = None,
    ) -> UnifiedResponse:
        """Run the tool call loop against the selected adapter."""
        adapter, request = self._prepare(request, provider)
        loop = ToolCallLoop(ToolExecutor(self.tools), max_iterations=self.max_iterations)
        return await loop.run(
            adapter,
            request,
            tools=tools,
            scope=scope,
            max_iterations=max_iterations,
            hooks=hooks,
            on_tool_call=on_tool_call,
            on_tool_result=on_tool_result,
            refresh=refresh,
        )

    def stream(
        self,
        request: UnifiedRequest,
        provider: Optional[ProviderLike] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Vendor stream events; adapter selection errors raise immediately."""
        adapter, request = self._prepare(request, provider)
        return adapter.stream(request, cancel_token)

    async def stream_chat(
        self,
        request: UnifiedRequest,
        provider: Optional[ProviderLike] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UnifiedResponse:
        """Stream and aggregate into one response."""
        adapter, request = self._prepare(request, provider)
        return await adapter.chat_stream(request, cancel_token)
