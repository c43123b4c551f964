# llm_unified/tools/loop.py
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Union

from ..builders import append_tool_results
from ..exceptions import MaxIterationsExceededError
from ..models import StopReason, UnifiedRequest, UnifiedResponse, UnifiedTool
from .executor import ToolExecutor, _run_hook
from .models import ToolHooks, ToolResult
from .scope import ToolScope

if TYPE_CHECKING:
    from ..providers._base import BaseAdapter

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 100


@dataclass(frozen=True)
class LoopRefresh:
    """Replacement system prompt and/or tool catalog for the next round.

    ``None`` fields keep the current value.
    """

    system: Optional[str] = None
    tools: Optional[List[UnifiedTool]] = None


RefreshResult = Union[LoopRefresh, str, None]
RefreshHook = Callable[
    [UnifiedRequest, List[ToolResult]], Union[RefreshResult, Awaitable[RefreshResult]]
]


def _chain(*callbacks: Optional[Callable[..., Any]]) -> Optional[Callable[..., Any]]:
    active = [cb for cb in callbacks if cb is not None]
    if not active:
        return None
    if len(active) == 1:
        return active[0]

    async def chained(*args: Any) -> None:
        for cb in active:
            await _run_hook(cb, getattr(cb, "__name__", "callback"), *args)

    return chained


class ToolCallLoop:
    """
    Drives ``chat → execute tools → chat`` until the model stops asking.

    Each round sends the current request, and when the response asks for
    tools, runs all of them concurrently, appends the assistant turn plus a
    user turn holding the results, and sends again.  Exceeding
    ``max_iterations`` adapter calls raises
    :class:`~llm_unified.exceptions.MaxIterationsExceededError`.
    """

    def __init__(
        self, executor: ToolExecutor, max_iterations: int = DEFAULT_MAX_ITERATIONS
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.executor = executor
        self.max_iterations = max_iterations

    async def run(
        self,
        adapter: "BaseAdapter",
        request: UnifiedRequest,
        tools: Optional[List[UnifiedTool]] = None,
        scope: Optional[ToolScope] = None,
        max_iterations: Optional[int] = None,
        hooks: Optional[ToolHooks] = None,
        on_tool_call: Optional[Callable[..., Any]] = None,
        on_tool_result: Optional[Callable[..., Any]] = None,
        refresh: Optional[RefreshHook] = None,
    ) -> UnifiedResponse:
        """Run the loop and return the first response that needs no tools.

        Args:
            adapter: Any object with an async ``chat(request)``.
            request: The starting request.
            tools: Tool catalog to advertise. Defaults to ``request.tools``,
                then to every tool in the executor's registry.
            scope: Handler scope shared by every round. A fresh scope is
                created when omitted.
            max_iterations: Overrides the loop's configured bound.
            hooks: Called around every single tool invocation.
            on_tool_call: Shorthand for ``hooks.before``.
            on_tool_result: Shorthand for ``hooks.after``.
            refresh: ``refresh(next_request, results)`` may return a
                :class:`LoopRefresh`, a new system prompt, or ``None``.
                Exceptions from it abort the loop.
        """
        limit = max_iterations if max_iterations is not None else self.max_iterations
        scope = scope if scope is not None else ToolScope(name="tool-loop")
        effective_hooks = ToolHooks(
            before=_chain(hooks.before if hooks else None, on_tool_call),
            after=_chain(hooks.after if hooks else None, on_tool_result),
        )

        catalog = tools if tools is not None else request.tools
        if catalog is None and len(self.executor.registry):
            catalog = self.executor.registry.definitions()
        current = request.model_copy(update={"tools": catalog or None})

        for iteration in range(limit):
            logger.debug(
                "Tool loop round %d: %d messages", iteration + 1, len(current.messages)
            )
            response = await adapter.chat(current)

            tool_uses = response.tool_uses
            if response.stop_reason != StopReason.TOOL_USE or not tool_uses:
                return response

            logger.info("Tool calls received: %d", len(tool_uses))
            results = await self.executor.execute_all(
                tool_uses, scope=scope, hooks=effective_hooks
            )
            current = current.with_messages(
                append_tool_results(current.messages, response.content, results)
            )

            if refresh is not None:
                current = await self._apply_refresh(refresh, current, results)

        raise MaxIterationsExceededError(limit)

    @staticmethod
    async def _apply_refresh(
        refresh: RefreshHook, current: UnifiedRequest, results: List[ToolResult]
    ) -> UnifiedRequest:
        outcome = refresh(current, results)
        if inspect.isawaitable(outcome):
            outcome = await outcome

        if outcome is None:
            return current
        if isinstance(outcome, str):
            return current.model_copy(update={"system": outcome})
        if isinstance(outcome, LoopRefresh):
            update: dict = {}
            if outcome.system is not None:
                update["system"] = outcome.system
            if outcome.tools is not None:
                update["tools"] = list(outcome.tools)
            return current.model_copy(update=update) if update else current
        raise TypeError(
            f"refresh hook returned {type(outcome).__name__}; "
            "expected LoopRefresh, str or None"
        )
