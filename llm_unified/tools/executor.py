# llm_unified/tools/executor.py
"""Resolve, bind and invoke registered tools."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from ..exceptions import ToolArgumentError, ToolError
from ..models import ToolUseContent
from .models import ToolHooks, ToolRegistration, ToolResult
from .registry import ToolRegistry
from .scope import ToolScope

module_logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return str(value)


def serialize_result(value: Any) -> str:
    """Render a handler's return value as the string fed back to the model.

    Strings pass through untouched.  Everything else becomes JSON with
    sorted keys so equal values always produce equal text.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=_json_default)


def _error_content(message: str, status: str) -> str:
    return json.dumps({"error": message, "status": status})


class ToolExecutor:
    """
    Executes tool-use blocks against a :class:`ToolRegistry`.

    :meth:`invoke` is the strict entry point and raises typed
    :class:`~llm_unified.exceptions.ToolError` subclasses.  :meth:`execute`
    and :meth:`execute_all` wrap it so every failure becomes a
    :class:`ToolResult` with ``is_error=True``.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    # ------------------------------------------------------------------
    # Strict invocation
    # ------------------------------------------------------------------

    async def invoke(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]],
        *,
        scope: Optional[ToolScope] = None,
    ) -> Any:
        """Run tool *name* with *arguments* and return the raw handler result."""
        registration = self.registry.get(name)
        scope = scope if scope is not None else ToolScope()
        args, kwargs = self._bind(registration, dict(arguments or {}), scope)
        handler = self._resolve_handler(registration, scope)

        module_logger.debug(
            f"Executing tool '{name}' with args: {args} kwargs: {sorted(kwargs)}"
        )
        result = handler(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _resolve_handler(
        self, registration: ToolRegistration, scope: ToolScope
    ) -> Callable[..., Any]:
        if registration.handler is not None:
            return registration.handler
        if registration.owner is None or registration.method_name is None:
            raise ToolError(f"Tool '{registration.name}' has no handler.")
        instance = scope.resolve(registration.owner, registration.factory)
        return getattr(instance, registration.method_name)

    def _bind(
        self,
        registration: ToolRegistration,
        arguments: Dict[str, Any],
        scope: ToolScope,
    ) -> Tuple[List[Any], Dict[str, Any]]:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        consumed = set()

        for index, param in enumerate(registration.parameters):
            key = param.lookup_name(index)
            if param.injected:
                value: Any = scope
            elif key in arguments:
                consumed.add(key)
                try:
                    value = param.validate(arguments[key])
                except ValidationError as e:
                    raise ToolArgumentError(
                        f"Invalid value for parameter '{key}' of tool "
                        f"'{registration.name}': {e}"
                    ) from e
            elif param.required:
                raise ToolArgumentError(
                    f"Missing required parameter '{key}' for tool '{registration.name}'."
                )
            elif param.keyword_only:
                # Let the handler apply its own default
                continue
            else:
                value = param.default

            if param.keyword_only:
                kwargs[key] = value
            else:
                args.append(value)

        extras = {k: v for k, v in arguments.items() if k not in consumed}
        if extras:
            if registration.accepts_extra:
                kwargs.update(extras)
            else:
                module_logger.debug(
                    f"Ignoring undeclared arguments for tool '{registration.name}': "
                    f"{sorted(extras)}"
                )
        return args, kwargs

    # ------------------------------------------------------------------
    # Isolated execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        tool_use: ToolUseContent,
        *,
        scope: Optional[ToolScope] = None,
        hooks: Optional[ToolHooks] = None,
    ) -> ToolResult:
        """Execute one tool-use block; failures come back as error results."""
        if hooks is not None:
            await _run_hook(hooks.before, "before", tool_use)
        result = await self._execute_isolated(tool_use, scope)
        if hooks is not None:
            await _run_hook(hooks.after, "after", tool_use, result)
        return result

    async def execute_all(
        self,
        tool_uses: Sequence[ToolUseContent],
        *,
        scope: Optional[ToolScope] = None,
        hooks: Optional[ToolHooks] = None,
    ) -> List[ToolResult]:
        """Execute every block concurrently; results keep the input order."""
        if not tool_uses:
            return []
        scope = scope if scope is not None else ToolScope()
        return list(
            await asyncio.gather(
                *(self.execute(tu, scope=scope, hooks=hooks) for tu in tool_uses)
            )
        )

    async def _execute_isolated(
        self, tool_use: ToolUseContent, scope: Optional[ToolScope]
    ) -> ToolResult:
        name = tool_use.name

        def failure(message: str, status: str) -> ToolResult:
            return ToolResult(
                tool_use_id=tool_use.id,
                tool_name=name,
                content=_error_content(message, status),
                is_error=True,
            )

        if tool_use.input is None:
            error_msg = f"Arguments for tool '{name}' could not be parsed."
            module_logger.warning(error_msg)
            return failure(error_msg, "argument_decode_error")

        try:
            value = await self.invoke(name, tool_use.input, scope=scope)
            content = serialize_result(value)
        except ToolArgumentError as e:
            module_logger.error(f"Argument error for tool '{name}': {e}")
            return failure(str(e), "argument_error")
        except ToolError as e:
            module_logger.error(str(e))
            status = "tool_not_found" if name not in self.registry else "tool_error"
            return failure(str(e), status)
        except Exception as e:
            error_msg = f"Execution failed unexpectedly within tool '{name}': {e}"
            module_logger.exception(f"Error during tool execution for {name}")
            return failure(error_msg, "execution_error")

        module_logger.debug(f"Tool '{name}' executed. LLM Content: {content}")
        return ToolResult(tool_use_id=tool_use.id, tool_name=name, content=content)


async def _run_hook(hook: Optional[Callable[..., Any]], label: str, *args: Any) -> None:
    if hook is None:
        return
    try:
        outcome = hook(*args)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        module_logger.warning(f"Tool hook '{label}' raised; ignoring.", exc_info=True)
