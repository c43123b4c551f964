# llm_unified/tools/registry.py
import inspect
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..exceptions import ToolError, ToolNotFoundError
from ..models import UnifiedTool
from ._schema_gen import (
    describe_parameters,
    parameters_from_schema,
    schema_from_parameters,
)
from .models import ToolRegistration

module_logger = logging.getLogger(__name__)


def _first_doc_line(obj: Any) -> str:
    doc = inspect.getdoc(obj) or ""
    return doc.strip().splitlines()[0] if doc.strip() else ""


class ToolRegistry:
    """
    Explicit table of the tools a model may call.

    Every entry maps a tool name to its handler and its ordered parameter
    descriptors.  Entries are added by explicit calls at startup; nothing
    is discovered from module side effects.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolRegistration] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> ToolRegistration:
        """
        Registers a plain (sync or async) function as a tool.

        Args:
            function: The callable to execute.
            name: Tool name shown to the model. Defaults to ``function.__name__``.
            description: Defaults to the first docstring line.
            parameters: JSON Schema for the arguments. Generated from the
                type hints when omitted.
        """
        params, accepts_extra = describe_parameters(function)
        registration = ToolRegistration(
            name=name or function.__name__,
            description=description or _first_doc_line(function),
            parameters=tuple(params),
            schema=parameters or schema_from_parameters(params),
            handler=function,
            accepts_extra=accepts_extra,
        )
        return self._add(registration)

    def tool(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`register`; returns the function unchanged."""

        def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
            self.register(function, name=name, description=description, parameters=parameters)
            return function

        return decorator

    def register_method(
        self,
        owner: type,
        method_name: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> ToolRegistration:
        """Registers ``owner.method_name`` with the instance resolved per scope."""
        method = getattr(owner, method_name, None)
        if method is None or not callable(method):
            raise ToolError(f"{owner.__name__} has no callable '{method_name}'.")
        params, accepts_extra = describe_parameters(method)
        registration = ToolRegistration(
            name=name or method_name,
            description=description or _first_doc_line(method),
            parameters=tuple(params),
            schema=parameters or schema_from_parameters(params),
            owner=owner,
            method_name=method_name,
            accepts_extra=accepts_extra,
        )
        return self._add(registration)

    def register_tool_class(
        self,
        tool_class: type,
        config: Optional[Dict[str, Any]] = None,
        name_override: Optional[str] = None,
        description_override: Optional[str] = None,
        parameters_override: Optional[Dict[str, Any]] = None,
    ) -> ToolRegistration:
        """Registers a tool class that inherits from BaseTool."""
        from .base_tool import BaseTool

        if not issubclass(tool_class, BaseTool):
            raise ToolError(f"{tool_class.__name__} must inherit from BaseTool.")

        name = name_override or getattr(tool_class, "NAME", None)
        description = description_override or getattr(tool_class, "DESCRIPTION", None)
        schema = parameters_override or getattr(tool_class, "PARAMETERS", None)

        if not name or not description:
            raise ToolError(
                f"Tool class {tool_class.__name__} missing required NAME or DESCRIPTION."
            )

        if schema:
            params = parameters_from_schema(schema)
            accepts_extra = True
        else:
            described, accepts_extra = describe_parameters(tool_class.execute)
            params = described
            schema = schema_from_parameters(described)

        registration = ToolRegistration(
            name=name,
            description=description,
            parameters=tuple(params),
            schema=schema,
            owner=tool_class,
            method_name="execute",
            factory=lambda: tool_class.from_config(**(config or {})),
            accepts_extra=accepts_extra,
        )
        self._add(registration)
        module_logger.info(f"Registered tool class: {tool_class.__name__} as '{name}'")
        return registration

    def _add(self, registration: ToolRegistration) -> ToolRegistration:
        if registration.name in self._tools:
            module_logger.warning(
                f"Tool '{registration.name}' is already registered. Overwriting."
            )
        schema = registration.schema
        if not isinstance(schema, dict) or schema.get("type") != "object":
            module_logger.warning(
                "Tool '%s' parameters does not seem to be a valid JSON "
                "Schema object. Ensure it follows the provider's expected format.",
                registration.name,
            )
        self._tools[registration.name] = registration
        module_logger.info(f"Registered tool: {registration.name}")
        return registration

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> ToolRegistration:
        registration = self._tools.get(name)
        if registration is None:
            raise ToolNotFoundError(name)
        return registration

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolRegistration]:
        return iter(list(self._tools.values()))

    @property
    def names(self) -> List[str]:
        """Returns a list of all registered tool names."""
        return list(self._tools)

    def definitions(self, filter_tool_names: Optional[List[str]] = None) -> List[UnifiedTool]:
        """
        Returns the registered tools as :class:`UnifiedTool` declarations.

        Args:
            filter_tool_names: Names to include. ``None`` returns every tool;
                an empty list returns an empty list.
        """
        if filter_tool_names is None:
            return [r.to_unified() for r in self._tools.values()]

        allowed = set(filter_tool_names)
        missing = allowed - set(self._tools)
        if missing:
            module_logger.warning(
                f"Requested tools not found in registry: {sorted(missing)}. They will be excluded."
            )
        return [r.to_unified() for r in self._tools.values() if r.name in allowed]
