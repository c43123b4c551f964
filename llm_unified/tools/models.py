# llm_unified/tools/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter

from ..models import ToolResultContent, UnifiedTool


class ToolResult(BaseModel):
    """Outcome of one tool invocation, correlated to its ``tool_use`` block."""

    model_config = ConfigDict(frozen=True)

    tool_use_id: str
    tool_name: str
    content: str  # The string fed back to the model
    is_error: bool = False

    def to_content(self) -> ToolResultContent:
        return ToolResultContent(
            tool_use_id=self.tool_use_id,
            tool_name=self.tool_name,
            content=self.content,
            is_error=self.is_error or None,
        )


@dataclass(frozen=True)
class ToolParameter:
    """One declared handler parameter, in call order.

    ``name`` may be ``None`` for positional parameters without a declared
    name; such a parameter is looked up as ``param<index>``.
    """

    name: Optional[str]
    annotation: Any = Any
    schema: Dict[str, Any] = field(default_factory=dict)
    required: bool = True
    default: Any = None
    keyword_only: bool = False
    injected: bool = False  # filled from the execution scope, not the model
    adapter: Optional[TypeAdapter[Any]] = field(default=None, compare=False, repr=False)

    def lookup_name(self, index: int) -> str:
        return self.name or f"param{index}"

    def validate(self, value: Any) -> Any:
        """Validate/coerce *value*; raises ``pydantic.ValidationError``."""
        if self.adapter is None:
            return value
        return self.adapter.validate_python(value)


@dataclass(frozen=True)
class ToolRegistration:
    """Entry in the explicit tool table.

    Exactly one of ``handler`` or ``owner`` is set.  With ``owner`` the
    handler is ``getattr(scope.resolve(owner), method_name)``, so each
    execution scope sees its own instance.
    """

    name: str
    description: str
    parameters: Tuple[ToolParameter, ...]
    schema: Dict[str, Any]
    handler: Optional[Callable[..., Any]] = None
    owner: Optional[type] = None
    method_name: Optional[str] = None
    factory: Optional[Callable[[], Any]] = None  # builds ``owner`` when the scope has no factory
    accepts_extra: bool = False

    def to_unified(self) -> UnifiedTool:
        return UnifiedTool(
            name=self.name, description=self.description, parameters=self.schema
        )


@dataclass(frozen=True)
class ToolHooks:
    """Observability callbacks around every single tool invocation.

    ``before(tool_use)`` and ``after(tool_use, result)`` may be sync or
    async.  Their return values are ignored and their exceptions are logged,
    so they never change what the caller receives.
    """

    before: Optional[Callable[..., Any]] = None
    after: Optional[Callable[..., Any]] = None
