"""Derive ordered parameter descriptors and JSON Schema from handlers.

Used by :class:`~llm_unified.tools.registry.ToolRegistry` at registration
time.  A handler's signature gives the call order and the required/optional
split; its type hints give both the JSON Schema shown to the model and the
pydantic ``TypeAdapter`` used to validate incoming arguments.
"""

from __future__ import annotations

import enum
import inspect
import logging
import types
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Literal,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter

from .models import ToolParameter

logger = logging.getLogger(__name__)

# Parameters filled from the execution scope instead of model arguments.
INJECTED_PARAMS: FrozenSet[str] = frozenset({"tool_scope"})


def describe_parameters(
    func: Callable[..., Any],
) -> Tuple[List[ToolParameter], bool]:
    """Return ``(parameters, accepts_extra)`` for *func*.

    ``accepts_extra`` is true when the handler takes ``**kwargs``.
    """
    # Resolve string annotations from ``from __future__ import annotations``
    try:
        hints = get_type_hints(func)
    except (NameError, AttributeError, TypeError):
        hints = {}

    params: List[ToolParameter] = []
    accepts_extra = False
    for param_name, param in inspect.signature(func).parameters.items():
        if param_name in ("self", "cls"):
            continue
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_extra = True
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            continue

        keyword_only = param.kind is inspect.Parameter.KEYWORD_ONLY
        if param_name in INJECTED_PARAMS:
            params.append(
                ToolParameter(name=param_name, injected=True, keyword_only=keyword_only)
            )
            continue

        annotation = hints.get(param_name, param.annotation)
        has_default = param.default is not inspect.Parameter.empty
        if annotation is inspect.Parameter.empty:
            annotation = Any
            schema: Dict[str, Any] = {}
        else:
            schema = type_to_schema(annotation)
        if has_default and param.default is not None:
            schema["default"] = param.default

        params.append(
            ToolParameter(
                name=param_name,
                annotation=annotation,
                schema=schema,
                required=not has_default,
                default=param.default if has_default else None,
                keyword_only=keyword_only,
                adapter=_adapter_for(annotation, param_name),
            )
        )
    return params, accepts_extra


def schema_from_parameters(params: List[ToolParameter]) -> Dict[str, Any]:
    """Build the JSON Schema ``object`` shown to the model."""
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for index, param in enumerate(params):
        if param.injected:
            continue
        name = param.lookup_name(index)
        properties[name] = param.schema
        if param.required:
            required.append(name)

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def parameters_from_schema(schema: Optional[Dict[str, Any]]) -> List[ToolParameter]:
    """Descriptors for handlers that only publish a JSON Schema.

    No type information is available, so values pass through unvalidated
    and are handed over as keyword arguments.
    """
    if not schema:
        return []
    required = set(schema.get("required") or [])
    return [
        ToolParameter(
            name=name,
            schema=prop if isinstance(prop, dict) else {},
            required=name in required,
            keyword_only=True,
        )
        for name, prop in (schema.get("properties") or {}).items()
    ]


def generate_schema_from_function(func: Callable[..., Any]) -> Dict[str, Any]:
    """Generate a JSON Schema ``object`` from a function's type hints."""
    params, _ = describe_parameters(func)
    return schema_from_parameters(params)


def _adapter_for(annotation: Any, param_name: str) -> Optional[TypeAdapter[Any]]:
    if annotation is Any:
        return None
    try:
        return TypeAdapter(annotation)
    except PydanticSchemaGenerationError:
        logger.warning(
            "No validator for parameter '%s' (%r); values pass through unchecked.",
            param_name,
            annotation,
        )
        return None


# ---------------------------------------------------------------------------
# Annotation → JSON Schema
# ---------------------------------------------------------------------------


def type_to_schema(annotation: Any) -> Dict[str, Any]:
    """Convert a Python type annotation to a JSON Schema property dict."""
    origin = get_origin(annotation)
    args = get_args(annotation)

    if annotation is type(None):
        return {"type": "null"}
    if annotation is Any:
        return {}

    # bool before int: bool is an int subclass
    scalar = {bool: "boolean", str: "string", int: "integer", float: "number"}
    if annotation in scalar:
        return {"type": scalar[annotation]}

    if origin is Union or (
        hasattr(types, "UnionType") and isinstance(annotation, types.UnionType)
    ):
        return _union_schema(args)

    if origin is Literal:
        return _enum_schema(list(args))

    if origin in (list, tuple, set, frozenset) or annotation in (list, tuple, set):
        if args and args[0] is not Ellipsis:
            return {"type": "array", "items": type_to_schema(args[0])}
        return {"type": "array"}

    if origin is dict or annotation is dict:
        return {"type": "object"}

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return _enum_schema([member.value for member in annotation])

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        schema = annotation.model_json_schema()
        schema.pop("title", None)
        return schema

    # Fallback: treat as string
    return {"type": "string"}


def _union_schema(args: Tuple[Any, ...]) -> Dict[str, Any]:
    non_none = [a for a in args if a is not type(None)]
    if len(non_none) == 1 and len(args) == 2:
        # Optional[X] → nullable
        inner = type_to_schema(non_none[0])
        if isinstance(inner.get("type"), str):
            return {**inner, "type": [inner["type"], "null"]}
        return {"anyOf": [inner, {"type": "null"}]}
    return {"anyOf": [type_to_schema(a) for a in args]}


def _enum_schema(values: List[Any]) -> Dict[str, Any]:
    if all(isinstance(v, str) for v in values):
        return {"type": "string", "enum": values}
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return {"type": "integer", "enum": values}
    return {"enum": values}
