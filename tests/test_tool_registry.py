"""Unit tests for ToolRegistry."""

from __future__ import annotations

from typing import Any

import pytest

from llm_unified.exceptions import ToolError, ToolNotFoundError
from llm_unified.models import ToolUseContent
from llm_unified.tools import BaseTool, ToolExecutor, ToolRegistry, ToolScope


def add(a: int, b: int) -> int:
    """Add two numbers."""
    return a + b


def echo(text: str) -> str:
    """Echo text back."""
    return text


class HelloTool(BaseTool):
    NAME = "say_hello"
    DESCRIPTION = "Returns a friendly greeting."
    PARAMETERS = {
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
    }

    def __init__(self, greeting: str = "Hello") -> None:
        self.greeting = greeting

    def execute(self, **kwargs: Any) -> str:
        return f"{self.greeting} {kwargs['name']}"


class TypedTool(BaseTool):
    NAME = "typed"
    DESCRIPTION = "Uses its signature for the schema."

    def execute(self, count: int) -> int:  # type: ignore[override]
        return count * 2


class TestRegistration:
    def test_register_and_lookup(self) -> None:
        registry = ToolRegistry()
        registry.register(add)

        assert "add" in registry
        assert len(registry) == 1
        assert registry.names == ["add"]
        assert registry.get("add").handler is add

    def test_name_and_description_override(self) -> None:
        registry = ToolRegistry()
        registration = registry.register(add, name="plus", description="Sum.")

        assert registration.name == "plus"
        assert registration.description == "Sum."

    def test_decorator_returns_function(self) -> None:
        registry = ToolRegistry()

        @registry.tool()
        def ping() -> str:
            """Ping."""
            return "pong"

        assert ping() == "pong"
        assert "ping" in registry

    def test_overwrite_keeps_latest(self) -> None:
        registry = ToolRegistry()
        registry.register(add, name="op")
        registry.register(echo, name="op")

        assert registry.get("op").handler is echo
        assert len(registry) == 1

    def test_unregister(self) -> None:
        registry = ToolRegistry()
        registry.register(add)
        registry.unregister("add")
        registry.unregister("add")

        assert "add" not in registry

    def test_get_missing_raises(self) -> None:
        with pytest.raises(ToolNotFoundError, match="Tool 'nope' not found."):
            ToolRegistry().get("nope")

    def test_register_method_requires_callable(self) -> None:
        class Service:
            value = 3

        with pytest.raises(ToolError):
            ToolRegistry().register_method(Service, "value")


class TestDefinitions:
    def test_all_definitions(self) -> None:
        registry = ToolRegistry()
        registry.register(add)
        registry.register(echo)

        defs = registry.definitions()
        assert [d.name for d in defs] == ["add", "echo"]
        assert defs[0].parameters["required"] == ["a", "b"]

    def test_filtered_definitions(self) -> None:
        registry = ToolRegistry()
        registry.register(add)
        registry.register(echo)

        assert [d.name for d in registry.definitions(["echo", "ghost"])] == ["echo"]
        assert registry.definitions([]) == []


class TestToolClasses:
    def test_rejects_non_base_tool(self) -> None:
        class NotATool:
            NAME = "x"
            DESCRIPTION = "y"

        with pytest.raises(ToolError):
            ToolRegistry().register_tool_class(NotATool)

    def test_requires_name_and_description(self) -> None:
        class Nameless(BaseTool):
            DESCRIPTION = "no name"

            def execute(self, **kwargs: Any) -> str:
                return ""

        with pytest.raises(ToolError):
            ToolRegistry().register_tool_class(Nameless)

    async def test_dispatch_with_config(self) -> None:
        registry = ToolRegistry()
        registry.register_tool_class(HelloTool, config={"greeting": "Hi"})

        assert registry.definitions()[0].name == "say_hello"
        result = await ToolExecutor(registry).execute(
            ToolUseContent(id="1", name="say_hello", input={"name": "Bob"})
        )
        assert result.is_error is False
        assert result.content == "Hi Bob"

    async def test_schema_required_enforced(self) -> None:
        registry = ToolRegistry()
        registry.register_tool_class(HelloTool)

        result = await ToolExecutor(registry).execute(
            ToolUseContent(id="1", name="say_hello", input={})
        )
        assert result.is_error is True

    async def test_signature_schema(self) -> None:
        registry = ToolRegistry()
        registration = registry.register_tool_class(TypedTool)

        assert registration.schema["properties"]["count"] == {"type": "integer"}
        assert await ToolExecutor(registry).invoke("typed", {"count": "4"}) == 8

    async def test_scope_factory_takes_precedence(self) -> None:
        registry = ToolRegistry()
        registry.register_tool_class(HelloTool, config={"greeting": "Hi"})
        scope = ToolScope({HelloTool: lambda: HelloTool("Howdy")})

        value = await ToolExecutor(registry).invoke("say_hello", {"name": "Ann"}, scope=scope)
        assert value == "Howdy Ann"
