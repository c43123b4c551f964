"""Shared fixtures for e2e provider tests."""

from __future__ import annotations

import os

import pytest

from llm_unified.tools import ToolRegistry

# --- Skip helpers ---

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
GEMINI_API_KEY = os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY")

skip_openai = pytest.mark.skipif(not OPENAI_API_KEY, reason="OPENAI_API_KEY not set")
skip_google = pytest.mark.skipif(not GEMINI_API_KEY, reason="GOOGLE_API_KEY not set")
skip_anthropic = pytest.mark.skipif(
    not ANTHROPIC_API_KEY, reason="ANTHROPIC_API_KEY not set"
)


# --- Tool definitions ---

SECRET = "alpha-bravo-charlie-42"


def get_secret_code(vault_id: str) -> dict:
    """Retrieve a secret code from a vault by its ID."""
    return {"code": SECRET, "vault": vault_id}


def multiply(a: int, b: int) -> int:
    """Multiply two integers and return the product."""
    return a * b


@pytest.fixture()
def tool_registry() -> ToolRegistry:
    """Registry with get_secret_code and multiply."""
    registry = ToolRegistry()
    registry.register(get_secret_code)
    registry.register(multiply)
    return registry
