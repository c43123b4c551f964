"""E2E tests against the real provider APIs."""

from __future__ import annotations

import pytest

from llm_unified import LLMClient, UnifiedRequestBuilder
from llm_unified.models import StopReason
from llm_unified.tools import ToolRegistry

from .conftest import SECRET, skip_anthropic, skip_google, skip_openai

pytestmark = pytest.mark.integration

PROVIDERS = [
    pytest.param("anthropic", "anthropic_test_model", marks=skip_anthropic, id="anthropic"),
    pytest.param("openai", "openai_test_model", marks=skip_openai, id="openai"),
    pytest.param("google", "google_test_model", marks=skip_google, id="google"),
]


@pytest.mark.parametrize("provider, model_fixture", PROVIDERS)
async def test_simple_generation(
    provider: str, model_fixture: str, request: pytest.FixtureRequest
) -> None:
    client = LLMClient.from_env()
    model = request.getfixturevalue(model_fixture)
    response = await client.chat(
        UnifiedRequestBuilder()
        .model(model)
        .user("What is 2+2? Reply with just the number.")
        .temperature(0.0)
        .build(),
        provider,
    )
    assert "4" in response.text
    assert response.stop_reason is StopReason.END_TURN


@pytest.mark.parametrize("provider, model_fixture", PROVIDERS)
async def test_tool_loop(
    provider: str,
    model_fixture: str,
    request: pytest.FixtureRequest,
    tool_registry: ToolRegistry,
) -> None:
    client = LLMClient.from_env(tools=tool_registry)
    model = request.getfixturevalue(model_fixture)
    response = await client.chat_with_tools(
        UnifiedRequestBuilder()
        .model(model)
        .user("Get the secret code from vault 'main-vault' and repeat it.")
        .temperature(0.0)
        .build(),
        provider,
        max_iterations=5,
    )
    assert SECRET.lower() in response.text.lower()


@pytest.mark.parametrize("provider, model_fixture", PROVIDERS)
async def test_streaming_matches_text(
    provider: str, model_fixture: str, request: pytest.FixtureRequest
) -> None:
    client = LLMClient.from_env()
    model = request.getfixturevalue(model_fixture)
    response = await client.stream_chat(
        UnifiedRequestBuilder()
        .model(model)
        .user("Count from 1 to 5 separated by spaces.")
        .temperature(0.0)
        .build(),
        provider,
    )
    assert "1 2 3 4 5" in response.text
