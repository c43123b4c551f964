"""Pytest configuration for llm_unified tests."""

from __future__ import annotations

import os
from typing import Any, Iterable, List, Optional

import pytest
from dotenv import load_dotenv

from llm_unified.models import (
    Provider,
    StopReason,
    TextContent,
    ToolUseContent,
    UnifiedMessage,
    UnifiedRequest,
    UnifiedResponse,
)
from llm_unified.providers._base import BaseAdapter
from llm_unified.streaming.events import MessageCompleteEvent

# Ensure pytest-asyncio is always available so async tests execute without
# requiring plugins to be explicitly enabled via command line options.
pytest_plugins = ("pytest_asyncio",)

load_dotenv()

_DEFAULT_MODELS = {
    "anthropic": "claude-haiku-4-5",
    "openai": "gpt-4.1-mini",
    "google": "gemini-2.5-flash",
}


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the model used per provider by the e2e tests."""
    for provider, default in _DEFAULT_MODELS.items():
        env_var = f"{provider.upper()}_TEST_MODEL"
        parser.addoption(
            f"--{provider}-test-model",
            action="store",
            default=os.environ.get(env_var, default),
            dest=f"{provider}_test_model",
            help=(
                f"Model identifier for {provider} integration tests. "
                f"Can also be provided through the {env_var} environment variable."
            ),
        )


@pytest.fixture(scope="session")
def anthropic_test_model(pytestconfig: pytest.Config) -> str:
    return pytestconfig.getoption("anthropic_test_model")


@pytest.fixture(scope="session")
def openai_test_model(pytestconfig: pytest.Config) -> str:
    return pytestconfig.getoption("openai_test_model")


@pytest.fixture(scope="session")
def google_test_model(pytestconfig: pytest.Config) -> str:
    return pytestconfig.getoption("google_test_model")


class ScriptedAdapter(BaseAdapter):
    """Adapter double that replays canned responses and records requests."""

    provider = Provider.ANTHROPIC

    def __init__(
        self,
        responses: Optional[Iterable[UnifiedResponse]] = None,
        *,
        repeat: Optional[UnifiedResponse] = None,
        available: bool = True,
        provider: Optional[Provider] = None,
    ) -> None:
        super().__init__(api_key="test")
        self._responses: List[UnifiedResponse] = list(responses or [])
        self._repeat = repeat
        self._available = available
        if provider is not None:
            self.provider = provider
        self.requests: List[UnifiedRequest] = []

    def is_available(self) -> bool:
        return self._available

    async def chat(self, request: UnifiedRequest) -> UnifiedResponse:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        if self._repeat is not None:
            return self._repeat
        raise AssertionError("ScriptedAdapter ran out of responses")

    async def stream(self, request, cancel_token=None):  # type: ignore[override]
        response = await self.chat(request)
        yield MessageCompleteEvent(response=response)


def tool_use_response(*calls: Any) -> UnifiedResponse:
    """Response asking for tools; each call is ``(id, name, input)``."""
    return UnifiedResponse(
        content=[ToolUseContent(id=c[0], name=c[1], input=c[2]) for c in calls],
        stop_reason=StopReason.TOOL_USE,
        provider=Provider.ANTHROPIC,
    )


def text_response(text: str) -> UnifiedResponse:
    return UnifiedResponse(
        content=[TextContent(text=text)],
        stop_reason=StopReason.END_TURN,
        provider=Provider.ANTHROPIC,
    )


@pytest.fixture
def simple_request() -> UnifiedRequest:
    return UnifiedRequest(
        model="m", messages=[UnifiedMessage(role="user", content="2+3?")]
    )
