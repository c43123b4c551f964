"""Anthropic Messages API adapter."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, Optional

from ..exceptions import ConfigurationError, ProviderError
from ..models import Provider, UnifiedRequest, UnifiedResponse
from ..streaming.cancellation import CancellationToken
from ..streaming.events import StreamEvent, parse_stream_event
from ..transformers.request import DEFAULT_ANTHROPIC_MAX_TOKENS, AnthropicRequestTransformer
from ..transformers.response import AnthropicResponseTransformer
from ._registry import register_adapter
from ._base import DEFAULT_TIMEOUT, BaseAdapter

logger = logging.getLogger(__name__)


@register_adapter(Provider.ANTHROPIC)
class AnthropicAdapter(BaseAdapter):
    """Provider adapter for Anthropic using the Messages API."""

    provider = Provider.ANTHROPIC
    API_ENV_VARS = ("ANTHROPIC_API_KEY",)
    BASE_URL_ENV_VAR = "ANTHROPIC_BASE_URL"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_tokens: int = DEFAULT_ANTHROPIC_MAX_TOKENS,
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, **kwargs)
        self.request_transformer = AnthropicRequestTransformer(default_max_tokens=max_tokens)
        self.response_transformer = AnthropicResponseTransformer()
        self._async_client: Any = None  # Lazy-created

    def _get_client(self) -> Any:
        """Lazily import and create an ``AsyncAnthropic`` client."""
        if self._async_client is not None:
            return self._async_client

        try:
            import anthropic
        except ImportError:
            raise ConfigurationError(
                "Anthropic models require the 'anthropic' package. "
                "Install it with: pip install anthropic"
            )

        key = self._resolve_api_key()
        if not key:
            raise ConfigurationError(
                f"Anthropic API key not found. Provide via api_key argument or "
                f"set the {self.API_ENV_VARS[0]} environment variable."
            )

        options: Dict[str, Any] = {"api_key": key, "timeout": self.timeout}
        if self.base_url:
            options["base_url"] = self.base_url
        self._async_client = anthropic.AsyncAnthropic(**options)
        return self._async_client

    def _payload(self, request: UnifiedRequest) -> Dict[str, Any]:
        payload = self.request_transformer.transform(request)
        payload.pop("stream", None)
        return payload

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def chat(self, request: UnifiedRequest) -> UnifiedResponse:
        payload = self._payload(request)
        client = self._get_client()
        logger.debug(
            "Anthropic request: model=%s messages=%d tools=%d",
            payload["model"],
            len(payload["messages"]),
            len(payload.get("tools", [])),
        )

        try:
            response = await client.messages.create(**payload)
        except Exception as e:
            raise ProviderError(f"Anthropic API error: {e}") from e

        return self.response_transformer.transform(self._dump(response))

    async def stream(
        self,
        request: UnifiedRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamEvent]:
        payload = self._payload(request)
        client = self._get_client()

        try:
            sdk_stream = await client.messages.create(**payload, stream=True)
        except Exception as e:
            raise ProviderError(f"Anthropic API error: {e}") from e

        try:
            async with aclosing(self._iter_stream(sdk_stream, cancel_token)) as chunks:
                async for raw in chunks:
                    event = parse_stream_event(self.provider, self._dump(raw))
                    if event is not None:
                        yield event
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Anthropic streaming error: {e}") from e
        finally:
            await self._close_stream(sdk_stream)
