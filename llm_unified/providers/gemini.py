"""Google Gemini adapter using the ``google-genai`` SDK."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from ..exceptions import ConfigurationError, ProviderError
from ..models import Provider, UnifiedRequest, UnifiedResponse
from ..streaming.cancellation import CancellationToken
from ..streaming.events import StreamEvent, parse_stream_event
from ..transformers.request import GoogleRequestTransformer
from ..transformers.response import GoogleResponseTransformer
from ._base import DEFAULT_TIMEOUT, BaseAdapter
from ._registry import register_adapter

logger = logging.getLogger(__name__)

# google-genai models serialise to the REST (camelCase) field names.
_DUMP_OPTIONS: Dict[str, Any] = {"by_alias": True, "exclude_none": True}


@register_adapter(Provider.GOOGLE)
class GeminiAdapter(BaseAdapter):
    """Provider adapter for Google Gemini."""

    provider = Provider.GOOGLE
    API_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
    BASE_URL_ENV_VAR = None

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ) -> None:
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, **kwargs)
        self.request_transformer = GoogleRequestTransformer()
        self.response_transformer = GoogleResponseTransformer()
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily import and create a ``google.genai.Client``."""
        if self._client is not None:
            return self._client

        try:
            from google import genai
        except ImportError:
            raise ConfigurationError(
                "Gemini models require the 'google-genai' package. "
                "Install it with: pip install google-genai"
            )

        key = self._resolve_api_key()
        if not key:
            raise ConfigurationError(
                f"Google API key not found. Provide via api_key argument or "
                f"set the {' or '.join(self.API_ENV_VARS)} environment variable."
            )

        # google-genai takes its timeout in milliseconds
        http_options: Dict[str, Any] = {"timeout": int(self.timeout * 1000)}
        if self.base_url:
            http_options["base_url"] = self.base_url
        self._client = genai.Client(api_key=key, http_options=http_options)
        return self._client

    def _call_args(self, request: UnifiedRequest) -> Tuple[str, Any, Dict[str, Any]]:
        """Split the REST-shaped body into ``(model, contents, config)``."""
        payload = self.request_transformer.transform(request)
        config: Dict[str, Any] = dict(payload.get("generationConfig") or {})
        if "systemInstruction" in payload:
            config["systemInstruction"] = payload["systemInstruction"]
        if "tools" in payload:
            config["tools"] = payload["tools"]
            # Function calls are executed by the tool loop, not the SDK.
            config["automaticFunctionCalling"] = {"disable": True}
        return payload["model"], payload["contents"], config

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def chat(self, request: UnifiedRequest) -> UnifiedResponse:
        model, contents, config = self._call_args(request)
        client = self._get_client()
        logger.debug("Gemini request: model=%s contents=%d", model, len(contents))

        try:
            response = await client.aio.models.generate_content(
                model=model, contents=contents, config=config or None
            )
        except Exception as e:
            raise ProviderError(f"Gemini API error: {e}") from e

        return self.response_transformer.transform(self._dump(response, **_DUMP_OPTIONS))

    async def stream(
        self,
        request: UnifiedRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamEvent]:
        model, contents, config = self._call_args(request)
        client = self._get_client()

        try:
            sdk_stream = await client.aio.models.generate_content_stream(
                model=model, contents=contents, config=config or None
            )
        except Exception as e:
            raise ProviderError(f"Gemini API error: {e}") from e

        try:
            async with aclosing(self._iter_stream(sdk_stream, cancel_token)) as chunks:
                async for raw in chunks:
                    event = parse_stream_event(
                        self.provider, self._dump(raw, **_DUMP_OPTIONS)
                    )
                    if event is not None:
                        yield event
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Gemini streaming error: {e}") from e
        finally:
            await self._close_stream(sdk_stream)
