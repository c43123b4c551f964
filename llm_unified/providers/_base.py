"""BaseAdapter ABC: the contract every vendor integration implements."""

from __future__ import annotations

import abc
import asyncio
import inspect
import logging
import os
from typing import Any, AsyncIterator, ClassVar, Dict, Optional, Tuple

from ..exceptions import ProviderError
from ..models import Provider, UnifiedRequest, UnifiedResponse
from ..streaming.aggregator import StreamAggregator
from ..streaming.cancellation import CancellationToken
from ..streaming.events import StreamEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 180.0


class BaseAdapter(abc.ABC):
    """Abstract base for provider adapters.

    An adapter owns one vendor SDK client.  :meth:`chat` sends a
    :class:`UnifiedRequest` and returns a :class:`UnifiedResponse`;
    :meth:`stream` yields typed vendor events that
    :class:`~llm_unified.streaming.StreamAggregator` can fold.
    """

    provider: ClassVar[Provider]

    # Environment variables consulted, in order, when no api_key is passed.
    API_ENV_VARS: ClassVar[Tuple[str, ...]] = ()
    BASE_URL_ENV_VAR: ClassVar[Optional[str]] = None

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url or (
            os.environ.get(self.BASE_URL_ENV_VAR) if self.BASE_URL_ENV_VAR else None
        )
        self.timeout = timeout
        if kwargs:
            logger.debug(
                "%s ignoring unknown options: %s", type(self).__name__, sorted(kwargs)
            )

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def chat(self, request: UnifiedRequest) -> UnifiedResponse:
        """Send *request* and return the complete response."""
        ...

    @abc.abstractmethod
    def stream(
        self,
        request: UnifiedRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield vendor stream events for *request*.

        Once *cancel_token* is cancelled no further events are delivered
        and the underlying SDK stream is closed.
        """
        ...

    def is_available(self) -> bool:
        """True when an API key can be resolved for this adapter."""
        return self._resolve_api_key() is not None

    async def chat_stream(
        self,
        request: UnifiedRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UnifiedResponse:
        """Stream *request* and fold the events into one response."""
        aggregator = StreamAggregator(self.provider)
        return await aggregator.aggregate(self.stream(request, cancel_token), cancel_token)

    # ------------------------------------------------------------------
    # Helpers shared by SDK adapters
    # ------------------------------------------------------------------

    def _resolve_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        for var in self.API_ENV_VARS:
            value = os.environ.get(var)
            if value:
                return value
        return None

    @staticmethod
    def _dump(obj: Any, **kwargs: Any) -> Dict[str, Any]:
        """Plain-JSON dict for an SDK model (dicts pass through)."""
        if isinstance(obj, dict):
            return obj
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json", **kwargs)
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        raise ProviderError(f"Unexpected SDK payload type: {type(obj).__name__}")

    @staticmethod
    async def _iter_stream(
        sdk_stream: Any, cancel_token: Optional[CancellationToken] = None
    ) -> AsyncIterator[Any]:
        """Yield raw SDK chunks until the stream ends or *cancel_token* fires.

        Each read is raced against the token, so a cancel releases a read
        that is still waiting on the transport.  Closing *sdk_stream* is
        left to the caller.
        """
        iterator = sdk_stream.__aiter__()
        if cancel_token is None:
            async for raw in iterator:
                yield raw
            return

        cancelled = asyncio.ensure_future(cancel_token.wait())
        read: Optional[asyncio.Future] = None
        try:
            while not cancel_token.cancelled:
                read = asyncio.ensure_future(anext(iterator))
                await asyncio.wait({read, cancelled}, return_when=asyncio.FIRST_COMPLETED)
                if not read.done():
                    break
                try:
                    raw = read.result()
                except StopAsyncIteration:
                    return
                finally:
                    read = None
                if cancel_token.cancelled:
                    break
                yield raw
            logger.debug("Stream read cancelled: %s", cancel_token.reason or "no reason given")
        finally:
            cancelled.cancel()
            if read is not None and not read.done():
                read.cancel()
                await asyncio.gather(read, return_exceptions=True)

    @staticmethod
    async def _close_stream(stream: Any) -> None:
        for name in ("aclose", "close"):
            closer = getattr(stream, name, None)
            if closer is None:
                continue
            try:
                result = closer()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("Error while closing stream", exc_info=True)
            return

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider.value!r})"
