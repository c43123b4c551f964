"""Explicit cancellation for streaming calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Single-use cancellation flag shared between a stream and its consumer.

    The consumer calls :meth:`cancel`; the producer checks
    :attr:`cancelled` between events (or awaits :meth:`wait`) and stops
    reading from the transport once it is set.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug("Stream cancellation requested: %s", reason or "no reason given")

    async def wait(self) -> None:
        await self._event.wait()
