"""In-process event adapter: publishing calls the handler directly."""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.event_adapter import IEventAdapter, MessageHandler

logger = structlog.get_logger(logger_name=__name__)


class MemoryEventAdapter(IEventAdapter):
    """Fan-out inside one process.  Events published before ``start`` are dropped."""

    def __init__(self) -> None:
        self._handler: MessageHandler | None = None

    async def start(self, handler: MessageHandler) -> None:
        self._handler = handler

    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        if self._handler is None:
            logger.debug("event_dropped_not_started", channel=channel)
            return
        await self._handler(channel, message)

    async def close(self) -> None:
        self._handler = None

    def get_adapter_name(self) -> str:
        return "memory"
