"""Abstract base class for the pub/sub transport behind the SSE manager.

The in-memory adapter fans events out inside one process.  The Redis
adapter publishes through Redis so an event emitted by the worker process
reaches SSE clients connected to any API process.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

MessageHandler = Callable[[str, dict[str, Any]], Awaitable[None]]


# Concrete implementations: MemoryEventAdapter, RedisEventAdapter
# Located in: src/providers/pubsub/
class IEventAdapter(ABC):
    """Contract for channel-based publish/subscribe transports."""

    @abstractmethod
    async def start(self, handler: MessageHandler) -> None:
        """Begin delivering every received message to *handler*.

        *handler* is called as ``handler(channel, message)`` where
        ``channel`` has any transport prefix removed.
        """

    @abstractmethod
    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        """Publish a JSON-serialisable *message* on *channel*."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivery and release connections."""

    @abstractmethod
    def get_adapter_name(self) -> str:
        """Return ``"memory"`` or ``"redis"``."""
