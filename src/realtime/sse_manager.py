"""Per-user Server-Sent Events fan-out.

# ─── HOW EVENT DELIVERY WORKS ───────────────────────────────────────
#
#   service/worker ──emit()──→ SSEManager ──publish──→ IEventAdapter
#                                                        │
#   SSE response  ←──writer()── SSEManager._deliver ←────┘
#
# Publishing always goes through the adapter, even in-process, so the
# memory and Redis transports behave identically.  The adapter hands
# every message back to ``_deliver``, which looks up the local writers
# for the channel:
#
#   - ``user:{id}``  → every writer registered for that user
#   - ``broadcast``  → every writer of every connected user
#
# Writers are async callables receiving an already formatted
# ``data: {json}\n\n`` frame.  A failing writer is logged and skipped so
# one dead connection never blocks delivery to the others.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import BaseModel

from src.interfaces.event_adapter import IEventAdapter
from src.models.events import to_wire

logger = structlog.get_logger(logger_name=__name__)

SSEWriter = Callable[[str], Awaitable[None]]

BROADCAST_CHANNEL = "broadcast"
_USER_CHANNEL_PREFIX = "user:"


def user_channel(user_id: str) -> str:
    return f"{_USER_CHANNEL_PREFIX}{user_id}"


def format_sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


class SSEManager:
    """Tracks connected SSE writers per user and routes events to them."""

    def __init__(self, adapter: IEventAdapter) -> None:
        self._adapter = adapter
        self._connections: dict[str, set[SSEWriter]] = {}
        self._started = False

    @property
    def adapter_name(self) -> str:
        return self._adapter.get_adapter_name()

    async def initialize(self) -> None:
        if self._started:
            return
        await self._adapter.start(self._deliver)
        self._started = True
        logger.info("sse_manager_initialized", adapter=self.adapter_name)

    def subscribe(self, user_id: str, writer: SSEWriter) -> Callable[[], None]:
        """Register *writer* for *user_id*; return a callable that removes it."""
        self._connections.setdefault(user_id, set()).add(writer)
        logger.debug("sse_subscribed", user_id=user_id, connections=self.connection_count())

        def unsubscribe() -> None:
            writers = self._connections.get(user_id)
            if writers is None:
                return
            writers.discard(writer)
            if not writers:
                del self._connections[user_id]
            logger.debug("sse_unsubscribed", user_id=user_id)

        return unsubscribe

    async def emit(self, user_id: str, event: BaseModel | dict[str, Any]) -> None:
        await self._adapter.publish(user_channel(user_id), to_wire(event))

    async def broadcast(self, event: BaseModel | dict[str, Any]) -> None:
        await self._adapter.publish(BROADCAST_CHANNEL, to_wire(event))

    async def _deliver(self, channel: str, message: dict[str, Any]) -> None:
        if channel == BROADCAST_CHANNEL:
            targets = [w for writers in self._connections.values() for w in writers]
        elif channel.startswith(_USER_CHANNEL_PREFIX):
            user_id = channel[len(_USER_CHANNEL_PREFIX):]
            targets = list(self._connections.get(user_id, ()))
        else:
            logger.debug("sse_unknown_channel", channel=channel)
            return

        frame = format_sse(message)
        for writer in targets:
            try:
                await writer(frame)
            except Exception as exc:  # noqa: BLE001
                logger.warning("sse_writer_failed", channel=channel, error=str(exc))

    def connection_count(self) -> int:
        return sum(len(writers) for writers in self._connections.values())

    def user_count(self) -> int:
        return len(self._connections)

    async def disconnect(self) -> None:
        await self._adapter.close()
        self._connections.clear()
        self._started = False
        logger.info("sse_manager_disconnected")
