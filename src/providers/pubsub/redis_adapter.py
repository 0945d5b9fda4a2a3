"""Redis pub/sub event adapter.

Every process publishes to ``{prefix}{channel}`` and pattern-subscribes to
``{prefix}*``, so an event emitted by the standalone worker reaches SSE
clients connected to any API process.  Messages are JSON strings.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from src.interfaces.event_adapter import IEventAdapter, MessageHandler

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHANNEL_PREFIX = "content-studio:sse:"


class RedisEventAdapter(IEventAdapter):
    """Channel-prefixed Redis pub/sub with a single listener task.

    Parameters
    ----------
    redis_client:
        A ``redis.asyncio.Redis`` client created with ``decode_responses=True``.
    prefix:
        Namespace prepended to every channel name.
    """

    def __init__(self, redis_client: Redis, prefix: str = DEFAULT_CHANNEL_PREFIX) -> None:
        self._redis = redis_client
        self._prefix = prefix
        self._pubsub: PubSub | None = None
        self._listener_task: asyncio.Task | None = None
        self._handler: MessageHandler | None = None

    @classmethod
    def from_url(cls, url: str, prefix: str = DEFAULT_CHANNEL_PREFIX) -> RedisEventAdapter:
        return cls(Redis.from_url(url, decode_responses=True), prefix)

    async def start(self, handler: MessageHandler) -> None:
        self._handler = handler
        if self._pubsub is not None:
            return
        self._pubsub = self._redis.pubsub()
        await self._pubsub.psubscribe(f"{self._prefix}*")
        self._listener_task = asyncio.create_task(self._listen())
        logger.info("redis_event_adapter_started", prefix=self._prefix)

    async def publish(self, channel: str, message: dict[str, Any]) -> None:
        try:
            await self._redis.publish(f"{self._prefix}{channel}", json.dumps(message))
        except RedisError as exc:
            logger.error("redis_publish_failed", channel=channel, error=str(exc))
            raise

    async def _listen(self) -> None:
        assert self._pubsub is not None
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "pmessage":
                    continue
                await self._dispatch(message)
        except asyncio.CancelledError:
            logger.info("redis_listener_cancelled")
            raise
        except RedisError as exc:
            logger.error("redis_listener_failed", error=str(exc))

    async def _dispatch(self, message: dict[str, Any]) -> None:
        raw_channel = message.get("channel") or ""
        channel = raw_channel[len(self._prefix):] if raw_channel.startswith(self._prefix) else raw_channel
        try:
            payload = json.loads(message["data"])
        except (TypeError, json.JSONDecodeError) as exc:
            logger.warning("redis_message_undecodable", channel=channel, error=str(exc))
            return
        if self._handler is None:
            return
        try:
            await self._handler(channel, payload)
        except Exception as exc:  # noqa: BLE001
            logger.error("redis_handler_failed", channel=channel, error=str(exc))

    async def close(self) -> None:
        if self._listener_task is not None:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        await self._redis.aclose()
        self._handler = None
        logger.info("redis_event_adapter_closed")

    def get_adapter_name(self) -> str:
        return "redis"
