"""Unit tests for SSEManager fan-out and the pub/sub adapters."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.api.routers.events import CONNECTED_FRAME, KEEPALIVE_FRAME, event_stream
from src.models.events import ChangeType, EntityChangeEvent, EntityType
from src.providers.pubsub.memory_adapter import MemoryEventAdapter
from src.providers.pubsub.redis_adapter import RedisEventAdapter
from src.realtime.sse_manager import BROADCAST_CHANNEL, SSEManager, format_sse, user_channel


def _collector():
    frames: list[str] = []

    async def writer(frame: str) -> None:
        frames.append(frame)

    return frames, writer


# ─── Framing ──────────────────────────────────────────────────────


def test_format_sse():
    assert format_sse({"type": "ping"}) == 'data: {"type": "ping"}\n\n'


def test_user_channel():
    assert user_channel("usr_1") == "user:usr_1"


# ─── Delivery ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_emit_reaches_only_that_users_writers(sse):
    alice_frames, alice = _collector()
    alice_tab2_frames, alice_tab2 = _collector()
    bob_frames, bob = _collector()
    sse.subscribe("alice", alice)
    sse.subscribe("alice", alice_tab2)
    sse.subscribe("bob", bob)

    await sse.emit("alice", {"type": "hello"})

    assert alice_frames == ['data: {"type": "hello"}\n\n']
    assert alice_tab2_frames == alice_frames
    assert bob_frames == []


@pytest.mark.asyncio
async def test_broadcast_reaches_everyone(sse):
    a_frames, a = _collector()
    b_frames, b = _collector()
    sse.subscribe("alice", a)
    sse.subscribe("bob", b)

    await sse.broadcast({"type": "maintenance"})

    assert len(a_frames) == 1
    assert len(b_frames) == 1


@pytest.mark.asyncio
async def test_model_events_are_serialized(sse):
    frames, writer = _collector()
    sse.subscribe("usr_1", writer)

    await sse.emit(
        "usr_1",
        EntityChangeEvent(
            entity_type=EntityType.PODCAST,
            change_type=ChangeType.INSERT,
            entity_id="pod_1",
            user_id="usr_1",
        ),
    )

    payload = json.loads(frames[0].removeprefix("data: "))
    assert payload["type"] == "entity_change"
    assert payload["entity_type"] == "podcast"
    assert payload["change_type"] == "insert"
    assert "timestamp" in payload


@pytest.mark.asyncio
async def test_failing_writer_does_not_block_others(sse):
    broken = AsyncMock(side_effect=ConnectionResetError("gone"))
    frames, healthy = _collector()
    sse.subscribe("usr_1", broken)
    sse.subscribe("usr_1", healthy)

    await sse.emit("usr_1", {"type": "x"})

    assert len(frames) == 1


@pytest.mark.asyncio
async def test_unsubscribe_and_counts(sse):
    _, first = _collector()
    _, second = _collector()
    unsubscribe_first = sse.subscribe("usr_1", first)
    unsubscribe_second = sse.subscribe("usr_2", second)
    assert sse.connection_count() == 2
    assert sse.user_count() == 2

    unsubscribe_first()
    unsubscribe_first()
    assert sse.connection_count() == 1
    assert sse.user_count() == 1

    unsubscribe_second()
    assert sse.connection_count() == 0


@pytest.mark.asyncio
async def test_unknown_channel_is_ignored(sse):
    frames, writer = _collector()
    sse.subscribe("usr_1", writer)
    await sse._deliver("elsewhere", {"type": "x"})
    assert frames == []


@pytest.mark.asyncio
async def test_disconnect_clears_connections():
    manager = SSEManager(MemoryEventAdapter())
    await manager.initialize()
    _, writer = _collector()
    manager.subscribe("usr_1", writer)

    await manager.disconnect()

    assert manager.connection_count() == 0
    assert manager.adapter_name == "memory"


# ─── Memory adapter ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_memory_adapter_drops_events_before_start():
    adapter = MemoryEventAdapter()
    handler = AsyncMock()
    await adapter.publish("user:1", {"type": "x"})
    await adapter.start(handler)
    await adapter.publish("user:1", {"type": "y"})

    handler.assert_awaited_once_with("user:1", {"type": "y"})


@pytest.mark.asyncio
async def test_memory_adapter_close_detaches_handler():
    adapter = MemoryEventAdapter()
    handler = AsyncMock()
    await adapter.start(handler)
    await adapter.close()
    await adapter.publish(BROADCAST_CHANNEL, {"type": "x"})

    handler.assert_not_awaited()


# ─── Redis adapter ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_redis_adapter_publishes_prefixed_json():
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)
    adapter = RedisEventAdapter(client, prefix="test:")

    await adapter.publish("user:1", {"type": "x"})

    client.publish.assert_awaited_once_with("test:user:1", '{"type": "x"}')
    assert adapter.get_adapter_name() == "redis"


@pytest.mark.asyncio
async def test_redis_adapter_dispatch_strips_prefix():
    adapter = RedisEventAdapter(MagicMock(), prefix="test:")
    handler = AsyncMock()
    adapter._handler = handler

    await adapter._dispatch({"type": "pmessage", "channel": "test:user:1", "data": '{"type": "x"}'})
    await adapter._dispatch({"type": "pmessage", "channel": "test:user:1", "data": "not json"})

    handler.assert_awaited_once_with("user:1", {"type": "x"})


# ─── Event stream ─────────────────────────────────────────────────


def _request(*disconnected: bool) -> MagicMock:
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=list(disconnected))
    return request


@pytest.mark.asyncio
async def test_event_stream_forwards_frames_and_unsubscribes(sse):
    stream = event_stream(_request(False, True), sse, "usr_1", keepalive_seconds=5)

    assert await stream.__anext__() == CONNECTED_FRAME
    assert sse.connection_count() == 1

    await sse.emit("usr_1", {"type": "x"})
    assert await stream.__anext__() == 'data: {"type": "x"}\n\n'

    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert sse.connection_count() == 0


@pytest.mark.asyncio
async def test_event_stream_keepalive(sse):
    stream = event_stream(_request(False, True), sse, "usr_1", keepalive_seconds=0.01)

    assert await stream.__anext__() == CONNECTED_FRAME
    assert await stream.__anext__() == KEEPALIVE_FRAME
    await stream.aclose()
    assert sse.connection_count() == 0
