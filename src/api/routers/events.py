"""Server-Sent Events stream for the signed-in user."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from src.api.dependencies import CurrentUserDep, SSEManagerDep
from src.realtime.sse_manager import SSEManager

logger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api", tags=["events"])

KEEPALIVE_SECONDS = 15.0
CONNECTED_FRAME = ": connected\n\n"
KEEPALIVE_FRAME = ": keepalive\n\n"


async def event_stream(
    request: Request,
    sse: SSEManager,
    user_id: str,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for *user_id* until the client goes away.

    Frames published for the user are buffered in a per-connection queue.
    A comment line is sent whenever nothing arrives for *keepalive_seconds*
    so proxies keep the connection open.
    """
    frames: asyncio.Queue[str] = asyncio.Queue()

    async def writer(frame: str) -> None:
        frames.put_nowait(frame)

    unsubscribe = sse.subscribe(user_id, writer)
    logger.info("sse_connected", user_id=user_id, connections=sse.connection_count())
    try:
        yield CONNECTED_FRAME
        while not await request.is_disconnected():
            try:
                yield await asyncio.wait_for(frames.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
    finally:
        unsubscribe()
        logger.info("sse_disconnected", user_id=user_id)


@router.get("/events")
async def events(request: Request, user: CurrentUserDep, sse: SSEManagerDep) -> StreamingResponse:
    return StreamingResponse(
        event_stream(request, sse, user.id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
