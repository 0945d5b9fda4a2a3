"""Entity-change notifications emitted by services after user mutations."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.models.events import ChangeType, EntityChangeEvent, EntityType
from src.realtime.sse_manager import SSEManager

logger = structlog.get_logger(logger_name=__name__)


async def notify_change(
    sse: SSEManager | None,
    user_ids: Iterable[str | None],
    entity_type: EntityType,
    change_type: ChangeType,
    entity_id: str,
) -> None:
    """Emit one ``entity_change`` event per distinct user id.

    Delivery failures are logged; a notification never fails the mutation
    that triggered it.
    """
    if sse is None:
        return
    for user_id in dict.fromkeys(u for u in user_ids if u):
        event = EntityChangeEvent(
            entity_type=entity_type,
            change_type=change_type,
            entity_id=entity_id,
            user_id=user_id,
        )
        try:
            await sse.emit(user_id, event)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "entity_change_emit_failed",
                entity_type=entity_type.value,
                entity_id=entity_id,
                error=str(exc),
            )
