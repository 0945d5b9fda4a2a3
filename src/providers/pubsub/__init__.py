"""Event transports for the SSE manager.

    - MemoryEventAdapter: in-process delivery, for a single API process
      running its own worker.
    - RedisEventAdapter: redis.asyncio pub/sub, for several API processes
      or a standalone worker.
"""

from src.providers.pubsub.memory_adapter import MemoryEventAdapter
from src.providers.pubsub.redis_adapter import RedisEventAdapter

__all__ = ["MemoryEventAdapter", "RedisEventAdapter"]
