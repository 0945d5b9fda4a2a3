"""Cache providers.

MemoryCacheProvider is a cachetools TTL cache placed in front of the web
scraper so re-importing a URL within the TTL skips the network fetch.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
