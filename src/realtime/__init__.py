"""Real-time notifications pushed to browsers over Server-Sent Events."""

from src.realtime.sse_manager import SSEManager, format_sse, user_channel

__all__ = ["SSEManager", "format_sse", "user_channel"]
