"""Dict-backed blob storage for tests and local demos."""

from __future__ import annotations

from src.interfaces.storage_provider import IStorageProvider
from src.utils.errors import StorageNotFoundError


class MemoryStorageProvider(IStorageProvider):
    def __init__(self, base_url: str = "/storage") -> None:
        self._base_url = base_url.rstrip("/")
        self.blobs: dict[str, tuple[bytes, str]] = {}

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        self.blobs[key] = (data, content_type)
        return self.get_url(key)

    async def download(self, key: str) -> bytes:
        try:
            return self.blobs[key][0]
        except KeyError:
            raise StorageNotFoundError(message=f"Blob not found: {key}", provider_name="memory") from None

    async def delete(self, key: str) -> None:
        self.blobs.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self.blobs

    def get_url(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    def get_provider_name(self) -> str:
        return "memory"
