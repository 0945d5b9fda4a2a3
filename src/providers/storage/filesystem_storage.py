"""Local filesystem blob storage."""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath

import structlog

from src.interfaces.storage_provider import IStorageProvider
from src.utils.errors import StorageError, StorageNotFoundError

logger = structlog.get_logger(logger_name=__name__)


def validate_key(key: str) -> str:
    """Return *key* normalised, rejecting absolute paths and ``..`` segments."""
    cleaned = key.strip().lstrip("/")
    parts = PurePosixPath(cleaned).parts
    if not cleaned or "\\" in cleaned or any(p in ("..", ".") for p in parts):
        raise StorageError(message=f"Invalid storage key: {key!r}", provider_name="filesystem")
    return "/".join(parts)


class FilesystemStorageProvider(IStorageProvider):
    """Stores each blob as a file at ``base_path/key``.

    Parameters
    ----------
    base_path:
        Root directory; created on first write.
    base_url:
        URL prefix under which the API serves stored files.
    """

    def __init__(self, base_path: str | Path, base_url: str = "/storage") -> None:
        self._base_path = Path(base_path)
        self._base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        return self._base_path / validate_key(key)

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to write {key}: {exc}", provider_name="filesystem"
            ) from exc
        logger.debug("blob_uploaded", key=key, size=len(data), content_type=content_type)
        return self.get_url(key)

    async def download(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageNotFoundError(message=f"Blob not found: {key}", provider_name="filesystem")
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageError(
                message=f"Failed to read {key}: {exc}", provider_name="filesystem"
            ) from exc

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug("blob_deleted", key=key)

    async def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def get_url(self, key: str) -> str:
        return f"{self._base_url}/{validate_key(key)}"

    def get_provider_name(self) -> str:
        return "filesystem"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
