"""Abstract base class for blob storage providers.

Documents, podcast audio, voiceover audio and infographic images are all
stored as opaque blobs addressed by a string key such as
``documents/doc_123/content.txt``.  The backend (local filesystem, S3 or a
database table) is chosen at startup; business logic only ever sees this
interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: FilesystemStorageProvider, S3StorageProvider,
# DatabaseStorageProvider, MemoryStorageProvider (src/providers/storage/)
class IStorageProvider(ABC):
    """Contract for blob storage backends."""

    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store *data* under *key*, replacing any existing object.

        Parameters
        ----------
        key:
            Slash-separated object key.
        data:
            Raw bytes to store.
        content_type:
            MIME type recorded alongside the object.

        Returns
        -------
        str
            A URL clients can use to fetch the object.

        Raises
        ------
        src.utils.errors.StorageError
            If the backend rejects the write.
        """

    @abstractmethod
    async def download(self, key: str) -> bytes:
        """Return the bytes stored under *key*.

        Raises
        ------
        src.utils.errors.StorageNotFoundError
            If no object exists under *key*.
        src.utils.errors.StorageError
            If the backend fails for any other reason.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the object under *key*.  Deleting a missing key is a no-op."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if an object is stored under *key*."""

    @abstractmethod
    def get_url(self, key: str) -> str:
        """Return the public URL for *key* without contacting the backend."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"filesystem"`` or ``"s3"``."""
