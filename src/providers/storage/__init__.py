"""Blob storage providers.

Four implementations of IStorageProvider:
    1. FilesystemStorageProvider: files under a local directory, served by
       the API at ``/storage/{key}``.
    2. S3StorageProvider: AWS S3 or any S3-compatible endpoint via boto3.
    3. DatabaseStorageProvider: blobs in a SQLite table, for single-file
       deployments.
    4. MemoryStorageProvider: dict-backed, for tests.

``build_storage_provider(settings)`` picks one from ``STORAGE_PROVIDER``.
"""

from src.providers.storage.database_storage import DatabaseStorageProvider
from src.providers.storage.factory import build_storage_provider
from src.providers.storage.filesystem_storage import FilesystemStorageProvider
from src.providers.storage.memory_storage import MemoryStorageProvider
from src.providers.storage.s3_storage import S3StorageProvider

__all__ = [
    "DatabaseStorageProvider",
    "FilesystemStorageProvider",
    "MemoryStorageProvider",
    "S3StorageProvider",
    "build_storage_provider",
]
