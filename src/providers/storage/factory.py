"""Select the blob storage backend from settings."""

from __future__ import annotations

import structlog

from src.config.settings import Settings
from src.interfaces.storage_provider import IStorageProvider
from src.providers.storage.database_storage import DatabaseStorageProvider
from src.providers.storage.filesystem_storage import FilesystemStorageProvider
from src.providers.storage.memory_storage import MemoryStorageProvider
from src.providers.storage.s3_storage import S3StorageProvider
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def build_storage_provider(settings: Settings) -> IStorageProvider:
    """Return the storage provider named by ``settings.storage_provider``.

    Raises
    ------
    ConfigurationError
        For an unknown backend name, or ``s3`` without a bucket.
    """
    name = settings.storage_provider.strip().lower()

    if name == "filesystem":
        provider: IStorageProvider = FilesystemStorageProvider(
            settings.storage_base_path, settings.storage_base_url
        )
    elif name == "s3":
        if not settings.s3_bucket:
            raise ConfigurationError(message="S3_BUCKET is required when STORAGE_PROVIDER=s3")
        provider = S3StorageProvider(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url or None,
            access_key_id=settings.s3_access_key_id or None,
            secret_access_key=settings.s3_secret_access_key or None,
            public_url=settings.s3_public_url or None,
        )
    elif name == "database":
        provider = DatabaseStorageProvider(settings.database_path, settings.storage_base_url)
    elif name == "memory":
        provider = MemoryStorageProvider(settings.storage_base_url)
    else:
        raise ConfigurationError(message=f"Unknown storage provider: {settings.storage_provider!r}")

    logger.info("storage_provider_selected", provider=provider.get_provider_name())
    return provider
