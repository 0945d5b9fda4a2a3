"""S3 (and S3-compatible) blob storage via boto3.

boto3 is synchronous, so every client call runs in the default executor to
keep the event loop free.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.interfaces.storage_provider import IStorageProvider
from src.utils.errors import StorageError, StorageNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3StorageProvider(IStorageProvider):
    """Thin async wrapper over a boto3 S3 client.

    Parameters
    ----------
    bucket:
        Target bucket name.
    region:
        AWS region used for signing and for the default public URL.
    endpoint_url:
        Custom endpoint for MinIO, R2 and similar services.
    access_key_id, secret_access_key:
        Explicit credentials; when empty boto3's default chain is used.
    public_url:
        Base URL for public object links (e.g. a CDN).  Defaults to the
        virtual-hosted S3 URL.
    client:
        Pre-built client, used by tests.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._public_url = (public_url or "").rstrip("/")
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {
                "config": Config(signature_version="s3v4", region_name=region),
            }
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            if access_key_id and secret_access_key:
                kwargs["aws_access_key_id"] = access_key_id
                kwargs["aws_secret_access_key"] = secret_access_key
            self._client = boto3.client("s3", **kwargs)
        logger.info("s3_storage_initialized", bucket=bucket, region=region)

    async def _call(self, method: str, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        fn = functools.partial(getattr(self._client, method), Bucket=self._bucket, **kwargs)
        return await loop.run_in_executor(None, fn)

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        key = key.lstrip("/")
        try:
            await self._call("put_object", Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(message=f"S3 upload failed for {key}: {exc}", provider_name="s3") from exc
        logger.debug("blob_uploaded", key=key, size=len(data))
        return self.get_url(key)

    async def download(self, key: str) -> bytes:
        key = key.lstrip("/")
        try:
            response = await self._call("get_object", Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise StorageNotFoundError(message=f"Blob not found: {key}", provider_name="s3") from exc
            raise StorageError(message=f"S3 download failed for {key}: {exc}", provider_name="s3") from exc
        except BotoCoreError as exc:
            raise StorageError(message=f"S3 download failed for {key}: {exc}", provider_name="s3") from exc
        body = response["Body"]
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, body.read)

    async def delete(self, key: str) -> None:
        key = key.lstrip("/")
        try:
            await self._call("delete_object", Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(message=f"S3 delete failed for {key}: {exc}", provider_name="s3") from exc

    async def exists(self, key: str) -> bool:
        try:
            await self._call("head_object", Key=key.lstrip("/"))
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return False
            raise StorageError(message=f"S3 head failed for {key}: {exc}", provider_name="s3") from exc
        return True

    def get_url(self, key: str) -> str:
        key = key.lstrip("/")
        if self._public_url:
            return f"{self._public_url}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def get_provider_name(self) -> str:
        return "s3"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))
