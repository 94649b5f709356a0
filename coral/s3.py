"""
Blob store adapter — key-addressed blobs partitioned into named buckets.

`BlobStore` is the contract every pipeline stage depends on; `S3BlobStore`
implements it against S3 (or any S3-compatible endpoint) with aioboto3.
Pure I/O: no business logic lives here.
"""
from __future__ import annotations

import logging
from typing import Protocol

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from coral.config import Settings
from coral.exceptions import BlobNotFound, StorageFault

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class BlobStore(Protocol):
    async def get(self, key: str, bucket: str) -> bytes: ...
    async def put(self, key: str, body: bytes, bucket: str, content_type: str | None = None) -> str: ...
    async def list(self, prefix: str, bucket: str, limit: int = 100) -> list[str]: ...
    async def exists(self, key: str, bucket: str) -> bool: ...
    async def copy(self, key: str, source_bucket: str, destination_bucket: str) -> str: ...
    async def delete(self, key: str, bucket: str) -> None: ...

    async def move(self, key: str, source_bucket: str, destination_bucket: str) -> str:
        """Copy then delete. Not atomic: a failed delete leaves both copies."""
        ...


def is_missing(exc: ClientError) -> bool:
    """True when a botocore error means the object does not exist."""
    return exc.response.get("Error", {}).get("Code", "") in _MISSING_CODES


class S3BlobStore:
    def __init__(self, settings: Settings) -> None:
        self._session = aioboto3.Session(
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
            region_name=settings.aws_region,
        )
        self._endpoint_url = settings.s3_endpoint_url or None

    def _client(self):
        return self._session.client("s3", endpoint_url=self._endpoint_url)

    async def get(self, key: str, bucket: str) -> bytes:
        try:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=bucket, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()
        except ClientError as exc:
            if is_missing(exc):
                raise BlobNotFound(key, bucket) from exc
            raise StorageFault("get", key, bucket) from exc
        except BotoCoreError as exc:
            raise StorageFault("get", key, bucket) from exc

    async def put(self, key: str, body: bytes, bucket: str, content_type: str | None = None) -> str:
        params = {"Bucket": bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        try:
            async with self._client() as s3:
                await s3.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageFault("put", key, bucket) from exc
        return key

    async def list(self, prefix: str, bucket: str, limit: int = 100) -> list[str]:
        try:
            async with self._client() as s3:
                response = await s3.list_objects_v2(
                    Bucket=bucket, Prefix=prefix, MaxKeys=limit,
                )
        except (BotoCoreError, ClientError) as exc:
            raise StorageFault("list", prefix, bucket) from exc
        return [obj["Key"] for obj in response.get("Contents", [])]

    async def exists(self, key: str, bucket: str) -> bool:
        try:
            async with self._client() as s3:
                await s3.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if is_missing(exc):
                return False
            raise StorageFault("head", key, bucket) from exc
        except BotoCoreError as exc:
            raise StorageFault("head", key, bucket) from exc
        return True

    async def copy(self, key: str, source_bucket: str, destination_bucket: str) -> str:
        try:
            async with self._client() as s3:
                await s3.copy_object(
                    Bucket=destination_bucket,
                    Key=key,
                    CopySource={"Bucket": source_bucket, "Key": key},
                )
        except ClientError as exc:
            if is_missing(exc):
                raise BlobNotFound(key, source_bucket) from exc
            raise StorageFault("copy", key, destination_bucket) from exc
        except BotoCoreError as exc:
            raise StorageFault("copy", key, destination_bucket) from exc
        return key

    async def delete(self, key: str, bucket: str) -> None:
        try:
            async with self._client() as s3:
                await s3.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageFault("delete", key, bucket) from exc

    async def move(self, key: str, source_bucket: str, destination_bucket: str) -> str:
        await self.copy(key, source_bucket, destination_bucket)
        await self.delete(key, source_bucket)
        logger.debug("moved %s from %s to %s", key, source_bucket, destination_bucket)
        return key
