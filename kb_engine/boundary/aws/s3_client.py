"""
S3 client for raw document storage.

Stores uploads keyed by parsing job and reads them back for the worker.
boto3 is synchronous, so calls run in the thread pool.

Dependencies: boto3, botocore
System role: Object storage backend for deployments
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from kb_engine.boundary.storage.object_storage import ObjectStorage
from kb_engine.core.exceptions import ObjectStorageError

logger = logging.getLogger(__name__)


class S3ObjectStorage(ObjectStorage):
    """Object storage in an S3 bucket."""

    def __init__(self, bucket: str, region: str = "us-east-1", client=None) -> None:
        """
        Initialize S3 storage.

        Args:
            bucket: S3 bucket name for document storage
            region: AWS region for S3 bucket
            client: Preconfigured boto3 S3 client (created when omitted)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = client or boto3.client("s3", region_name=region)

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        self._s3_client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    def _get(self, key: str) -> bytes:
        response = self._s3_client.get_object(Bucket=self._bucket, Key=key)
        return response["Body"].read()

    def _delete(self, key: str) -> None:
        self._s3_client.delete_object(Bucket=self._bucket, Key=key)

    async def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            await run_in_threadpool(self._put, key, data, content_type)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(
                f"Failed to upload to S3: {e}",
                {"bucket": self._bucket, "key": key},
            ) from e
        logger.info(
            f"{__name__}:put - Stored object",
            extra={"bucket": self._bucket, "key": key, "size_bytes": len(data)},
        )

    async def get(self, key: str) -> bytes:
        try:
            return await run_in_threadpool(self._get, key)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey"):
                raise ObjectStorageError(
                    f"File not found in S3: {key}",
                    {"bucket": self._bucket, "key": key},
                ) from e
            raise ObjectStorageError(
                f"Failed to download from S3: {e}",
                {"bucket": self._bucket, "key": key},
            ) from e
        except BotoCoreError as e:
            raise ObjectStorageError(
                f"Failed to download from S3: {e}",
                {"bucket": self._bucket, "key": key},
            ) from e

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self._delete, key)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(
                f"Failed to delete from S3: {e}",
                {"bucket": self._bucket, "key": key},
            ) from e
