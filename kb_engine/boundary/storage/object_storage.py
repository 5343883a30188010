"""
Object storage interface and local filesystem backend.

Raw uploads are written by key before a parsing job is queued and read
back by the worker.

Dependencies: fastapi.concurrency, kb_engine.configs
System role: Raw file persistence for parsing jobs
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

from kb_engine.core.exceptions import ObjectStorageError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Key/value blob storage."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Store bytes under key. Raises ObjectStorageError on failure."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Read bytes stored under key. Raises ObjectStorageError on failure."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Raises ObjectStorageError on failure."""


class LocalObjectStorage(ObjectStorage):
    """Objects stored as files under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise ObjectStorageError("Object key escapes storage root", {"key": key})
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        path = self._path(key)
        try:
            await run_in_threadpool(self._write, path, data)
        except OSError as e:
            raise ObjectStorageError(f"Failed to write object: {e}", {"key": key}) from e

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return await run_in_threadpool(path.read_bytes)
        except FileNotFoundError as e:
            raise ObjectStorageError(f"Object not found: {key}", {"key": key}) from e
        except OSError as e:
            raise ObjectStorageError(f"Failed to read object: {e}", {"key": key}) from e

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await run_in_threadpool(path.unlink, True)
        except OSError as e:
            raise ObjectStorageError(f"Failed to delete object: {e}", {"key": key}) from e


def get_object_storage() -> ObjectStorage:
    """
    Create the configured object storage backend.

    Raises:
        ValueError: If the configured backend is unknown
    """
    from kb_engine.configs import get_settings

    config = get_settings().s3_documents
    backend = config.backend.lower()
    if backend == "local":
        logger.info(f"{__name__}:get_object_storage - Using local storage at {config.local_root}")
        return LocalObjectStorage(config.local_root)
    if backend == "s3":
        from kb_engine.boundary.aws.s3_client import S3ObjectStorage

        return S3ObjectStorage(bucket=config.bucket, region=config.region)
    raise ValueError(f"Invalid S3_DOCUMENTS_BACKEND: {backend}. Must be 's3' or 'local'.")
