"""Raw file object storage."""

from kb_engine.boundary.storage.object_storage import (
    LocalObjectStorage,
    ObjectStorage,
    get_object_storage,
)

__all__ = ["LocalObjectStorage", "ObjectStorage", "get_object_storage"]
