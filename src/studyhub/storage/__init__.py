"""Object storage backends."""

from studyhub.storage.object_storage import (
    FirebaseObjectStorage,
    LocalObjectStorage,
    ObjectNotFoundError,
    ObjectStorage,
)

__all__ = [
    "FirebaseObjectStorage",
    "LocalObjectStorage",
    "ObjectNotFoundError",
    "ObjectStorage",
]
