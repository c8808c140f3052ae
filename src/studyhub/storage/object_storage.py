"""Binary object storage for uploaded materials.

Backends:
- LocalObjectStorage: files under a root directory
- FirebaseObjectStorage: Cloud Storage bucket via firebase_admin
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import structlog
from firebase_admin import storage
from google.api_core.exceptions import NotFound

logger = structlog.get_logger(__name__)


class ObjectNotFoundError(Exception):
    """Raised when a stored object does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Object not found: {path}")


class ObjectStorage(Protocol):
    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str: ...

    def download(self, path: str) -> bytes: ...

    def delete(self, path: str) -> None: ...


def _clean_path(path: str) -> str:
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    if not parts:
        raise ValueError(f"Invalid object path: {path!r}")
    return "/".join(parts)


class LocalObjectStorage:
    """Object storage on the local filesystem."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        return self.root / _clean_path(path)

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        logger.debug("storage.local_written", path=path, size=len(data))
        return target.resolve().as_uri()

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(path)
        return target.read_bytes()

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(path)
        target.unlink()


class FirebaseObjectStorage:
    """Object storage on a Firebase Cloud Storage bucket."""

    DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"

    def __init__(self, bucket: Any = None, app: Any = None, bucket_name: str | None = None):
        if bucket is None:
            bucket = storage.bucket(bucket_name, app=app)
        self._bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        path = _clean_path(path)
        token = str(uuid.uuid4())

        blob = self._bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        blob.upload_from_string(data, content_type=content_type or "application/octet-stream")

        logger.debug("storage.firebase_uploaded", path=path, size=len(data))
        return self.DOWNLOAD_URL.format(
            bucket=self._bucket.name, path=quote(path, safe=""), token=token
        )

    def download(self, path: str) -> bytes:
        blob = self._bucket.blob(_clean_path(path))
        try:
            return blob.download_as_bytes()
        except NotFound as e:
            raise ObjectNotFoundError(path) from e

    def delete(self, path: str) -> None:
        blob = self._bucket.blob(_clean_path(path))
        try:
            blob.delete()
        except NotFound as e:
            raise ObjectNotFoundError(path) from e
