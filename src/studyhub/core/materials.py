"""Study material upload, listing and deletion.

Uploads are processed one file at a time. Each accepted file is written
to object storage, then its metadata document is added. A failing file
is reported and the loop moves on; storage and metadata are not
reconciled on partial failure.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from studyhub.db.documents import DocumentStore
from studyhub.db.materials_repository import (
    MATERIAL_TYPES,
    MaterialRecord,
    MaterialType,
    add_material,
    delete_material_record,
    get_material,
    get_user_materials,
)
from studyhub.storage.object_storage import ObjectNotFoundError, ObjectStorage
from studyhub.utils.validators import safe_filename

logger = structlog.get_logger(__name__)

ACCEPTED_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "document",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "document",
    "text/plain": "document",
    "video/mp4": "video",
    "video/quicktime": "video",
    "audio/mpeg": "audio",
    "audio/wav": "audio",
}

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_TOPIC = "General"

UploadStatus = Literal["uploaded", "rejected", "failed"]


class MaterialError(Exception):
    """Base error for material operations."""


class MaterialNotFoundError(MaterialError):
    def __init__(self, material_id: str):
        self.material_id = material_id
        super().__init__(f"Material not found: {material_id}")


class MaterialRejectedError(MaterialError):
    """File refused before upload (type or size)."""


@dataclass
class UploadFile:
    """A file submitted for upload."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class UploadResult:
    filename: str
    status: UploadStatus
    material: MaterialRecord | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "status": self.status,
            "material": self.material.to_dict() if self.material else None,
            "error": self.error,
        }


@dataclass
class UploadReport:
    results: list[UploadResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def uploaded_count(self) -> int:
        return sum(1 for r in self.results if r.status == "uploaded")

    def to_dict(self) -> dict[str, Any]:
        return {
            "uploaded": self.uploaded_count,
            "total": self.total,
            "results": [r.to_dict() for r in self.results],
        }


def infer_material_type(content_type: str) -> str:
    """Material type for a MIME type; unknown types are "document"."""
    return ACCEPTED_TYPES.get(content_type.split(";", 1)[0].strip().lower(), "document")


def check_upload(file: UploadFile, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """Raise MaterialRejectedError if the file may not be uploaded."""
    content_type = file.content_type.split(";", 1)[0].strip().lower()
    if content_type not in ACCEPTED_TYPES:
        raise MaterialRejectedError(f"File type not accepted: {file.content_type or 'unknown'}")
    if file.size > max_bytes:
        raise MaterialRejectedError(
            f"File exceeds {max_bytes // (1024 * 1024)} MB limit ({file.size} bytes)"
        )


def storage_path(uid: str, filename: str, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"users/{uid}/materials/{now_ms}_{safe_filename(filename)}"


def upload_materials(
    store: DocumentStore,
    storage: ObjectStorage,
    uid: str,
    files: list[UploadFile],
    material_type: MaterialType | None = None,
    topic: str | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> UploadReport:
    """Upload files sequentially and record their metadata.

    Args:
        uid: Uploader uid
        files: Files to upload
        material_type: Type for all files (default: inferred per file)
        topic: Topic for all files (default: "General")
        max_bytes: Per-file size limit

    Returns:
        UploadReport with one result per file, in order

    Raises:
        MaterialRejectedError: If material_type is not a known type
    """
    if material_type is not None and material_type not in MATERIAL_TYPES:
        raise MaterialRejectedError(
            f"Unknown material type: {material_type} (expected one of: {', '.join(MATERIAL_TYPES)})"
        )

    report = UploadReport()

    for file in files:
        try:
            check_upload(file, max_bytes)
        except MaterialRejectedError as e:
            logger.warning("material.rejected", uid=uid, filename=file.filename, reason=str(e))
            report.results.append(UploadResult(file.filename, "rejected", error=str(e)))
            continue

        path = storage_path(uid, file.filename)
        try:
            url = storage.upload(path, file.data, file.content_type)
            record = add_material(
                store,
                uploader_uid=uid,
                name=file.filename,
                material_type=material_type or infer_material_type(file.content_type),
                topic=topic or DEFAULT_TOPIC,
                url=url,
                file_path=path,
                content_type=file.content_type,
                size=file.size,
            )
        except Exception as e:
            logger.error("material.upload_failed", uid=uid, filename=file.filename, error=str(e))
            report.results.append(UploadResult(file.filename, "failed", error=str(e)))
            continue

        logger.info("material.uploaded", uid=uid, material_id=record.id, path=path)
        report.results.append(UploadResult(file.filename, "uploaded", material=record))

    logger.info(
        "material.upload_finished", uid=uid, uploaded=report.uploaded_count, total=report.total
    )
    return report


def list_materials(store: DocumentStore, uid: str) -> list[MaterialRecord]:
    return get_user_materials(store, uid)


def delete_material(
    store: DocumentStore, storage: ObjectStorage, uid: str, material_id: str
) -> None:
    """Delete a material's stored object and metadata.

    Storage deletion is best-effort; the metadata record is always removed.

    Raises:
        MaterialNotFoundError: If the material does not exist or is not owned by ``uid``
    """
    record = get_material(store, material_id)
    if record is None or record.uploader_uid != uid:
        raise MaterialNotFoundError(material_id)

    if record.file_path:
        try:
            storage.delete(record.file_path)
        except ObjectNotFoundError:
            logger.warning("storage.object_missing", material_id=material_id, path=record.file_path)
        except Exception as e:
            logger.warning(
                "storage.delete_failed",
                material_id=material_id,
                path=record.file_path,
                error=str(e),
            )

    delete_material_record(store, material_id)
    logger.info("material.deleted", uid=uid, material_id=material_id)
