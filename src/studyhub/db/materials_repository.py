"""Repository functions for study material metadata (collection ``materials``)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import structlog

from studyhub.db.documents import SERVER_TIMESTAMP, DocumentStore

logger = structlog.get_logger(__name__)

MATERIALS = "materials"

MaterialType = Literal["pdf", "video", "audio", "link", "document"]
MATERIAL_TYPES: tuple[str, ...] = ("pdf", "video", "audio", "link", "document")


@dataclass
class MaterialRecord:
    """Material metadata document."""

    id: str
    name: str
    type: str
    uploader_uid: str
    created_at: str | None = None
    topic: str | None = None
    url: str | None = None
    file_path: str | None = None
    content_type: str | None = None
    size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "uploaderUid": self.uploader_uid,
            "createdAt": self.created_at,
            "topic": self.topic,
            "url": self.url,
            "filePath": self.file_path,
            "contentType": self.content_type,
            "size": self.size,
        }


def _to_record(doc: dict[str, Any]) -> MaterialRecord:
    return MaterialRecord(
        id=doc["id"],
        name=doc.get("name", ""),
        type=doc.get("type", "document"),
        uploader_uid=doc.get("uploaderUid", ""),
        created_at=doc.get("createdAt"),
        topic=doc.get("topic"),
        url=doc.get("url"),
        file_path=doc.get("filePath"),
        content_type=doc.get("contentType"),
        size=doc.get("size"),
    )


def add_material(
    store: DocumentStore,
    uploader_uid: str,
    name: str,
    material_type: str,
    topic: str | None = None,
    url: str | None = None,
    file_path: str | None = None,
    content_type: str | None = None,
    size: int | None = None,
) -> MaterialRecord:
    """Insert a material metadata document."""
    data = {
        "name": name,
        "type": material_type,
        "topic": topic,
        "uploaderUid": uploader_uid,
        "url": url,
        "filePath": file_path,
        "contentType": content_type,
        "size": size,
        "createdAt": SERVER_TIMESTAMP,
    }
    doc_id = store.add(MATERIALS, data)
    logger.debug("materials.inserted", material_id=doc_id, uploader_uid=uploader_uid)

    stored = store.get(MATERIALS, doc_id) or data
    return _to_record({"id": doc_id, **stored})


def get_material(store: DocumentStore, material_id: str) -> MaterialRecord | None:
    doc = store.get(MATERIALS, material_id)
    if doc is None:
        return None
    return _to_record({"id": material_id, **doc})


def get_user_materials(store: DocumentStore, uid: str) -> list[MaterialRecord]:
    """All materials uploaded by ``uid``."""
    return [_to_record(doc) for doc in store.query(MATERIALS, "uploaderUid", uid)]


def delete_material_record(store: DocumentStore, material_id: str) -> bool:
    deleted = store.delete(MATERIALS, material_id)
    if deleted:
        logger.debug("materials.deleted", material_id=material_id)
    return deleted
