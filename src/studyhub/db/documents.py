"""Document store abstraction.

A small document-database interface with two backends:
- SqliteDocumentStore: local JSON documents in SQLite
- FirestoreDocumentStore: Cloud Firestore via firebase_admin

Documents are plain dicts. ``query`` results carry their id under "id".
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import structlog
from firebase_admin import firestore
from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from studyhub.db.database import get_db, init_db

logger = structlog.get_logger(__name__)


class _ServerTimestamp:
    """Sentinel replaced by the store's notion of "now" on write."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentNotFoundError(Exception):
    """Raised when updating a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


class DocumentStore(Protocol):
    """Operations the repositories need from a document database."""

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None: ...

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    def add(self, collection: str, data: dict[str, Any]) -> str: ...

    def query(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]: ...

    def delete(self, collection: str, doc_id: str) -> bool: ...


# =============================================================================
# SQLITE
# =============================================================================


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _resolve_sentinels(data: dict[str, Any]) -> dict[str, Any]:
    now = _now_iso()
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}


class SqliteDocumentStore:
    """Document store on the local SQLite database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = init_db(db_path)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()

        if row is None:
            return None
        return json.loads(row["data"])

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        data = _resolve_sentinels(data)
        with get_db(self.db_path) as conn:
            if merge:
                row = conn.execute(
                    "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id),
                ).fetchone()
                if row is not None:
                    data = {**json.loads(row["data"]), **data}

            conn.execute(
                """
                INSERT INTO documents (collection, doc_id, data) VALUES (?, ?, ?)
                ON CONFLICT(collection, doc_id) DO UPDATE SET data = excluded.data
                """,
                (collection, doc_id, json.dumps(data, ensure_ascii=False)),
            )

        logger.debug("documents.set", collection=collection, doc_id=doc_id, merge=merge)

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        data = _resolve_sentinels(data)
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)

            merged = {**json.loads(row["data"]), **data}
            conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND doc_id = ?",
                (json.dumps(merged, ensure_ascii=False), collection, doc_id),
            )

        logger.debug("documents.updated", collection=collection, doc_id=doc_id)

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def query(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT doc_id, data FROM documents
                WHERE collection = ? AND json_extract(data, '$.' || ?) = ?
                ORDER BY rowid
                """,
                (collection, field, value),
            ).fetchall()

        return [{"id": row["doc_id"], **json.loads(row["data"])} for row in rows]

    def delete(self, collection: str, doc_id: str) -> bool:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )

        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("documents.deleted", collection=collection, doc_id=doc_id)
        return deleted


# =============================================================================
# FIRESTORE
# =============================================================================


def _plain(data: dict[str, Any]) -> dict[str, Any]:
    """Convert Firestore timestamps to ISO strings."""
    return {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in data.items()}


class FirestoreDocumentStore:
    """Document store on Cloud Firestore."""

    def __init__(self, client: Any = None, app: Any = None):
        if client is None:
            client = firestore.client(app)
        self._client = client

    def _with_server_timestamps(self, data: dict[str, Any]) -> dict[str, Any]:
        return {
            k: (firestore.SERVER_TIMESTAMP if v is SERVER_TIMESTAMP else v)
            for k, v in data.items()
        }

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        snapshot = self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return _plain(snapshot.to_dict() or {})

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False
    ) -> None:
        ref = self._client.collection(collection).document(doc_id)
        ref.set(self._with_server_timestamps(data), merge=merge)

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ref = self._client.collection(collection).document(doc_id)
        try:
            ref.update(self._with_server_timestamps(data))
        except NotFound as e:
            raise DocumentNotFoundError(collection, doc_id) from e

    def add(self, collection: str, data: dict[str, Any]) -> str:
        _update_time, ref = self._client.collection(collection).add(
            self._with_server_timestamps(data)
        )
        return ref.id

    def query(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        snapshots = (
            self._client.collection(collection)
            .where(filter=FieldFilter(field, "==", value))
            .stream()
        )
        return [{"id": s.id, **_plain(s.to_dict() or {})} for s in snapshots]

    def delete(self, collection: str, doc_id: str) -> bool:
        ref = self._client.collection(collection).document(doc_id)
        if not ref.get().exists:
            return False
        ref.delete()
        return True
