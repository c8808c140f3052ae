"""Data access for StudyHub.

Provides:
- Document store backends (SQLite, Firestore)
- Repository functions for profiles, materials and summaries
"""

from studyhub.db.database import get_db, init_db
from studyhub.db.documents import (
    SERVER_TIMESTAMP,
    DocumentNotFoundError,
    DocumentStore,
    FirestoreDocumentStore,
    SqliteDocumentStore,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentNotFoundError",
    "DocumentStore",
    "FirestoreDocumentStore",
    "SqliteDocumentStore",
    "get_db",
    "init_db",
]
