"""SQLite file behind the local document store.

Documents live in one table keyed by (collection, doc_id), with the
document body stored as JSON text.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_DB_PATH = Path("db/studyhub.db")

# Route handlers run in a threadpool; writers wait instead of failing
BUSY_TIMEOUT_SECONDS = 10

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    doc_id TEXT NOT NULL,
    data TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (collection, doc_id)
);

CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
"""


def init_db(db_path: Path | None = None) -> Path:
    """Create the database file and schema if missing.

    Args:
        db_path: Database file (default: db/studyhub.db)

    Returns:
        The database path
    """
    path = Path(db_path or DEFAULT_DB_PATH)
    with get_db(path) as conn:
        conn.executescript(SCHEMA)

    logger.info("database.initialized", path=str(path))
    return path


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Connection that commits on success and rolls back on error.

    Example:
        with get_db(path) as conn:
            rows = conn.execute("SELECT doc_id FROM documents").fetchall()
    """
    path = Path(db_path or DEFAULT_DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
