"""Repository functions for saved summaries (collection ``summaries``)."""

from __future__ import annotations

from typing import Any

import structlog

from studyhub.db.documents import SERVER_TIMESTAMP, DocumentStore

logger = structlog.get_logger(__name__)

SUMMARIES = "summaries"


def save_summary(
    store: DocumentStore,
    user_id: str,
    original_content_id: str,
    summary_text: str,
    title: str | None = None,
) -> str:
    """Persist a summary and return its id.

    Args:
        user_id: Owner uid
        original_content_id: Material id or source name that was summarized
        summary_text: The generated summary
        title: Display title (defaults to "Summary")
    """
    doc_id = store.add(
        SUMMARIES,
        {
            "userId": user_id,
            "originalContentId": original_content_id,
            "title": title or "Summary",
            "summary": summary_text,
            "createdAt": SERVER_TIMESTAMP,
        },
    )
    logger.info("summaries.saved", summary_id=doc_id, user_id=user_id)
    return doc_id


def get_user_summaries(store: DocumentStore, user_id: str) -> list[dict[str, Any]]:
    return store.query(SUMMARIES, "userId", user_id)
