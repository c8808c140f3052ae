"""Summarize content and keep the result for signed-in users."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from studyhub.db.documents import DocumentStore
from studyhub.db.summaries_repository import save_summary
from studyhub.flows.summarize_content import summarize_content
from studyhub.llm.client import LLMClient

logger = structlog.get_logger(__name__)

PASTED_SOURCE = "Pasted Content"


@dataclass
class SummaryResult:
    summary: str
    summary_id: str | None = None

    @property
    def saved(self) -> bool:
        return self.summary_id is not None


def summarize_and_save(
    content: str,
    source_name: str | None,
    user_id: str | None,
    store: DocumentStore,
    client: LLMClient | None = None,
) -> SummaryResult:
    """Summarize ``content``; persist the summary only when ``user_id`` is set.

    Args:
        content: Text to summarize
        source_name: Name of the summarized file, or None for pasted content
        user_id: Signed-in user's uid, or None when signed out
        store: Document store for the saved summary
        client: LLM client (default: configured client)
    """
    output = summarize_content(content, client=client)

    if user_id is None:
        logger.debug("summary.not_saved", reason="signed_out")
        return SummaryResult(summary=output.summary)

    source = source_name or PASTED_SOURCE
    try:
        summary_id = save_summary(
            store,
            user_id=user_id,
            original_content_id=source,
            summary_text=output.summary,
            title=f"Summary of {source}",
        )
    except Exception as e:
        # The generated summary is still returned, unsaved
        logger.error("summary.save_failed", user_id=user_id, source=source, error=str(e))
        return SummaryResult(summary=output.summary)

    return SummaryResult(summary=output.summary, summary_id=summary_id)
