"""Tests for summarize-and-save."""

from unittest.mock import patch

from studyhub.core.summaries import summarize_and_save
from studyhub.db.summaries_repository import SUMMARIES, get_user_summaries

CONTENT = "Mitochondria are the powerhouse of the cell. " * 5


class TestSummarizeAndSave:
    def test_signed_out_persists_nothing(self, store, mock_llm_client):
        result = summarize_and_save(CONTENT, "notes.pdf", None, store, client=mock_llm_client)

        assert result.summary == "A short summary."
        assert result.saved is False
        assert store.query(SUMMARIES, "title", "Summary of notes.pdf") == []

    def test_signed_in_persists_summary(self, store, mock_llm_client):
        result = summarize_and_save(CONTENT, "notes.pdf", "uid-1", store, client=mock_llm_client)

        assert result.saved is True
        saved = get_user_summaries(store, "uid-1")
        assert len(saved) == 1
        assert saved[0]["id"] == result.summary_id
        assert saved[0]["summary"] == "A short summary."
        assert saved[0]["title"] == "Summary of notes.pdf"
        assert saved[0]["originalContentId"] == "notes.pdf"
        assert saved[0]["createdAt"]

    def test_pasted_text_source(self, store, mock_llm_client):
        summarize_and_save(CONTENT, None, "uid-1", store, client=mock_llm_client)

        assert get_user_summaries(store, "uid-1")[0]["originalContentId"] == "Pasted Content"

    def test_save_failure_keeps_summary(self, store, mock_llm_client):
        with patch(
            "studyhub.core.summaries.save_summary", side_effect=RuntimeError("firestore down")
        ):
            result = summarize_and_save(CONTENT, "notes.pdf", "uid-1", store, client=mock_llm_client)

        assert result.summary == "A short summary."
        assert result.saved is False
        assert get_user_summaries(store, "uid-1") == []
