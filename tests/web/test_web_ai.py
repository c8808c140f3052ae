"""Tests for the AI flow endpoints (model calls mocked)."""

from unittest.mock import patch

from studyhub.core.data_uri import to_data_uri
from studyhub.db.summaries_repository import SUMMARIES

CONTENT = "The mitochondria is the powerhouse of the cell and produces ATP for energy."

QUIZ_ITEM = {
    "question": "What does the mitochondria produce?",
    "options": ["ATP", "DNA", "RNA", "Glucose"],
    "answer": "ATP",
    "explanation": "Cellular respiration produces ATP.",
}


class TestFlowsEndpoint:
    def test_lists_flows(self, api_client):
        response = api_client.get("/api/ai/flows")

        assert response.status_code == 200
        names = [f["name"] for f in response.json()["flows"]]
        assert "generateQuiz" in names
        assert response.json()["count"] == 4


class TestSummarize:
    def test_signed_out_summary_not_saved(self, api_client, store, mock_llm_client):
        response = api_client.post("/api/ai/summarize", json={"content": CONTENT})

        assert response.status_code == 200
        assert response.json() == {
            "summary": "A short summary.",
            "saved": False,
            "summary_id": None,
        }
        assert store.query(SUMMARIES, "summary", "A short summary.") == []
        mock_llm_client.simple_json.assert_called_once()

    def test_signed_in_summary_saved(self, api_client, auth_headers, signed_up, store):
        response = api_client.post(
            "/api/ai/summarize", headers=auth_headers, json={"content": CONTENT}
        )

        data = response.json()
        assert data["saved"] is True
        saved = store.get(SUMMARIES, data["summary_id"])
        assert saved["userId"] == signed_up["uid"]
        assert saved["title"] == "Summary of Pasted Content"

    def test_save_failure_still_returns_summary(self, api_client, auth_headers, signed_up):
        with patch(
            "studyhub.core.summaries.save_summary", side_effect=RuntimeError("firestore down")
        ):
            response = api_client.post(
                "/api/ai/summarize", headers=auth_headers, json={"content": CONTENT}
            )

        assert response.status_code == 200
        assert response.json() == {
            "summary": "A short summary.",
            "saved": False,
            "summary_id": None,
        }

    def test_short_content_rejected(self, api_client, mock_llm_client):
        response = api_client.post("/api/ai/summarize", json={"content": "too short"})

        assert response.status_code == 422
        mock_llm_client.simple_json.assert_not_called()


class TestQuiz:
    def test_quiz(self, api_client, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": [QUIZ_ITEM, QUIZ_ITEM]}

        response = api_client.post(
            "/api/ai/quiz",
            json={"topic": "Cell biology", "difficulty": "easy", "number_of_questions": 2},
        )

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert response.json()["questions"][0]["answer"] == "ATP"
        user_message = mock_llm_client.simple_json.call_args.kwargs["user_message"]
        assert "Cell biology" in user_message

    def test_unparseable_quiz_is_visible_failure(self, api_client, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": "this is not json"}

        response = api_client.post("/api/ai/quiz", json={"topic": "Cell biology"})

        assert response.status_code == 502
        assert response.json()["code"] == "flow/invalid-output"
        assert response.json()["severity"] == "error"

    def test_question_count_out_of_range(self, api_client, mock_llm_client):
        response = api_client.post(
            "/api/ai/quiz", json={"topic": "Cell biology", "number_of_questions": 50}
        )

        assert response.status_code == 422
        mock_llm_client.simple_json.assert_not_called()


class TestFlashcards:
    def test_flashcards(self, api_client, mock_llm_client):
        mock_llm_client.simple_json.return_value = {
            "flashcards": [{"question": "What produces ATP?", "answer": "Mitochondria"}]
        }

        response = api_client.post("/api/ai/flashcards", json={"topic_or_document": CONTENT})

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["flashcards"][0]["answer"] == "Mitochondria"


class TestExtract:
    def test_extract_with_model(self, api_client, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"extracted_text": "Scanned page text"}

        response = api_client.post(
            "/api/ai/extract",
            json={"file_data_uri": to_data_uri(b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 200
        assert response.json()["extracted_text"] == "Scanned page text"
        assert response.json()["method"] == "model"

    def test_extract_upload_local_fallback(self, api_client, mock_llm_client):
        mock_llm_client.supports_media.return_value = False

        response = api_client.post(
            "/api/ai/extract/upload",
            files={"file": ("notes.txt", CONTENT.encode(), "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["method"] == "local"
        assert "powerhouse" in response.json()["extracted_text"]
        mock_llm_client.simple_json.assert_not_called()

    def test_extract_invalid_data_uri(self, api_client):
        response = api_client.post("/api/ai/extract", json={"file_data_uri": "not-a-uri"})

        assert response.status_code == 422
        assert response.json()["code"] == "flow/invalid-input"

    def test_model_unavailable(self, api_client, mock_llm_client):
        from studyhub.llm.client import LLMConnectionError

        mock_llm_client.simple_json.side_effect = LLMConnectionError("Cannot connect")

        response = api_client.post("/api/ai/quiz", json={"topic": "Cell biology"})

        assert response.status_code == 503
        assert response.json()["code"] == "llm/unavailable"
