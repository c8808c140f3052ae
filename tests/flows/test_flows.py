"""Tests for the AI flows (model calls mocked)."""

import pytest

from studyhub.core.data_uri import to_data_uri
from studyhub.flows import (
    FlowInputError,
    FlowOutputError,
    QuizParseError,
    UnsupportedMediaError,
    extract_content,
    generate_flashcards,
    generate_quiz,
    get_flow,
    list_flows,
    parse_quiz_payload,
    summarize_content,
)
from studyhub.flows.extract_content import ExtractContentFlow
from studyhub.flows.schemas import QuizQuestion
from studyhub.llm.client import LLMResponseError

QUIZ_ITEM = {
    "question": "What is the capital of France?",
    "options": ["London", "Paris", "Berlin", "Rome"],
    "answer": "Paris",
    "explanation": "Paris has been the capital since the 10th century.",
}


class TestFlowRegistry:
    def test_all_flows_registered(self):
        names = [f.name for f in list_flows()]

        assert names == sorted(
            ["extractContent", "generateFlashcards", "generateQuiz", "summarizeContent"]
        )

    def test_get_flow(self):
        assert get_flow("generateQuiz").prompt_key == "flows/generate_quiz"

    def test_get_unknown_flow(self):
        with pytest.raises(KeyError, match="Flow not found"):
            get_flow("translate")

    def test_describe_includes_schemas(self):
        info = get_flow("summarizeContent").describe()

        assert info["name"] == "summarizeContent"
        assert "content" in info["input_schema"]["properties"]
        assert "summary" in info["output_schema"]["properties"]


class TestSummarizeContent:
    def test_single_model_call(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"summary": "Cells make energy."}

        output = summarize_content("Mitochondria produce ATP.", client=mock_llm_client)

        assert output.summary == "Cells make energy."
        mock_llm_client.simple_json.assert_called_once()
        user_message = mock_llm_client.simple_json.call_args.kwargs["user_message"]
        assert "Mitochondria produce ATP." in user_message

    def test_empty_input(self, mock_llm_client):
        with pytest.raises(FlowInputError, match="content"):
            summarize_content("", client=mock_llm_client)
        mock_llm_client.simple_json.assert_not_called()

    def test_output_missing_summary(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"text": "wrong key"}

        with pytest.raises(FlowOutputError, match="summary"):
            summarize_content("Some content", client=mock_llm_client)

    def test_model_returned_no_json(self, mock_llm_client):
        mock_llm_client.simple_json.side_effect = LLMResponseError("Could not get valid JSON")

        with pytest.raises(FlowOutputError):
            summarize_content("Some content", client=mock_llm_client)


class TestExtractContent:
    def test_media_capable_provider_gets_content_parts(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"extracted_text": "Page one text"}
        uri = to_data_uri(b"%PDF-1.4 fake", "application/pdf")

        output = extract_content(uri, client=mock_llm_client)

        assert output.extracted_text == "Page one text"
        assert output.method == "model"
        parts = mock_llm_client.simple_json.call_args.kwargs["user_message"]
        assert parts[0]["type"] == "text"
        assert "application/pdf" in parts[0]["text"]
        assert parts[1]["type"] == "file"

    def test_camel_case_output_accepted(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"extractedText": "hello"}

        output = extract_content(to_data_uri(b"x", "image/png"), client=mock_llm_client)

        assert output.extracted_text == "hello"

    def test_local_fallback_without_media_support(self, mock_llm_client):
        mock_llm_client.supports_media.return_value = False
        uri = to_data_uri(b"Plain lecture notes about gravity.", "text/plain")

        output = extract_content(uri, client=mock_llm_client)

        assert output.extracted_text == "Plain lecture notes about gravity."
        assert output.method == "local"
        mock_llm_client.simple_json.assert_not_called()

    def test_unsupported_media_without_media_support(self, mock_llm_client):
        mock_llm_client.supports_media.return_value = False

        with pytest.raises(UnsupportedMediaError, match="audio/mpeg"):
            extract_content(to_data_uri(b"ID3", "audio/mpeg"), client=mock_llm_client)

    def test_malformed_data_uri(self, mock_llm_client):
        with pytest.raises(FlowInputError, match="Expected format"):
            extract_content("hello", client=mock_llm_client)

    def test_size_limit(self, mock_llm_client):
        flow = ExtractContentFlow(max_bytes=10)

        with pytest.raises(FlowInputError, match="limit"):
            flow.run({"file_data_uri": to_data_uri(b"x" * 11, "text/plain")}, client=mock_llm_client)


class TestParseQuizPayload:
    @pytest.mark.parametrize(
        "payload",
        [
            [QUIZ_ITEM],
            {"quiz": [QUIZ_ITEM]},
            {"questions": [QUIZ_ITEM]},
            {"quiz": '[{"question": "Q", "options": ["a", "b"], "answer": "a"}]'},
            {"quiz": '{"quiz": [{"question": "Q", "options": ["a", "b"], "answer": "a"}]}'},
        ],
    )
    def test_accepted_shapes(self, payload):
        questions = parse_quiz_payload(payload)

        assert isinstance(questions, list)
        assert len(questions) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"quiz": "this is not json"},
            {"result": []},
            {"quiz": 42},
            "just text",
        ],
    )
    def test_rejected_shapes(self, payload):
        with pytest.raises(QuizParseError):
            parse_quiz_payload(payload)


class TestQuizQuestionNormalization:
    def test_answer_by_index(self):
        q = QuizQuestion.model_validate({"question": "Q", "options": ["a", "b"], "answer": 1})
        assert q.answer == "b"

    def test_answer_by_letter(self):
        q = QuizQuestion.model_validate({"question": "Q", "options": ["a", "b", "c"], "answer": "C"})
        assert q.answer == "c"

    def test_answer_case_insensitive(self):
        q = QuizQuestion.model_validate({"question": "Q", "options": ["Paris", "Rome"], "answer": "paris "})
        assert q.answer == "Paris"

    def test_correct_answer_key(self):
        q = QuizQuestion.model_validate(
            {"question": "Q", "options": ["x", "y"], "correct_answer": "y"}
        )
        assert q.answer == "y"

    def test_answer_not_in_options(self):
        with pytest.raises(ValueError, match="not one of the options"):
            QuizQuestion.model_validate({"question": "Q", "options": ["x", "y"], "answer": "z"})


class TestGenerateQuiz:
    def test_structured_output(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": [QUIZ_ITEM, QUIZ_ITEM]}

        output = generate_quiz("Geography", "easy", 2, client=mock_llm_client)

        assert len(output.questions) == 2
        assert output.questions[0].answer == "Paris"

    def test_json_string_quiz(self, mock_llm_client):
        import json

        mock_llm_client.simple_json.return_value = {"quiz": json.dumps([QUIZ_ITEM])}

        output = generate_quiz("Geography", client=mock_llm_client)

        assert output.questions[0].options == QUIZ_ITEM["options"]

    def test_unparseable_quiz_raises_parse_error(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": "Sorry, I cannot do that."}

        with pytest.raises(QuizParseError):
            generate_quiz("Geography", client=mock_llm_client)

    def test_invalid_question_raises_parse_error(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {
            "quiz": [{"question": "Q", "options": ["only one"], "answer": "only one"}]
        }

        with pytest.raises(QuizParseError):
            generate_quiz("Geography", client=mock_llm_client)

    def test_empty_quiz_raises_parse_error(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": []}

        with pytest.raises(QuizParseError):
            generate_quiz("Geography", client=mock_llm_client)

    def test_context_truncated(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"quiz": [QUIZ_ITEM]}

        generate_quiz("Geography", context_text="A" * 600 + "TAIL", client=mock_llm_client)

        user_message = mock_llm_client.simple_json.call_args.kwargs["user_message"]
        assert "A" * 500 in user_message
        assert "A" * 501 not in user_message
        assert "TAIL" not in user_message

    @pytest.mark.parametrize("count", [0, 21])
    def test_question_count_bounds(self, mock_llm_client, count):
        with pytest.raises(FlowInputError, match="number_of_questions"):
            generate_quiz("Geography", number_of_questions=count, client=mock_llm_client)

    def test_invalid_difficulty(self, mock_llm_client):
        with pytest.raises(FlowInputError, match="difficulty"):
            generate_quiz("Geography", difficulty="impossible", client=mock_llm_client)


class TestGenerateFlashcards:
    def test_envelope(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {
            "flashcards": [{"question": "What is ATP?", "answer": "Energy currency of the cell"}]
        }

        output = generate_flashcards("Cell biology", client=mock_llm_client)

        assert output.flashcards[0].question == "What is ATP?"

    def test_bare_list(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = [{"question": "Q", "answer": "A"}]

        output = generate_flashcards("Cell biology", client=mock_llm_client)

        assert len(output.flashcards) == 1

    def test_invalid_card(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = {"flashcards": [{"question": "Q"}]}

        with pytest.raises(FlowOutputError, match="answer"):
            generate_flashcards("Cell biology", client=mock_llm_client)
