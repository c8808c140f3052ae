"""Input/output schemas for the AI flows.

Every flow validates its input and the model's output against these
pydantic models.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from studyhub.core.data_uri import DataUriError, parse_data_uri

Difficulty = Literal["easy", "medium", "hard"]

QUIZ_MIN_QUESTIONS = 1
QUIZ_MAX_QUESTIONS = 20
QUIZ_DEFAULT_QUESTIONS = 10
QUIZ_CONTEXT_LIMIT = 500

_LETTER_ANSWER = re.compile(r"^\(?([A-Za-z])[.)]?$")


# =============================================================================
# EXTRACTION
# =============================================================================


class ExtractContentInput(BaseModel):
    """A document as a base64 data URI."""

    file_data_uri: str = Field(
        ...,
        validation_alias=AliasChoices("file_data_uri", "fileDataUri"),
        description="Expected format: 'data:<mimetype>;base64,<encoded_data>'",
    )

    @field_validator("file_data_uri")
    @classmethod
    def _check_data_uri(cls, value: str) -> str:
        try:
            parse_data_uri(value)
        except DataUriError as e:
            raise ValueError(str(e)) from e
        return value


class ExtractContentOutput(BaseModel):
    """The extracted text content from the document."""

    extracted_text: str = Field(
        ..., validation_alias=AliasChoices("extracted_text", "extractedText")
    )
    method: Literal["model", "local"] = "model"
    detected_language: str | None = None


# =============================================================================
# SUMMARIZATION
# =============================================================================


class SummarizeContentInput(BaseModel):
    content: str = Field(..., min_length=1)


class SummarizeContentOutput(BaseModel):
    summary: str = Field(..., min_length=1)


# =============================================================================
# QUIZ
# =============================================================================


class GenerateQuizInput(BaseModel):
    topic: str = Field(..., min_length=1)
    difficulty: Difficulty = "medium"
    number_of_questions: int = Field(
        default=QUIZ_DEFAULT_QUESTIONS,
        ge=QUIZ_MIN_QUESTIONS,
        le=QUIZ_MAX_QUESTIONS,
        validation_alias=AliasChoices("number_of_questions", "numberOfQuestions"),
    )
    context_text: str | None = None


class QuizQuestion(BaseModel):
    """A multiple-choice question whose answer is one of its options."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    answer: str
    explanation: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_answer(cls, data: Any) -> Any:
        """Map index, letter or case-variant answers onto the exact option."""
        if not isinstance(data, dict):
            return data

        options = data.get("options") or []
        answer = data.get("answer", data.get("correct_answer"))

        if isinstance(answer, int) and not isinstance(answer, bool):
            if 0 <= answer < len(options):
                answer = options[answer]
        elif isinstance(answer, str):
            stripped = answer.strip()
            matches = [
                o for o in options
                if isinstance(o, str) and o.strip().lower() == stripped.lower()
            ]
            letter = _LETTER_ANSWER.match(stripped)
            if matches:
                answer = matches[0]
            elif letter and ord(letter.group(1).upper()) - ord("A") < len(options):
                answer = options[ord(letter.group(1).upper()) - ord("A")]

        result = {k: v for k, v in data.items() if k != "correct_answer"}
        result["answer"] = answer
        return result

    @model_validator(mode="after")
    def _answer_in_options(self) -> QuizQuestion:
        if self.answer not in self.options:
            raise ValueError(f"answer '{self.answer}' is not one of the options")
        return self


class GenerateQuizOutput(BaseModel):
    questions: list[QuizQuestion] = Field(..., min_length=1)


# =============================================================================
# FLASHCARDS
# =============================================================================


class GenerateFlashcardsInput(BaseModel):
    topic_or_document: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("topic_or_document", "topicOrDocument"),
    )


class Flashcard(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class GenerateFlashcardsOutput(BaseModel):
    flashcards: list[Flashcard]
