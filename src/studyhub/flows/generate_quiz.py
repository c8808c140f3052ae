"""Quiz generation flow.

Models sometimes return the quiz as a JSON string embedded in the
envelope (``{"quiz": "[...]"}``) instead of a structured array. The flow
accepts both shapes and always hands callers a validated
``list[QuizQuestion]``; anything else raises :class:`QuizParseError`.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from studyhub.flows.base import Flow, FlowOutputError, register_flow
from studyhub.flows.schemas import (
    QUIZ_CONTEXT_LIMIT,
    GenerateQuizInput,
    GenerateQuizOutput,
)
from studyhub.llm.client import LLMClient

logger = structlog.get_logger(__name__)


class QuizParseError(FlowOutputError):
    """The quiz payload could not be parsed into questions."""

    pass


def parse_quiz_payload(raw: Any) -> list[Any]:
    """Normalize a model payload into a list of raw question dicts.

    Accepts a bare list, ``{"quiz": [...]}``, ``{"quiz": "<json>"}``
    or ``{"questions": [...]}``.

    Raises:
        QuizParseError: If no question list can be found
    """
    payload = raw
    if isinstance(payload, dict):
        for key in ("quiz", "questions"):
            if key in payload:
                payload = payload[key]
                break
        else:
            raise QuizParseError("Quiz payload has neither 'quiz' nor 'questions'")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("quiz.json_string_invalid", error=str(e))
            raise QuizParseError(f"Quiz is not valid JSON: {e}") from e
        # The embedded string may itself be an envelope
        if isinstance(payload, dict):
            return parse_quiz_payload(payload)

    if not isinstance(payload, list):
        raise QuizParseError(f"Expected a list of questions, got {type(payload).__name__}")

    return payload


class GenerateQuizFlow(Flow[GenerateQuizInput, GenerateQuizOutput]):
    name = "generateQuiz"
    template = "generate_quiz"
    description = "Generate a multiple-choice quiz on a topic."
    input_model = GenerateQuizInput
    output_model = GenerateQuizOutput
    output_error = QuizParseError
    temperature = 0.5

    def prompt_variables(self, data: GenerateQuizInput) -> dict[str, str]:
        context_section = ""
        if data.context_text and data.context_text.strip():
            context = data.context_text.strip()[:QUIZ_CONTEXT_LIMIT]
            context_section = f"\nBase the questions on the following context:\n{context}\n"

        return {
            "topic": data.topic,
            "difficulty": data.difficulty,
            "number_of_questions": str(data.number_of_questions),
            "context_section": context_section,
        }

    def parse_output(self, raw: Any) -> GenerateQuizOutput:
        questions = parse_quiz_payload(raw)
        return super().parse_output({"questions": questions})


generate_quiz_flow = register_flow(GenerateQuizFlow())


def generate_quiz(
    topic: str,
    difficulty: str = "medium",
    number_of_questions: int = 10,
    context_text: str | None = None,
    client: LLMClient | None = None,
) -> GenerateQuizOutput:
    return generate_quiz_flow.run(
        {
            "topic": topic,
            "difficulty": difficulty,
            "number_of_questions": number_of_questions,
            "context_text": context_text,
        },
        client=client,
    )
