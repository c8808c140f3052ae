"""Flashcard generation flow."""

from __future__ import annotations

from typing import Any

from studyhub.flows.base import Flow, register_flow
from studyhub.flows.schemas import GenerateFlashcardsInput, GenerateFlashcardsOutput
from studyhub.llm.client import LLMClient


class GenerateFlashcardsFlow(Flow[GenerateFlashcardsInput, GenerateFlashcardsOutput]):
    name = "generateFlashcards"
    template = "generate_flashcards"
    description = "Generate question/answer flashcards from a topic or document."
    input_model = GenerateFlashcardsInput
    output_model = GenerateFlashcardsOutput
    temperature = 0.5

    def parse_output(self, raw: Any) -> GenerateFlashcardsOutput:
        # Some models answer with the bare array
        if isinstance(raw, list):
            raw = {"flashcards": raw}
        return super().parse_output(raw)


generate_flashcards_flow = register_flow(GenerateFlashcardsFlow())


def generate_flashcards(
    topic_or_document: str,
    client: LLMClient | None = None,
) -> GenerateFlashcardsOutput:
    return generate_flashcards_flow.run(
        {"topic_or_document": topic_or_document}, client=client
    )
