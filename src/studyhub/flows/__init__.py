"""AI flows: declarative prompt-to-schema bindings.

Flows:
- extractContent: document data URI -> extracted text
- summarizeContent: free text -> summary
- generateQuiz: topic/difficulty/count -> validated questions
- generateFlashcards: topic or document -> question/answer cards
"""

from studyhub.flows.base import (
    Flow,
    FlowError,
    FlowInputError,
    FlowOutputError,
    get_flow,
    list_flows,
)
from studyhub.flows.extract_content import (
    ExtractContentFlow,
    UnsupportedMediaError,
    extract_content,
)
from studyhub.flows.generate_flashcards import generate_flashcards
from studyhub.flows.generate_quiz import QuizParseError, generate_quiz, parse_quiz_payload
from studyhub.flows.summarize_content import summarize_content

__all__ = [
    "Flow",
    "FlowError",
    "FlowInputError",
    "FlowOutputError",
    "ExtractContentFlow",
    "QuizParseError",
    "UnsupportedMediaError",
    "extract_content",
    "generate_flashcards",
    "generate_quiz",
    "get_flow",
    "list_flows",
    "parse_quiz_payload",
    "summarize_content",
]
