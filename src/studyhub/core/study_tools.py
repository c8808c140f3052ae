"""In-memory study state for generated flashcards and quizzes.

Neither flashcards nor quiz questions are persisted; these classes hold
the navigation, flip and answer state while a student works through them.
Navigating past either end is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from studyhub.flows.schemas import Flashcard, QuizQuestion


class _Cursor:
    """Bounded index over a non-empty sequence."""

    def __init__(self, length: int):
        if length <= 0:
            raise ValueError("Cannot navigate an empty set")
        self.length = length
        self.index = 0

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == self.length - 1

    def next(self) -> bool:
        if self.is_last:
            return False
        self.index += 1
        return True

    def previous(self) -> bool:
        if self.is_first:
            return False
        self.index -= 1
        return True


class FlashcardDeck:
    """A deck of flashcards with a current card and a flip state."""

    def __init__(self, cards: list[Flashcard]):
        self.cards = list(cards)
        self._cursor = _Cursor(len(self.cards))
        self.flipped = False

    @property
    def index(self) -> int:
        return self._cursor.index

    @property
    def current(self) -> Flashcard:
        return self.cards[self._cursor.index]

    @property
    def visible_text(self) -> str:
        """Question side, or answer side once flipped."""
        return self.current.answer if self.flipped else self.current.question

    def flip(self) -> None:
        self.flipped = not self.flipped

    def next(self) -> bool:
        """Move to the next card. Returns False at the last card."""
        moved = self._cursor.next()
        if moved:
            self.flipped = False
        return moved

    def previous(self) -> bool:
        """Move to the previous card. Returns False at the first card."""
        moved = self._cursor.previous()
        if moved:
            self.flipped = False
        return moved

    def __len__(self) -> int:
        return len(self.cards)


@dataclass
class QuizScore:
    correct: int
    total: int

    @property
    def percent(self) -> float:
        return (self.correct / self.total) * 100 if self.total else 0.0


@dataclass
class QuizSession:
    """Answers and navigation for one generated quiz."""

    questions: list[QuizQuestion]
    answers: dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._cursor = _Cursor(len(self.questions))

    @property
    def index(self) -> int:
        return self._cursor.index

    @property
    def current(self) -> QuizQuestion:
        return self.questions[self._cursor.index]

    @property
    def is_last(self) -> bool:
        return self._cursor.is_last

    def answer(self, option: str, index: int | None = None) -> None:
        """Record the chosen option for a question (current by default)."""
        if index is None:
            index = self._cursor.index
        if not 0 <= index < len(self.questions):
            raise ValueError(f"No question {index + 1} in a {len(self.questions)}-question quiz")
        question = self.questions[index]
        if option not in question.options:
            raise ValueError(f"'{option}' is not an option for question {index + 1}")
        self.answers[index] = option

    def next(self) -> bool:
        return self._cursor.next()

    def previous(self) -> bool:
        return self._cursor.previous()

    def is_correct(self, index: int) -> bool:
        return self.answers.get(index) == self.questions[index].answer

    def score(self) -> QuizScore:
        correct = sum(1 for i in range(len(self.questions)) if self.is_correct(i))
        return QuizScore(correct=correct, total=len(self.questions))
