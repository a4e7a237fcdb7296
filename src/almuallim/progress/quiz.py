"""Single-attempt quiz state machine and the quiz XP policy."""

from collections.abc import Callable
from enum import StrEnum

import structlog
from pydantic import BaseModel

from almuallim.errors import InvalidArgument
from almuallim.models.course import Question, Quiz

logger = structlog.get_logger()

XP_PER_CORRECT_ANSWER = 100

# (score, attempt number starting at 1) -> XP to award
QuizXpPolicy = Callable[[int, int], int]


def xp_for_every_attempt(score: int, attempt: int) -> int:
    """Award XP for every finished attempt, replays included."""
    return score * XP_PER_CORRECT_ANSWER


def xp_for_first_attempt_only(score: int, attempt: int) -> int:
    """Award XP only for the first finished attempt."""
    return score * XP_PER_CORRECT_ANSWER if attempt == 1 else 0


class QuizPhase(StrEnum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class QuizState(BaseModel):
    """Serializable snapshot of a quiz session."""

    phase: QuizPhase
    step: int
    question_count: int
    selection: int | None
    revealed: bool
    score: int
    attempt: int
    last_answer_correct: bool | None = None
    explanation: str | None = None


class QuizSession:
    """One attempt at a quiz, scored as a count of correct answers.

    Args:
        quiz: Quiz to run; must contain at least one question.
        on_complete: Called with ``(score, attempt)`` when an attempt finishes.
        owner_id: Id of the user taking the quiz, if any.
    """

    def __init__(
        self,
        quiz: Quiz,
        on_complete: Callable[[int, int], None] | None = None,
        owner_id: str | None = None,
    ):
        if not quiz.questions:
            raise InvalidArgument(f"Quiz {quiz.id} has no questions")
        self.quiz = quiz
        self.on_complete = on_complete
        self.owner_id = owner_id
        self.attempt = 1
        self._reset()

    def _reset(self) -> None:
        self.phase = QuizPhase.IN_PROGRESS
        self.step = 0
        self.selection: int | None = None
        self.revealed = False
        self.score = 0
        self._last_correct: bool | None = None

    @property
    def finished(self) -> bool:
        return self.phase == QuizPhase.FINISHED

    @property
    def current_question(self) -> Question | None:
        if self.finished:
            return None
        return self.quiz.questions[self.step]

    @property
    def percentage(self) -> int:
        """Display-only score percentage."""
        return round(self.score / len(self.quiz.questions) * 100)

    def select_option(self, index: int) -> None:
        question = self.current_question
        if question is None or self.revealed:
            return
        if not 0 <= index < len(question.options):
            raise InvalidArgument(
                f"Option {index} is out of range for question {question.id} "
                f"({len(question.options)} options)"
            )
        self.selection = index

    def submit(self) -> None:
        question = self.current_question
        if question is None or self.revealed or self.selection is None:
            return
        self._last_correct = self.selection == question.correct_option_index
        if self._last_correct:
            self.score += 1
        self.revealed = True

    def advance(self) -> None:
        if self.finished or not self.revealed:
            return
        if self.step + 1 < len(self.quiz.questions):
            self.step += 1
            self.selection = None
            self.revealed = False
            self._last_correct = None
            return
        self.phase = QuizPhase.FINISHED
        logger.info(
            "quiz_finished",
            quiz_id=self.quiz.id,
            score=self.score,
            total=len(self.quiz.questions),
            attempt=self.attempt,
        )
        if self.on_complete is not None:
            self.on_complete(self.score, self.attempt)

    def restart(self) -> None:
        """Begin a new attempt; XP awarded by earlier attempts is kept."""
        if not self.finished:
            return
        self.attempt += 1
        self._reset()

    def snapshot(self) -> QuizState:
        question = self.current_question
        return QuizState(
            phase=self.phase,
            step=self.step,
            question_count=len(self.quiz.questions),
            selection=self.selection,
            revealed=self.revealed,
            score=self.score,
            attempt=self.attempt,
            last_answer_correct=self._last_correct if self.revealed else None,
            explanation=question.explanation if question is not None and self.revealed else None,
        )
