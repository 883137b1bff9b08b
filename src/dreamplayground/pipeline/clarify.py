"""Clarification flow for one clarify stage.

Local states: ``loading`` while questions are requested, then either an
immediate completion (no questions) or ``awaiting_answers`` until the user
submits or skips. The ``on_done`` callback receives the transcript exactly
once.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum

from dreamplayground.models import ClarifyingQuestion, QAEntry
from dreamplayground.observability.logging import get_logger

log = get_logger(__name__)

Answer = str | list[str]
QuestionSource = Callable[[str], Awaitable[list[ClarifyingQuestion]]]
DoneFn = Callable[[list[QAEntry]], None]


class ClarifyState(Enum):
    """Lifecycle of a clarification flow."""

    LOADING = "loading"
    AWAITING_ANSWERS = "awaiting_answers"
    SUBMITTED = "submitted"


class ClarificationError(Exception):
    """Raised on invalid use of a clarification flow."""


def build_transcript(
    questions: list[ClarifyingQuestion],
    answers: dict[str, Answer],
) -> list[QAEntry]:
    """Flatten answers against questions, in question order.

    Multi-select answers are joined with ``", "``. Answers that are empty
    after trimming are omitted.
    """
    transcript: list[QAEntry] = []
    for question in questions:
        answer = answers.get(question.id, "")
        text = ", ".join(answer) if isinstance(answer, list) else answer
        text = text.strip()
        if text:
            transcript.append(QAEntry(question=question.question, answer=text))
    return transcript


class ClarificationFlow:
    """Collects answers to the clarifying questions of one dream.

    Args:
        description: The dream description the questions are about.
        on_done: Called once with the final transcript.
    """

    def __init__(self, description: str, on_done: DoneFn) -> None:
        self.description = description
        self._on_done = on_done
        self.state = ClarifyState.LOADING
        self.questions: list[ClarifyingQuestion] = []
        self.answers: dict[str, Answer] = {}
        self.transcript: list[QAEntry] | None = None

    async def load(self, source: QuestionSource) -> list[ClarifyingQuestion]:
        """Fetch questions; with none to ask, complete with an empty transcript.

        A failing source is treated as "no questions".
        """
        if self.state is not ClarifyState.LOADING:
            raise ClarificationError(f"Questions already loaded (state={self.state.value})")

        try:
            questions = await source(self.description)
        except Exception as e:
            log.warning("clarify_load_failed", error=str(e))
            questions = []

        self.questions = list(questions)
        if not self.questions:
            self._finish([])
        else:
            self.state = ClarifyState.AWAITING_ANSWERS
        return self.questions

    def _question(self, question_id: str) -> ClarifyingQuestion:
        if self.state is not ClarifyState.AWAITING_ANSWERS:
            raise ClarificationError(f"Not accepting answers (state={self.state.value})")
        for question in self.questions:
            if question.id == question_id:
                return question
        raise ClarificationError(f"Unknown question id: {question_id}")

    def set_answer(self, question_id: str, answer: Answer) -> None:
        """Record a free-text answer (or a full selection for multi-select)."""
        self._question(question_id)
        self.answers[question_id] = list(answer) if isinstance(answer, list) else answer

    def choose(self, question_id: str, option: str) -> None:
        """Select one option of a single-choice question."""
        self._question(question_id)
        self.answers[question_id] = option

    def toggle_choice(self, question_id: str, option: str) -> None:
        """Add or remove an option of a multi-select question."""
        self._question(question_id)
        current = self.answers.get(question_id)
        selected = list(current) if isinstance(current, list) else []
        if option in selected:
            selected.remove(option)
        else:
            selected.append(option)
        self.answers[question_id] = selected

    def submit(self) -> list[QAEntry]:
        """Finish with the answered questions."""
        if self.state is not ClarifyState.AWAITING_ANSWERS:
            raise ClarificationError(f"Cannot submit (state={self.state.value})")
        return self._finish(build_transcript(self.questions, self.answers))

    def skip(self) -> list[QAEntry]:
        """Finish immediately with an empty transcript."""
        if self.state is ClarifyState.SUBMITTED:
            raise ClarificationError("Already submitted")
        return self._finish([])

    def _finish(self, transcript: list[QAEntry]) -> list[QAEntry]:
        self.state = ClarifyState.SUBMITTED
        self.transcript = transcript
        log.info("clarify_done", questions=len(self.questions), answered=len(transcript))
        self._on_done(transcript)
        return transcript
