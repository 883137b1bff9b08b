"""Pydantic models for the clarifying-question dialogue."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

MAX_CHOICES = 8


class ClarifyingQuestion(BaseModel):
    """A question the interviewer model wants answered before analysis.

    Attributes:
        id: Unique within a session (``q1``, ``q2`` ... when the model omits it).
        question: The question text.
        rationale: Why the answer helps, shown under the question.
        choices: Optional ordered options; at most eight are kept.
        multi: True when several choices may be selected.
    """

    id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    rationale: str | None = None
    choices: list[str] | None = None
    multi: bool = False

    @field_validator("choices", mode="before")
    @classmethod
    def cap_choices(cls, value: Any) -> list[str] | None:
        """Keep list choices (stringified, capped); anything else means free text."""
        if not isinstance(value, list):
            return None
        return [str(choice) for choice in value[:MAX_CHOICES]]

    @field_validator("multi", mode="before")
    @classmethod
    def default_multi(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @property
    def has_choices(self) -> bool:
        return bool(self.choices)


class QAEntry(BaseModel):
    """One answered question in the transcript."""

    question: str
    answer: str
