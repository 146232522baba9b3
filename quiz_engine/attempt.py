# quiz_engine/attempt.py
from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, field_serializer

from quiz_engine.errors import AttemptClosedError, InvalidQuestionError
from quiz_engine.questions import AnswerValue, Quiz, usable_answers


class AttemptStatus(str, enum.Enum):
    in_progress = "in_progress"
    submitted = "submitted"
    graded = "graded"


class Attempt(BaseModel):
    id: str
    quiz_id: str
    started_at: datetime
    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    flagged: Set[str] = Field(default_factory=set)
    # only for timed quizzes; derived from started_at by the attempt service
    remaining_seconds: Optional[int] = Field(default=None, ge=0)
    status: AttemptStatus = AttemptStatus.in_progress
    submitted_at: Optional[datetime] = None
    attempt_number: int = 1

    @field_serializer("flagged")
    def _sorted_flags(self, v: Set[str]) -> List[str]:
        return sorted(v)


class AttemptStore:
    """
    Single source of truth for an in-progress attempt.

    The store keeps its own copy of the attempt it was given; nobody else
    mutates it while the session lives.
    """

    def __init__(self, quiz: Quiz, attempt: Attempt):
        if attempt.quiz_id != quiz.id:
            raise ValueError(f"attempt {attempt.id!r} belongs to quiz {attempt.quiz_id!r}, not {quiz.id!r}")
        self.quiz = quiz
        self.attempt = attempt.model_copy(deep=True)

    # --- guards ---

    def _check_question(self, question_id: str) -> None:
        if not self.quiz.has_question(question_id):
            raise InvalidQuestionError(question_id)

    def _check_open(self) -> None:
        if self.attempt.status != AttemptStatus.in_progress:
            raise AttemptClosedError(self.attempt.id, self.attempt.status.value)

    # --- mutations ---

    def record_answer(self, question_id: str, value: AnswerValue) -> None:
        # Shape is not checked here; a value that does not fit grades as incorrect.
        self._check_question(question_id)
        self._check_open()
        self.attempt.answers[question_id] = value

    def toggle_flag(self, question_id: str) -> bool:
        self._check_question(question_id)
        self._check_open()
        if question_id in self.attempt.flagged:
            self.attempt.flagged.discard(question_id)
            return False
        self.attempt.flagged.add(question_id)
        return True

    def set_remaining(self, seconds: int) -> None:
        self._check_open()
        current = self.attempt.remaining_seconds
        seconds = max(0, int(seconds))
        self.attempt.remaining_seconds = seconds if current is None else min(current, seconds)

    def close(self, now: Optional[datetime] = None) -> Attempt:
        """InProgress -> Submitted. Further answer/flag changes are rejected."""
        self._check_open()
        self.attempt.status = AttemptStatus.submitted
        self.attempt.submitted_at = now or datetime.now(UTC)
        return self.attempt

    def mark_graded(self) -> None:
        if self.attempt.status == AttemptStatus.in_progress:
            raise ValueError(f"attempt {self.attempt.id!r} must be submitted before grading")
        self.attempt.status = AttemptStatus.graded

    # --- queries ---

    @property
    def status(self) -> AttemptStatus:
        return self.attempt.status

    def is_answered(self, question_id: str) -> bool:
        return question_id in self.attempt.answers

    def is_flagged(self, question_id: str) -> bool:
        return question_id in self.attempt.flagged

    def answered_count(self) -> int:
        return sum(1 for q in self.quiz.questions if q.id in self.attempt.answers)

    def progress_fraction(self) -> float:
        return self.answered_count() / len(self.quiz.questions)

    def checkpoint(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt.id,
            "answers": {
                k: v.model_dump(mode="json") for k, v in usable_answers(self.quiz, self.attempt.answers).items()
            },
            "flagged": sorted(self.attempt.flagged),
            "remaining_seconds": self.attempt.remaining_seconds,
        }
