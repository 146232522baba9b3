# quiz_engine/errors.py
from __future__ import annotations

from typing import Any, Optional


class QuizEngineError(Exception):
    """Base class for everything the quiz engine raises."""

    code = "quiz_engine_error"


class InvalidQuestionError(QuizEngineError):
    code = "invalid_question"

    def __init__(self, question_id: Any):
        super().__init__(f"question {question_id!r} is not part of this quiz")
        self.question_id = question_id


class AttemptClosedError(QuizEngineError):
    code = "attempt_closed"

    def __init__(self, attempt_id: Any, status: Any = None):
        msg = f"attempt {attempt_id!r} no longer accepts changes"
        if status is not None:
            msg += f" (status={status})"
        super().__init__(msg)
        self.attempt_id = attempt_id
        self.status = status


class AlreadyGradedError(QuizEngineError):
    """Raised (and usually only logged) when a graded attempt is submitted again."""

    code = "already_graded"

    def __init__(self, attempt_id: Any, result: Any = None):
        super().__init__(f"attempt {attempt_id!r} has already been graded")
        self.attempt_id = attempt_id
        self.result = result


class MaxAttemptsExceededError(QuizEngineError):
    code = "max_attempts_exceeded"

    def __init__(self, quiz_id: Any, max_attempts: int, best_result: Optional[Any] = None):
        super().__init__(f"quiz {quiz_id!r} allows at most {max_attempts} attempt(s)")
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts
        self.best_result = best_result


class QuizNotFoundError(QuizEngineError):
    code = "quiz_not_found"

    def __init__(self, quiz_id: Any):
        super().__init__(f"quiz {quiz_id!r} not found")
        self.quiz_id = quiz_id


class AttemptNotFoundError(QuizEngineError):
    code = "attempt_not_found"

    def __init__(self, attempt_id: Any):
        super().__init__(f"attempt {attempt_id!r} not found")
        self.attempt_id = attempt_id
