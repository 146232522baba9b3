# quiz_engine/scoring.py
"""
Scoring engine: (quiz, attempt) -> ScoredResult.

Pure and deterministic. Everything time-related is taken from the attempt
itself (remaining_seconds / submitted_at), never from the clock, so grading
the same pair twice serializes to the same bytes.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

from quiz_engine.attempt import Attempt
from quiz_engine.matching import get_matcher
from quiz_engine.questions import AnswerValue, Question, QuestionType, Quiz, usable_answer


class QuestionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    prompt: str
    user_answer: Optional[AnswerValue] = None
    correct_answer: AnswerValue
    is_correct: bool
    points: int
    explanation: Optional[str] = None


class ScoredResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempt_id: str
    quiz_id: str
    score_percent: int
    passed: bool
    correct_count: int
    total_questions: int
    time_spent_seconds: int
    earned_points: int
    total_points: int
    details: List[QuestionResult] = []


def is_correct(question: Question, answer: Any) -> bool:
    answer = usable_answer(question, answer)
    if answer is None:
        return False
    key = question.correct_answer
    if answer.kind != key.kind:
        return False

    if question.type in (QuestionType.single_choice, QuestionType.true_false):
        return answer.index == key.index
    if question.type == QuestionType.multiple_choice:
        # set equality, no partial credit
        return answer.indices == key.indices
    if question.type == QuestionType.short_answer:
        return get_matcher(question.matcher)(answer.text, key.text)
    raise ValueError(f"unsupported question type {question.type!r}")


def percent(correct: int, total: int) -> int:
    """round(100 * correct / total), halves rounding up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def time_spent_seconds(quiz: Quiz, attempt: Attempt) -> int:
    end = attempt.submitted_at or attempt.started_at
    elapsed = max(0, int((end - attempt.started_at).total_seconds()))
    if not quiz.is_timed:
        return elapsed
    limit = quiz.time_limit_seconds
    if attempt.remaining_seconds is None:
        return min(elapsed, limit)
    return max(0, limit - min(attempt.remaining_seconds, limit))


def grade(quiz: Quiz, attempt: Attempt) -> ScoredResult:
    if attempt.quiz_id != quiz.id:
        raise ValueError(f"attempt {attempt.id!r} is not an attempt at quiz {quiz.id!r}")

    details: List[QuestionResult] = []
    correct_count = 0
    earned = 0
    for q in quiz.questions:
        answer = usable_answer(q, attempt.answers.get(q.id))
        ok = is_correct(q, answer)
        if ok:
            correct_count += 1
            earned += q.points
        details.append(
            QuestionResult(
                question_id=q.id,
                prompt=q.prompt,
                user_answer=answer,
                correct_answer=q.correct_answer,
                is_correct=ok,
                points=q.points,
                explanation=q.explanation,
            )
        )

    total = len(quiz.questions)
    score = percent(correct_count, total)
    return ScoredResult(
        attempt_id=attempt.id,
        quiz_id=quiz.id,
        score_percent=score,
        passed=score >= quiz.passing_score_percent,
        correct_count=correct_count,
        total_questions=total,
        time_spent_seconds=time_spent_seconds(quiz, attempt),
        earned_points=earned,
        total_points=quiz.total_points,
        details=details,
    )
