# quiz_engine/presenter.py
"""Formatting of scored results for the review screen. No grading happens here."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from quiz_engine.questions import AnswerValue, FreeText, IndexSet, Quiz, SingleIndex
from quiz_engine.scoring import QuestionResult, ScoredResult

NO_ANSWER = "No answer"


class ReviewItem(BaseModel):
    number: int
    question_id: str
    prompt: str
    is_correct: bool
    points: int
    your_answer: str
    correct_answer: str
    show_correct_answer: bool
    explanation: Optional[str] = None


class ReviewViewModel(BaseModel):
    quiz_id: str
    passed: bool
    banner: str
    headline: str
    score_percent: int
    score_label: str
    correct_count: int
    total_questions: int
    correct_label: str
    time_spent_seconds: int
    time_label: str
    details_available: bool
    items: List[ReviewItem] = []


def format_clock(seconds: Optional[int]) -> str:
    """Countdown display, m:ss."""
    if seconds is None:
        return ""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}m {seconds % 60}s"


def render_answer(value: Optional[AnswerValue], options: Optional[List[str]] = None) -> str:
    if value is None:
        return NO_ANSWER

    def label(i: int) -> str:
        if options and 0 <= i < len(options):
            return options[i]
        return f"#{i}"

    if isinstance(value, SingleIndex):
        return label(value.index)
    if isinstance(value, IndexSet):
        return ", ".join(label(i) for i in sorted(value.indices)) or NO_ANSWER
    if isinstance(value, FreeText):
        return value.text.strip() or NO_ANSWER
    return str(value)


def _item(number: int, d: QuestionResult, options: Optional[List[str]]) -> ReviewItem:
    return ReviewItem(
        number=number,
        question_id=d.question_id,
        prompt=d.prompt,
        is_correct=d.is_correct,
        points=d.points,
        your_answer=render_answer(d.user_answer, options),
        correct_answer=render_answer(d.correct_answer, options),
        show_correct_answer=not d.is_correct,
        explanation=d.explanation,
    )


def present(result: ScoredResult, quiz: Optional[Quiz] = None) -> ReviewViewModel:
    details = list(result.details)
    options_by_id = {}
    if quiz is not None:
        order = {q.id: i for i, q in enumerate(quiz.questions)}
        details.sort(key=lambda d: order.get(d.question_id, len(order)))
        options_by_id = {q.id: q.options for q in quiz.questions}

    items = [
        _item(i, d, options_by_id.get(d.question_id)) for i, d in enumerate(details, start=1)
    ]
    return ReviewViewModel(
        quiz_id=result.quiz_id,
        passed=result.passed,
        banner="Passed" if result.passed else "Failed",
        headline="Congratulations!" if result.passed else "Quiz Complete",
        score_percent=result.score_percent,
        score_label=f"{result.score_percent}%",
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        correct_label=f"{result.correct_count}/{result.total_questions}",
        time_spent_seconds=result.time_spent_seconds,
        time_label=format_duration(result.time_spent_seconds),
        details_available=bool(result.details),
        items=items,
    )
