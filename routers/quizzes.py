from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends

import service
from bank import get_quiz, get_quizzes
from db import SessionLocal
from deps.auth import current_user
from deps.errors import http_error
from quiz_engine.attempt import Attempt
from quiz_engine.errors import MaxAttemptsExceededError, QuizEngineError
from quiz_engine.questions import Quiz
from quiz_engine.scoring import ScoredResult
from schemas.attempts import AttemptSummary, StartAttemptRequest
from schemas.quizzes import QuizSummary

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def visible_result(quiz: Quiz, result: Optional[ScoredResult]) -> Optional[ScoredResult]:
    """Drop the per-question breakdown for quizzes that hide it."""
    if result is None or quiz.show_results_immediately:
        return result
    return result.model_copy(update={"details": []})


def load_quiz(quiz_id: str) -> Quiz:
    try:
        return get_quiz(quiz_id)
    except QuizEngineError as e:
        raise http_error(e)


@router.get("", response_model=List[QuizSummary])
def list_quizzes():
    return [
        QuizSummary(
            id=q.id,
            title=q.title,
            description=q.description,
            question_count=len(q.questions),
            total_points=q.total_points,
            time_limit_seconds=q.time_limit_seconds,
            passing_score_percent=q.passing_score_percent,
            max_attempts=q.max_attempts,
        )
        for q in get_quizzes()
    ]


@router.get("/{quiz_id}", response_model=Quiz)
def get_quiz_detail(quiz_id: str):
    # Full definition, answer key included: the engine grades locally for instant feedback.
    return load_quiz(quiz_id)


@router.post("/{quiz_id}/attempts", response_model=Attempt)
def start_attempt(
    quiz_id: str,
    req: Optional[StartAttemptRequest] = Body(default=None),
    user_id: str = Depends(current_user),
):
    quiz = load_quiz(quiz_id)
    attempt_id = req.attempt_id if req is not None else None
    with SessionLocal() as db:
        try:
            rec = service.start_or_resume(db, quiz, user_id, attempt_id=attempt_id)
        except MaxAttemptsExceededError as e:
            e.best_result = visible_result(quiz, e.best_result)
            raise http_error(e)
        except QuizEngineError as e:
            raise http_error(e)
        return service.to_attempt(quiz, rec)


@router.get("/{quiz_id}/attempts", response_model=List[AttemptSummary])
def list_my_attempts(quiz_id: str, user_id: str = Depends(current_user)):
    load_quiz(quiz_id)
    with SessionLocal() as db:
        return [AttemptSummary.model_validate(r) for r in service.list_attempts(db, quiz_id, user_id)]
