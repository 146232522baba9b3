# routers/attempts.py

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select

import service
from db import SessionLocal
from deps.auth import current_user, require_client
from deps.errors import http_error
from quiz_engine.errors import QuizEngineError
from models import QuizAttemptRecord
from routers.quizzes import load_quiz, visible_result
from schemas.attempts import (
    AttemptOut,
    AttemptSummary,
    CheckpointRequest,
    CheckpointResponse,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attempts", tags=["attempts"])


@router.get("/recent-list", dependencies=[Depends(require_client)])
def attempts_recent(limit: int = 20):
    limit = max(1, min(limit, 100))

    with SessionLocal() as db:
        stmt = select(QuizAttemptRecord).order_by(QuizAttemptRecord.started_at.desc()).limit(limit)
        items = list(db.scalars(stmt))

    rows = [AttemptSummary.model_validate(a).model_dump(mode="json") for a in items]
    return {"ok": True, "items": rows, "count": len(rows)}


@router.get("/{attempt_id}", response_model=AttemptOut)
def get_attempt(attempt_id: int, user_id: str = Depends(current_user)):
    with SessionLocal() as db:
        try:
            rec = service.get_attempt(db, attempt_id, user_id)
        except QuizEngineError as e:
            raise http_error(e)
        quiz = load_quiz(rec.quiz_id)
        return AttemptOut(
            attempt=service.to_attempt(quiz, rec),
            user_id=rec.user_id,
            result=visible_result(quiz, service.stored_result(rec)),
        )


@router.put("/{attempt_id}/checkpoint", response_model=CheckpointResponse)
def checkpoint_attempt(
    attempt_id: int, req: CheckpointRequest, user_id: str = Depends(current_user)
):
    with SessionLocal() as db:
        try:
            rec = service.get_attempt(db, attempt_id, user_id)
            quiz = load_quiz(rec.quiz_id)
            remaining = service.checkpoint(db, quiz, rec, req.answers, req.flagged)
        except QuizEngineError as e:
            raise http_error(e)
    return {"ok": True, "remaining_seconds": remaining}


@router.post("/{attempt_id}/submit", response_model=SubmitResponse)
def submit_attempt(attempt_id: int, req: SubmitRequest, user_id: str = Depends(current_user)):
    with SessionLocal() as db:
        try:
            rec = service.get_attempt(db, attempt_id, user_id)
            quiz = load_quiz(rec.quiz_id)
            result = service.submit(db, quiz, rec, req.answers, flagged=req.flagged)
        except QuizEngineError as e:
            raise http_error(e)

    agrees = None
    if req.hint is not None:
        agrees = (
            req.hint.score_percent == result.score_percent
            and req.hint.correct_count == result.correct_count
        )
        if not agrees:
            logger.info(
                "attempt %s: client computed %d%%, server %d%%; server result stands",
                attempt_id,
                req.hint.score_percent,
                result.score_percent,
            )
    return {"ok": True, "result": visible_result(quiz, result), "agrees_with_hint": agrees}
