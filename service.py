# service.py
"""
Attempt service: the system of record behind the quiz engine.

- start / resume attempts, enforcing max_attempts
- derive remaining time from the stored started_at (client clocks are never trusted)
- checkpoints for reload resilience
- authoritative re-grading on submit
"""

from __future__ import annotations

import logging
import math
import os
from datetime import UTC, datetime, timedelta
from typing import Dict, List, Optional

from pydantic import TypeAdapter
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from quiz_engine.attempt import Attempt, AttemptStatus
from quiz_engine.errors import (
    AlreadyGradedError,
    AttemptClosedError,
    AttemptNotFoundError,
    InvalidQuestionError,
    MaxAttemptsExceededError,
)
from quiz_engine.questions import AnswerValue, Quiz
from quiz_engine.scoring import ScoredResult, grade
from models import QuizAttemptRecord

logger = logging.getLogger(__name__)

# Seconds after the deadline during which a submission still counts
SUBMIT_GRACE_SECONDS = int(os.getenv("SUBMIT_GRACE_SECONDS", "5"))

_answers_adapter: TypeAdapter = TypeAdapter(Dict[str, AnswerValue])


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _now(now: Optional[datetime]) -> datetime:
    return _utc(now) if now is not None else datetime.now(UTC)


def remaining_seconds(quiz: Quiz, started_at: datetime, now: datetime) -> Optional[int]:
    if not quiz.is_timed:
        return None
    elapsed = (_utc(now) - _utc(started_at)).total_seconds()
    return max(0, min(quiz.time_limit_seconds, math.ceil(quiz.time_limit_seconds - elapsed)))


def load_answers(raw: Optional[dict]) -> Dict[str, AnswerValue]:
    return _answers_adapter.validate_python(raw or {})


def dump_answers(answers: Dict[str, AnswerValue]) -> dict:
    return {qid: a.model_dump(mode="json") for qid, a in answers.items()}


def _check_answer_ids(quiz: Quiz, answers: Dict[str, AnswerValue], flagged: List[str]) -> None:
    for qid in list(answers) + list(flagged):
        if not quiz.has_question(qid):
            raise InvalidQuestionError(qid)


def stored_result(rec: QuizAttemptRecord) -> Optional[ScoredResult]:
    if rec.result is None:
        return None
    return ScoredResult.model_validate(rec.result)


def to_attempt(quiz: Quiz, rec: QuizAttemptRecord, now: Optional[datetime] = None) -> Attempt:
    """Engine view of a stored attempt, remaining time computed on the server clock."""
    status = AttemptStatus(rec.status)
    if status == AttemptStatus.in_progress:
        remaining = remaining_seconds(quiz, rec.started_at, _now(now))
    elif quiz.is_timed and rec.time_spent_seconds is not None:
        remaining = max(0, quiz.time_limit_seconds - rec.time_spent_seconds)
    else:
        remaining = None
    return Attempt(
        id=str(rec.id),
        quiz_id=rec.quiz_id,
        started_at=_utc(rec.started_at),
        answers=load_answers(rec.answers),
        flagged=set(rec.flagged or []),
        remaining_seconds=remaining,
        status=status,
        submitted_at=_utc(rec.submitted_at),
        attempt_number=rec.attempt_number,
    )


# ---------- lookups ----------


def get_attempt(db: Session, attempt_id: int, user_id: Optional[str] = None) -> QuizAttemptRecord:
    rec = db.get(QuizAttemptRecord, attempt_id)
    if rec is None or (user_id is not None and rec.user_id != user_id):
        raise AttemptNotFoundError(attempt_id)
    return rec


def list_attempts(db: Session, quiz_id: str, user_id: str) -> List[QuizAttemptRecord]:
    stmt = (
        select(QuizAttemptRecord)
        .where(QuizAttemptRecord.quiz_id == quiz_id, QuizAttemptRecord.user_id == user_id)
        .order_by(QuizAttemptRecord.attempt_number)
    )
    return list(db.scalars(stmt))


def best_result(db: Session, quiz_id: str, user_id: str) -> Optional[ScoredResult]:
    """Highest score among graded attempts; the earliest one wins a tie."""
    best: Optional[ScoredResult] = None
    for rec in list_attempts(db, quiz_id, user_id):
        res = stored_result(rec)
        if res is not None and (best is None or res.score_percent > best.score_percent):
            best = res
    return best


# ---------- grading ----------


def _grade_and_store(
    db: Session,
    quiz: Quiz,
    rec: QuizAttemptRecord,
    answers: Dict[str, AnswerValue],
    submitted_at: datetime,
) -> ScoredResult:
    attempt = to_attempt(quiz, rec, now=submitted_at)
    attempt.answers = answers
    attempt.status = AttemptStatus.submitted
    attempt.submitted_at = submitted_at
    result = grade(quiz, attempt)

    rec.answers = dump_answers(answers)
    rec.status = AttemptStatus.graded.value
    rec.submitted_at = submitted_at
    rec.score_percent = result.score_percent
    rec.passed = result.passed
    rec.correct = result.correct_count
    rec.total = result.total_questions
    rec.time_spent_seconds = result.time_spent_seconds
    rec.result = result.model_dump(mode="json")
    db.commit()
    return result


def _is_expired(quiz: Quiz, rec: QuizAttemptRecord, now: datetime) -> bool:
    return quiz.is_timed and remaining_seconds(quiz, rec.started_at, now) == 0


def _close_expired(db: Session, quiz: Quiz, rec: QuizAttemptRecord) -> ScoredResult:
    # Grade with whatever was last checkpointed; answers are never dropped.
    deadline = _utc(rec.started_at) + timedelta(seconds=quiz.time_limit_seconds)
    logger.info("attempt %s ran out of time; grading checkpointed answers", rec.id)
    return _grade_and_store(db, quiz, rec, load_answers(rec.answers), deadline)


# ---------- operations ----------


def start_or_resume(
    db: Session,
    quiz: Quiz,
    user_id: str,
    attempt_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> QuizAttemptRecord:
    now = _now(now)

    if attempt_id is not None:
        rec = get_attempt(db, attempt_id, user_id)
        if rec.quiz_id != quiz.id:
            raise AttemptNotFoundError(attempt_id)
        if rec.status == AttemptStatus.in_progress.value and _is_expired(quiz, rec, now):
            _close_expired(db, quiz, rec)
        if rec.status != AttemptStatus.in_progress.value:
            raise AttemptClosedError(rec.id, rec.status)
        logger.info("resuming attempt %s for user %s", rec.id, user_id)
        return rec

    for rec in list_attempts(db, quiz.id, user_id):
        if rec.status != AttemptStatus.in_progress.value:
            continue
        if _is_expired(quiz, rec, now):
            _close_expired(db, quiz, rec)
            continue
        logger.info("resuming attempt %s for user %s", rec.id, user_id)
        return rec

    used = db.scalar(
        select(func.count())
        .select_from(QuizAttemptRecord)
        .where(QuizAttemptRecord.quiz_id == quiz.id, QuizAttemptRecord.user_id == user_id)
    )
    if used >= quiz.max_attempts:
        raise MaxAttemptsExceededError(quiz.id, quiz.max_attempts, best_result(db, quiz.id, user_id))

    rec = QuizAttemptRecord(
        quiz_id=quiz.id,
        user_id=user_id,
        attempt_number=used + 1,
        status=AttemptStatus.in_progress.value,
        started_at=now,
        answers={},
        flagged=[],
    )
    db.add(rec)
    db.commit()
    db.refresh(rec)
    logger.info("started attempt %s (#%d) of quiz %s for user %s", rec.id, rec.attempt_number, quiz.id, user_id)
    return rec


def checkpoint(
    db: Session,
    quiz: Quiz,
    rec: QuizAttemptRecord,
    answers: Dict[str, AnswerValue],
    flagged: List[str],
    now: Optional[datetime] = None,
) -> Optional[int]:
    """Store progress; returns the server's view of remaining seconds."""
    if rec.status != AttemptStatus.in_progress.value:
        raise AttemptClosedError(rec.id, rec.status)
    _check_answer_ids(quiz, answers, flagged)
    rec.answers = dump_answers(answers)
    rec.flagged = sorted(set(flagged))
    db.commit()
    return remaining_seconds(quiz, rec.started_at, _now(now))


def submit(
    db: Session,
    quiz: Quiz,
    rec: QuizAttemptRecord,
    answers: Dict[str, AnswerValue],
    flagged: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> ScoredResult:
    now = _now(now)
    if rec.status != AttemptStatus.in_progress.value:
        existing = stored_result(rec)
        logger.warning("%s; returning the recorded result", AlreadyGradedError(rec.id, existing))
        return existing

    _check_answer_ids(quiz, answers, flagged or [])
    if flagged is not None:
        rec.flagged = sorted(set(flagged))

    if quiz.is_timed:
        deadline = _utc(rec.started_at) + timedelta(seconds=quiz.time_limit_seconds)
        if now > deadline + timedelta(seconds=SUBMIT_GRACE_SECONDS):
            logger.warning(
                "attempt %s submitted %.0fs after its deadline; grading checkpointed answers",
                rec.id,
                (now - deadline).total_seconds(),
            )
            answers = load_answers(rec.answers)
            now = deadline
        elif now > deadline:
            now = deadline

    result = _grade_and_store(db, quiz, rec, answers, now)
    logger.info(
        "graded attempt %s: %d%% (%d/%d) passed=%s",
        rec.id,
        result.score_percent,
        result.correct_count,
        result.total_questions,
        result.passed,
    )
    return result
