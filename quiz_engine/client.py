# quiz_engine/client.py
"""
HTTP implementation of ``AttemptService`` on top of httpx.

One request per call and no retries: failures surface to the host as the
matching engine error, or as ``httpx.HTTPError`` for transport problems.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from quiz_engine.attempt import Attempt
from quiz_engine.errors import (
    AttemptClosedError,
    AttemptNotFoundError,
    InvalidQuestionError,
    MaxAttemptsExceededError,
    QuizNotFoundError,
)
from quiz_engine.questions import AnswerValue, Quiz
from quiz_engine.scoring import ScoredResult

logger = logging.getLogger(__name__)


def _detail(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    detail = body.get("detail") if isinstance(body, dict) else None
    return detail if isinstance(detail, dict) else {}


def _raise_for(resp: httpx.Response, ref: Any = None) -> None:
    if resp.is_success:
        return
    detail = _detail(resp)
    code = detail.get("error")
    if code == "quiz_not_found":
        raise QuizNotFoundError(ref)
    if code == "attempt_not_found":
        raise AttemptNotFoundError(ref)
    if code == "attempt_closed":
        raise AttemptClosedError(ref)
    if code == "invalid_question":
        raise InvalidQuestionError(detail.get("message"))
    if code == "max_attempts_exceeded":
        best = detail.get("best_result")
        raise MaxAttemptsExceededError(
            ref,
            detail.get("max_attempts", 0),
            ScoredResult.model_validate(best) if best else None,
        )
    resp.raise_for_status()


def _dump_answers(answers: Dict[str, AnswerValue]) -> Dict[str, Any]:
    return {qid: a.model_dump(mode="json") for qid, a in answers.items()}


class HttpAttemptService:
    def __init__(self, client: httpx.AsyncClient, user_id: Optional[str] = None):
        self.client = client
        self.headers = {"x-user-id": user_id} if user_id else {}

    async def load_quiz(self, quiz_id: str) -> Quiz:
        resp = await self.client.get(f"/quizzes/{quiz_id}", headers=self.headers)
        _raise_for(resp, quiz_id)
        return Quiz.model_validate(resp.json())

    async def start_attempt(self, quiz_id: str, attempt_id: Optional[str] = None) -> Attempt:
        body = {"attempt_id": int(attempt_id)} if attempt_id is not None else None
        resp = await self.client.post(f"/quizzes/{quiz_id}/attempts", json=body, headers=self.headers)
        _raise_for(resp, attempt_id if attempt_id is not None else quiz_id)
        return Attempt.model_validate(resp.json())

    async def submit(
        self,
        attempt_id: str,
        answers: Dict[str, AnswerValue],
        flagged: Optional[List[str]] = None,
        hint: Optional[ScoredResult] = None,
    ) -> ScoredResult:
        payload: Dict[str, Any] = {"answers": _dump_answers(answers)}
        if flagged is not None:
            payload["flagged"] = list(flagged)
        if hint is not None:
            payload["hint"] = hint.model_dump(mode="json")
        resp = await self.client.post(f"/attempts/{attempt_id}/submit", json=payload, headers=self.headers)
        _raise_for(resp, attempt_id)
        body = resp.json()
        if body.get("agrees_with_hint") is False:
            logger.info("server grade for attempt %s differs from the local one", attempt_id)
        return ScoredResult.model_validate(body["result"])

    async def checkpoint(
        self,
        attempt_id: str,
        answers: Dict[str, AnswerValue],
        flagged: List[str],
        remaining_seconds: Optional[int] = None,
    ) -> None:
        payload = {
            "answers": _dump_answers(answers),
            "flagged": list(flagged),
            "remaining_seconds": remaining_seconds,
        }
        resp = await self.client.put(f"/attempts/{attempt_id}/checkpoint", json=payload, headers=self.headers)
        _raise_for(resp, attempt_id)
