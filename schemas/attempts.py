from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from quiz_engine.attempt import Attempt
from quiz_engine.questions import AnswerValue
from quiz_engine.scoring import ScoredResult


class StartAttemptRequest(BaseModel):
    # resume this specific attempt instead of the latest open one
    attempt_id: Optional[int] = None


class CheckpointRequest(BaseModel):
    answers: Dict[str, AnswerValue] = {}
    flagged: List[str] = []
    # client's countdown; informational only, the server derives its own
    remaining_seconds: Optional[int] = None


class CheckpointResponse(BaseModel):
    ok: bool
    remaining_seconds: Optional[int] = None


class SubmitRequest(BaseModel):
    answers: Dict[str, AnswerValue] = {}
    flagged: Optional[List[str]] = None
    # the engine's local result, compared against ours for logging
    hint: Optional[ScoredResult] = None


class SubmitResponse(BaseModel):
    ok: bool
    result: ScoredResult
    agrees_with_hint: Optional[bool] = None


class AttemptOut(BaseModel):
    attempt: Attempt
    user_id: str
    result: Optional[ScoredResult] = None


class AttemptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    quiz_id: str
    user_id: str
    attempt_number: int
    status: str
    started_at: Optional[datetime]
    submitted_at: Optional[datetime] = None
    score_percent: Optional[int] = None
    passed: Optional[bool] = None
    correct: Optional[int] = None
    total: Optional[int] = None
    time_spent_seconds: Optional[int] = None
