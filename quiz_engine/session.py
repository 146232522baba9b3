# quiz_engine/session.py
"""
QuizSession: one engine instance for one attempt.

Wires the attempt store, navigator, countdown, scoring and presenter
together, and talks to the attempt service (anything implementing
``AttemptService``) for submission and checkpoints.

    async with await open_session(service, "python-basics") as s:
        s.record_answer("q1", SingleIndex(index=2))
        s.jump_to(2)
        result = await s.submit()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Callable, Dict, List, Optional, Protocol, Set

from quiz_engine.attempt import Attempt, AttemptStatus, AttemptStore
from quiz_engine.errors import AlreadyGradedError
from quiz_engine.navigation import Navigator, QuestionStatus
from quiz_engine.presenter import ReviewViewModel, format_clock, present
from quiz_engine.questions import AnswerValue, Question, Quiz, usable_answers
from quiz_engine.scoring import ScoredResult, grade
from quiz_engine.timer import TICK_SECONDS, Countdown, TimerState

logger = logging.getLogger(__name__)

CHECKPOINT_EVERY = 10  # ticks


class AttemptService(Protocol):
    async def load_quiz(self, quiz_id: str) -> Quiz: ...

    async def start_attempt(self, quiz_id: str, attempt_id: Optional[str] = None) -> Attempt: ...

    async def submit(
        self,
        attempt_id: str,
        answers: Dict[str, AnswerValue],
        flagged: Optional[List[str]] = None,
        hint: Optional[ScoredResult] = None,
    ) -> ScoredResult: ...

    async def checkpoint(
        self,
        attempt_id: str,
        answers: Dict[str, AnswerValue],
        flagged: List[str],
        remaining_seconds: Optional[int] = None,
    ) -> None: ...


class QuizSession:
    def __init__(
        self,
        quiz: Quiz,
        attempt: Attempt,
        service: Optional[AttemptService] = None,
        interval: float = TICK_SECONDS,
        checkpoint_every: int = CHECKPOINT_EVERY,
        result: Optional[ScoredResult] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.quiz = quiz
        self.store = AttemptStore(quiz, attempt)
        self.navigator = Navigator(self.store)
        self.service = service
        self.checkpoint_every = checkpoint_every
        self.local_result: Optional[ScoredResult] = None
        self.result = result
        self.auto_submitted = False
        self._clock = clock or (lambda: datetime.now(UTC))
        self._submission: Optional[asyncio.Future] = None
        self._checkpoints: Set[asyncio.Task] = set()
        self._ticks = 0

        remaining = None
        if quiz.is_timed:
            remaining = self.store.attempt.remaining_seconds
            if remaining is None:
                remaining = quiz.time_limit_seconds
        self.countdown = Countdown(
            remaining,
            on_expire=self._on_expire,
            on_tick=self._on_tick,
            interval=interval,
        )

    # --- lifecycle ---

    async def __aenter__(self) -> "QuizSession":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def start(self) -> None:
        if self.store.status == AttemptStatus.in_progress:
            self.countdown.start()

    def close(self) -> None:
        """Release the countdown and drop pending checkpoints."""
        self.countdown.cancel()
        for t in list(self._checkpoints):
            t.cancel()

    # --- user actions ---

    def record_answer(self, question_id: str, value: AnswerValue) -> None:
        self.store.record_answer(question_id, value)

    def toggle_flag(self, question_id: str) -> bool:
        return self.store.toggle_flag(question_id)

    def next(self) -> int:
        return self.navigator.next()

    def previous(self) -> int:
        return self.navigator.previous()

    def jump_to(self, index: int) -> int:
        return self.navigator.jump_to(index)

    # --- view state ---

    @property
    def attempt(self) -> Attempt:
        return self.store.attempt

    @property
    def current_question(self) -> Question:
        return self.navigator.current_question

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self.countdown.remaining_seconds

    @property
    def clock_label(self) -> str:
        return format_clock(self.countdown.remaining_seconds)

    def statuses(self) -> List[QuestionStatus]:
        return self.navigator.statuses()

    def progress_fraction(self) -> float:
        return self.store.progress_fraction()

    def can_submit(self) -> bool:
        """Whether the submit button shows; submit() itself works from anywhere."""
        return self.store.status == AttemptStatus.in_progress and self.navigator.is_last

    def review(self) -> Optional[ReviewViewModel]:
        if self.result is None:
            return None
        return present(self.result, self.quiz)

    # --- timer callbacks ---

    def _on_tick(self, remaining: int) -> None:
        self.store.set_remaining(remaining)
        self._ticks += 1
        if self.service is not None and self.checkpoint_every and self._ticks % self.checkpoint_every == 0:
            task = asyncio.ensure_future(self.checkpoint())
            self._checkpoints.add(task)
            task.add_done_callback(self._checkpoints.discard)

    def _on_expire(self) -> asyncio.Future:
        # Time's up: same path as a manual submit, input closes right away.
        return self._start_submission(auto=True)

    # --- submission ---

    def _start_submission(self, auto: bool) -> asyncio.Future:
        if self._submission is None:
            if self.countdown.is_timed:
                self.store.set_remaining(self.countdown.remaining_seconds)
            now = self._clock()
            # grade before closing: a grading error leaves the attempt open
            pending = self.store.attempt.model_copy(
                update={"status": AttemptStatus.submitted, "submitted_at": now}
            )
            local_result = grade(self.quiz, pending)
            self.countdown.stop()
            attempt = self.store.close(now)
            self.auto_submitted = auto
            logger.info(
                "attempt %s submitted (%s)", attempt.id, "auto, time expired" if auto else "manual"
            )
            self.local_result = local_result
            self._submission = asyncio.ensure_future(self._finish())
        elif self._submission.done() and (
            self._submission.cancelled() or self._submission.exception() is not None
        ):
            # previous delivery failed; the host asked again
            self._submission = asyncio.ensure_future(self._finish())
        return self._submission

    async def _finish(self) -> ScoredResult:
        result = self.local_result
        if self.service is not None:
            try:
                result = await self.service.submit(
                    self.store.attempt.id,
                    usable_answers(self.quiz, self.store.attempt.answers),
                    flagged=sorted(self.store.attempt.flagged),
                    hint=self.local_result,
                )
            except AlreadyGradedError as e:
                logger.warning("%s; keeping the recorded result", e)
                if e.result is not None:
                    result = e.result
        self.result = result
        self.store.mark_graded()
        self.close()
        return result

    async def submit(self) -> ScoredResult:
        """
        Submit the attempt (manual path). Concurrent calls, including one made
        by timer expiry, share a single submission. A graded attempt is not
        re-graded: the existing result comes back.
        """
        if self.store.status == AttemptStatus.graded:
            logger.warning("%s", AlreadyGradedError(self.store.attempt.id, self.result))
            return self.result
        return await asyncio.shield(self._start_submission(auto=False))

    async def checkpoint(self) -> None:
        """Best-effort progress push; failures are logged, never raised."""
        if self.service is None:
            return
        snap = self.store.checkpoint()
        try:
            await self.service.checkpoint(
                snap["attempt_id"],
                usable_answers(self.quiz, self.store.attempt.answers),
                snap["flagged"],
                remaining_seconds=snap["remaining_seconds"],
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("checkpoint for attempt %s failed: %s", snap["attempt_id"], e)


async def open_session(
    service: AttemptService,
    quiz_id: str,
    attempt_id: Optional[str] = None,
    **kwargs,
) -> QuizSession:
    """Load the quiz, start or resume the attempt, and build a session for it."""
    quiz = await service.load_quiz(quiz_id)
    attempt = await service.start_attempt(quiz_id, attempt_id)
    return QuizSession(quiz, attempt, service=service, **kwargs)


__all__ = [
    "AttemptService",
    "QuizSession",
    "TimerState",
    "open_session",
]
