# quiz_engine/navigation.py
from __future__ import annotations

import enum
from typing import List

from quiz_engine.attempt import AttemptStore


class QuestionStatus(str, enum.Enum):
    current = "current"
    answered = "answered"
    flagged = "flagged"
    unanswered = "unanswered"


class Navigator:
    """Current-question cursor over a quiz. Random access is allowed."""

    def __init__(self, store: AttemptStore, start_index: int = 0):
        self.store = store
        self.total = len(store.quiz.questions)
        self.current_index = 0
        self.jump_to(start_index)

    def _clamp(self, index: int) -> int:
        return max(0, min(index, self.total - 1))

    def next(self) -> int:
        self.current_index = self._clamp(self.current_index + 1)
        return self.current_index

    def previous(self) -> int:
        self.current_index = self._clamp(self.current_index - 1)
        return self.current_index

    def jump_to(self, index: int) -> int:
        if not 0 <= index < self.total:
            raise IndexError(f"question index {index} out of range [0, {self.total})")
        self.current_index = index
        return self.current_index

    @property
    def current_question(self):
        return self.store.quiz.questions[self.current_index]

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_index == self.total - 1

    def status_of(self, index: int) -> QuestionStatus:
        # Current > Answered > Flagged > Unanswered
        if not 0 <= index < self.total:
            raise IndexError(f"question index {index} out of range [0, {self.total})")
        if index == self.current_index:
            return QuestionStatus.current
        qid = self.store.quiz.questions[index].id
        if self.store.is_answered(qid):
            return QuestionStatus.answered
        if self.store.is_flagged(qid):
            return QuestionStatus.flagged
        return QuestionStatus.unanswered

    def statuses(self) -> List[QuestionStatus]:
        return [self.status_of(i) for i in range(self.total)]
