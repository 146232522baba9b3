# quiz_engine/questions.py
"""
Question model: question types, tagged answer values and the quiz definition.

Answers are one of three variants, tagged by ``kind``:
  - SingleIndex  -> single_choice / true_false
  - IndexSet     -> multiple_choice
  - FreeText     -> short_answer
"""

from __future__ import annotations

import enum
from functools import cached_property
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    TypeAdapter,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)

from quiz_engine.errors import InvalidQuestionError
from quiz_engine.matching import MATCHERS

TRUE_FALSE_OPTIONS = ["True", "False"]


class QuestionType(str, enum.Enum):
    single_choice = "single_choice"
    multiple_choice = "multiple_choice"
    true_false = "true_false"
    short_answer = "short_answer"


# ---------- Answer values ----------


class SingleIndex(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["single"] = "single"
    index: int


class IndexSet(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["set"] = "set"
    indices: frozenset[int]

    @field_serializer("indices")
    def _sorted_indices(self, v: frozenset[int]) -> List[int]:
        # stable output so identical results serialize identically
        return sorted(v)


class FreeText(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["text"] = "text"
    text: str


AnswerValue = Annotated[Union[SingleIndex, IndexSet, FreeText], Field(discriminator="kind")]
_answer_adapter: TypeAdapter = TypeAdapter(AnswerValue)

_KIND_FOR_TYPE = {
    QuestionType.single_choice: "single",
    QuestionType.true_false: "single",
    QuestionType.multiple_choice: "set",
    QuestionType.short_answer: "text",
}


def expected_kind(qtype: QuestionType) -> str:
    return _KIND_FOR_TYPE[QuestionType(qtype)]


def coerce_answer(qtype: QuestionType, raw: Any) -> Union[SingleIndex, IndexSet, FreeText]:
    """
    Turn a raw value from a quiz file or request into the tagged variant that
    ``qtype`` declares. Already-tagged values (models or dicts with ``kind``)
    pass through unchanged.
    """
    if isinstance(raw, (SingleIndex, IndexSet, FreeText)):
        return raw
    if isinstance(raw, dict) and "kind" in raw:
        return _answer_adapter.validate_python(raw)

    kind = expected_kind(qtype)
    if kind == "single":
        if isinstance(raw, bool) and QuestionType(qtype) == QuestionType.true_false:
            # True -> "True" (index 0), False -> "False" (index 1)
            return SingleIndex(index=0 if raw else 1)
        if isinstance(raw, int) and not isinstance(raw, bool):
            return SingleIndex(index=raw)
    elif kind == "set":
        if isinstance(raw, (list, tuple, set, frozenset)) and all(
            isinstance(i, int) and not isinstance(i, bool) for i in raw
        ):
            return IndexSet(indices=frozenset(raw))
    elif isinstance(raw, str):
        return FreeText(text=raw)

    raise ValueError(f"cannot use {raw!r} as an answer for a {QuestionType(qtype).value} question")


# ---------- Question / Quiz ----------


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    prompt: str
    type: QuestionType
    options: List[str] = Field(default_factory=list)
    points: PositiveInt = 1
    correct_answer: AnswerValue
    explanation: Optional[str] = None
    # short_answer only; see quiz_engine.matching
    matcher: str = "exact"

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce_key(cls, v: Any, info: ValidationInfo) -> Any:
        qtype = info.data.get("type")
        if qtype is None:
            return v
        return coerce_answer(qtype, v)

    @model_validator(mode="before")
    @classmethod
    def _default_true_false_options(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("type") in (QuestionType.true_false, "true_false"):
            if not data.get("options"):
                data = {**data, "options": list(TRUE_FALSE_OPTIONS)}
        return data

    @model_validator(mode="after")
    def _check_key(self) -> "Question":
        if self.type != QuestionType.short_answer and not self.options:
            raise ValueError(f"question {self.id!r}: options are required for {self.type.value}")
        if self.type == QuestionType.short_answer and self.options:
            raise ValueError(f"question {self.id!r}: short_answer questions take no options")

        key = self.correct_answer
        if key.kind != expected_kind(self.type):
            raise ValueError(f"question {self.id!r}: answer key does not fit {self.type.value}")

        n = len(self.options)
        if isinstance(key, SingleIndex) and not 0 <= key.index < n:
            raise ValueError(f"question {self.id!r}: correct option {key.index} out of range")
        if isinstance(key, IndexSet):
            if not key.indices:
                raise ValueError(f"question {self.id!r}: at least one option must be correct")
            bad = sorted(i for i in key.indices if not 0 <= i < n)
            if bad:
                raise ValueError(f"question {self.id!r}: correct options {bad} out of range")
        if self.matcher not in MATCHERS:
            raise ValueError(f"question {self.id!r}: unknown matcher {self.matcher!r}")
        return self


class Quiz(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    questions: List[Question] = Field(min_length=1)
    time_limit_seconds: Optional[PositiveInt] = None
    passing_score_percent: int = Field(default=70, ge=0, le=100)
    max_attempts: PositiveInt = 3
    show_results_immediately: bool = True

    @model_validator(mode="after")
    def _unique_ids(self) -> "Quiz":
        seen = set()
        for q in self.questions:
            if q.id in seen:
                raise ValueError(f"duplicate question id {q.id!r} in quiz {self.id!r}")
            seen.add(q.id)
        return self

    @property
    def is_timed(self) -> bool:
        return self.time_limit_seconds is not None

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @cached_property
    def question_index(self) -> Dict[str, Question]:
        return {q.id: q for q in self.questions}

    def question(self, question_id: str) -> Question:
        q = self.question_index.get(question_id)
        if q is None:
            raise InvalidQuestionError(question_id)
        return q

    def has_question(self, question_id: str) -> bool:
        return question_id in self.question_index


def usable_answer(question: Question, raw: Any) -> Optional[AnswerValue]:
    """The tagged answer ``raw`` stands for, or None when it can't be read as one."""
    if raw is None:
        return None
    try:
        return coerce_answer(question.type, raw)
    except ValueError:
        # pydantic's ValidationError is a ValueError too
        return None


def usable_answers(quiz: Quiz, answers: Dict[str, Any]) -> Dict[str, AnswerValue]:
    """Answers in quiz order, with values that can't be read as answers left out."""
    out: Dict[str, AnswerValue] = {}
    for q in quiz.questions:
        value = usable_answer(q, answers.get(q.id))
        if value is not None:
            out[q.id] = value
    return out
