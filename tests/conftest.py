import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Point the service at a throwaway database before anything imports db.py
_DB_DIR = tempfile.mkdtemp(prefix="quiz-engine-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("QUIZ_DATA_DIR", str(Path(__file__).resolve().parent.parent / "data" / "quizzes"))

import models  # noqa: E402,F401
from db import Base, engine  # noqa: E402
from quiz_engine.attempt import Attempt  # noqa: E402
from quiz_engine.questions import Quiz  # noqa: E402

T0 = datetime(2026, 1, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


def make_quiz(**overrides) -> Quiz:
    data = {
        "id": "basics",
        "title": "Basics",
        "passing_score_percent": 70,
        "questions": [
            {
                "id": "q1",
                "prompt": "Pick B",
                "type": "single_choice",
                "options": ["A", "B", "C"],
                "correct_answer": 1,
                "explanation": "B is the second letter.",
            },
            {
                "id": "q2",
                "prompt": "Pick the evens",
                "type": "multiple_choice",
                "options": ["2", "3", "4"],
                "correct_answer": [0, 2],
            },
            {
                "id": "q3",
                "prompt": "Capital of France?",
                "type": "short_answer",
                "correct_answer": "Paris",
                "points": 2,
            },
        ],
    }
    data.update(overrides)
    return Quiz.model_validate(data)


def make_attempt(quiz: Quiz, **overrides) -> Attempt:
    data = {"id": "a1", "quiz_id": quiz.id, "started_at": T0}
    if quiz.is_timed:
        data["remaining_seconds"] = quiz.time_limit_seconds
    data.update(overrides)
    return Attempt.model_validate(data)


@pytest.fixture
def quiz() -> Quiz:
    return make_quiz()


@pytest.fixture
def timed_quiz() -> Quiz:
    return make_quiz(id="timed", time_limit_seconds=60)
