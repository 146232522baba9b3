from datetime import timedelta

import pytest

from conftest import T0, make_attempt, make_quiz
from quiz_engine.attempt import AttemptStatus
from quiz_engine.questions import FreeText, IndexSet, SingleIndex
from quiz_engine.scoring import grade, is_correct, percent

ALL_RIGHT = {
    "q1": SingleIndex(index=1),
    "q2": IndexSet(indices=frozenset({0, 2})),
    "q3": FreeText(text="  paris "),
}


def _submitted(quiz, answers, **kw):
    kw.setdefault("submitted_at", T0 + timedelta(seconds=42))
    return make_attempt(quiz, answers=answers, status=AttemptStatus.submitted, **kw)


def test_all_correct_passes(quiz):
    r = grade(quiz, _submitted(quiz, ALL_RIGHT))
    assert r.score_percent == 100
    assert r.passed is True
    assert r.correct_count == 3
    assert r.total_questions == 3
    assert r.earned_points == r.total_points == 4


def test_two_of_three_is_67_and_fails_at_70(quiz):
    answers = dict(ALL_RIGHT, q3=FreeText(text="Lyon"))
    r = grade(quiz, _submitted(quiz, answers))
    assert r.score_percent == 67
    assert r.passed is False
    assert r.earned_points == 2


def test_empty_answers_score_zero(quiz):
    r = grade(quiz, _submitted(quiz, {}))
    assert r.correct_count == 0
    assert r.score_percent == 0
    assert all(d.user_answer is None and not d.is_correct for d in r.details)


def test_multiple_choice_requires_exact_set(quiz):
    q2 = quiz.question("q2")
    assert not is_correct(q2, IndexSet(indices=frozenset({0})))
    assert is_correct(q2, IndexSet(indices=frozenset({2, 0})))
    assert not is_correct(q2, IndexSet(indices=frozenset({0, 1, 2})))


def test_wrong_variant_is_incorrect(quiz):
    assert not is_correct(quiz.question("q1"), FreeText(text="B"))
    assert not is_correct(quiz.question("q3"), SingleIndex(index=0))


@pytest.mark.parametrize(
    "qid, raw, expected",
    [
        ("q1", 1, True),
        ("q1", "B", False),
        ("q1", {"kind": "single"}, False),
        ("q2", [2, 0], True),
        ("q2", "0,2", False),
        ("q3", "Paris", True),
        ("q3", 2, False),
        ("q3", object(), False),
    ],
)
def test_raw_values_are_read_or_graded_incorrect(quiz, qid, raw, expected):
    assert is_correct(quiz.question(qid), raw) is expected


def test_flags_do_not_affect_score(quiz):
    a = _submitted(quiz, ALL_RIGHT)
    b = _submitted(quiz, ALL_RIGHT, flagged={"q1", "q2"})
    assert grade(quiz, a).score_percent == grade(quiz, b).score_percent == 100


def test_grading_is_idempotent(quiz):
    attempt = _submitted(quiz, {"q1": SingleIndex(index=1), "q2": IndexSet(indices=frozenset({2, 0}))})
    first = grade(quiz, attempt).model_dump_json()
    second = grade(quiz, attempt).model_dump_json()
    assert first == second


def test_question_order_does_not_change_score(quiz):
    shuffled = make_quiz(questions=[q.model_dump() for q in reversed(quiz.questions)])
    answers = {"q1": SingleIndex(index=1), "q3": FreeText(text="paris")}
    a = grade(quiz, _submitted(quiz, answers))
    b = grade(shuffled, _submitted(shuffled, answers))
    assert a.score_percent == b.score_percent == 67
    assert [d.question_id for d in b.details] == ["q3", "q2", "q1"]


@pytest.mark.parametrize(
    "correct,total,expected",
    [(0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100), (1, 8, 13), (1, 2, 50), (5, 8, 63)],
)
def test_percent_rounds_half_up(correct, total, expected):
    assert percent(correct, total) == expected


def test_time_spent_untimed_uses_wall_clock(quiz):
    r = grade(quiz, _submitted(quiz, {}))
    assert r.time_spent_seconds == 42


def test_time_spent_timed_uses_remaining(timed_quiz):
    attempt = _submitted(timed_quiz, {}, remaining_seconds=15)
    assert grade(timed_quiz, attempt).time_spent_seconds == 45


def test_numeric_short_answer():
    quiz = make_quiz(
        questions=[
            {
                "id": "n",
                "prompt": "1/2 + 1/4",
                "type": "short_answer",
                "correct_answer": "3/4",
                "matcher": "numeric",
            }
        ]
    )
    assert grade(quiz, _submitted(quiz, {"n": FreeText(text="0.75")})).passed


def test_details_carry_review_payload(quiz):
    r = grade(quiz, _submitted(quiz, {"q1": SingleIndex(index=0)}))
    d = r.details[0]
    assert d.question_id == "q1"
    assert d.prompt == "Pick B"
    assert d.user_answer == SingleIndex(index=0)
    assert d.correct_answer == SingleIndex(index=1)
    assert d.explanation == "B is the second letter."
    assert d.points == 1


def test_rejects_attempt_for_other_quiz(quiz, timed_quiz):
    with pytest.raises(ValueError):
        grade(quiz, make_attempt(timed_quiz))
