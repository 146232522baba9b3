import pytest

from conftest import make_attempt
from quiz_engine.attempt import AttemptStore
from quiz_engine.navigation import Navigator, QuestionStatus
from quiz_engine.questions import SingleIndex


def _nav(quiz):
    return Navigator(AttemptStore(quiz, make_attempt(quiz)))


def test_next_previous_clamp(quiz):
    nav = _nav(quiz)
    assert nav.previous() == 0
    assert nav.next() == 1
    assert nav.next() == 2
    assert nav.next() == 2
    assert nav.is_last


def test_jump_to_any_question(quiz):
    nav = _nav(quiz)
    assert nav.jump_to(2) == 2
    assert nav.jump_to(0) == 0
    with pytest.raises(IndexError):
        nav.jump_to(3)
    with pytest.raises(IndexError):
        nav.jump_to(-1)


def test_status_priority(quiz):
    nav = _nav(quiz)
    store = nav.store
    store.record_answer("q2", SingleIndex(index=0))
    store.toggle_flag("q2")
    store.toggle_flag("q3")
    store.toggle_flag("q1")
    # current beats everything, answered beats flagged
    assert nav.statuses() == [
        QuestionStatus.current,
        QuestionStatus.answered,
        QuestionStatus.flagged,
    ]
    nav.jump_to(1)
    assert nav.status_of(0) == QuestionStatus.flagged
    assert nav.status_of(1) == QuestionStatus.current


def test_unanswered(quiz):
    nav = _nav(quiz)
    assert nav.status_of(2) == QuestionStatus.unanswered
