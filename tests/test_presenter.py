from datetime import timedelta

from conftest import T0, make_attempt
from quiz_engine.attempt import AttemptStatus
from quiz_engine.presenter import format_clock, format_duration, present, render_answer
from quiz_engine.questions import FreeText, IndexSet, SingleIndex
from quiz_engine.scoring import grade


def _result(quiz, answers):
    attempt = make_attempt(
        quiz, answers=answers, status=AttemptStatus.submitted, submitted_at=T0 + timedelta(seconds=65)
    )
    return grade(quiz, attempt)


def test_summary_matches_scoring(quiz):
    r = _result(quiz, {"q1": SingleIndex(index=1), "q2": IndexSet(indices=frozenset({0}))})
    vm = present(r, quiz)
    assert vm.score_percent == r.score_percent == 33
    assert vm.correct_label == "1/3"
    assert vm.score_label == "33%"
    assert vm.banner == "Failed"
    assert vm.headline == "Quiz Complete"
    assert vm.time_label == "1m 5s"
    assert vm.details_available


def test_items_follow_question_order_and_render_options(quiz):
    r = _result(quiz, {"q1": SingleIndex(index=1), "q2": IndexSet(indices=frozenset({2, 1}))})
    # reversed details still come back in quiz order
    shuffled = r.model_copy(update={"details": list(reversed(r.details))})
    vm = present(shuffled, quiz)
    assert [i.question_id for i in vm.items] == ["q1", "q2", "q3"]
    assert [i.number for i in vm.items] == [1, 2, 3]
    first, second, third = vm.items
    assert first.your_answer == "B" and not first.show_correct_answer
    assert second.your_answer == "3, 4"
    assert second.correct_answer == "2, 4" and second.show_correct_answer
    assert third.your_answer == "No answer"
    assert third.correct_answer == "Paris"


def test_passed_banner(quiz):
    r = _result(
        quiz,
        {
            "q1": SingleIndex(index=1),
            "q2": IndexSet(indices=frozenset({0, 2})),
            "q3": FreeText(text="paris"),
        },
    )
    vm = present(r)
    assert vm.passed and vm.banner == "Passed" and vm.headline == "Congratulations!"
    # without the quiz, indices are shown
    assert vm.items[0].your_answer == "#1"


def test_hidden_details(quiz):
    r = _result(quiz, {}).model_copy(update={"details": []})
    vm = present(r, quiz)
    assert not vm.details_available
    assert vm.items == []
    assert vm.correct_label == "0/3"


def test_formatters():
    assert format_clock(125) == "2:05"
    assert format_clock(0) == "0:00"
    assert format_clock(None) == ""
    assert format_duration(59) == "0m 59s"
    assert render_answer(FreeText(text="   ")) == "No answer"
