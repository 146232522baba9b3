import pytest

from quiz_engine.matching import eval_numeric, exact_match, get_matcher, numeric_match, regex_match


def test_exact_is_case_and_whitespace_insensitive():
    assert exact_match("  paris ", "Paris")
    assert exact_match("New   York", "new york")
    assert not exact_match("Pariss", "Paris")


def test_numeric_compares_values():
    assert numeric_match("25", "3^2 + 4^2")
    assert numeric_match("0.5", "1/2")
    assert numeric_match(" 2*(3+1) ", "8")
    assert not numeric_match("24", "25")


def test_numeric_rejects_junk_without_raising():
    assert not numeric_match("abc", "1")
    assert not numeric_match("1/0", "1")
    assert not numeric_match("1" * 101, "1")
    assert not numeric_match("", "1")


def test_eval_numeric_raises_on_bad_input():
    with pytest.raises(ValueError):
        eval_numeric("import os")
    assert eval_numeric("7 - 3*2") == pytest.approx(1.0)


def test_regex_full_match_case_insensitive():
    assert regex_match("PyPI", "py ?pi")
    assert regex_match(" py pi ", "py ?pi")
    assert not regex_match("pypi.org", "py ?pi")
    assert not regex_match("x", "(")  # broken pattern never matches


def test_get_matcher():
    assert get_matcher("exact") is exact_match
    with pytest.raises(ValueError):
        get_matcher("nope")
