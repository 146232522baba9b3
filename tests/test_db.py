import pytest

from db import normalize_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("sqlite:///./quiz.db", "sqlite:///./quiz.db"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected
