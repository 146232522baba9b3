# quiz_engine/matching.py
"""
Short-answer matching strategies.

Each strategy takes (submitted_text, reference) and returns a bool. Questions
pick one by name through ``Question.matcher``; ``exact`` is the default.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict

from sympy import nan, oo, zoo
from sympy.core.power import Pow
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

Matcher = Callable[[str, str], bool]

# --- numeric guards ---------------------------------------------------------------
LEN_LIMIT = 100
NUMERIC_ABS_TOL = 1e-9
_ALLOWED_RE = re.compile(r"^[0-9+\-*/^().\s]{1,100}$")

TRANSFORMS = standard_transformations + (
    convert_xor,
    implicit_multiplication_application,
)

# Hard stops that won't affect normal use
_MAX_OPS = 200
_MAX_INT_DIGITS = 200
_MAX_EXPONENT_ABS = 2000

_WS_RE = re.compile(r"\s+")


def normalize_text(s: str) -> str:
    return _WS_RE.sub(" ", s.strip()).casefold()


def exact_match(submitted: str, reference: str) -> bool:
    return normalize_text(submitted) == normalize_text(reference)


def regex_match(submitted: str, reference: str) -> bool:
    try:
        return re.fullmatch(reference, submitted.strip(), flags=re.IGNORECASE) is not None
    except re.error:
        return False


def _assert_finite(val: Any) -> None:
    if getattr(val, "is_finite", None) is False or val in (oo, -oo, zoo, nan):
        raise ValueError("not finite")


def _assert_complexity(sym: Any) -> None:
    if isinstance(sym, (int, float)) or getattr(sym, "is_Number", False):
        return
    if hasattr(sym, "count_ops") and sym.count_ops() > _MAX_OPS:
        raise ValueError("too complex")
    for node in getattr(sym, "preorder_traversal", lambda: ())():
        if getattr(node, "is_Integer", False) and len(str(abs(int(node)))) > _MAX_INT_DIGITS:
            raise ValueError("too complex")
        if isinstance(node, Pow) and getattr(node.exp, "is_number", False):
            e = float(node.exp)
            if not math.isfinite(e) or abs(e) > _MAX_EXPONENT_ABS:
                raise ValueError("too complex")


def eval_numeric(expr: str) -> float:
    """Evaluate a plain arithmetic expression; raises ValueError on anything else."""
    if not isinstance(expr, str) or not expr.strip() or len(expr) > LEN_LIMIT:
        raise ValueError("empty or too long")
    if _ALLOWED_RE.fullmatch(expr) is None:
        raise ValueError("only digits, spaces, + - * / ^ . and parentheses are allowed")
    try:
        sym = parse_expr(expr, transformations=TRANSFORMS, evaluate=True)
    except Exception as e:
        raise ValueError(f"unparsable expression: {expr!r}") from e
    _assert_complexity(sym)
    _assert_finite(sym)
    val = float(sym.evalf())
    if not math.isfinite(val):
        raise ValueError("not finite")
    return val


def numeric_match(submitted: str, reference: str) -> bool:
    try:
        got = eval_numeric(submitted)
        want = eval_numeric(reference)
    except (ValueError, TypeError, ZeroDivisionError):
        return False
    return math.isclose(got, want, rel_tol=0, abs_tol=NUMERIC_ABS_TOL)


MATCHERS: Dict[str, Matcher] = {
    "exact": exact_match,
    "numeric": numeric_match,
    "regex": regex_match,
}


def get_matcher(name: str) -> Matcher:
    try:
        return MATCHERS[name]
    except KeyError:
        raise ValueError(f"unknown matcher {name!r}") from None
