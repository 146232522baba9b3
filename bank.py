# bank.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError

from quiz_engine.errors import QuizNotFoundError
from quiz_engine.questions import Quiz

logger = logging.getLogger(__name__)

_BASE = Path(__file__).resolve().parent
_DEFAULT_DATA_DIR = _BASE / "data" / "quizzes"  # sharded dir, one or more quizzes per file
_FALLBACK_JSON = _BASE / "quizzes.json"  # single-file bank


def _data_dir() -> Path:
    return Path(os.getenv("QUIZ_DATA_DIR") or _DEFAULT_DATA_DIR)


def _iter_jsonl(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        for idx, line in enumerate(f, 1):
            s = line.strip()
            if not s or s.startswith("#") or s.startswith("//"):
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError:
                logger.warning("skipping malformed line %s:%d", p.name, idx)
                continue


def _iter_json(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("skipping malformed file %s", p.name)
            data = []
    if isinstance(data, dict):
        # a file may hold a single quiz
        data = [data]
    if isinstance(data, list):
        for obj in data:
            yield obj


def _iter_file(p: Path) -> Iterable[Dict[str, Any]]:
    suf = p.suffix.lower()
    if suf == ".jsonl":
        return _iter_jsonl(p)
    if suf == ".json":
        return _iter_json(p)
    return iter(())


class QuizBank:
    _quizzes: Dict[str, Quiz] = {}

    @classmethod
    def load(cls) -> Dict[str, Quiz]:
        if not cls._quizzes:
            cls.reload()
        return cls._quizzes

    @classmethod
    def reload(cls) -> int:
        sources: List[Path] = []
        data_dir = _data_dir()
        if data_dir.exists():
            sources = [p for p in sorted(data_dir.rglob("*")) if p.is_file()]
        if not sources and _FALLBACK_JSON.exists():
            sources = [_FALLBACK_JSON]

        quizzes: Dict[str, Quiz] = {}
        for p in sources:
            for raw in _iter_file(p):
                try:
                    quiz = Quiz.model_validate(raw)
                except ValidationError as e:
                    logger.warning(
                        "skipping invalid quiz %r in %s: %d error(s)",
                        raw.get("id") if isinstance(raw, dict) else None,
                        p.name,
                        e.error_count(),
                    )
                    continue
                if quiz.id in quizzes:
                    logger.warning("duplicate quiz id %r in %s; keeping the first", quiz.id, p.name)
                    continue
                quizzes[quiz.id] = quiz

        cls._quizzes = quizzes
        logger.info("quiz bank loaded: %d quiz(zes)", len(quizzes))
        return len(cls._quizzes)


# Public API
def get_quizzes() -> List[Quiz]:
    return list(QuizBank.load().values())


def get_quiz(quiz_id: str) -> Quiz:
    quiz = QuizBank.load().get(quiz_id)
    if quiz is None:
        raise QuizNotFoundError(quiz_id)
    return quiz


def reload_bank() -> int:
    return QuizBank.reload()
