# schemas/quizzes.py
from typing import Optional

from pydantic import BaseModel


class QuizSummary(BaseModel):
    id: str
    title: str
    description: str
    question_count: int
    total_points: int
    time_limit_seconds: Optional[int] = None
    passing_score_percent: int
    max_attempts: int
