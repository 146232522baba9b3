from fastapi import HTTPException

from quiz_engine.errors import (
    AttemptClosedError,
    AttemptNotFoundError,
    InvalidQuestionError,
    MaxAttemptsExceededError,
    QuizEngineError,
    QuizNotFoundError,
)

_STATUS = {
    QuizNotFoundError: 404,
    AttemptNotFoundError: 404,
    AttemptClosedError: 409,
    MaxAttemptsExceededError: 409,
    InvalidQuestionError: 422,
}


def http_error(e: QuizEngineError) -> HTTPException:
    """Translate an engine error into the HTTP error the client expects."""
    status = next((s for cls, s in _STATUS.items() if isinstance(e, cls)), 400)
    detail = {"error": e.code, "message": str(e)}
    if isinstance(e, MaxAttemptsExceededError):
        best = e.best_result
        detail["max_attempts"] = e.max_attempts
        detail["best_result"] = best.model_dump(mode="json") if best is not None else None
    return HTTPException(status_code=status, detail=detail)
