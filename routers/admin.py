from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from bank import get_quizzes, reload_bank
from deps.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/reload")
def reload_quizzes():
    n = reload_bank()
    logger.info("quiz bank reloaded by admin: %d quiz(zes)", n)
    return {"ok": True, "count": n, "quiz_ids": sorted(q.id for q in get_quizzes())}
