# routers/health.py
import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from alembic.config import Config
from alembic.script import ScriptDirectory
from bank import get_quizzes
from db import engine

logger = logging.getLogger(__name__)

_ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"db_error: {type(e).__name__}: {e}")


@router.get("/bank")
def health_bank():
    quizzes = get_quizzes()
    return {"ok": bool(quizzes), "count": len(quizzes)}


def _alembic_heads() -> list[str]:
    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_ALEMBIC_INI.parent / "alembic"))
    script = ScriptDirectory.from_config(cfg)
    return list(script.get_heads())


def _db_version() -> str | None:
    with engine.connect() as conn:
        try:
            return conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()
        except Exception:
            # table missing: schema created without migrations
            return None


@router.get("/migrations")
def health_migrations():
    try:
        heads = _alembic_heads()
    except Exception as e:
        logger.warning("could not read alembic heads: %s", e)
        heads = []

    try:
        db_ver = _db_version()
    except Exception as e:
        return {
            "ok": False,
            "error": f"db_connect_failed: {e}",
            "code_heads": heads,
            "db_version": None,
        }

    synced = (db_ver in heads) if heads else False
    return {"ok": synced, "synced": synced, "db_version": db_ver, "code_heads": heads}
