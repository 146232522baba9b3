import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers.admin import router as admin_router
from routers.attempts import router as attempts_router
from routers.health import router as health_router
from routers.quizzes import router as quizzes_router

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("quiz-engine")

_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()]

app = FastAPI(title="Quiz Engine – Attempt Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-api-key", "x-admin-token", "x-user-id"],
)


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(quizzes_router)  # /quizzes, /quizzes/{id}/attempts
app.include_router(attempts_router)  # /attempts/...
app.include_router(admin_router)  # /admin/...
app.include_router(health_router)  # /health/...
