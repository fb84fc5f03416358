"""
questboard.api.main — FastAPI application entry point
=======================================================

Run with::

    uvicorn questboard.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from questboard.api.auth import router as auth_router  # noqa: E402
from questboard.api.deps import get_engine  # noqa: E402
from questboard.api.routes.public import router as public_router  # noqa: E402
from questboard.api.routes.sessions import router as sessions_router  # noqa: E402
from questboard.errors import QuestboardError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    logger.info("Questboard API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Questboard API shutting down")


app = FastAPI(
    title="Questboard API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuestboardError)
async def questboard_error_handler(request: Request, exc: QuestboardError) -> JSONResponse:
    """Render typed domain errors as ``{status, position, error, code}``."""
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


app.include_router(auth_router, prefix="/api")
app.include_router(public_router, prefix="/api")
app.include_router(sessions_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
