"""
rally.api.main — FastAPI application entry point
==================================================

Run with::

    uvicorn rally.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from rally import __version__  # noqa: E402
from rally.api.deps import get_config, get_engine  # noqa: E402
from rally.api.routes.campaigns import router as campaigns_router  # noqa: E402
from rally.api.routes.user_actions import router as user_actions_router  # noqa: E402
from rally.api.routes.users import router as users_router  # noqa: E402
from rally.database.engine import init_db, run_db  # noqa: E402
from rally.errors import RallyError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

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
    """Startup/shutdown lifecycle — warm the DB engine, seed the campaign."""
    engine = get_engine()
    cfg = get_config()
    await run_db(init_db, engine, cfg.campaign_slug)
    logger.info(
        "%s API started — engine ready (%s), current campaign '%s'",
        cfg.app_name, engine.url.database, cfg.campaign_slug,
    )
    yield
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="Rally API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@app.exception_handler(RallyError)
async def rally_error_handler(request: Request, exc: RallyError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.message,
                "type": exc.__class__.__name__,
                "details": exc.details,
            }
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": "Database error occurred",
                "type": "DatabaseError",
            }
        },
    )


# Mount routers
app.include_router(campaigns_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(user_actions_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
