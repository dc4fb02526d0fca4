from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import schemas, settings
from .errors import (
    AnalyzerError,
    Conflict,
    DuplicateKey,
    InvalidField,
    InvalidTransition,
    NotFound,
    OutOfRange,
    ScorerUnavailable,
)
from .routers import audit, posts, stats, system, tags, users
from .seed import ensure_seed_data

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False

# First match wins
_ERROR_STATUS: tuple[tuple[type[AnalyzerError], int], ...] = (
    (NotFound, 404),
    (DuplicateKey, 409),
    (InvalidTransition, 409),
    (OutOfRange, 422),
    (InvalidField, 422),
    (Conflict, 503),
    (ScorerUnavailable, 503),
)


def _alembic_config() -> Config:
    api_dir = Path(__file__).resolve().parent.parent
    config = Config(str(api_dir / "alembic.ini"))
    config.set_main_option("script_location", str(api_dir / "alembic"))
    return config


def run_migrations() -> None:
    """Upgrade the schema to the latest revision unless it is already there."""
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    from .db import engine

    config = _alembic_config()
    targets = set(ScriptDirectory.from_config(config).get_heads())
    try:
        with engine.connect() as connection:
            applied = set(MigrationContext.configure(connection).get_current_heads())
    finally:
        # command.upgrade opens its own connection
        engine.dispose()

    if applied == targets:
        logger.info("Schema at %s, no migrations to run", sorted(targets))
        return

    logger.info("Migrating schema from %s to %s", sorted(applied) or "empty", sorted(targets))
    try:
        command.upgrade(config, "heads")
    except Exception:
        logger.exception("Schema migration failed")
        raise
    logger.info("Schema migration finished")


def run_startup_tasks() -> None:
    """Migrate and seed once per process. Safe to call again."""
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        return
    if settings.AUTO_MIGRATE:
        run_migrations()
    if settings.SEED_DEFAULT_TAGS:
        ensure_seed_data()
    _STARTUP_COMPLETE = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Requests are only served once the schema and seed data are in place
    run_startup_tasks()
    logger.info("Social media analyzer API ready")
    yield
    logger.info("Social media analyzer API stopping")


app = FastAPI(
    title="Social Media Analyzer API",
    version="1.0.0",
    description="Posts, analysis scores, tags and audit log",
    lifespan=lifespan,
)

allowed_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
if "*" in allowed_origins:
    logger.warning("CORS_ORIGINS allows any origin; restrict it outside development")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Accept"],
)


@app.exception_handler(AnalyzerError)
async def analyzer_error_handler(request: Request, exc: AnalyzerError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)), 400
    )
    problem = schemas.Problem(title=type(exc).__name__, status=status_code, detail=exc.message)
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


app.include_router(system.router)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(tags.router)
app.include_router(audit.router)
app.include_router(stats.router)
