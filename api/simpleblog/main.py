from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from . import settings  # noqa: E402
from .errors import SimpleBlogError  # noqa: E402
from .routers import admin, auth, blogs, comments, reports, system  # noqa: E402
from .seed import ensure_seed_data  # noqa: E402

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()
        from .db import engine

        try:
            with engine.connect() as connection:
                current_heads = set(MigrationContext.configure(connection).get_current_heads())
            heads = set(ScriptDirectory.from_config(alembic_cfg).get_heads())
            if current_heads == heads:
                logger.info(f"Database is up to date (revision: {', '.join(sorted(heads))}), skipping migrations.")
                return
            logger.info(f"Current revision(s): {sorted(current_heads)}, target: {sorted(heads)}. Running migrations...")
        finally:
            # Ensure connections are released before alembic opens its own
            engine.dispose()

        command.upgrade(alembic_cfg, "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        if settings.RUN_MIGRATIONS:
            run_migrations()
        else:
            logger.info("run_startup_tasks: RUN_MIGRATIONS disabled, skipping migrations.")
        ensure_seed_data()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't accept requests until these complete
    run_startup_tasks()
    logger.info("SimpleBlog API server ready")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="SimpleBlog API",
    version="1.0.0",
    description="Blogging platform API with comments, likes and moderation",
    lifespan=lifespan,
)

# Comma-separated list of allowed origins
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
if cors_origins_str == "*":
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )
cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)


@app.exception_handler(SimpleBlogError)
async def simpleblog_error_handler(request: Request, exc: SimpleBlogError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.detail}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_problem(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "request", []).append(error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=422,
        content={
            "kind": "validation_error",
            "title": "Validation failed",
            "status": 422,
            "detail": "Request validation failed",
            "errors": errors,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "kind": "internal_error",
            "title": "Internal server error",
            "status": 500,
            "detail": "An unexpected error occurred",
        },
    )


app.include_router(system.router)
app.include_router(auth.router)
app.include_router(blogs.router)
app.include_router(comments.router)
app.include_router(reports.router)
app.include_router(admin.router)
