"""
FastAPI application for memory-recall.

Provides REST API for:
- Memory journal CRUD and photo uploads
- Recall question generation
- Strict answer scoring
- Score history, progress and coaching feedback
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from recall import __version__
from recall.core import configure_logging
from recall.db.database import check_database, init_db
from recall.generation import QuestionGenerationError
from recall.uploads import PhotoTooLargeError, PhotoUploadError
from recall.uploads.photos import photo_dir

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging()
    logger.info("Starting memory-recall service...")
    init_db()
    photo_dir().mkdir(parents=True, exist_ok=True)
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down memory-recall service...")


app = FastAPI(
    title="Memory Recall",
    description="""
    Memory journal with recall quizzes generated by a local language model.

    ## Features

    - **Memories**: Log memories with category, tags, location and a photo
    - **Questions**: Diverse, non-repeating recall questions from your memories
    - **Scoring**: Strict grading of free-text answers with deterministic fallbacks
    - **Progress**: Score history, trends and coaching feedback

    ## Data Flow

    ```
    Memories
        ↓ select (diverse, not recently used)
    Questions (Ollama, rule-based fallback)
        ↓ answer
    Strict scoring (Ollama + overrides, heuristic fallback)
        ↓
    Score history / progress / feedback
    ```
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(
    "/uploads",
    StaticFiles(directory=Path(settings.upload_dir), check_dir=False),
    name="uploads",
)


# ========================================
# Exception Handlers
# ========================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(PhotoUploadError)
async def photo_upload_handler(request: Request, exc: PhotoUploadError) -> JSONResponse:
    status_code = 413 if isinstance(exc, PhotoTooLargeError) else 400
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


@app.exception_handler(QuestionGenerationError)
async def generation_error_handler(request: Request, exc: QuestionGenerationError) -> JSONResponse:
    logger.error("Question generation produced nothing: {}", exc)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(exc),
            "debug": {"selected_memories_count": exc.selected_count},
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on {} {}", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": "Database unavailable, please retry"},
    )


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "memory-recall",
        "version": __version__,
        "status": "ok",
    }


@app.get("/api/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Service health including database connectivity."""
    db_status, db_error = check_database()
    result: dict[str, Any] = {
        "success": db_status == "ok",
        "message": "Memory Recall API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from recall.api.routers import (  # noqa: E402
    feedback_router,
    memories_router,
    questions_router,
    scores_router,
)

app.include_router(memories_router.router, prefix="/api/memories", tags=["Memories"])
app.include_router(questions_router.router, prefix="/api", tags=["Questions"])
app.include_router(scores_router.router, prefix="/api/scores", tags=["Scores"])
app.include_router(feedback_router.router, prefix="/api", tags=["Feedback"])
