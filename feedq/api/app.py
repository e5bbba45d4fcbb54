"""FastAPI server for the FeedQ activity stream"""

from __future__ import annotations

import os
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedq.api.routes.activities import router as activities_router
from feedq.api.routes.health import router as health_router
from feedq.config import API_USER_HEADER, APP_VERSION
from feedq.infrastructure.database import init_database
from feedq.observability.logging import get_logger
from feedq.observability.telemetry import counter

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Schema creation is idempotent; safe on every startup
    try:
        logger.info("Initializing database schema...")
        init_database()
        logger.info("Database initialization complete")
    except sqlite3.OperationalError as e:
        logger.critical("Database schema error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    yield


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Return field names only, never the validation rules.

    Side Effects:
        - Logs detailed validation errors
        - Increments api.validation_errors counter
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


def _allowed_origins() -> list[str]:
    origins = [o.strip() for o in os.getenv("FEEDQ_ALLOWED_ORIGINS", "").split(",") if o.strip()]
    if os.getenv("FEEDQ_ENV", "development") == "development":
        origins.extend(["http://localhost:3000", "http://127.0.0.1:3000"])
    return origins


def create_app() -> FastAPI:
    app = FastAPI(title="FeedQ API", version=APP_VERSION, lifespan=lifespan)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", API_USER_HEADER],
    )

    app.include_router(health_router)
    app.include_router(activities_router)
    return app


app = create_app()


def main() -> None:
    uvicorn.run(
        "feedq.api.app:app",
        host=os.getenv("FEEDQ_HOST", "127.0.0.1"),
        port=int(os.getenv("FEEDQ_PORT", "8000")),
    )
