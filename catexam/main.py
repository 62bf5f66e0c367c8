"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catexam.api.v1.api import api_router
from catexam.core.config import settings
from catexam.core.error_responses import status_code_for
from catexam.core.exceptions import CATError, OutOfSequenceError
from catexam.core.logging_config import setup_logging
from catexam.middleware import RequestLoggingMiddleware

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.
    """
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting (env={settings.ENV})")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "cat",
        "description": (
            "Computerized Adaptive Testing: test creation, adaptive question "
            "delivery, answer scoring and pass/fail decisions"
        ),
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**CAT Exam API** - Computerized Adaptive Testing for pass/fail exams.\n\n"
            "## Identity\n\n"
            "Callers are authenticated upstream. Every CAT endpoint expects the "
            "caller's user id in the `X-User-Id` header; admin endpoints require "
            "`X-Admin-Token`."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-User-Id", "X-Admin-Token", "X-Request-ID"],
    )

    # Configure Request Logging
    app.add_middleware(RequestLoggingMiddleware)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(CATError)
    async def cat_error_handler(request: Request, exc: CATError):
        """
        Translate CAT domain errors into HTTP responses.
        """
        status_code = status_code_for(exc)
        content = {"detail": exc.message}
        if isinstance(exc, OutOfSequenceError) and exc.expected_question_id is not None:
            content["expected_question_id"] = exc.expected_question_id

        logger.info(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: "
            f"{exc.message}",
            extra={"session_id": exc.session_id, "status_code": status_code},
        )
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id (UUID) for each exception so support can
        trace the specific error in logs. The error_id is included in the
        response body and logged with the full exception.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred. Please try again later.",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
