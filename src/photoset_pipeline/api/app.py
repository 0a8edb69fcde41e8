"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from photoset_pipeline.api.photo_sets import router as photo_sets_router
from photoset_pipeline.app_logging import configure_logging
from photoset_pipeline.containers import AppContainer
from photoset_pipeline.domain.errors import (
    PhotoPipelineError,
    SubmissionFailedError,
    SubmissionValidationError,
    ValidationError,
)

_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header", "cookie"})


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(photo_sets_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "message": "Invalid request.",
                "errors": [_request_error_item(error) for error in exc.errors()],
            },
        )

    @app.exception_handler(SubmissionValidationError)
    async def submission_validation_handler(
        request: Request, exc: SubmissionValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message": "Submission failed validation.",
                "errors": [error.to_item() for error in exc.errors],
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc), "errors": [exc.to_item()]},
        )

    @app.exception_handler(SubmissionFailedError)
    async def submission_failed_handler(
        request: Request, exc: SubmissionFailedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message": str(exc),
                "errors": [failure.to_item() for failure in exc.failures],
            },
        )

    @app.exception_handler(PhotoPipelineError)
    async def pipeline_error_handler(
        request: Request, exc: PhotoPipelineError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "reason": exc.reason},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": _public_message(container, exc), "reason": exc.reason},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "reason": "InternalError"},
        )

    return app


def _public_message(container: AppContainer, exc: PhotoPipelineError) -> str:
    """Hide server-side failure details outside local environments."""
    if exc.status_code < 500 or container.settings.environment == "local":
        return str(exc)
    return "Failed to save photo set."


def _request_error_item(error: dict[str, Any]) -> dict[str, str | None]:
    """Shape a FastAPI validation error like a domain validation error."""
    names = [
        part
        for part in error.get("loc", ())
        if isinstance(part, str) and part not in _LOCATION_PREFIXES
    ]
    return {
        "field": names[-1] if names else None,
        "filename": None,
        "reason": "MissingField" if error.get("type") == "missing" else "InvalidValue",
        "detail": error.get("msg"),
    }
