"""
FastAPI server: internal anomaly detection API.

Mounts the anomaly/baseline/scan router under /api and maps domain errors to
coarse HTTP responses ({"detail": ...}); provider text and stack traces are
never returned. Config via env (see backend_shadowstack.config).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend_shadowstack import __version__
from backend_shadowstack.api_server.routes import router
from backend_shadowstack.config import get_settings
from backend_shadowstack.core.exceptions import InputValidationError, ShadowStackError
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "api_started",
        ai_threshold=settings.ai_threshold,
        summaries_enabled=settings.summaries_enabled,
    )
    yield
    logger.info("api_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Backend ShadowStack API",
        description="Transaction anomaly detection: baselines, scoring, AI summaries, alerts.",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router, prefix="/api", tags=["AI Anomaly"])

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.exception_handler(ShadowStackError)
    def domain_exception_handler(request: Request, exc: ShadowStackError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                category=exc.category,
                error=exc.message,
            )
        else:
            logger.info(
                "request_rejected",
                path=request.url.path,
                category=exc.category,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})

    @app.exception_handler(RequestValidationError)
    def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={"detail": InputValidationError.public_message},
        )

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_crashed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()
