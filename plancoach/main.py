"""FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Tuple
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from plancoach.api.v1.endpoints import health
from plancoach.api.v1.router import api_router
from plancoach.core.config import settings
from plancoach.core.database import close_database, init_database
from plancoach.core.exceptions import (
    AppError,
    AssistantRequestError,
    NotFoundError,
    PersistenceError,
    RunFailedError,
    RunTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)
from plancoach.utils.logging import get_logger
from plancoach.utils.responses import create_error_detail

LOGGER = get_logger(__name__, level=settings.log_level)

# Most specific first
ERROR_STATUS: Tuple[Tuple[type, int, str], ...] = (
    (NotFoundError, 404, "Not Found"),
    (ValidationError, 422, "Validation Error"),
    (UpstreamUnavailableError, 503, "Service Unavailable"),
    (AssistantRequestError, 502, "Assistant Request Rejected"),
    (RunFailedError, 502, "Assistant Run Failed"),
    (RunTimeoutError, 504, "Assistant Run Timed Out"),
    (PersistenceError, 500, "Internal Error"),
)


def resolve_error_status(error: AppError) -> Tuple[int, str]:
    for error_type, status_code, title in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code, title
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Error"


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    LOGGER.info("Validating configuration...")
    if not settings.assistant.api_key:
        LOGGER.error("OPENAI_API_KEY is missing")

    LOGGER.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    LOGGER.info("Starting database initialization...")
    try:
        await asyncio.wait_for(init_database(auto_migrate=True), timeout=settings.db_init_timeout)
        LOGGER.info("Database initialized successfully")
    except asyncio.TimeoutError:
        LOGGER.error(f"Database initialization timed out after {settings.db_init_timeout}s")
    except Exception as e:
        LOGGER.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    LOGGER.info("Shutting down application")
    try:
        await close_database()
    except Exception as e:
        LOGGER.error(
            "Error closing database",
            exc_info=True,
            extra={"error": str(e)}
        )


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Guided assistant conversations that fill in business plan sections",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# Correlation ID middleware
@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
    request.state.correlation_id = correlation_id
    request.state.request_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code, title = resolve_error_status(exc)
    if status_code >= 500:
        LOGGER.error(
            f"{title}: {exc}",
            exc_info=exc if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR else None,
            extra={"path": request.url.path},
        )
    else:
        LOGGER.info(f"{title}: {exc}", extra={"path": request.url.path})

    error_detail = create_error_detail(
        title=title,
        status=status_code,
        detail=str(exc),
        request=request,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": error_detail.model_dump(mode="json")},
    )


# Include routers
app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(health.router, prefix="/health", tags=["Health"])


# Root endpoint
@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    description="Get basic information about the API",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    """Root endpoint.

    Returns:
        RootResponse: Basic API information
    """
    return RootResponse(
        message="Server is running",
        version=settings.app_version,
        docs="/docs",
        health="/health",
    )


def main() -> None:
    import uvicorn

    uvicorn.run(
        "plancoach.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
