import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from heysheets.api.v1 import api_router
from heysheets.core.config import settings
from heysheets.core.logging_config import RequestLoggingMiddleware, setup_logging
from heysheets.services.functions.executor import FunctionExecutor
from heysheets.services.functions.registry import function_registry

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger("heysheets")


class ErrorResponse(BaseModel):
    """Standardized error response format."""
    error: str
    detail: str | None = None
    timestamp: str
    path: str | None = None


class HealthResponse(BaseModel):
    """Health check response format."""
    status: str
    service: str
    version: str
    environment: str
    checks: dict[str, bool]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the executor once per process.

    A registry/handler mismatch raises RegistryDriftError here, so a bad
    deploy never starts serving.
    """
    logger.info("Application starting up...")
    executor = FunctionExecutor.from_settings(settings)
    app.state.executor = executor
    logger.info(
        f"Function registry v{function_registry.version} ready with {len(function_registry)} functions"
    )
    if not settings.SHEETS_SERVICE_URL:
        logger.warning("SHEETS_SERVICE_URL is not set; every sheet read will fail")
    if not settings.RANKING_API_KEY:
        logger.warning("RANKING_API_KEY is not set; semantic search falls back to unranked results")
    if not settings.CALENDAR_SERVICE_URL:
        logger.warning("CALENDAR_SERVICE_URL is not set; booking functions report that booking is not enabled")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await executor.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Function calling engine for spreadsheet-backed store assistants",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for anything that escapes outside the executor.
    In production, internal details are hidden.
    """
    error_id = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")

    logger.error(
        f"Unhandled exception [{error_id}]: {exc}\n"
        f"Path: {request.url.path}\n"
        f"Method: {request.method}\n"
        f"Traceback: {traceback.format_exc()}"
    )

    if settings.ENVIRONMENT.lower() == "production":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                detail=f"An unexpected error occurred. Reference ID: {error_id}",
                timestamp=datetime.now(timezone.utc).isoformat(),
                path=request.url.path,
            ).model_dump(),
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error=exc.__class__.__name__,
            detail=str(exc),
            timestamp=datetime.now(timezone.utc).isoformat(),
            path=request.url.path,
        ).model_dump(),
    )


# Request logging middleware with timing and request IDs
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Report whether the collaborators are configured.
    The sheets gateway is critical; ranking is optional since search degrades to unranked rows.
    The calendar only serves booking functions and never changes the status.
    """
    checks = {
        "sheets_configured": bool(settings.SHEETS_SERVICE_URL),
        "ranking_configured": bool(settings.RANKING_API_KEY),
        "calendar_configured": bool(settings.CALENDAR_SERVICE_URL),
    }

    if not checks["sheets_configured"]:
        status_text = "unhealthy"
    elif not checks["ranking_configured"]:
        status_text = "degraded"
    else:
        status_text = "healthy"

    response = HealthResponse(
        status=status_text,
        service="heysheets-functions",
        version="1.0.0",
        environment=settings.ENVIRONMENT,
        checks=checks,
    )

    if status_text == "unhealthy":
        logger.warning(f"Health check failed (critical): {checks}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}
