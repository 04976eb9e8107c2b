from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from kvsplit.api.middleware import RequestLoggingMiddleware
from kvsplit.api.routes import splits
from kvsplit.config import settings
from kvsplit.errors import SplitPlanningError, StoreUnavailableError

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown.  Store clients are opened per request."""
    logger.info(
        "starting_up",
        app=settings.app_name,
        version=settings.app_version,
        max_splits_per_call=settings.max_splits_per_call,
        target_split_size=settings.target_split_size,
    )
    yield
    logger.info("shutdown_complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Split planning for Redis-backed tables.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────

app.add_middleware(RequestLoggingMiddleware)


# ── Exception Handlers ───────────────────────────────────

@app.exception_handler(SplitPlanningError)
async def planning_exception_handler(request: Request, exc: SplitPlanningError) -> JSONResponse:
    if isinstance(exc, StoreUnavailableError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        error = "Service Unavailable"
    else:
        status_code = status.HTTP_400_BAD_REQUEST
        error = "Bad Request"

    logger.warning(
        "split_planning_failed",
        path=request.url.path,
        code=exc.code,
        retryable=exc.retryable,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": str(exc), "code": exc.code},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred.",
            "code": "INTERNAL_ERROR",
        },
    )


# ── Health Check ─────────────────────────────────────────

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


# ── Routers ──────────────────────────────────────────────

app.include_router(splits.router, prefix="/splits", tags=["Splits"])
